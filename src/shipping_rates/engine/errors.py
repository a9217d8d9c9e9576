"""
Quotation errors.

Each failure kind carries a stable ``reason`` code so API and UI layers can
report it without string matching on messages.
"""
from typing import Optional


class QuotationError(Exception):
    """Base class for quotation failures."""
    reason = "quotation_error"

    def __init__(self, message: str, country: Optional[str] = None, weight: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.country = country
        self.weight = weight


class UnsupportedDestination(QuotationError):
    """Destination is not in the enabled-country set."""
    reason = "unsupported_destination"


class InvalidWeight(QuotationError):
    """Weight is negative, non-finite or not a number."""
    reason = "invalid_weight"


class NoMatchingTier(QuotationError):
    """The country's tier list has a gap covering the weight. Configuration defect."""
    reason = "no_matching_tier"


class RateTableError(ValueError):
    """A rate table failed validation."""

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid rate table")
