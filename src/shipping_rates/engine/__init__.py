"""Engine subpackage - rate table models and quotation logic."""
from .rate_engine import RateQuotationEngine
from .models import Country, WeightTier, RateTable, Quote, QuoteRequest
from .errors import (
    QuotationError,
    UnsupportedDestination,
    InvalidWeight,
    NoMatchingTier,
    RateTableError,
)

__all__ = [
    'RateQuotationEngine', 'Country', 'WeightTier', 'RateTable', 'Quote', 'QuoteRequest',
    'QuotationError', 'UnsupportedDestination', 'InvalidWeight', 'NoMatchingTier', 'RateTableError',
]
