"""
Rate Quotation Engine - Home delivery price resolution with traceability.

Resolution order:
1. Resolve the destination against the enabled countries (code or name)
2. Normalize the weight to grams and reject negative / non-numeric values
3. Scan the country's weight tiers in ascending order
4. Return the tier's fixed price in the store currency
"""
import threading
from typing import Optional

from loguru import logger

from ..config.settings import get_settings, Settings
from ..units import to_grams
from .errors import InvalidWeight, NoMatchingTier, RateTableError, UnsupportedDestination, QuotationError
from .models import Country, Quote, QuoteRequest, RateTable, TraceStep, quantize_money
from .tier_matcher import match_tier


class RateQuotationEngine:
    """
    Quotes a shipping price for a package weight and destination.

    The engine holds a single immutable RateTable. Each quote reads the
    current table once, so a concurrent replace_table() never mixes two
    tables within one quote.
    """

    def __init__(self, table: Optional[RateTable] = None, settings: Optional[Settings] = None, validate: bool = True):
        """Initialize the engine with an explicit table, or load one from settings."""
        self.settings = settings or get_settings()
        self._lock = threading.Lock()
        self._table: Optional[RateTable] = None

        if table is None:
            from ..data.loader import load_rate_table
            table = load_rate_table(self.settings)
            validate = False
        self._install(table, validate)

    @property
    def table(self) -> RateTable:
        return self._table

    def _install(self, table: RateTable, validate: bool):
        if validate:
            errors = table.validate()
            if errors:
                raise RateTableError(errors)
        with self._lock:
            self._table = table

    def replace_table(self, table: RateTable):
        """Swap in a new rate table. The old table stays active if the new one is invalid."""
        self._install(table, validate=True)
        logger.info(
            "Rate table replaced from {} ({} enabled countries)",
            table.source or "memory", len(table.enabled_countries),
        )

    def reload_data(self):
        """Reload the rate table from the configuration files."""
        from ..data.loader import load_rate_table
        self.replace_table(load_rate_table(self.settings))

    def enabled_countries(self) -> tuple[Country, ...]:
        """Countries offered to the shopper, sorted by code."""
        return self._table.enabled_countries

    def quote(self, weight, country: str, unit: str = "g", strict: bool = False) -> Quote:
        """
        Quote the home delivery price for a package.

        Args:
            weight: Package weight, in grams unless ``unit`` says otherwise
            country: ISO alpha-2 code or display name of the destination
            unit: One of g, kg, lb, oz
            strict: Raise UnsupportedDestination / InvalidWeight instead of
                returning a failure quote

        Returns:
            Quote; NoMatchingTier is always raised since it means the
            configuration is broken.
        """
        table = self._table
        quote = self._quote(table, weight, country, unit)
        if strict:
            quote.raise_for_error()
        return quote

    def quote_request(self, request: QuoteRequest, strict: bool = False) -> Quote:
        return self.quote(request.weight, request.country, unit=request.unit, strict=strict)

    def _details(self) -> dict:
        return {
            "method": self.settings.method_label,
            "carrier": self.settings.carrier,
            "package_type": self.settings.package_type,
        }

    def _fail(self, error: QuotationError, table: RateTable, trace: list[TraceStep], **kwargs) -> Quote:
        logger.warning("Rejected quote: {}", error.message)
        trace.append(TraceStep("Rejected", error.message, error.reason))
        return Quote.failure(error, currency=table.currency, trace=trace, **kwargs, **self._details())

    def _quote(self, table: RateTable, weight, country: str, unit: str) -> Quote:
        trace: list[TraceStep] = []

        # Destination is checked before anything else
        destination = table.resolve_country(country)
        if destination is None or not destination.enabled:
            return self._fail(
                UnsupportedDestination(f"Destination {country!r} is not an enabled shipping country", country=str(country)),
                table, trace, country_code=None, weight_grams=None,
            )
        trace.append(TraceStep("Destination", f"Resolved enabled country {destination.name}", destination.code))

        # Weight
        try:
            grams = to_grams(weight, unit)
        except ValueError as e:
            return self._fail(
                InvalidWeight(str(e), country=destination.code, weight=str(weight)),
                table, trace, country_code=destination.code, weight_grams=None,
            )
        if grams is None or not grams.is_finite():
            return self._fail(
                InvalidWeight(f"Weight {weight!r} is not a finite number", country=destination.code, weight=str(weight)),
                table, trace, country_code=destination.code, weight_grams=None,
            )
        if grams < 0:
            return self._fail(
                InvalidWeight(f"Weight {grams} g is negative", country=destination.code, weight=str(grams)),
                table, trace, country_code=destination.code, weight_grams=None,
            )
        trace.append(TraceStep("Weight", f"Package weight in grams ({unit})", f"{grams}"))

        # Tier
        tier = match_tier(table.tiers_for(destination.code), grams)
        if tier is None:
            logger.error(
                "No weight tier covers {} g for {}; rate table {} is inconsistent",
                grams, destination.code, table.source or "memory",
            )
            raise NoMatchingTier(
                f"No weight tier for {grams} g to {destination.code}",
                country=destination.code,
                weight=str(grams),
            )

        price = quantize_money(tier.price, table.currency)
        trace.append(TraceStep("Tier", f"Matched weight tier {tier.label()}", f"{price} {table.currency}"))

        logger.debug("Quoted {} g to {}: {} {}", grams, destination.code, price, table.currency)
        return Quote.success(
            price, table.currency,
            country_code=destination.code, weight_grams=grams, tier=tier, trace=trace,
            **self._details(),
        )
