"""
Data models for the rate quotation engine.

Rate table values are frozen dataclasses so a loaded table can be shared
between callers and replaced wholesale, never edited in place.
"""
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from types import MappingProxyType
from typing import Mapping, Optional

from .errors import QuotationError, InvalidWeight, UnsupportedDestination, NoMatchingTier

# Minor-unit digits per currency; anything not listed uses 2.
CURRENCY_EXPONENTS = {"JPY": 0, "KRW": 0, "BHD": 3, "KWD": 3}

ERRORS_BY_REASON = {
    cls.reason: cls for cls in (UnsupportedDestination, InvalidWeight, NoMatchingTier)
}


def quantize_money(amount: Decimal, currency: str) -> Decimal:
    """Round an amount to the currency's minor unit."""
    exponent = CURRENCY_EXPONENTS.get(currency.upper(), 2)
    return amount.quantize(Decimal(1).scaleb(-exponent), rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class TraceStep:
    """A single step in the quotation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class Country:
    """A shipping destination."""
    code: str  # ISO-3166 alpha-2
    name: str
    enabled: bool = True


@dataclass(frozen=True)
class WeightTier:
    """Half-open weight interval [min_grams, max_grams) with a fixed price."""
    min_grams: Decimal
    max_grams: Optional[Decimal]  # None = unbounded
    price: Decimal

    def contains(self, weight_grams: Decimal) -> bool:
        if weight_grams < self.min_grams:
            return False
        return self.max_grams is None or weight_grams < self.max_grams

    def label(self) -> str:
        upper = "∞" if self.max_grams is None else f"{self.max_grams}"
        return f"[{self.min_grams}, {upper}) g"

    def to_dict(self) -> dict:
        return {
            "min_grams": str(self.min_grams),
            "max_grams": None if self.max_grams is None else str(self.max_grams),
            "price": str(self.price),
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'WeightTier':
        max_grams = data.get("max_grams")
        return cls(
            min_grams=Decimal(str(data["min_grams"])),
            max_grams=None if max_grams in (None, "") else Decimal(str(max_grams)),
            price=Decimal(str(data["price"])),
        )


@dataclass(frozen=True)
class RateTable:
    """
    Countries and their ordered weight tiers.

    Built once from configuration and read-only afterwards. Lookups by code
    or display name are case-insensitive.
    """
    countries: tuple[Country, ...]
    tiers: Mapping[str, tuple[WeightTier, ...]]
    currency: str = "EUR"
    source: Optional[str] = None

    def __post_init__(self):
        ordered = {
            code.strip().upper(): tuple(sorted(tiers, key=lambda t: t.min_grams))
            for code, tiers in self.tiers.items()
        }
        countries = tuple(replace(c, code=c.code.strip().upper()) for c in self.countries)
        object.__setattr__(self, "tiers", MappingProxyType(ordered))
        object.__setattr__(self, "countries", countries)
        object.__setattr__(self, "currency", self.currency.upper())

    @property
    def enabled_countries(self) -> tuple[Country, ...]:
        return tuple(sorted((c for c in self.countries if c.enabled), key=lambda c: c.code))

    def resolve_country(self, key: str) -> Optional[Country]:
        """Find a country by ISO code or display name."""
        key = str(key or "").strip().casefold()
        if not key:
            return None
        for country in self.countries:
            if country.code.casefold() == key or country.name.casefold() == key:
                return country
        return None

    def tiers_for(self, country_code: str) -> tuple[WeightTier, ...]:
        return self.tiers.get(country_code.upper(), ())

    def validate(self) -> list[str]:
        """
        Check that every enabled country has contiguous, non-overlapping
        tiers covering [0, ∞). Returns a list of error messages.
        """
        errors = []
        seen = set()
        for country in self.countries:
            if country.code in seen:
                errors.append(f"Duplicate country {country.code}")
            seen.add(country.code)

        for code in self.tiers:
            if code not in seen:
                errors.append(f"Tiers configured for unknown country {code}")

        for country in self.countries:
            if not country.enabled:
                continue
            errors.extend(check_tier_coverage(country.code, self.tiers_for(country.code)))

        if not self.enabled_countries:
            errors.append("No enabled countries")
        return errors

    def to_dict(self) -> dict:
        return {
            "currency": self.currency,
            "countries": [
                {"code": c.code, "name": c.name, "enabled": c.enabled}
                for c in self.countries
            ],
            "tiers": {
                code: [t.to_dict() for t in tiers]
                for code, tiers in self.tiers.items()
            },
        }

    @classmethod
    def from_dict(cls, data: dict, source: Optional[str] = None) -> 'RateTable':
        return cls(
            countries=tuple(
                Country(code=c["code"].upper(), name=c["name"], enabled=bool(c.get("enabled", True)))
                for c in data.get("countries", [])
            ),
            tiers={
                code: tuple(WeightTier.from_dict(t) for t in tiers)
                for code, tiers in data.get("tiers", {}).items()
            },
            currency=data.get("currency", "EUR"),
            source=source,
        )


def check_tier_coverage(country_code: str, tiers) -> list[str]:
    """Errors for tiers that leave gaps, overlap, or do not cover [0, ∞)."""
    errors = []
    tiers = sorted(tiers, key=lambda t: t.min_grams)
    if not tiers:
        return [f"{country_code}: no weight tiers configured"]

    for tier in tiers:
        if tier.min_grams < 0:
            errors.append(f"{country_code}: tier {tier.label()} starts below 0 g")
        if tier.max_grams is not None and tier.max_grams <= tier.min_grams:
            errors.append(f"{country_code}: tier {tier.label()} is empty")
        if tier.price < 0:
            errors.append(f"{country_code}: tier {tier.label()} has a negative price")

    if tiers[0].min_grams != 0:
        errors.append(f"{country_code}: first tier starts at {tiers[0].min_grams} g instead of 0")

    for current, following in zip(tiers, tiers[1:]):
        if current.max_grams is None:
            errors.append(f"{country_code}: unbounded tier {current.label()} is followed by {following.label()}")
        elif following.min_grams > current.max_grams:
            errors.append(f"{country_code}: gap between {current.max_grams} g and {following.min_grams} g")
        elif following.min_grams < current.max_grams:
            errors.append(f"{country_code}: tiers {current.label()} and {following.label()} overlap")

    if tiers[-1].max_grams is not None:
        errors.append(f"{country_code}: last tier {tiers[-1].label()} is bounded; weights above {tiers[-1].max_grams} g are not covered")
    return errors


@dataclass
class QuoteRequest:
    """A quotation request; weight is converted to grams from ``unit``."""
    weight: object
    country: str
    unit: str = "g"


@dataclass
class Quote:
    """Result of evaluating a weight/destination pair against the rate table."""
    ok: bool
    country_code: Optional[str]
    weight_grams: Optional[Decimal]
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    tier: Optional[WeightTier] = None
    method: str = "Home delivery"
    carrier: str = "BPost"
    package_type: str = "custom_box"
    trace: list[TraceStep] = field(default_factory=list)

    @classmethod
    def success(cls, price: Decimal, currency: str, **kwargs) -> 'Quote':
        return cls(ok=True, price=price, currency=currency, **kwargs)

    @classmethod
    def failure(cls, error: QuotationError, **kwargs) -> 'Quote':
        return cls(ok=False, reason=error.reason, message=error.message, **kwargs)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"→ {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"→ {t.step}: {t.description}")
        return "\n".join(lines)

    def raise_for_error(self) -> 'Quote':
        """Raise the typed error for a failed quote, return self otherwise."""
        if not self.ok:
            error_cls = ERRORS_BY_REASON.get(self.reason, QuotationError)
            raise error_cls(
                self.message or self.reason or "Quotation failed",
                country=self.country_code,
                weight=None if self.weight_grams is None else str(self.weight_grams),
            )
        return self

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "country_code": self.country_code,
            "weight_grams": None if self.weight_grams is None else str(self.weight_grams),
            "price": None if self.price is None else str(self.price),
            "currency": self.currency,
            "reason": self.reason,
            "message": self.message,
            "tier": None if self.tier is None else self.tier.to_dict(),
            "method": self.method,
            "carrier": self.carrier,
            "package_type": self.package_type,
            "trace": [
                {"step": t.step, "description": t.description, "value": t.value}
                for t in self.trace
            ],
        }
