"""
Rates Service - CRUD operations for the rate configuration.
Handles reading/writing countries.csv and rates.csv and auto-compiling to JSON.
"""
import csv
from decimal import Decimal
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

from loguru import logger

from ..data.loader import parse_bool, parse_optional_decimal
from ..engine.models import Country, RateTable, WeightTier, check_tier_coverage
from ..rates.compile_rates import compile_rates


@dataclass
class TierRow:
    """A weight tier as stored in rates.csv."""
    country_code: str
    min_grams: Decimal
    max_grams: Optional[Decimal]
    price: Decimal

    def to_csv_row(self) -> dict:
        """Convert to CSV row format."""
        return {
            'country_code': self.country_code,
            'min_grams': str(self.min_grams),
            'max_grams': '' if self.max_grams is None else str(self.max_grams),
            'price': str(self.price),
        }

    @classmethod
    def from_csv_row(cls, row: dict) -> 'TierRow':
        """Create TierRow from CSV row."""
        return cls(
            country_code=row.get('country_code', '').strip().upper(),
            min_grams=parse_optional_decimal(row.get('min_grams', '')) or Decimal(0),
            max_grams=parse_optional_decimal(row.get('max_grams', '')),
            price=parse_optional_decimal(row.get('price', '')) or Decimal(0),
        )

    def to_tier(self) -> WeightTier:
        return WeightTier(min_grams=self.min_grams, max_grams=self.max_grams, price=self.price)


@dataclass
class ValidationResult:
    """Result of tier validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class RatesService:
    """Service for managing countries and weight tiers."""

    COUNTRY_COLUMNS = ['code', 'name', 'enabled']
    TIER_COLUMNS = ['country_code', 'min_grams', 'max_grams', 'price']

    def __init__(self, countries_csv_path: Path, rates_csv_path: Path, compiled_path: Path, currency: str = 'EUR'):
        self.countries_csv_path = countries_csv_path
        self.rates_csv_path = rates_csv_path
        self.compiled_path = compiled_path
        self.currency = currency

    # Countries

    def list_countries(self, include_disabled: bool = True) -> list[Country]:
        """List countries from CSV."""
        countries = []
        if not self.countries_csv_path.exists():
            return countries

        with open(self.countries_csv_path, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            for row in reader:
                code = (row.get('code') or '').strip().upper()
                if not code:
                    continue
                country = Country(
                    code=code,
                    name=(row.get('name') or code).strip(),
                    enabled=parse_bool(row.get('enabled', 'false')),
                )
                if include_disabled or country.enabled:
                    countries.append(country)

        return countries

    def get_country(self, code: str) -> Optional[Country]:
        """Get a single country by ISO code."""
        code = code.strip().upper()
        for country in self.list_countries():
            if country.code == code:
                return country
        return None

    def add_country(self, code: str, name: str, auto_compile: bool = True) -> Country:
        """Add a country. New countries start disabled until they have tiers."""
        code = code.strip().upper()
        if len(code) != 2 or not code.isalpha():
            raise ValueError(f"Country code '{code}' is not ISO alpha-2")
        if self.get_country(code):
            raise ValueError(f"Country '{code}' already exists")

        country = Country(code=code, name=name.strip() or code, enabled=False)
        countries = self.list_countries()
        countries.append(country)
        self._check_table(countries, self.list_tiers())
        self._write_countries(countries)

        if auto_compile:
            self._recompile()
        return country

    def set_country_enabled(self, code: str, enabled: bool, auto_compile: bool = True) -> Country:
        """Enable or disable a country for quotation."""
        code = code.strip().upper()
        countries = self.list_countries()
        for i, country in enumerate(countries):
            if country.code == code:
                countries[i] = Country(code=country.code, name=country.name, enabled=enabled)
                break
        else:
            raise ValueError(f"Country '{code}' not found")

        if enabled:
            result = self.validate_country_tiers(code, [r.to_tier() for r in self.list_tiers(code)])
            if not result.valid:
                raise ValueError(f"Cannot enable {code}: " + "; ".join(result.errors))

        self._check_table(countries, self.list_tiers())
        self._write_countries(countries)
        logger.info("Country {} {}", code, "enabled" if enabled else "disabled")

        if auto_compile:
            self._recompile()
        return countries[i]

    # Tiers

    def list_tiers(self, country_code: Optional[str] = None) -> list[TierRow]:
        """List tier rows, optionally for one country, ordered by country and min weight."""
        rows = []
        if not self.rates_csv_path.exists():
            return rows

        code = country_code.strip().upper() if country_code else None
        with open(self.rates_csv_path, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            for row in reader:
                if not row.get('country_code'):
                    continue
                tier_row = TierRow.from_csv_row(row)
                if code is None or tier_row.country_code == code:
                    rows.append(tier_row)

        rows.sort(key=lambda r: (r.country_code, r.min_grams))
        return rows

    def set_country_tiers(self, code: str, tiers: list[WeightTier], auto_compile: bool = True) -> list[TierRow]:
        """Replace all tiers of a country wholesale."""
        code = code.strip().upper()
        country = self.get_country(code)
        if country is None:
            raise ValueError(f"Country '{code}' not found")

        result = self.validate_country_tiers(code, tiers)
        if not result.valid:
            raise ValueError("; ".join(result.errors))
        for warning in result.warnings:
            logger.warning("{}", warning)

        rows = [r for r in self.list_tiers() if r.country_code != code]
        new_rows = [
            TierRow(country_code=code, min_grams=t.min_grams, max_grams=t.max_grams, price=t.price)
            for t in sorted(tiers, key=lambda t: t.min_grams)
        ]
        self._check_table(self.list_countries(), rows + new_rows)
        self._write_tiers(rows + new_rows)
        logger.info("Replaced tiers for {} ({} tiers)", code, len(new_rows))

        if auto_compile:
            self._recompile()
        return new_rows

    def delete_country_tiers(self, code: str, auto_compile: bool = True) -> bool:
        """Delete every tier of a country. Enabled countries must be disabled first."""
        code = code.strip().upper()
        country = self.get_country(code)
        if country is not None and country.enabled:
            raise ValueError(f"Country '{code}' is enabled; disable it before deleting its tiers")

        rows = self.list_tiers()
        remaining = [r for r in rows if r.country_code != code]
        if len(remaining) == len(rows):
            raise ValueError(f"No tiers found for country '{code}'")

        self._check_table(self.list_countries(), remaining)
        self._write_tiers(remaining)
        logger.info("Deleted tiers for {}", code)

        if auto_compile:
            self._recompile()
        return True

    def validate_country_tiers(self, code: str, tiers: list[WeightTier]) -> ValidationResult:
        """Validate a country's tiers before saving."""
        code = code.strip().upper()
        result = ValidationResult(valid=True)

        country = self.get_country(code)
        if country is None:
            result.errors.append(f"Country '{code}' not found")
            result.valid = False
            return result

        coverage_errors = check_tier_coverage(code, tiers)
        if coverage_errors:
            result.errors.extend(coverage_errors)
            result.valid = False

        # Warn if a heavier tier is cheaper than a lighter one
        ordered = sorted(tiers, key=lambda t: t.min_grams)
        for lighter, heavier in zip(ordered, ordered[1:]):
            if heavier.price < lighter.price:
                result.warnings.append(
                    f"{code}: tier {heavier.label()} costs less than {lighter.label()}"
                )

        if not country.enabled:
            result.warnings.append(f"{code}: country is disabled, tiers will not be quoted")

        return result

    def compile_rates(self) -> tuple[bool, list[str]]:
        """Compile the CSVs to JSON."""
        success, _, errors = compile_rates(
            self.countries_csv_path,
            self.rates_csv_path,
            self.compiled_path,
            currency=self.currency,
            verbose=False,
        )
        if not success:
            logger.warning("Rate compilation failed: {}", "; ".join(errors))
        return success, errors

    def _recompile(self):
        """Compile after a change, raising ValueError when compilation fails."""
        success, errors = self.compile_rates()
        if not success:
            raise ValueError("Rate compilation failed: " + "; ".join(errors))

    def _check_table(self, countries: list[Country], rows: list[TierRow]):
        """Reject a change whose resulting rate table could not be quoted against."""
        tiers: dict[str, list[WeightTier]] = {}
        for row in rows:
            tiers.setdefault(row.country_code, []).append(row.to_tier())
        table = RateTable(
            countries=tuple(countries),
            tiers={code: tuple(t) for code, t in tiers.items()},
            currency=self.currency,
        )
        errors = table.validate()
        if errors:
            raise ValueError("; ".join(errors))

    def _write_countries(self, countries: list[Country]):
        """Write countries back to CSV."""
        with open(self.countries_csv_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.COUNTRY_COLUMNS)
            writer.writeheader()
            for country in countries:
                writer.writerow({
                    'code': country.code,
                    'name': country.name,
                    'enabled': 'true' if country.enabled else 'false',
                })

    def _write_tiers(self, rows: list[TierRow]):
        """Write tiers back to CSV."""
        rows = sorted(rows, key=lambda r: (r.country_code, r.min_grams))
        with open(self.rates_csv_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.TIER_COLUMNS)
            writer.writeheader()
            for row in rows:
                writer.writerow(row.to_csv_row())
