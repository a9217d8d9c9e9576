"""
Rate configuration loader.

Reads the store's enabled countries and the carrier's weight tiers from CSV
into rate table values. Row problems are collected with their CSV line
numbers instead of stopping at the first one.
"""
import json
from decimal import Decimal
from pathlib import Path
from typing import Optional

import pandas as pd
from loguru import logger

from ..engine.errors import RateTableError
from ..engine.models import Country, WeightTier, RateTable
from ..units import to_decimal

COUNTRY_COLUMNS = ['code', 'name', 'enabled']
TIER_COLUMNS = ['country_code', 'min_grams', 'max_grams', 'price']


def parse_bool(value: str) -> bool:
    """Parse a boolean from CSV string."""
    return str(value).strip().lower() in ('true', '1', 'yes', 'on')


def parse_optional_decimal(value: str) -> Optional[Decimal]:
    """Parse optional decimal (empty = None). Raises ValueError if not numeric."""
    if value is None or str(value).strip() == '':
        return None
    number = to_decimal(value)
    if number is None or not number.is_finite():
        raise ValueError(f"'{value}' is not a number")
    return number


def _read_csv(path: Path, columns: list[str]) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"Rate configuration file not found at {path}.")

    df = pd.read_csv(path, dtype=str).fillna('')
    df.columns = [c.strip() for c in df.columns]
    missing = [c for c in columns if c not in df.columns]
    if missing:
        raise RateTableError([f"{path.name}: missing columns {', '.join(missing)}"])
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    return df


def read_countries(path: Path) -> tuple[list[Country], list[str]]:
    """Read countries.csv into Country values. Returns (countries, errors)."""
    df = _read_csv(path, COUNTRY_COLUMNS)
    countries = []
    errors = []

    for line_num, row in enumerate(df.to_dict(orient='records'), start=2):
        code = row['code'].upper()
        if len(code) != 2 or not code.isalpha():
            errors.append(f"{path.name} line {line_num}: country code '{row['code']}' is not ISO alpha-2")
            continue
        countries.append(Country(
            code=code,
            name=row['name'] or code,
            enabled=parse_bool(row['enabled']),
        ))

    return countries, errors


def read_tiers(path: Path) -> tuple[dict[str, list[WeightTier]], list[str]]:
    """Read rates.csv into per-country tier lists. Returns (tiers, errors)."""
    df = _read_csv(path, TIER_COLUMNS)
    tiers: dict[str, list[WeightTier]] = {}
    errors = []

    for line_num, row in enumerate(df.to_dict(orient='records'), start=2):
        code = row['country_code'].upper()
        if not code:
            errors.append(f"{path.name} line {line_num}: country_code is required")
            continue

        try:
            min_grams = parse_optional_decimal(row['min_grams'])
            max_grams = parse_optional_decimal(row['max_grams'])
            price = parse_optional_decimal(row['price'])
        except ValueError as e:
            errors.append(f"{path.name} line {line_num}: {e}")
            continue

        if min_grams is None:
            errors.append(f"{path.name} line {line_num}: min_grams is required")
            continue
        if price is None:
            errors.append(f"{path.name} line {line_num}: price is required")
            continue
        if min_grams < 0:
            errors.append(f"{path.name} line {line_num}: min_grams must not be negative")
            continue
        if max_grams is not None and max_grams <= min_grams:
            errors.append(f"{path.name} line {line_num}: max_grams must be greater than min_grams")
            continue
        if price < 0:
            errors.append(f"{path.name} line {line_num}: price must not be negative")
            continue

        tiers.setdefault(code, []).append(WeightTier(min_grams=min_grams, max_grams=max_grams, price=price))

    return tiers, errors


def build_rate_table(countries_csv: Path, rates_csv: Path, currency: str = 'EUR') -> tuple[RateTable, list[str]]:
    """
    Build a RateTable from the two CSV files.

    Returns (table, errors); errors covers both row problems and tier
    coverage problems. The table is only safe to quote against if errors is empty.
    """
    countries, errors = read_countries(countries_csv)
    tiers, tier_errors = read_tiers(rates_csv)
    errors.extend(tier_errors)

    table = RateTable(
        countries=tuple(countries),
        tiers={code: tuple(t) for code, t in tiers.items()},
        currency=currency,
        source=f"{countries_csv.name}+{rates_csv.name}",
    )
    errors.extend(table.validate())
    return table, errors


def read_compiled(path: Path) -> RateTable:
    """Load a compiled_rates.json file."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    return RateTable.from_dict(data, source=path.name)


def _compiled_is_current(settings) -> bool:
    compiled = settings.compiled_rates
    if not compiled or not compiled.exists():
        return False
    compiled_at = compiled.stat().st_mtime_ns
    for source in (settings.countries_csv, settings.rates_csv):
        if source.exists() and source.stat().st_mtime_ns > compiled_at:
            logger.warning("{} is older than {}; rebuilding from CSV", compiled.name, source.name)
            return False
    return True


def load_rate_table(settings) -> RateTable:
    """
    Load the rate table for the configured store.

    Prefers the compiled JSON; builds from the CSVs when it has not been
    compiled yet or when a CSV was edited after the last compile. The
    compiled file carries its own currency, which wins over the configured
    one. Raises RateTableError when the configuration is invalid.
    """
    if _compiled_is_current(settings):
        table = read_compiled(settings.compiled_rates)
        errors = table.validate()
        if table.currency != settings.currency:
            logger.warning(
                "{} is priced in {}, not the configured {}",
                settings.compiled_rates.name, table.currency, settings.currency,
            )
    else:
        table, errors = build_rate_table(settings.countries_csv, settings.rates_csv, settings.currency)

    if errors:
        for err in errors:
            logger.error("Rate configuration error: {}", err)
        raise RateTableError(errors)

    logger.info(
        "Loaded rate table from {} ({} enabled countries)",
        table.source, len(table.enabled_countries),
    )
    return table
