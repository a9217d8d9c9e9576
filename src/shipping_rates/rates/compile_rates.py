"""
Rate Compiler - Validates and compiles rate configuration from CSV to JSON.

Reads countries.csv and rates.csv, validates every row and the tier
coverage of each enabled country, and outputs compiled_rates.json.
"""
import json
from pathlib import Path
from datetime import datetime
from typing import Optional

from loguru import logger

from ..data.loader import build_rate_table
from ..engine.models import RateTable


def compile_rates(
    countries_csv: Path,
    rates_csv: Path,
    output_json: Path,
    currency: str = 'EUR',
    verbose: bool = True
) -> tuple[bool, Optional[RateTable], list[str]]:
    """
    Compile rate configuration from CSV to JSON.

    Returns (success, table, errors). Nothing is written when there are errors.
    """
    for path in (countries_csv, rates_csv):
        if not path.exists():
            return False, None, [f"Rate configuration file not found: {path}"]

    table, errors = build_rate_table(countries_csv, rates_csv, currency)

    if errors:
        if verbose:
            logger.error("Rate validation errors:")
            for err in errors:
                logger.error("  {}", err)
        return False, table, errors

    output_data = {
        "compiled_at": datetime.now().isoformat(),
        "source_files": [str(countries_csv), str(rates_csv)],
        "total_countries": len(table.countries),
        "enabled_countries": len(table.enabled_countries),
        **table.to_dict(),
    }

    output_json.parent.mkdir(parents=True, exist_ok=True)
    with open(output_json, 'w', encoding='utf-8') as f:
        json.dump(output_data, f, indent=2)

    if verbose:
        logger.info(
            "Compiled rates for {} countries ({} enabled) to {}",
            output_data['total_countries'], output_data['enabled_countries'], output_json,
        )

    return True, table, []


def main():
    """CLI entry point."""
    import sys

    from ..config.settings import get_settings
    from ..logging_config import setup_logging

    settings = get_settings()
    setup_logging(settings.log_level)

    print("Compiling shipping rates...")
    success, table, errors = compile_rates(
        settings.countries_csv,
        settings.rates_csv,
        settings.compiled_rates,
        currency=settings.currency,
    )

    if not success:
        print(f"\n❌ Compilation failed with {len(errors)} errors")
        sys.exit(1)
    print(f"✅ Compiled {len(table.enabled_countries)} enabled countries")


if __name__ == "__main__":
    main()
