#!/usr/bin/env python
"""
Build pipeline - compiles the rate configuration and runs the golden tests.

Usage:
    python scripts/build_all.py
"""
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from shipping_rates.config.settings import get_settings
from shipping_rates.logging_config import setup_logging
from shipping_rates.rates.compile_rates import compile_rates


def main():
    print("=" * 60)
    print("SHIPPING RATES BUILD PIPELINE")
    print("=" * 60)
    print()

    settings = get_settings()
    setup_logging(settings.log_level)

    # Compile rates
    print("[1/2] Compiling rate configuration...")
    success, table, errors = compile_rates(
        settings.countries_csv,
        settings.rates_csv,
        settings.compiled_rates,
        currency=settings.currency,
    )

    if not success:
        print("\n❌ BUILD FAILED")
        for error in errors:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    print("[2/2] Running golden tests...")

    # Run tests
    import subprocess
    test_result = subprocess.run(
        [sys.executable, '-m', 'pytest', 'tests/test_golden_cases.py', '-v', '--tb=short'],
        cwd=Path(__file__).parent.parent
    )

    if test_result.returncode != 0:
        print("\n❌ TESTS FAILED")
        sys.exit(1)

    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Rate table:")
    for country in table.enabled_countries:
        tiers = table.tiers_for(country.code)
        print(f"  {country.code} {country.name}: {len(tiers)} tiers")
    print(f"  Currency: {table.currency}")


if __name__ == "__main__":
    main()
