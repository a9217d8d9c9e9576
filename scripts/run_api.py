#!/usr/bin/env python
"""
Compile the rate configuration and serve the quotation API with uvicorn.

Host, port, log level and data directory come from the SHIPPING_RATES_*
environment variables.

Usage:
    python scripts/run_api.py [--reload]
"""
import subprocess
import sys
import os
from pathlib import Path

src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from shipping_rates.config.settings import get_settings
from shipping_rates.logging_config import setup_logging
from shipping_rates.rates.compile_rates import compile_rates


def main():
    settings = get_settings()
    setup_logging(settings.log_level)

    success, table, errors = compile_rates(
        settings.countries_csv,
        settings.rates_csv,
        settings.compiled_rates,
        currency=settings.currency,
    )
    if not success:
        print("Refusing to start: the rate configuration is invalid.")
        for error in errors:
            print(f"  ERROR: {error}")
        sys.exit(1)

    env = os.environ.copy()
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src_path), env.get("PYTHONPATH")]))

    cmd = [
        sys.executable, "-m", "uvicorn",
        "shipping_rates.api.main:app",
        "--host", settings.api_host,
        "--port", str(settings.api_port),
        "--log-level", settings.log_level.lower(),
    ]
    if "--reload" in sys.argv[1:]:
        cmd.append("--reload")

    countries = ", ".join(c.code for c in table.enabled_countries)
    print(f"Serving quotes for {countries} on http://{settings.api_host}:{settings.api_port}")
    try:
        subprocess.run(cmd, env=env, cwd=str(settings.project_root))
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
