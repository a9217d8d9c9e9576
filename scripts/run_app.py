#!/usr/bin/env python
"""
Compile the rate configuration and open the Streamlit rate calculator.

Usage:
    python scripts/run_app.py
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

    success, _, errors = compile_rates(
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

    # The UI process reads the same data directory
    env = os.environ.copy()
    env["SHIPPING_RATES_DATA_DIR"] = str(settings.data_dir)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(src_path), env.get("PYTHONPATH")]))

    ui_path = src_path / 'shipping_rates' / 'ui' / 'app_streamlit.py'
    cmd = [sys.executable, '-m', 'streamlit', 'run', str(ui_path)]
    print(f"Starting rate calculator on {settings.data_dir}")
    try:
        subprocess.run(cmd, cwd=str(settings.project_root), env=env)
    except KeyboardInterrupt:
        print("\nApplication stopped.")


if __name__ == "__main__":
    main()
