import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from shipping_rates.engine import RateQuotationEngine
from shipping_rates.logging_config import setup_logging

def debug(weight: str = "1000", country: str = "BE", unit: str = "g"):
    setup_logging("DEBUG")
    engine = RateQuotationEngine()

    print("Enabled countries:")
    for c in engine.enabled_countries():
        tiers = ", ".join(f"{t.label()} = {t.price}" for t in engine.table.tiers_for(c.code))
        print(f"  {c.code} {c.name}: {tiers}")

    print(f"\n--- Quoting {weight} {unit} to {country} ---")
    quote = engine.quote(weight, country, unit=unit)
    print(quote.get_trace_text())

    print("\nFinal Quote:")
    print(quote.to_dict())

if __name__ == "__main__":
    debug(*sys.argv[1:4])
