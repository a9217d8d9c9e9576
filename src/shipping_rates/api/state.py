"""Process-wide engine and rate service shared by the API routers."""
from typing import Optional

from ..config.settings import get_settings
from ..engine import RateQuotationEngine
from ..services.rates_service import RatesService

_engine: Optional[RateQuotationEngine] = None
_rates_service: Optional[RatesService] = None


def get_engine() -> RateQuotationEngine:
    """Get the shared engine, loading the rate table on first use."""
    global _engine
    if _engine is None:
        _engine = RateQuotationEngine(settings=get_settings())
    return _engine


def get_rates_service() -> RatesService:
    """Get the shared rate configuration service."""
    global _rates_service
    if _rates_service is None:
        settings = get_settings()
        _rates_service = RatesService(
            countries_csv_path=settings.countries_csv,
            rates_csv_path=settings.rates_csv,
            compiled_path=settings.compiled_rates,
            currency=settings.currency,
        )
    return _rates_service
