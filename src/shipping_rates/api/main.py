from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel
from typing import Union

from shipping_rates import __version__
from shipping_rates.config.settings import get_settings
from shipping_rates.engine import NoMatchingTier, RateQuotationEngine
from shipping_rates.logging_config import setup_logging
from shipping_rates.api.rates_api import router as rates_router
from shipping_rates.api.state import get_engine

setup_logging(get_settings().log_level)

app = FastAPI(
    title="Shipping Rates API",
    description="Home delivery rate quotation for the checkout",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include rate management API
app.include_router(rates_router)


class QuoteBody(BaseModel):
    weight: Union[int, float, str]
    country: str
    unit: str = "g"


@app.get("/")
async def root():
    return {"status": "online", "message": "Shipping Rates API Active"}


@app.post("/quote")
async def quote(req: QuoteBody, engine: RateQuotationEngine = Depends(get_engine)):
    try:
        result = engine.quote(req.weight, req.country, unit=req.unit)
    except NoMatchingTier as e:
        raise HTTPException(status_code=500, detail={"reason": e.reason, "message": e.message})

    if not result.ok:
        raise HTTPException(status_code=422, detail={"reason": result.reason, "message": result.message})
    return result.to_dict()


@app.get("/countries")
async def countries(engine: RateQuotationEngine = Depends(get_engine)):
    """Countries offered in the checkout's country selector."""
    return {c.code: c.name for c in engine.enabled_countries()}


@app.get("/system/status")
async def get_status(engine: RateQuotationEngine = Depends(get_engine)):
    table = engine.table
    return {
        "engine_active": True,
        "table_source": table.source,
        "currency": table.currency,
        "enabled_countries": [c.code for c in table.enabled_countries],
        "tier_count": sum(len(t) for t in table.tiers.values()),
    }
