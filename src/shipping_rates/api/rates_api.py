"""
Rates API - FastAPI router for rate configuration management.
"""
from decimal import Decimal
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from ..engine import RateQuotationEngine, RateTableError, WeightTier
from ..services.rates_service import RatesService, TierRow
from .state import get_engine, get_rates_service

router = APIRouter(prefix="/api/rates", tags=["rates"])


# Pydantic models for API
class TierModel(BaseModel):
    """A weight tier; max_grams null means unbounded."""
    min_grams: Decimal
    max_grams: Optional[Decimal] = None
    price: Decimal

    def to_tier(self) -> WeightTier:
        return WeightTier(min_grams=self.min_grams, max_grams=self.max_grams, price=self.price)


class TierResponse(BaseModel):
    country_code: str
    min_grams: str
    max_grams: Optional[str]
    price: str


class CountryResponse(BaseModel):
    code: str
    name: str
    enabled: bool


class CountryTiersRequest(BaseModel):
    """Request model for replacing or validating a country's tiers."""
    country_code: Optional[str] = None
    tiers: list[TierModel]


class EnabledRequest(BaseModel):
    enabled: bool


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def _tier_response(row: TierRow) -> TierResponse:
    data = row.to_csv_row()
    data['max_grams'] = data['max_grams'] or None
    return TierResponse(**data)


# Endpoints

@router.get("", response_model=list[TierResponse])
async def list_tiers(service: RatesService = Depends(get_rates_service)):
    """List all configured weight tiers."""
    return [_tier_response(row) for row in service.list_tiers()]


@router.get("/countries", response_model=list[CountryResponse])
async def list_countries(include_disabled: bool = True, service: RatesService = Depends(get_rates_service)):
    """List configured countries."""
    return [CountryResponse(**c.__dict__) for c in service.list_countries(include_disabled=include_disabled)]


@router.post("/validate", response_model=ValidationResponse)
async def validate_tiers(body: CountryTiersRequest, service: RatesService = Depends(get_rates_service)):
    """Validate a country's tiers without saving."""
    if not body.country_code:
        raise HTTPException(status_code=400, detail="country_code is required")
    result = service.validate_country_tiers(body.country_code, [t.to_tier() for t in body.tiers])
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)


@router.post("/compile")
async def compile_rates(
    service: RatesService = Depends(get_rates_service),
    engine: RateQuotationEngine = Depends(get_engine),
):
    """Force recompile of the rate configuration and reload the engine."""
    success, errors = service.compile_rates()
    if success:
        engine.reload_data()
    return {
        "success": success,
        "errors": errors
    }


@router.get("/{country_code}", response_model=list[TierResponse])
async def get_country_tiers(country_code: str, service: RatesService = Depends(get_rates_service)):
    """Get the tiers of one country."""
    if service.get_country(country_code) is None:
        raise HTTPException(status_code=404, detail=f"Country '{country_code}' not found")
    return [_tier_response(row) for row in service.list_tiers(country_code)]


@router.put("/{country_code}", response_model=list[TierResponse])
async def replace_country_tiers(
    country_code: str,
    body: CountryTiersRequest,
    service: RatesService = Depends(get_rates_service),
    engine: RateQuotationEngine = Depends(get_engine),
):
    """Replace a country's tiers wholesale and reload the engine."""
    if service.get_country(country_code) is None:
        raise HTTPException(status_code=404, detail=f"Country '{country_code}' not found")

    try:
        rows = service.set_country_tiers(country_code, [t.to_tier() for t in body.tiers])
        engine.reload_data()
    except (ValueError, RateTableError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return [_tier_response(row) for row in rows]


@router.patch("/{country_code}/enabled", response_model=CountryResponse)
async def set_country_enabled(
    country_code: str,
    body: EnabledRequest,
    service: RatesService = Depends(get_rates_service),
    engine: RateQuotationEngine = Depends(get_engine),
):
    """Enable or disable a country for quotation."""
    if service.get_country(country_code) is None:
        raise HTTPException(status_code=404, detail=f"Country '{country_code}' not found")

    try:
        country = service.set_country_enabled(country_code, body.enabled)
        engine.reload_data()
    except (ValueError, RateTableError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return CountryResponse(**country.__dict__)
