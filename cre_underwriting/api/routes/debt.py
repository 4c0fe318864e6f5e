"""Debt sizing routes."""

from fastapi import APIRouter, HTTPException

from cre_underwriting.api.schemas import DebtSizingRequest, LenderComparisonRequest
from cre_underwriting.engine.debt_sizing import (
    LENDER_PROFILES,
    DebtSizingError,
    calculate_debt_sizing,
    compare_lender_profiles,
)

router = APIRouter(prefix="/api/v1/debt", tags=["debt"])


@router.post("/sizing")
async def sizing(req: DebtSizingRequest):
    """Largest loan every constraint of the lender profile allows."""
    result = calculate_debt_sizing(
        noi=req.noi,
        interest_rate=req.interest_rate,
        property_value=req.property_value,
        purchase_price=req.purchase_price,
        lender_profile=req.lender_profile.upper(),
        amortization_years=req.amortization_years,
        interest_only_years=req.interest_only_years,
        total_cost=req.total_cost,
    )
    if isinstance(result, DebtSizingError):
        raise HTTPException(status_code=400, detail=result.error)
    return result


@router.post("/compare")
async def compare(req: LenderComparisonRequest):
    try:
        return compare_lender_profiles(
            noi=req.noi,
            interest_rate=req.interest_rate,
            property_value=req.property_value,
            purchase_price=req.purchase_price,
            property_type=req.property_type,
            total_cost=req.total_cost,
        )
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown property type: {req.property_type}")


@router.get("/profiles")
async def profiles():
    return list(LENDER_PROFILES.values())
