"""Sensitivity routes: two-way matrices, hold period, quick shocks, breakeven."""

from fastapi import APIRouter, HTTPException

from cre_underwriting.api.schemas import (
    BreakevenRequest,
    DealInputsRequest,
    HoldPeriodRequest,
    SensitivityMatrixRequest,
)
from cre_underwriting.engine.sensitivity import (
    SensitivityError,
    calculate_hold_period_sensitivity,
    calculate_quick_sensitivity,
    calculate_sensitivity_matrix,
    sensitivity_options,
    solve_breakeven,
)

router = APIRouter(prefix="/api/v1/sensitivity", tags=["sensitivity"])


@router.post("/matrix")
async def matrix(req: SensitivityMatrixRequest):
    """Recompute one output metric over a grid of two inputs."""
    try:
        return calculate_sensitivity_matrix(
            req.deal.to_model_inputs(),
            req.x_field,
            req.y_field,
            req.metric,
            max_points=req.max_points,
        )
    except SensitivityError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/hold-period")
async def hold_period(req: HoldPeriodRequest):
    return calculate_hold_period_sensitivity(req.deal.to_model_inputs(), req.max_years)


@router.post("/quick")
async def quick(req: DealInputsRequest):
    return calculate_quick_sensitivity(req.to_model_inputs())


@router.get("/options")
async def options():
    return sensitivity_options()


@router.post("/breakeven")
async def breakeven(req: BreakevenRequest):
    """Input value at which the metric crosses the target, null if it never does."""
    try:
        value = solve_breakeven(req.deal.to_model_inputs(), req.field, req.metric, req.target, req.low, req.high)
    except SensitivityError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"field": req.field, "metric": req.metric, "target": req.target, "value": value}
