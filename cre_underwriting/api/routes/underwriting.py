"""Underwriting routes: single-period metrics, projection and combined returns."""

from dataclasses import asdict

from fastapi import APIRouter

from cre_underwriting.api.schemas import (
    DealInputsRequest,
    ProjectionRequest,
    ProjectionResponse,
    UnderwritingResponse,
)
from cre_underwriting.engine.projection import project_detailed_cash_flows
from cre_underwriting.engine.underwriting import calculate_returns, calculate_underwriting
from cre_underwriting.models.results import CashFlowProjection, UnderwritingResult

router = APIRouter(prefix="/api/v1/underwriting", tags=["underwriting"])


def _group(block) -> dict | None:
    return asdict(block) if block is not None else None


def _underwriting_response(result: UnderwritingResult) -> UnderwritingResponse:
    return UnderwritingResponse(
        inputs=result.inputs,
        noi=result.noi,
        income=_group(result.income),
        expenses=_group(result.expenses),
        debt_metrics=_group(result.debt_metrics),
        returns=_group(result.returns),
        projections=_group(result.projections),
        warnings=result.warnings,
    )


def _projection_response(projection: CashFlowProjection) -> ProjectionResponse:
    return ProjectionResponse(
        years=[asdict(y) for y in projection.years],
        exit=asdict(projection.exit),
        totals=asdict(projection.totals),
        irr_cash_flows=projection.irr_cash_flows,
        assumptions=projection.assumptions,
    )


@router.post("", response_model=UnderwritingResponse)
async def underwrite(req: DealInputsRequest):
    """Compute whatever metrics the supplied inputs support."""
    return _underwriting_response(calculate_underwriting(req.to_model_inputs()))


@router.post("/projection", response_model=ProjectionResponse)
async def projection(req: ProjectionRequest):
    inputs = req.to_model_inputs()
    return _projection_response(project_detailed_cash_flows(inputs, req.years))


@router.post("/returns")
async def returns(req: DealInputsRequest):
    """Headline returns merged with sector metrics."""
    return calculate_returns(req.to_model_inputs())
