"""Sector catalog and sector-metric routes."""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from cre_underwriting.api.schemas import SectorMetricsRequest, SectorMetricsResponse, SectorSummaryResponse
from cre_underwriting.engine.sector_config import get_sector_config, list_sectors
from cre_underwriting.engine.sectors import calculate_sector_metrics

router = APIRouter(prefix="/api/v1/sectors", tags=["sectors"])


@router.get("", response_model=list[SectorSummaryResponse])
async def sectors():
    return [SectorSummaryResponse(**s) for s in list_sectors()]


@router.get("/{code}")
async def sector_detail(code: str):
    """Full configuration for one sector: inputs, benchmarks, risk factors."""
    config = get_sector_config(code.upper())
    if config is None:
        raise HTTPException(status_code=404, detail=f"Unknown sector: {code}")
    return config


@router.post("/metrics", response_model=SectorMetricsResponse)
async def sector_metrics(req: SectorMetricsRequest):
    try:
        result = calculate_sector_metrics(req.to_model_inputs(), req.sector)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown sector: {req.sector}")

    return SectorMetricsResponse(
        sector=result.sector.value,
        sector_name=result.sector_name,
        metrics=result.metrics,
        warnings=[asdict(w) for w in result.warnings],
        risk_factors=result.risk_factors,
        primary_metrics=result.primary_metrics,
    )
