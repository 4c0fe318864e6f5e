"""Equity waterfall routes."""

from dataclasses import replace

from fastapi import APIRouter, HTTPException

from cre_underwriting.api.schemas import PromoteTierRequest, WaterfallRequest, WaterfallTemplateResponse
from cre_underwriting.engine.waterfall import (
    DEFAULT_STRUCTURE,
    WATERFALL_TEMPLATES,
    HurdleType,
    PromoteTier,
    ShareClass,
    WaterfallError,
    WaterfallStructure,
    calculate_waterfall,
    structure_from_template,
)

router = APIRouter(prefix="/api/v1/waterfall", tags=["waterfall"])


def _build_structure(req: WaterfallRequest) -> WaterfallStructure:
    """Structure from a template or the defaults, with explicit fields on top."""
    overrides = {}
    if req.preferred_return is not None:
        overrides["preferred_return"] = req.preferred_return
    if req.promote_tiers is not None:
        overrides["promote_tiers"] = tuple(
            PromoteTier(hurdle=t.hurdle, lp_split=t.lp_split, gp_split=t.gp_split)
            for t in req.promote_tiers
        )
    if req.hurdle_type is not None:
        overrides["hurdle_type"] = HurdleType(req.hurdle_type.upper())
    if req.gp_catch_up is not None:
        overrides["gp_catch_up"] = req.gp_catch_up
    if req.catch_up_percent is not None:
        overrides["catch_up_percent"] = req.catch_up_percent
    if req.lookback is not None:
        overrides["lookback"] = req.lookback
    if req.share_classes:
        overrides["share_classes"] = tuple(
            ShareClass(
                code=c.code,
                name=c.name,
                capital=c.capital,
                preferred_return=c.preferred_return,
                priority=c.priority,
            )
            for c in req.share_classes
        )

    if req.template:
        return structure_from_template(req.template.upper(), req.lp_equity, req.gp_equity, **overrides)

    return replace(DEFAULT_STRUCTURE, lp_equity=req.lp_equity, gp_equity=req.gp_equity, **overrides)


@router.post("")
async def run_waterfall(req: WaterfallRequest):
    """Distribute cash flows between LP and GP."""
    try:
        structure = _build_structure(req)
    except KeyError:
        raise HTTPException(status_code=400, detail=f"Unknown waterfall template: {req.template}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = calculate_waterfall(req.cash_flows, structure, req.use_class_terms)
    if isinstance(result, WaterfallError):
        raise HTTPException(status_code=400, detail=result.error)
    return result


@router.get("/templates", response_model=list[WaterfallTemplateResponse])
async def list_templates():
    return [
        WaterfallTemplateResponse(
            code=t.code,
            name=t.name,
            description=t.description,
            preferred_return=t.preferred_return,
            hurdle_type=t.hurdle_type.value,
            gp_catch_up=t.gp_catch_up,
            tiers=[
                PromoteTierRequest(hurdle=tier.hurdle, lp_split=tier.lp_split, gp_split=tier.gp_split)
                for tier in t.promote_tiers
            ],
        )
        for t in WATERFALL_TEMPLATES.values()
    ]
