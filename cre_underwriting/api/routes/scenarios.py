"""Scenario routes."""

from fastapi import APIRouter, HTTPException

from cre_underwriting.api.schemas import ScenariosRequest
from cre_underwriting.engine.scenarios import generate_default_scenarios, scenario_comparison

router = APIRouter(prefix="/api/v1/scenarios", tags=["scenarios"])


@router.post("")
async def scenarios(req: ScenariosRequest):
    """Run the requested standard scenarios and a side-by-side comparison."""
    try:
        results = generate_default_scenarios(req.deal.to_model_inputs(), req.sector, req.scenarios)
    except KeyError as e:
        raise HTTPException(status_code=400, detail=f"Unknown scenario: {e.args[0]}")
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown sector: {req.sector}")

    return {"scenarios": results, "comparison": scenario_comparison(results)}
