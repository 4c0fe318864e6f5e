"""Standard underwriting scenarios.

Base case, downside and upside variants of a deal, built by applying
per-field adjustment functions to the base inputs. Sector-specific
adjustments replace the generic ones for the same field.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Callable, Iterable

from cre_underwriting.engine.sector_config import Sector, detect_sector, resolve_sector
from cre_underwriting.engine.underwriting import calculate_underwriting
from cre_underwriting.models.inputs import ModelInputs
from cre_underwriting.models.results import DebtMetrics, ReturnMetrics

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")

Adjustment = Callable[[Any], Any]


def _d(value: str) -> Decimal:
    return Decimal(value)


@dataclass(frozen=True)
class ScenarioTemplate:
    key: str
    name: str
    description: str
    is_base_case: bool = False
    adjustments: dict[str, Adjustment] = field(default_factory=dict)


DEFAULT_SCENARIOS: dict[str, ScenarioTemplate] = {
    "base_case": ScenarioTemplate(
        key="base_case",
        name="Base Case",
        description="As-is underwriting based on current operations",
        is_base_case=True,
    ),
    "downside": ScenarioTemplate(
        key="downside",
        name="Downside",
        description="Conservative scenario with stressed assumptions",
        adjustments={
            "vacancy_rate": lambda base: min(base * _d("1.5"), _d("0.15")),
            "rent_growth": lambda base: base * _d("0.5"),
            "other_income": lambda base: base * _d("0.85"),
            "operating_expenses": lambda base: base * _d("1.05"),
            "expense_growth": lambda base: max(base * _d("1.25"), _d("0.03")),
            "exit_cap_rate": lambda base: base + _d("0.0050"),
        },
    ),
    "upside": ScenarioTemplate(
        key="upside",
        name="Value-Add Achieved",
        description="Upside scenario assuming successful value-add execution",
        adjustments={
            "gross_potential_rent": lambda base: base * _d("1.10"),
            "vacancy_rate": lambda base: max(base - _d("0.02"), _d("0.03")),
            "other_income": lambda base: base * _d("1.15"),
            "rent_growth": lambda base: min(base * _d("1.25"), _d("0.05")),
            "operating_expenses": lambda base: base * _d("0.95"),
            "exit_cap_rate": lambda base: max(base - _d("0.0025"), _d("0.04")),
        },
    ),
    "extended_hold": ScenarioTemplate(
        key="extended_hold",
        name="Extended Hold (7 Years)",
        description="Longer hold period to maximize value creation",
        adjustments={
            "hold_period_years": lambda base: 7,
            "exit_cap_rate": lambda base: base + _d("0.0025"),
        },
    ),
    "rate_stress": ScenarioTemplate(
        key="rate_stress",
        name="Interest Rate Stress",
        description="Scenario with 100bps rate increase at refinance",
        adjustments={
            "interest_rate": lambda base: base + _d("0.01"),
        },
    ),
}

# Generated by default for a new deal
STANDARD_SCENARIO_KEYS = ("base_case", "downside", "upside")

SECTOR_ADJUSTMENTS: dict[Sector, dict[str, dict[str, Adjustment]]] = {
    Sector.MULTIFAMILY: {
        "downside": {
            "vacancy_rate": lambda base: min(base * _d("1.4"), _d("0.12")),
            "concessions": lambda base: (base or 0) * _d("1.5"),
        },
        "upside": {
            "gross_potential_rent": lambda base: base * _d("1.08"),
            "turnover_rate": lambda base: (base or _d("0.5")) * _d("0.85"),
        },
    },
    Sector.OFFICE: {
        "downside": {
            "vacancy_rate": lambda base: min(base * _d("2.0"), _d("0.25")),
            "tenant_improvements": lambda base: (base or 50) * _d("1.20"),
        },
        "upside": {
            "tenant_improvements": lambda base: (base or 50) * _d("0.80"),
        },
    },
    Sector.INDUSTRIAL: {
        "downside": {
            "vacancy_rate": lambda base: min(base * _d("1.3"), _d("0.10")),
            "exit_cap_rate": lambda base: base + _d("0.0075"),
        },
        "upside": {
            "rent_growth": lambda base: min(base * _d("1.5"), _d("0.06")),
        },
    },
    Sector.RETAIL: {
        "downside": {
            "vacancy_rate": lambda base: min(base * _d("1.5"), _d("0.20")),
            "gross_potential_rent": lambda base: base * _d("0.95"),
        },
        "upside": {
            "percent_rent": lambda base: (base or 0) * _d("1.25"),
        },
    },
}


@dataclass(frozen=True)
class ScenarioResult:
    key: str
    name: str
    description: str
    is_base_case: bool
    assumptions: dict[str, Any]
    results: dict[str, Any]


def _as_decimal(value: Any) -> Any:
    if value is None or isinstance(value, (Decimal, bool, str)):
        return value
    return Decimal(str(value))


def apply_adjustments(
    base: ModelInputs,
    adjustments: dict[str, Adjustment],
    sector: Sector | None = None,
    scenario_key: str | None = None,
) -> dict[str, Any]:
    """Adjusted values for every field the base inputs actually carry.

    Fields absent from the base are left out rather than invented.
    """
    merged = dict(adjustments)
    if sector is not None and scenario_key is not None:
        merged.update(SECTOR_ADJUSTMENTS.get(sector, {}).get(scenario_key, {}))

    assumptions = {}
    for name, adjust in merged.items():
        value = base.get(name)
        if value is not None:
            assumptions[name] = adjust(_as_decimal(value))
    return assumptions


def calculate_scenario_results(base: ModelInputs, assumptions: dict[str, Any]) -> dict[str, Any]:
    """Headline figures for the base inputs with assumptions applied."""
    inputs = base.with_overrides(**assumptions)
    result = calculate_underwriting(inputs)
    returns = result.returns or ReturnMetrics()
    debt = result.debt_metrics or DebtMetrics()
    loan = inputs.debt.loan_amount

    debt_yield = None
    if result.noi is not None and loan:
        debt_yield = (result.noi / loan).quantize(FOUR_PLACES, ROUND_HALF_UP)

    return {
        "gross_potential_rent": inputs.income.gross_potential_rent,
        "vacancy_rate": inputs.income.vacancy_rate,
        "effective_gross_income": result.income.effective_gross_income if result.income else None,
        "net_operating_income": result.noi,
        "annual_debt_service": debt.annual_debt_service,
        "going_in_cap_rate": returns.going_in_cap_rate,
        "cash_on_cash": returns.cash_on_cash,
        "dscr": debt.dscr,
        "irr": returns.irr,
        "equity_multiple": returns.equity_multiple,
        "ltv": debt.ltv,
        "debt_yield": debt_yield,
        "exit_cap_rate": inputs.growth.exit_cap_rate,
        "hold_period_years": inputs.growth.hold_period_years,
        "rent_growth": inputs.growth.rent_growth,
        "expense_growth": inputs.growth.expense_growth,
        "warnings": result.warnings,
    }


def build_scenario(base: ModelInputs, key: str, sector: Sector | None = None) -> ScenarioResult:
    template = DEFAULT_SCENARIOS[key]
    assumptions = apply_adjustments(base, template.adjustments, sector, key)
    return ScenarioResult(
        key=key,
        name=template.name,
        description=template.description,
        is_base_case=template.is_base_case,
        assumptions=assumptions,
        results=calculate_scenario_results(base, assumptions),
    )


def generate_default_scenarios(
    base: ModelInputs,
    sector: Sector | str | None = None,
    keys: Iterable[str] = STANDARD_SCENARIO_KEYS,
) -> list[ScenarioResult]:
    """Base case, downside and upside for a deal, sector-adjusted.

    The sector is detected from the deal's type strings when not given.
    Raises KeyError for an unknown scenario key.
    """
    if sector is not None:
        resolved = resolve_sector(sector)
    else:
        resolved = detect_sector(base.property_type, base.asset_type) or Sector.MULTIFAMILY

    scenarios = [build_scenario(base, key, resolved) for key in keys]
    logger.info("Generated %d scenarios for %s", len(scenarios), resolved.value)
    return scenarios


COMPARISON_METRICS = ("irr", "equity_multiple", "cash_on_cash", "dscr", "going_in_cap_rate", "exit_cap_rate")

METRIC_LABELS = {
    "irr": "IRR",
    "equity_multiple": "Equity Multiple",
    "cash_on_cash": "Cash-on-Cash",
    "dscr": "DSCR",
    "going_in_cap_rate": "Going-In Cap",
    "exit_cap_rate": "Exit Cap",
    "ltv": "LTV",
    "debt_yield": "Debt Yield",
}

_MULTIPLE_METRICS = frozenset({"equity_multiple", "dscr"})


def format_scenario_metric(metric: str, value: Any) -> str:
    if value is None:
        return "N/A"
    if metric in _MULTIPLE_METRICS:
        return f"{value:.2f}x"
    if metric in METRIC_LABELS:
        return f"{value * 100:.2f}%"
    return str(value)


def scenario_comparison(scenarios: list[ScenarioResult]) -> dict[str, Any]:
    """Metric-by-scenario table with the base case first."""
    ordered = sorted(scenarios, key=lambda s: not s.is_base_case)
    rows = []
    for metric in COMPARISON_METRICS:
        rows.append({
            "metric": metric,
            "label": METRIC_LABELS.get(metric, metric),
            "values": {
                s.name: {
                    "value": s.results.get(metric),
                    "formatted": format_scenario_metric(metric, s.results.get(metric)),
                }
                for s in ordered
            },
        })
    return {"metrics": list(COMPARISON_METRICS), "rows": rows, "scenarios": [s.name for s in ordered]}
