"""Sensitivity analysis over the underwriting calculator.

Holds a deal fixed and varies one or two inputs across a grid, recomputing
the combined returns for every cell. Each cell is an independent calculator
call with no shared state.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from scipy.optimize import brentq

from cre_underwriting.config import settings
from cre_underwriting.engine.projection import project_detailed_cash_flows
from cre_underwriting.engine.underwriting import calculate_returns
from cre_underwriting.models.inputs import ModelInputs

logger = logging.getLogger(__name__)

FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")


class SensitivityError(ValueError):
    pass


@dataclass(frozen=True)
class AxisRange:
    label: str
    min: Decimal
    max: Decimal
    step: Decimal
    format: str  # percent | percent_change | years
    decimals: int


@dataclass(frozen=True)
class OutputMetric:
    label: str
    format: str  # percent | multiple | ratio
    decimals: int
    green: Decimal
    yellow: Decimal
    red: Decimal


def _range(label, low, high, step, fmt, decimals) -> AxisRange:
    return AxisRange(label, Decimal(low), Decimal(high), Decimal(step), fmt, decimals)


def _metric(label, fmt, decimals, green, yellow, red) -> OutputMetric:
    return OutputMetric(label, fmt, decimals, Decimal(green), Decimal(yellow), Decimal(red))


DEFAULT_RANGES: dict[str, AxisRange] = {
    "exit_cap_rate": _range("Exit Cap Rate", "0.04", "0.07", "0.005", "percent", 2),
    "vacancy_rate": _range("Vacancy Rate", "0.03", "0.12", "0.01", "percent", 1),
    "rent_growth": _range("Rent Growth", "0.00", "0.05", "0.005", "percent", 1),
    "expense_growth": _range("Expense Growth", "0.01", "0.04", "0.005", "percent", 1),
    "interest_rate": _range("Interest Rate", "0.05", "0.08", "0.0025", "percent", 2),
    # Offsets from the deal's own price
    "purchase_price": _range("Purchase Price", "-0.10", "0.10", "0.025", "percent_change", 1),
    "hold_period_years": _range("Hold Period", "3", "10", "1", "years", 0),
}

OUTPUT_METRICS: dict[str, OutputMetric] = {
    "irr": _metric("IRR", "percent", 1, "0.15", "0.10", "0"),
    "equity_multiple": _metric("Equity Multiple", "multiple", 2, "1.8", "1.5", "1.0"),
    "cash_on_cash": _metric("Cash-on-Cash", "percent", 1, "0.08", "0.05", "0"),
    "dscr": _metric("DSCR", "ratio", 2, "1.35", "1.20", "1.0"),
    "going_in_cap_rate": _metric("Going-In Cap", "percent", 2, "0.055", "0.045", "0"),
}

QUICK_TESTS = (
    ("exit_cap_rate", Decimal("0.005"), "Exit Cap +50bps"),
    ("exit_cap_rate", Decimal("-0.005"), "Exit Cap -50bps"),
    ("vacancy_rate", Decimal("0.02"), "Vacancy +2%"),
    ("vacancy_rate", Decimal("-0.02"), "Vacancy -2%"),
    ("rent_growth", Decimal("0.01"), "Rent Growth +1%"),
    ("rent_growth", Decimal("-0.01"), "Rent Growth -1%"),
    ("interest_rate", Decimal("0.01"), "Interest Rate +100bps"),
    ("interest_rate", Decimal("-0.01"), "Interest Rate -100bps"),
)


@dataclass(frozen=True)
class AxisValue:
    value: Decimal | int
    label: str
    raw: Decimal | int


@dataclass(frozen=True)
class SensitivityCell:
    value: Decimal | None
    x_value: Decimal | int
    y_value: Decimal | int
    formatted: str
    color: str


@dataclass(frozen=True)
class SensitivityAxis:
    field: str
    label: str
    values: list[str]
    raw_values: list[Decimal | int]


@dataclass(frozen=True)
class SensitivityMatrix:
    x_axis: SensitivityAxis
    y_axis: SensitivityAxis
    metric: str
    metric_label: str
    matrix: list[list[SensitivityCell]]
    min: Decimal | None
    max: Decimal | None
    base_x_index: int | None
    base_y_index: int | None
    base_value: Decimal | None

    @property
    def spread(self) -> Decimal | None:
        if self.min is None or self.max is None:
            return None
        return self.max - self.min


@dataclass(frozen=True)
class HoldYear:
    year: int
    irr: Decimal | None
    equity_multiple: Decimal | None
    cash_on_cash: Decimal | None
    total_cash_distributed: Decimal | None
    exit_value: Decimal | None
    net_proceeds: Decimal | None
    recommendation: str


@dataclass(frozen=True)
class HoldPeriodSensitivity:
    years: list[HoldYear]
    optimal_year: int | None = None
    optimal_irr: Decimal | None = None
    highest_return_year: int | None = None
    highest_total_return: Decimal | None = None


@dataclass(frozen=True)
class QuickSensitivity:
    base_case: dict[str, Decimal | None]
    sensitivities: list[dict[str, Any]] = field(default_factory=list)


def _pct(value: Decimal, decimals: int) -> str:
    return f"{value * 100:.{decimals}f}%"


def axis_values(field_name: str, base_value: Decimal | None = None,
                custom_range: AxisRange | None = None) -> list[AxisValue]:
    """Grid points for one axis, inclusive of both ends."""
    axis = custom_range or DEFAULT_RANGES.get(field_name)
    if axis is None:
        raise SensitivityError(f"Unknown sensitivity field: {field_name}")
    if axis.step <= 0:
        raise SensitivityError(f"Step must be positive for {field_name}")

    values = []
    point = axis.min
    while point <= axis.max:
        if axis.format == "percent_change":
            if base_value is None:
                raise SensitivityError(f"{field_name} needs a base value for a relative range")
            sign = "+" if point >= 0 else ""
            values.append(AxisValue(base_value * (1 + point), f"{sign}{_pct(point, axis.decimals)}", point))
        elif axis.format == "years":
            values.append(AxisValue(int(point), f"{int(point)} yrs", int(point)))
        else:
            values.append(AxisValue(point, _pct(point, axis.decimals), point))
        point += axis.step
    return values


def format_metric(value: Decimal | None, metric: str) -> str:
    if value is None:
        return "N/A"
    output = OUTPUT_METRICS.get(metric)
    if output is None:
        return str(value)
    if output.format == "percent":
        return _pct(value, output.decimals)
    return f"{value:.{output.decimals}f}x"


def format_field(value: Any, field_name: str) -> str:
    axis = DEFAULT_RANGES.get(field_name)
    if axis is None:
        return str(value)
    if axis.format == "years":
        return f"{value} years"
    return _pct(Decimal(str(value)), axis.decimals)


def cell_color(value: Decimal | None, metric: str) -> str:
    output = OUTPUT_METRICS.get(metric)
    if value is None or output is None:
        return "neutral"
    if value >= output.green:
        return "green"
    if value >= output.yellow:
        return "yellow"
    return "red"


def _evaluate(inputs: ModelInputs, metric: str) -> Decimal | None:
    return calculate_returns(inputs).metric(metric)


def _base_index(points: list[AxisValue], base_value: Any) -> int | None:
    if base_value is None:
        return None
    for index, point in enumerate(points):
        if abs(Decimal(str(point.value)) - Decimal(str(base_value))) < FOUR_PLACES:
            return index
    return None


def calculate_sensitivity_matrix(
    base: ModelInputs,
    x_field: str,
    y_field: str,
    metric: str,
    x_range: AxisRange | None = None,
    y_range: AxisRange | None = None,
    max_points: int | None = None,
) -> SensitivityMatrix:
    """Recompute one output metric over an x by y grid of two inputs.

    Rows follow the y axis, columns the x axis. Raises SensitivityError for
    unknown fields or metrics and for grids larger than max_points.
    """
    if x_field not in DEFAULT_RANGES:
        raise SensitivityError(f"Invalid X-axis field: {x_field}")
    if y_field not in DEFAULT_RANGES:
        raise SensitivityError(f"Invalid Y-axis field: {y_field}")
    if metric not in OUTPUT_METRICS:
        raise SensitivityError(f"Invalid output metric: {metric}")

    limit = max_points or settings.sensitivity_max_points
    xs = axis_values(x_field, base.get(x_field), x_range)
    ys = axis_values(y_field, base.get(y_field), y_range)
    if len(xs) * len(ys) > limit:
        raise SensitivityError(
            f"Matrix too large: {len(xs)} x {len(ys)} = {len(xs) * len(ys)} points (max {limit})"
        )

    rows = []
    observed = []
    for y in ys:
        row = []
        for x in xs:
            value = _evaluate(base.with_overrides(**{x_field: x.value, y_field: y.value}), metric)
            if value is not None:
                observed.append(value)
            row.append(SensitivityCell(value, x.value, y.value, format_metric(value, metric),
                                       cell_color(value, metric)))
        rows.append(row)

    base_value = _evaluate(base, metric)
    logger.info("Sensitivity %s over %s x %s: %d cells", metric, x_field, y_field, len(xs) * len(ys))

    return SensitivityMatrix(
        x_axis=SensitivityAxis(x_field, DEFAULT_RANGES[x_field].label,
                               [x.label for x in xs], [x.value for x in xs]),
        y_axis=SensitivityAxis(y_field, DEFAULT_RANGES[y_field].label,
                               [y.label for y in ys], [y.value for y in ys]),
        metric=metric,
        metric_label=OUTPUT_METRICS[metric].label,
        matrix=rows,
        min=min(observed) if observed else None,
        max=max(observed) if observed else None,
        base_x_index=_base_index(xs, base.get(x_field)),
        base_y_index=_base_index(ys, base.get(y_field)),
        base_value=base_value,
    )


def hold_recommendation(irr: Decimal | None) -> str:
    if irr is None:
        return "unavailable"
    if irr < 0:
        return "negative"
    if irr < Decimal("0.10"):
        return "caution"
    if irr < Decimal("0.15"):
        return "acceptable"
    return "recommended"


def calculate_hold_period_sensitivity(base: ModelInputs, max_years: int = 10) -> HoldPeriodSensitivity:
    """Returns for every exit year from 1 through max_years."""
    years = []
    for year in range(1, max_years + 1):
        inputs = base.with_overrides(hold_period_years=year)
        returns = calculate_returns(inputs)
        projection = project_detailed_cash_flows(inputs, year)
        exit_proceeds = projection.exit.net_equity_proceeds
        years.append(HoldYear(
            year=year,
            irr=returns.irr,
            equity_multiple=returns.equity_multiple,
            cash_on_cash=returns.cash_on_cash,
            total_cash_distributed=projection.totals.total_cash_distributed + exit_proceeds,
            exit_value=projection.exit.gross_sale_price,
            net_proceeds=exit_proceeds,
            recommendation=hold_recommendation(returns.irr),
        ))

    with_irr = [y for y in years if y.irr is not None]
    if not with_irr:
        return HoldPeriodSensitivity(years=years)

    optimal = max(with_irr, key=lambda y: y.irr)
    richest = max(with_irr, key=lambda y: y.total_cash_distributed or ZERO)
    return HoldPeriodSensitivity(
        years=years,
        optimal_year=optimal.year,
        optimal_irr=optimal.irr,
        highest_return_year=richest.year,
        highest_total_return=richest.total_cash_distributed,
    )


def _change(new: Decimal | None, old: Decimal | None) -> Decimal | None:
    if new is None or old is None:
        return None
    return new - old


def calculate_quick_sensitivity(base: ModelInputs) -> QuickSensitivity:
    """One-at-a-time shocks to the headline assumptions."""
    base_returns = calculate_returns(base)
    rows = []
    for field_name, delta, label in QUICK_TESTS:
        shocked = calculate_returns(base.with_overrides(**{field_name: base.get(field_name, ZERO) + delta}))
        rows.append({
            "label": label,
            "field": field_name,
            "delta": delta,
            "irr": shocked.irr,
            "irr_change": _change(shocked.irr, base_returns.irr),
            "equity_multiple": shocked.equity_multiple,
            "equity_multiple_change": _change(shocked.equity_multiple, base_returns.equity_multiple),
        })
    return QuickSensitivity(
        base_case={
            "irr": base_returns.irr,
            "equity_multiple": base_returns.equity_multiple,
            "cash_on_cash": base_returns.cash_on_cash,
            "dscr": base_returns.dscr,
        },
        sensitivities=rows,
    )


def sensitivity_options() -> dict[str, list[dict[str, str]]]:
    return {
        "fields": [{"value": k, "label": r.label, "format": r.format} for k, r in DEFAULT_RANGES.items()],
        "metrics": [{"value": k, "label": m.label, "format": m.format} for k, m in OUTPUT_METRICS.items()],
    }


def scenario_from_cell(base: ModelInputs, x_field: str, x_value: Any,
                       y_field: str, y_value: Any) -> dict[str, Any]:
    """Named scenario pinning the two inputs of a matrix cell."""
    x_label = DEFAULT_RANGES[x_field].label if x_field in DEFAULT_RANGES else x_field
    y_label = DEFAULT_RANGES[y_field].label if y_field in DEFAULT_RANGES else y_field
    x_text = format_field(x_value, x_field)
    y_text = format_field(y_value, y_field)
    return {
        "name": f"{x_label} {x_text}, {y_label} {y_text}",
        "description": f"Sensitivity scenario with {x_label} at {x_text} and {y_label} at {y_text}",
        "assumptions": {x_field: x_value, y_field: y_value},
        "result": calculate_returns(base.with_overrides(**{x_field: x_value, y_field: y_value})),
    }


def solve_breakeven(
    base: ModelInputs,
    field_name: str,
    metric: str,
    target: Decimal,
    low: Decimal,
    high: Decimal,
) -> Decimal | None:
    """Input value at which the metric crosses target, by Brent's method.

    Returns None when the metric is unavailable at either bound or does not
    change sign over [low, high].
    """
    if metric not in OUTPUT_METRICS:
        raise SensitivityError(f"Invalid output metric: {metric}")

    def gap(x: float) -> float:
        value = _evaluate(base.with_overrides(**{field_name: Decimal(repr(x))}), metric)
        if value is None:
            raise SensitivityError(f"{metric} unavailable at {field_name}={x}")
        return float(value - target)

    try:
        lo_gap, hi_gap = gap(float(low)), gap(float(high))
    except SensitivityError:
        logger.warning("Breakeven for %s on %s: metric unavailable at a bound", metric, field_name)
        return None
    if lo_gap == 0:
        return low
    if hi_gap == 0:
        return high
    if (lo_gap > 0) == (hi_gap > 0):
        return None

    try:
        root = brentq(gap, float(low), float(high), xtol=float(settings.irr_tolerance) / 100)
    except SensitivityError:
        logger.warning("Breakeven for %s on %s: metric unavailable inside the bracket", metric, field_name)
        return None
    return Decimal(repr(root)).quantize(FOUR_PLACES, ROUND_HALF_UP)
