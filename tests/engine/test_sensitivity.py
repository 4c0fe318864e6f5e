from decimal import Decimal

import pytest

from cre_underwriting.engine.sensitivity import (
    DEFAULT_RANGES,
    QUICK_TESTS,
    AxisRange,
    SensitivityError,
    axis_values,
    calculate_hold_period_sensitivity,
    calculate_quick_sensitivity,
    calculate_sensitivity_matrix,
    cell_color,
    format_metric,
    hold_recommendation,
    scenario_from_cell,
    sensitivity_options,
    solve_breakeven,
)

SMALL_CAP_RANGE = AxisRange("Exit Cap Rate", Decimal("0.05"), Decimal("0.06"), Decimal("0.005"), "percent", 2)
SMALL_VACANCY_RANGE = AxisRange("Vacancy Rate", Decimal("0.05"), Decimal("0.07"), Decimal("0.01"), "percent", 1)


class TestAxisValues:
    def test_exit_cap_range_is_inclusive(self):
        points = axis_values("exit_cap_rate")
        assert len(points) == 7
        assert points[0].label == "4.00%"
        assert points[-1].value == Decimal("0.070")

    def test_hold_period_in_years(self):
        points = axis_values("hold_period_years")
        assert [p.value for p in points] == list(range(3, 11))
        assert points[0].label == "3 yrs"

    def test_price_offsets_from_base(self):
        points = axis_values("purchase_price", Decimal("10000000"))
        assert len(points) == 9
        assert points[0].value == Decimal("9000000")
        assert points[0].label == "-10.0%"
        assert points[4].label == "+0.0%"

    def test_relative_range_needs_base(self):
        with pytest.raises(SensitivityError):
            axis_values("purchase_price")

    def test_unknown_field(self):
        with pytest.raises(SensitivityError, match="Unknown sensitivity field"):
            axis_values("color")

    def test_step_must_be_positive(self):
        bad = AxisRange("Rent Growth", Decimal("0"), Decimal("0.05"), Decimal("0"), "percent", 1)
        with pytest.raises(SensitivityError):
            axis_values("rent_growth", custom_range=bad)


class TestFormatting:
    def test_format_metric(self):
        assert format_metric(Decimal("0.1234"), "irr") == "12.3%"
        assert format_metric(Decimal("1.25"), "dscr") == "1.25x"
        assert format_metric(None, "irr") == "N/A"

    def test_cell_color_bands(self):
        assert cell_color(Decimal("0.16"), "irr") == "green"
        assert cell_color(Decimal("0.12"), "irr") == "yellow"
        assert cell_color(Decimal("0.05"), "irr") == "red"
        assert cell_color(None, "irr") == "neutral"

    def test_hold_recommendation(self):
        assert hold_recommendation(None) == "unavailable"
        assert hold_recommendation(Decimal("-0.01")) == "negative"
        assert hold_recommendation(Decimal("0.08")) == "caution"
        assert hold_recommendation(Decimal("0.12")) == "acceptable"
        assert hold_recommendation(Decimal("0.20")) == "recommended"


class TestSensitivityMatrix:
    def test_shape_and_axes(self, canonical_inputs):
        result = calculate_sensitivity_matrix(
            canonical_inputs, "exit_cap_rate", "vacancy_rate", "irr",
            x_range=SMALL_CAP_RANGE, y_range=SMALL_VACANCY_RANGE,
        )
        assert len(result.matrix) == 3
        assert all(len(row) == 3 for row in result.matrix)
        assert result.x_axis.values == ["5.00%", "5.50%", "6.00%"]
        assert result.metric_label == "IRR"

    def test_base_cell_located(self, canonical_inputs):
        result = calculate_sensitivity_matrix(
            canonical_inputs, "exit_cap_rate", "vacancy_rate", "irr",
            x_range=SMALL_CAP_RANGE, y_range=SMALL_VACANCY_RANGE,
        )
        assert result.base_x_index == 1
        assert result.base_y_index == 0
        assert result.matrix[0][1].value == result.base_value

    def test_irr_falls_as_exit_cap_rises(self, canonical_inputs):
        result = calculate_sensitivity_matrix(
            canonical_inputs, "exit_cap_rate", "vacancy_rate", "irr",
            x_range=SMALL_CAP_RANGE, y_range=SMALL_VACANCY_RANGE,
        )
        for row in result.matrix:
            values = [cell.value for cell in row]
            assert values == sorted(values, reverse=True)
        assert result.spread == result.max - result.min

    def test_invalid_fields_and_metric(self, canonical_inputs):
        with pytest.raises(SensitivityError, match="Invalid X-axis field"):
            calculate_sensitivity_matrix(canonical_inputs, "color", "vacancy_rate", "irr")
        with pytest.raises(SensitivityError, match="Invalid Y-axis field"):
            calculate_sensitivity_matrix(canonical_inputs, "exit_cap_rate", "color", "irr")
        with pytest.raises(SensitivityError, match="Invalid output metric"):
            calculate_sensitivity_matrix(canonical_inputs, "exit_cap_rate", "vacancy_rate", "npv")

    def test_grid_size_guard(self, canonical_inputs):
        with pytest.raises(SensitivityError, match="Matrix too large"):
            calculate_sensitivity_matrix(
                canonical_inputs, "exit_cap_rate", "vacancy_rate", "irr", max_points=20
            )


class TestHoldPeriod:
    def test_one_row_per_year(self, canonical_inputs):
        result = calculate_hold_period_sensitivity(canonical_inputs, max_years=3)
        assert [y.year for y in result.years] == [1, 2, 3]
        assert result.optimal_irr == max(y.irr for y in result.years)
        assert all(y.net_proceeds > 0 for y in result.years)

    def test_no_irr_anywhere(self, unlevered_inputs):
        inputs = unlevered_inputs.with_overrides(purchase_price=None)
        result = calculate_hold_period_sensitivity(inputs, max_years=2)
        assert result.optimal_year is None
        assert all(y.recommendation == "unavailable" for y in result.years)


class TestQuickSensitivity:
    def test_one_row_per_shock(self, canonical_inputs):
        result = calculate_quick_sensitivity(canonical_inputs)
        assert len(result.sensitivities) == len(QUICK_TESTS)
        assert result.base_case["irr"] is not None

    def test_higher_exit_cap_lowers_irr(self, canonical_inputs):
        rows = {r["label"]: r for r in calculate_quick_sensitivity(canonical_inputs).sensitivities}
        assert rows["Exit Cap +50bps"]["irr_change"] < 0
        assert rows["Exit Cap -50bps"]["irr_change"] > 0
        assert rows["Interest Rate +100bps"]["irr_change"] < 0


class TestOptionsAndScenarios:
    def test_options_list_every_field(self):
        options = sensitivity_options()
        assert [f["value"] for f in options["fields"]] == list(DEFAULT_RANGES)
        assert {"value": "dscr", "label": "DSCR", "format": "ratio"} in options["metrics"]

    def test_scenario_from_cell(self, canonical_inputs):
        scenario = scenario_from_cell(
            canonical_inputs, "exit_cap_rate", Decimal("0.06"), "vacancy_rate", Decimal("0.08")
        )
        assert scenario["name"] == "Exit Cap Rate 6.00%, Vacancy Rate 8.0%"
        assert scenario["assumptions"] == {"exit_cap_rate": Decimal("0.06"), "vacancy_rate": Decimal("0.08")}
        assert scenario["result"].irr is not None


class TestBreakeven:
    def test_rate_at_which_dscr_hits_lender_minimum(self, canonical_inputs):
        rate = solve_breakeven(
            canonical_inputs, "interest_rate", "dscr", Decimal("1.25"), Decimal("0.05"), Decimal("0.08")
        )
        assert Decimal("0.06") < rate < Decimal("0.065")

    def test_no_crossing(self, canonical_inputs):
        assert solve_breakeven(
            canonical_inputs, "interest_rate", "dscr", Decimal("5"), Decimal("0.05"), Decimal("0.08")
        ) is None

    def test_unavailable_metric(self, unlevered_inputs):
        assert solve_breakeven(
            unlevered_inputs, "interest_rate", "dscr", Decimal("1.25"), Decimal("0.05"), Decimal("0.08")
        ) is None

    def test_unknown_metric(self, canonical_inputs):
        with pytest.raises(SensitivityError):
            solve_breakeven(canonical_inputs, "interest_rate", "npv", Decimal("0"), Decimal("0"), Decimal("1"))
