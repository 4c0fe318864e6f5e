from decimal import Decimal

import pytest

from cre_underwriting.engine.scenarios import (
    DEFAULT_SCENARIOS,
    apply_adjustments,
    build_scenario,
    format_scenario_metric,
    generate_default_scenarios,
    scenario_comparison,
)
from cre_underwriting.engine.sector_config import Sector


class TestAdjustments:
    def test_downside_vacancy_is_capped(self, canonical_inputs):
        inputs = canonical_inputs.with_overrides(vacancy_rate="0.12")
        assumptions = apply_adjustments(inputs, DEFAULT_SCENARIOS["downside"].adjustments)
        assert assumptions["vacancy_rate"] == Decimal("0.15")

    def test_downside_expense_growth_floor(self, canonical_inputs):
        assumptions = apply_adjustments(canonical_inputs, DEFAULT_SCENARIOS["downside"].adjustments)
        assert assumptions["expense_growth"] == Decimal("0.03")
        assert assumptions["exit_cap_rate"] == Decimal("0.0600")
        assert assumptions["operating_expenses"] == Decimal("420000")

    def test_upside_floors(self, canonical_inputs):
        assumptions = apply_adjustments(canonical_inputs, DEFAULT_SCENARIOS["upside"].adjustments)
        assert assumptions["vacancy_rate"] == Decimal("0.03")
        assert assumptions["exit_cap_rate"] == Decimal("0.0525")
        assert assumptions["rent_growth"] == Decimal("0.0375")

    def test_absent_fields_are_skipped(self, canonical_inputs):
        assumptions = apply_adjustments(canonical_inputs, DEFAULT_SCENARIOS["downside"].adjustments)
        assert "other_income" not in assumptions

    def test_sector_adjustment_replaces_generic(self, canonical_inputs):
        assumptions = apply_adjustments(
            canonical_inputs, DEFAULT_SCENARIOS["downside"].adjustments, Sector.MULTIFAMILY, "downside"
        )
        assert assumptions["vacancy_rate"] == Decimal("0.07")
        assert "concessions" not in assumptions

    def test_office_downside_doubles_vacancy(self, canonical_inputs):
        assumptions = apply_adjustments(
            canonical_inputs, DEFAULT_SCENARIOS["downside"].adjustments, Sector.OFFICE, "downside"
        )
        assert assumptions["vacancy_rate"] == Decimal("0.10")

    def test_sector_only_field_applied_when_present(self, canonical_inputs):
        inputs = canonical_inputs.with_overrides(tenant_improvements=Decimal("40"))
        assumptions = apply_adjustments(inputs, {}, Sector.OFFICE, "downside")
        assert assumptions["tenant_improvements"] == Decimal("48")


class TestBuildScenario:
    def test_base_case_has_no_assumptions(self, canonical_inputs):
        scenario = build_scenario(canonical_inputs, "base_case", Sector.MULTIFAMILY)
        assert scenario.is_base_case
        assert scenario.assumptions == {}
        assert scenario.results["net_operating_income"] == Decimal("550000.00")

    def test_extended_hold(self, canonical_inputs):
        scenario = build_scenario(canonical_inputs, "extended_hold")
        assert scenario.results["hold_period_years"] == 7
        assert scenario.results["exit_cap_rate"] == Decimal("0.0575")

    def test_debt_yield(self, canonical_inputs):
        results = build_scenario(canonical_inputs, "base_case").results
        # 550K NOI on a 6M loan
        assert results["debt_yield"] == Decimal("0.0917")

    def test_unknown_key(self, canonical_inputs):
        with pytest.raises(KeyError):
            build_scenario(canonical_inputs, "moonshot")


class TestGenerateDefaultScenarios:
    def test_standard_three(self, canonical_inputs):
        scenarios = generate_default_scenarios(canonical_inputs)
        assert [s.key for s in scenarios] == ["base_case", "downside", "upside"]

    def test_downside_and_upside_bracket_base(self, canonical_inputs):
        base, downside, upside = generate_default_scenarios(canonical_inputs)
        assert downside.results["irr"] < base.results["irr"] < upside.results["irr"]
        assert downside.results["net_operating_income"] < base.results["net_operating_income"]

    def test_sector_detected_from_property_type(self, canonical_inputs):
        downside = generate_default_scenarios(canonical_inputs, keys=["downside"])[0]
        assert downside.assumptions["vacancy_rate"] == Decimal("0.07")

    def test_explicit_sector_string(self, canonical_inputs):
        downside = generate_default_scenarios(canonical_inputs, "office", keys=["downside"])[0]
        assert downside.assumptions["vacancy_rate"] == Decimal("0.10")

    def test_unknown_sector(self, canonical_inputs):
        with pytest.raises(ValueError):
            generate_default_scenarios(canonical_inputs, "SPACEPORT")


class TestComparison:
    def test_base_case_first(self, canonical_inputs):
        scenarios = generate_default_scenarios(canonical_inputs, keys=["downside", "base_case"])
        table = scenario_comparison(scenarios)
        assert table["scenarios"] == ["Base Case", "Downside"]
        irr_row = table["rows"][0]
        assert irr_row["label"] == "IRR"
        assert list(irr_row["values"]) == ["Base Case", "Downside"]

    def test_formatting(self):
        assert format_scenario_metric("irr", Decimal("0.1234")) == "12.34%"
        assert format_scenario_metric("dscr", Decimal("1.274")) == "1.27x"
        assert format_scenario_metric("irr", None) == "N/A"
