from decimal import Decimal

from cre_underwriting.engine.projection import (
    LUMP_EXPENSE_SPLIT,
    project_detailed_cash_flows,
    year_one_expenses,
)
from cre_underwriting.models.inputs import ModelInputs


class TestYearOneExpenses:
    def test_lump_total_uses_fixed_split(self):
        inputs = ModelInputs.from_flat({"operating_expenses": "400000"})
        lines = year_one_expenses(inputs)
        assert lines["operating"] == Decimal("200000")
        assert lines["taxes"] == Decimal("100000")
        assert lines["insurance"] == Decimal("32000")
        assert lines["management"] == Decimal("48000")
        assert lines["reserves"] == Decimal("20000")

    def test_split_sums_to_one(self):
        assert sum(LUMP_EXPENSE_SPLIT.values()) == Decimal("1")

    def test_components_with_remainder_as_operating(self):
        inputs = ModelInputs.from_flat({
            "operating_expenses": "400000",
            "taxes": "120000",
            "insurance": "30000",
        })
        lines = year_one_expenses(inputs)
        assert lines["taxes"] == Decimal("120000")
        assert lines["insurance"] == Decimal("30000")
        assert lines["operating"] == Decimal("250000")

    def test_components_only(self):
        inputs = ModelInputs.from_flat({"taxes": "50000", "insurance": "10000"})
        lines = year_one_expenses(inputs)
        assert lines["operating"] == Decimal("0")
        assert sum(lines.values()) == Decimal("60000")


class TestProjectDetailedCashFlows:
    def test_hold_period_years(self, canonical_inputs):
        projection = project_detailed_cash_flows(canonical_inputs)
        assert [y.year for y in projection.years] == [1, 2, 3, 4, 5]
        assert projection.exit.year == 5

    def test_explicit_years_override_hold(self, canonical_inputs):
        projection = project_detailed_cash_flows(canonical_inputs, 7)
        assert len(projection.years) == 7

    def test_year_one_is_untrended(self, canonical_inputs):
        first = project_detailed_cash_flows(canonical_inputs).years[0]
        assert first.revenue.gross_potential_rent == Decimal("1000000")
        assert first.revenue.vacancy == Decimal("-50000")
        assert first.revenue.effective_gross_income == Decimal("950000")
        assert first.expenses.total_expenses == Decimal("400000")
        assert first.noi == Decimal("550000")

    def test_rent_grows_from_year_two(self, canonical_inputs):
        years = project_detailed_cash_flows(canonical_inputs).years
        assert years[1].revenue.gross_potential_rent == Decimal("1030000")
        assert years[1].expenses.total_expenses == Decimal("408000")

    def test_cumulative_is_running_sum(self, canonical_inputs):
        years = project_detailed_cash_flows(canonical_inputs, 8).years
        running = Decimal("0")
        for year in years:
            running += year.before_tax_cash_flow
            assert year.cumulative_cash_flow == running

    def test_exit_capitalizes_forward_noi(self, canonical_inputs):
        projection = project_detailed_cash_flows(canonical_inputs)
        exit_ = projection.exit
        assert exit_.noi_at_exit == projection.years[-1].noi
        assert exit_.exit_noi > exit_.noi_at_exit
        assert exit_.selling_cost_rate == Decimal("0.02")
        assert exit_.net_equity_proceeds == exit_.net_sale_proceeds - exit_.loan_payoff

    def test_debt_balance_carries_forward(self, canonical_inputs):
        years = project_detailed_cash_flows(canonical_inputs).years
        for prev, year in zip(years, years[1:]):
            assert year.debt_service.beginning_balance == prev.debt_service.ending_balance

    def test_irr_vector(self, canonical_inputs):
        projection = project_detailed_cash_flows(canonical_inputs)
        flows = projection.irr_cash_flows
        assert flows[0] == Decimal("-4000000")
        assert flows[-1] == projection.years[-1].before_tax_cash_flow + projection.exit.net_equity_proceeds
        assert projection.totals.irr > 0

    def test_equity_multiple_includes_return_of_equity(self, canonical_inputs):
        totals = project_detailed_cash_flows(canonical_inputs).totals
        expected = (totals.total_cash_distributed + totals.total_sale_proceeds + totals.equity_invested) \
            / totals.equity_invested
        assert abs(totals.equity_multiple - expected) < Decimal("0.01")

    def test_interest_only_window(self, canonical_inputs):
        inputs = canonical_inputs.with_overrides(interest_only_years=2)
        years = project_detailed_cash_flows(inputs).years
        assert years[0].debt_service.is_interest_only
        assert years[0].debt_service.principal_payment == Decimal("0")
        assert years[1].debt_service.is_interest_only
        assert not years[2].debt_service.is_interest_only
        assert years[2].debt_service.principal_payment > 0

    def test_unlevered_has_no_dscr(self, unlevered_inputs):
        projection = project_detailed_cash_flows(unlevered_inputs)
        assert all(y.metrics.dscr is None for y in projection.years)
        assert all(y.metrics.debt_yield is None for y in projection.years)
        assert projection.totals.avg_dscr is None
        assert projection.exit.loan_payoff == Decimal("0")

    def test_no_price_means_no_irr(self):
        inputs = ModelInputs.from_flat({"gross_potential_rent": "100000", "operating_expenses": "40000"})
        totals = project_detailed_cash_flows(inputs).totals
        assert totals.irr is None
        assert totals.equity_multiple is None


class TestExplicitZeroAssumptions:
    """Zero rates are real inputs, not missing ones."""

    ZERO_GROWTH = {
        "gross_potential_rent": "1000000",
        "vacancy_rate": "0",
        "rent_growth": "0",
        "expense_growth": "0",
        "operating_expenses": "400000",
    }

    def test_zero_vacancy_keeps_full_rent(self):
        first = project_detailed_cash_flows(ModelInputs.from_flat(self.ZERO_GROWTH)).years[0]
        assert first.revenue.vacancy == Decimal("0")
        assert first.revenue.vacancy_rate == Decimal("0")
        assert first.revenue.effective_gross_income == Decimal("1000000")

    def test_zero_growth_stays_flat(self):
        years = project_detailed_cash_flows(ModelInputs.from_flat(self.ZERO_GROWTH)).years
        assert years[1].revenue.gross_potential_rent == years[0].revenue.gross_potential_rent
        assert years[1].expenses.total_expenses == Decimal("400000")

    def test_absent_growth_uses_default(self):
        inputs = ModelInputs.from_flat({"gross_potential_rent": "1000000"})
        years = project_detailed_cash_flows(inputs).years
        assert years[1].revenue.gross_potential_rent == Decimal("1030000")


class TestNonPositiveHold:
    def test_negative_hold_input_falls_back(self, canonical_inputs):
        inputs = canonical_inputs.with_overrides(hold_period_years=-2)
        projection = project_detailed_cash_flows(inputs)
        assert len(projection.years) == 5
        assert projection.exit.year == 5

    def test_negative_years_argument_falls_back(self, canonical_inputs):
        assert len(project_detailed_cash_flows(canonical_inputs, -3).years) == 5
