from dataclasses import replace
from decimal import Decimal

import pytest

from cre_underwriting.engine.waterfall import (
    WATERFALL_TEMPLATES,
    HurdleType,
    Investor,
    PromoteTier,
    ShareClass,
    WaterfallError,
    WaterfallResult,
    allocate_within_class,
    calculate_waterfall,
    compare_waterfall_scenarios,
    create_default_structure,
    group_investors_by_class,
    structure_from_template,
    validate_structure,
)

TOLERANCE = Decimal("0.0001")


class TestConservation:
    def test_each_period_distributes_exactly_its_cash(self, standard_structure, deal_cash_flows):
        result = calculate_waterfall(deal_cash_flows, standard_structure)
        assert isinstance(result, WaterfallResult)
        for period in result.periods:
            assert abs(period.lp_distribution + period.gp_distribution - period.cash_flow) < TOLERANCE

    def test_totals_match_cash(self, standard_structure, deal_cash_flows):
        result = calculate_waterfall(deal_cash_flows, standard_structure)
        total = result.summary.lp_total_distributed + result.summary.gp_total_distributed
        assert abs(total - sum(deal_cash_flows)) <= Decimal("0.01")

    def test_negative_period_distributes_nothing(self, standard_structure):
        result = calculate_waterfall([Decimal("-50000"), Decimal("200000")], standard_structure)
        first = result.periods[0]
        assert first.lp_distribution == Decimal("0")
        assert first.gp_distribution == Decimal("0")

    @pytest.mark.parametrize("code", sorted(WATERFALL_TEMPLATES))
    def test_conservation_for_every_template(self, code, deal_cash_flows):
        structure = structure_from_template(code, Decimal("900000"), Decimal("100000"))
        result = calculate_waterfall(deal_cash_flows, structure)
        for period in result.periods:
            assert abs(period.lp_distribution + period.gp_distribution - period.cash_flow) < TOLERANCE


class TestDistributionOrder:
    def test_capital_returned_pro_rata_first(self, standard_structure):
        result = calculate_waterfall([Decimal("100000")], standard_structure)
        period = result.periods[0]
        assert period.lp_capital_returned == Decimal("90000")
        assert period.gp_capital_returned == Decimal("10000")
        assert period.lp_preferred_paid == Decimal("0")
        assert period.preferred_outstanding == Decimal("72000")

    def test_pref_compounds_while_unpaid(self, standard_structure):
        """Two dry periods: 900K * 1.08^2 - 900K of pref owed."""
        result = calculate_waterfall([Decimal("0"), Decimal("0")], standard_structure)
        assert result.periods[-1].preferred_outstanding == Decimal("149760")

    def test_pref_paid_before_catch_up(self, standard_structure):
        result = calculate_waterfall([Decimal("1000000"), Decimal("50000")], standard_structure)
        second = result.periods[1]
        assert second.lp_preferred_paid == Decimal("50000")
        assert second.gp_catch_up == Decimal("0")

    def test_catch_up_after_pref_cleared(self, standard_structure):
        result = calculate_waterfall([Decimal("1500000")], standard_structure)
        period = result.periods[0]
        assert period.lp_preferred_paid == Decimal("72000")
        # Full catch-up brings GP to 20% of profit: 0.2 * 72000 / 0.8
        assert abs(period.gp_catch_up - Decimal("18000")) < TOLERANCE
        assert period.lp_promote > 0

    def test_no_tiers_splits_residual_by_capital(self):
        structure = replace(create_default_structure(Decimal("1000000")), promote_tiers=(), gp_catch_up=False)
        result = calculate_waterfall([Decimal("1500000")], structure)
        period = result.periods[0]
        assert abs(period.lp_promote / (period.lp_promote + period.gp_promote) - Decimal("0.9")) < TOLERANCE


class TestHurdleMonotonicity:
    @pytest.mark.parametrize("low,high", [("0.10", "0.12"), ("0.12", "0.14"), ("0.13", "0.149")])
    def test_raising_a_hurdle_never_costs_lp(self, standard_structure, deal_cash_flows, low, high):
        def lp_total(hurdle: str) -> Decimal:
            tiers = (replace(standard_structure.promote_tiers[0], hurdle=Decimal(hurdle)),) \
                + standard_structure.promote_tiers[1:]
            result = calculate_waterfall(deal_cash_flows, replace(standard_structure, promote_tiers=tiers))
            return result.summary.lp_total_distributed

        assert lp_total(high) >= lp_total(low)

    def test_equity_multiple_hurdles(self, deal_cash_flows):
        structure = structure_from_template("EQUITY_MULTIPLE", Decimal("900000"), Decimal("100000"))
        assert structure.hurdle_type == HurdleType.EQUITY_MULTIPLE
        result = calculate_waterfall(deal_cash_flows, structure)
        assert result.summary.lp_equity_multiple > Decimal("1.25")
        assert result.summary.total_promote > 0


class TestValidation:
    def test_zero_lp_equity(self, standard_structure):
        result = calculate_waterfall([Decimal("100")], replace(standard_structure, lp_equity=Decimal("0")))
        assert result == WaterfallError("LP equity must be greater than 0")

    def test_empty_cash_flows(self, standard_structure):
        assert isinstance(calculate_waterfall([], standard_structure), WaterfallError)

    def test_unsorted_hurdles_rejected(self, standard_structure):
        tiers = (
            PromoteTier(Decimal("0.15"), Decimal("0.80"), Decimal("0.20")),
            PromoteTier(Decimal("0.12"), Decimal("0.70"), Decimal("0.30")),
        )
        error = validate_structure(replace(standard_structure, promote_tiers=tiers))
        assert error.error == "Tier hurdles must be strictly ascending"

    def test_splits_must_sum_to_one(self, standard_structure):
        tiers = (PromoteTier(None, Decimal("0.80"), Decimal("0.30")),)
        error = validate_structure(replace(standard_structure, promote_tiers=tiers))
        assert error.error == "Tier 1 LP and GP splits must sum to 1.0"

    def test_unbounded_tier_must_be_last(self, standard_structure):
        tiers = (
            PromoteTier(None, Decimal("0.80"), Decimal("0.20")),
            PromoteTier(Decimal("0.15"), Decimal("0.70"), Decimal("0.30")),
        )
        error = validate_structure(replace(standard_structure, promote_tiers=tiers))
        assert error.error == "Only the final tier may have an unbounded hurdle"

    def test_catch_up_percent_bounds(self, standard_structure):
        error = validate_structure(replace(standard_structure, catch_up_percent=Decimal("1.5")))
        assert error is not None

    def test_class_terms_need_classes(self, standard_structure):
        error = validate_structure(standard_structure, use_class_terms=True)
        assert error.error == "Per-class terms require at least one share class"

    @pytest.mark.parametrize("code", sorted(WATERFALL_TEMPLATES))
    def test_every_template_validates(self, code):
        structure = structure_from_template(code, Decimal("900000"), Decimal("100000"))
        assert validate_structure(structure) is None

    def test_unknown_template(self):
        with pytest.raises(KeyError):
            structure_from_template("NOPE", Decimal("900000"))


class TestLookback:
    def test_shortfall_reported_when_lp_misses_pref(self, standard_structure):
        structure = replace(standard_structure, lookback=True)
        result = calculate_waterfall([Decimal("500000"), Decimal("500000")], structure)
        assert result.summary.lp_irr <= 0
        assert result.lookback is not None
        assert result.lookback.lp_shortfall > 0
        assert result.lookback.clawback == Decimal("0.00")

    def test_no_adjustment_when_pref_met(self, standard_structure, deal_cash_flows):
        result = calculate_waterfall(deal_cash_flows, replace(standard_structure, lookback=True))
        assert result.summary.lp_irr >= standard_structure.preferred_return
        assert result.lookback is None


class TestShareClasses:
    def test_senior_class_paid_first(self, standard_structure):
        structure = replace(
            standard_structure,
            gp_equity=Decimal("0"),
            share_classes=(
                ShareClass("B", "Class B", Decimal("300000"), Decimal("0.10"), priority=2),
                ShareClass("A", "Class A", Decimal("600000"), Decimal("0.06"), priority=1),
            ),
        )
        result = calculate_waterfall([Decimal("700000")], structure, use_class_terms=True)
        period = result.periods[0]
        assert period.class_distributions["A"] == Decimal("636000")
        assert period.class_distributions["B"] == Decimal("64000")
        assert [c.code for c in result.class_summaries] == ["A", "B"]
        assert result.class_summaries[0].preferred_paid == Decimal("36000.00")


class TestCompareScenarios:
    def test_rows_per_scenario(self, standard_structure, deal_cash_flows):
        rows = compare_waterfall_scenarios(
            [("base", deal_cash_flows), ("empty", [])], standard_structure
        )
        assert rows[0]["name"] == "base"
        assert rows[0]["lp_irr"] is not None
        assert "error" in rows[1]


class TestInvestorAllocation:
    def test_grouped_by_priority(self):
        senior = ShareClass("A", "Class A", Decimal("600000"), priority=1)
        junior = ShareClass("B", "Class B", Decimal("300000"), priority=2)
        groups = group_investors_by_class([
            Investor("3", "Cash Only", Decimal("0.1"), Decimal("100000")),
            Investor("2", "Junior", Decimal("0.3"), Decimal("300000"), junior),
            Investor("1", "Senior", Decimal("0.6"), Decimal("600000"), senior),
        ])
        assert list(groups) == [1, 2, 999]
        assert groups[1].total_capital == Decimal("600000")

    def test_allocation_sums_to_amount(self):
        investors = [
            Investor("a", "A", Decimal("1")),
            Investor("b", "B", Decimal("1")),
            Investor("c", "C", Decimal("1")),
        ]
        allocations = allocate_within_class(investors, Decimal("100.00"))
        assert sum(allocations.values()) == Decimal("100.00")
        assert max(allocations.values()) == Decimal("33.34")

    def test_nothing_to_allocate(self):
        assert allocate_within_class([], Decimal("100")) == {}
        assert allocate_within_class([Investor("a", "A", Decimal("1"))], Decimal("0")) == {}
