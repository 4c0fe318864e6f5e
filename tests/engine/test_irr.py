from decimal import Decimal

from cre_underwriting.engine.irr import compute_equity_multiple, npv, round_irr, solve_irr


class TestSolveIRR:
    def test_simple_irr(self):
        """Invest $100, get $110 after 1 year = 10% IRR."""
        irr = solve_irr([Decimal("-100"), Decimal("110")])
        assert abs(irr - Decimal("0.10")) < Decimal("0.0001")

    def test_three_year_round_trip(self):
        irr = solve_irr([Decimal("-100"), Decimal("0"), Decimal("0"), Decimal("133.1")])
        assert abs(irr - Decimal("0.10")) < Decimal("0.0001")

    def test_multi_year(self):
        cfs = [Decimal("-100000"), Decimal("10000"), Decimal("10000"),
               Decimal("10000"), Decimal("10000"), Decimal("130000")]
        irr = solve_irr(cfs)
        assert Decimal("0.10") < irr < Decimal("0.20")

    def test_negative_irr(self):
        irr = solve_irr([Decimal("-100"), Decimal("90")])
        assert abs(irr - Decimal("-0.10")) < Decimal("0.0001")

    def test_all_positive_is_undetermined(self):
        assert solve_irr([Decimal("100"), Decimal("10"), Decimal("10")]) is None

    def test_all_negative_is_undetermined(self):
        assert solve_irr([Decimal("-100"), Decimal("-10"), Decimal("-10")]) is None

    def test_empty_cash_flows(self):
        assert solve_irr([]) is None

    def test_iteration_cap_returns_estimate(self):
        """Running out of iterations still yields the latest estimate."""
        flows = [Decimal("-100"), Decimal("0"), Decimal("0"), Decimal("133.1")]
        assert solve_irr(flows, max_iterations=1) is not None
        estimate = solve_irr(flows, guess=Decimal("0.2"), max_iterations=1)
        assert estimate is not None
        assert Decimal("0") < estimate < Decimal("0.2")

    def test_npv_at_irr_is_zero(self):
        cfs = [Decimal("-5000"), Decimal("1200"), Decimal("1400"), Decimal("1600"), Decimal("2500")]
        irr = solve_irr(cfs, tolerance=Decimal("0.0000001"))
        assert abs(npv(irr, cfs)) < Decimal("0.01")


class TestRoundIRR:
    def test_four_places(self):
        assert round_irr(Decimal("0.123456")) == Decimal("0.1235")

    def test_none_passes_through(self):
        assert round_irr(None) is None


class TestEquityMultiple:
    def test_basic(self):
        em = compute_equity_multiple(Decimal("200000"), Decimal("100000"))
        assert em == Decimal("2.0000")

    def test_zero_investment(self):
        assert compute_equity_multiple(Decimal("100000"), Decimal("0")) is None
