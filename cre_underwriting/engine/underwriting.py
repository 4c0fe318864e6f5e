"""Single-period underwriting calculator.

Every derived figure is gated on its own prerequisites: missing inputs leave
the dependent metrics as None while everything else still computes.

Pure functions: ModelInputs in, UnderwritingResult out. No I/O.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Sequence

from cre_underwriting.config import settings
from cre_underwriting.engine.debt import compute_debt_service
from cre_underwriting.engine.irr import compute_equity_multiple, round_irr, solve_irr
from cre_underwriting.engine.sectors import calculate_sector_metrics
from cre_underwriting.models.inputs import ModelInputs
from cre_underwriting.models.results import (
    CombinedReturns,
    DebtMetrics,
    ExpenseMetrics,
    IncomeMetrics,
    ReturnMetrics,
    SimplifiedProjection,
    UnderwritingResult,
)

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")

DEFAULT_VACANCY_RATE = Decimal("0.05")
DEFAULT_AMORTIZATION_YEARS = 30
DEFAULT_RENT_GROWTH = Decimal("0.03")
DEFAULT_EXPENSE_GROWTH = Decimal("0.02")
DEFAULT_EXPENSE_RATIO = Decimal("0.40")
QUICK_SELLING_COST_RATE = Decimal("0.02")
NEGATIVE_DSCR = Decimal("1.0")


def _money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _ratio(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, ROUND_HALF_UP)


def _income(inputs: ModelInputs) -> IncomeMetrics | None:
    gpr = inputs.income.gross_potential_rent
    if gpr is None:
        return None
    vacancy_rate = inputs.get("vacancy_rate", DEFAULT_VACANCY_RATE)
    other = inputs.get("other_income", ZERO)
    return IncomeMetrics(
        gross_potential_rent=_money(gpr),
        vacancy_loss=_money(gpr * vacancy_rate),
        other_income=_money(other),
        effective_gross_income=_money(gpr * (1 - vacancy_rate) + other),
    )


def _expenses(inputs: ModelInputs) -> ExpenseMetrics | None:
    exp = inputs.expenses
    if exp.operating_expenses is not None:
        return ExpenseMetrics(total_operating=_money(exp.operating_expenses))

    components = (exp.taxes, exp.insurance, exp.management, exp.reserves)
    if all(c is None for c in components):
        return None
    taxes, insurance, management, reserves = (c or ZERO for c in components)
    return ExpenseMetrics(
        taxes=_money(taxes),
        insurance=_money(insurance),
        management=_money(management),
        reserves=_money(reserves),
        total_operating=_money(taxes + insurance + management + reserves),
    )


def quick_projection(
    purchase_price: Decimal,
    noi: Decimal,
    annual_debt_service: Decimal,
    exit_cap_rate: Decimal,
    hold_period: int,
    rent_growth: Decimal,
    expense_growth: Decimal,
    loan_amount: Decimal,
    interest_rate: Decimal,
    expense_ratio: Decimal = DEFAULT_EXPENSE_RATIO,
) -> SimplifiedProjection | None:
    """Summary-level projection on a constant expense ratio.

    Revenue grows at (1+g)^year off the implied gross revenue, expenses at
    (1+eg)^year on the same ratio; the loan balance pays down with 12 monthly
    payments a year. Deliberately coarser than the detailed projector.
    """
    equity = purchase_price - loan_amount
    if equity <= 0 or exit_cap_rate <= 0 or hold_period <= 0 or expense_ratio >= 1:
        return None

    base_revenue = noi / (1 - expense_ratio)
    monthly_rate = interest_rate / 12
    monthly_pmt = annual_debt_service / 12

    cash_flows = [-_money(equity)]
    total_cash_flow = ZERO
    balance = loan_amount
    current_noi = noi

    for year in range(1, hold_period + 1):
        revenue_growth = (1 + rent_growth) ** year
        cost_growth = (1 + expense_growth) ** year
        revenue = base_revenue * revenue_growth
        expenses = revenue * expense_ratio * cost_growth / revenue_growth
        current_noi = revenue - expenses

        if year < hold_period:
            btcf = _money(current_noi - annual_debt_service)
            cash_flows.append(btcf)
            total_cash_flow += btcf

        for _ in range(12):
            balance -= monthly_pmt - balance * monthly_rate

    exit_value = current_noi / exit_cap_rate
    net_sale_proceeds = exit_value - exit_value * QUICK_SELLING_COST_RATE - balance
    final_year = _money(current_noi - annual_debt_service + net_sale_proceeds)
    cash_flows.append(final_year)
    total_cash_flow += final_year

    irr = solve_irr(cash_flows)
    return SimplifiedProjection(
        cash_flows=cash_flows,
        irr=round_irr(irr),
        equity_multiple=compute_equity_multiple(total_cash_flow + equity, equity),
        exit_value=_money(exit_value),
        net_sale_proceeds=_money(net_sale_proceeds),
        final_loan_balance=_money(balance),
    )


def calculate_underwriting(inputs: ModelInputs) -> UnderwritingResult:
    """Compute every metric the supplied inputs support."""
    price = inputs.purchase_price
    loan = inputs.debt.loan_amount
    rate = inputs.debt.interest_rate
    amortization = inputs.get("amortization_years", DEFAULT_AMORTIZATION_YEARS)
    io_years = inputs.get("interest_only_years", 0)
    exit_cap = inputs.growth.exit_cap_rate
    hold = inputs.get("hold_period_years", settings.default_hold_period)

    result = UnderwritingResult(inputs={
        "purchase_price": price,
        "gross_potential_rent": inputs.income.gross_potential_rent,
        "vacancy_rate": inputs.get("vacancy_rate", DEFAULT_VACANCY_RATE),
        "other_income": inputs.get("other_income", ZERO),
        "loan_amount": loan,
        "interest_rate": rate,
        "exit_cap_rate": exit_cap,
        "hold_period_years": hold,
    })

    income = _income(inputs)
    expenses = _expenses(inputs)
    noi: Decimal | None = None
    if income is not None and expenses is not None:
        noi = income.effective_gross_income - expenses.total_operating
        income.net_operating_income = noi
        if income.effective_gross_income != 0:
            expenses.expense_ratio = _ratio(expenses.total_operating / income.effective_gross_income)
    result.income = income
    result.expenses = expenses

    returns = ReturnMetrics()
    if noi is not None and price:
        returns.going_in_cap_rate = _ratio(noi / price)

    debt: DebtMetrics | None = None
    annual_debt_service: Decimal | None = None
    if loan is not None and rate is not None:
        service = compute_debt_service(loan, rate, amortization, io_years)
        annual_debt_service = service.annual_debt_service
        debt = DebtMetrics(
            annual_debt_service=service.annual_debt_service,
            monthly_payment=service.monthly_payment,
            is_interest_only=service.is_interest_only,
        )
        if noi is not None and annual_debt_service > 0:
            debt.dscr = _ratio(noi / annual_debt_service)
            if debt.dscr < NEGATIVE_DSCR:
                result.warnings.append("DSCR below 1.0 - negative cash flow")
            elif debt.dscr < settings.min_dscr_warning:
                result.warnings.append(
                    f"DSCR below typical lender minimum of {settings.min_dscr_warning}"
                )

    if loan is not None and price:
        debt = debt or DebtMetrics()
        debt.ltv = _ratio(loan / price)
        if debt.ltv > settings.max_ltv_warning:
            result.warnings.append(
                f"LTV above {settings.max_ltv_warning * 100:.0f}% - may require additional guarantees"
            )
    result.debt_metrics = debt

    if price is not None and loan is not None:
        equity = price - loan
        returns.equity_required = _money(equity)
        if noi is not None and annual_debt_service is not None:
            btcf = noi - annual_debt_service
            returns.before_tax_cash_flow = _money(btcf)
            if equity != 0:
                returns.cash_on_cash = _ratio(btcf / equity)

    if (
        price is not None
        and noi is not None
        and exit_cap
        and hold
        and loan is not None
        and annual_debt_service is not None
    ):
        expense_ratio = expenses.expense_ratio if expenses.expense_ratio is not None else DEFAULT_EXPENSE_RATIO
        result.projections = quick_projection(
            purchase_price=price,
            noi=noi,
            annual_debt_service=annual_debt_service,
            exit_cap_rate=exit_cap,
            hold_period=hold,
            rent_growth=inputs.get("rent_growth", DEFAULT_RENT_GROWTH),
            expense_growth=inputs.get("expense_growth", DEFAULT_EXPENSE_GROWTH),
            loan_amount=loan,
            interest_rate=rate,
            expense_ratio=expense_ratio,
        )
        if result.projections is not None:
            returns.irr = result.projections.irr
            returns.equity_multiple = result.projections.equity_multiple

    if returns != ReturnMetrics():
        result.returns = returns

    logger.debug(
        "Underwriting computed: noi=%s dscr=%s warnings=%d",
        noi, debt.dscr if debt else None, len(result.warnings),
    )
    return result


def calculate_scenario(base: ModelInputs, overrides: dict[str, Any]) -> UnderwritingResult:
    """Re-run underwriting with named fields replaced."""
    return calculate_underwriting(base.with_overrides(**overrides))


def compare_scenarios(
    scenarios: Iterable[tuple[str, UnderwritingResult]],
) -> list[dict[str, Any]]:
    """Headline metrics per named scenario, None where not computed."""
    rows = []
    for name, result in scenarios:
        returns = result.returns or ReturnMetrics()
        debt = result.debt_metrics or DebtMetrics()
        rows.append({
            "name": name,
            "irr": returns.irr,
            "cash_on_cash": returns.cash_on_cash,
            "dscr": debt.dscr,
            "equity_multiple": returns.equity_multiple,
            "going_in_cap_rate": returns.going_in_cap_rate,
        })
    return rows


def sensitivity_analysis(
    base: ModelInputs, field_name: str, variations: Sequence[Any]
) -> list[dict[str, Any]]:
    """Vary one input across values and report IRR, cash-on-cash and DSCR."""
    rows = []
    for value in variations:
        result = calculate_underwriting(base.with_overrides(**{field_name: value}))
        returns = result.returns or ReturnMetrics()
        debt = result.debt_metrics or DebtMetrics()
        rows.append({
            field_name: value,
            "irr": returns.irr,
            "cash_on_cash": returns.cash_on_cash,
            "dscr": debt.dscr,
        })
    return rows


def calculate_returns(inputs: ModelInputs) -> CombinedReturns:
    """Underwriting returns merged with sector metrics and warnings."""
    base = calculate_underwriting(inputs)
    sector = calculate_sector_metrics(inputs)
    returns = base.returns or ReturnMetrics()
    debt = base.debt_metrics or DebtMetrics()

    warnings = list(base.warnings)
    warnings.extend(f"{w.metric}: {w.warning}" for w in sector.warnings)

    return CombinedReturns(
        noi=base.noi,
        going_in_cap_rate=returns.going_in_cap_rate,
        equity_required=returns.equity_required,
        cash_on_cash=returns.cash_on_cash,
        irr=returns.irr,
        equity_multiple=returns.equity_multiple,
        annual_debt_service=debt.annual_debt_service,
        dscr=debt.dscr,
        ltv=debt.ltv,
        sector=sector.sector.value,
        sector_metrics=sector.metrics,
        warnings=warnings,
    )
