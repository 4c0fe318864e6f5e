"""Detailed multi-year cash-flow projection.

Line-item revenue and expenses per year, debt service from a full
amortization schedule, an exit valued on forward NOI, and deal-level totals.

Pure function: ModelInputs in, CashFlowProjection out. No I/O.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP

from cre_underwriting.config import settings
from cre_underwriting.engine.debt import amortization_schedule
from cre_underwriting.engine.irr import round_irr, solve_irr
from cre_underwriting.models.inputs import ModelInputs
from cre_underwriting.models.results import (
    CashFlowProjection,
    DebtServiceLine,
    ExitRecord,
    ExpenseLine,
    ProjectionTotals,
    RevenueLine,
    YearMetrics,
    YearRecord,
)

logger = logging.getLogger(__name__)

DOLLAR = Decimal("1")
TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")

DEFAULT_VACANCY_RATE = Decimal("0.05")
DEFAULT_RENT_GROWTH = Decimal("0.03")
DEFAULT_EXPENSE_GROWTH = Decimal("0.02")
DEFAULT_AMORTIZATION_YEARS = 30

# Allocation of a lump operating-expense total when no breakdown is given
LUMP_EXPENSE_SPLIT = {
    "operating": Decimal("0.50"),
    "taxes": Decimal("0.25"),
    "insurance": Decimal("0.08"),
    "management": Decimal("0.12"),
    "reserves": Decimal("0.05"),
}


def _dollars(value: Decimal) -> Decimal:
    return value.quantize(DOLLAR, ROUND_HALF_UP)


def _ratio(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, ROUND_HALF_UP)


def year_one_expenses(inputs: ModelInputs) -> dict[str, Decimal]:
    """Baseline expense lines for year 1.

    Component lines are used as given, with whatever is left of a supplied
    total booked as general operating expense. A bare total (no taxes, no
    insurance) is split by LUMP_EXPENSE_SPLIT.
    """
    exp = inputs.expenses
    taxes = exp.taxes or ZERO
    insurance = exp.insurance or ZERO
    management = exp.management or ZERO
    reserves = exp.reserves or ZERO
    components = taxes + insurance + management + reserves
    total = exp.operating_expenses or components

    if total > 0 and taxes == 0 and insurance == 0:
        return {line: total * share for line, share in LUMP_EXPENSE_SPLIT.items()}

    return {
        "operating": total - components,
        "taxes": taxes,
        "insurance": insurance,
        "management": management,
        "reserves": reserves,
    }


def project_detailed_cash_flows(
    inputs: ModelInputs, years: int | None = None
) -> CashFlowProjection:
    """Year-by-year projection over the hold period.

    Growth exponents use (year - 1), so year 1 is the untrended baseline.
    Money is rounded to whole dollars, rates and ratios to 4 places and the
    equity multiple to 2 places.
    """
    hold = years or inputs.get("hold_period_years", settings.default_hold_period)
    if hold < 1:
        logger.warning("Hold period %s is not positive; using %d years", hold, settings.default_hold_period)
        hold = settings.default_hold_period

    gpr = inputs.income.gross_potential_rent or ZERO
    vacancy_rate = inputs.get("vacancy_rate", DEFAULT_VACANCY_RATE)
    other_income = inputs.income.other_income or ZERO

    loan = inputs.debt.loan_amount or ZERO
    rate = inputs.debt.interest_rate or ZERO
    amortization = inputs.get("amortization_years", DEFAULT_AMORTIZATION_YEARS)
    io_years = inputs.get("interest_only_years", 0)

    rent_growth = inputs.get("rent_growth", DEFAULT_RENT_GROWTH)
    expense_growth = inputs.get("expense_growth", DEFAULT_EXPENSE_GROWTH)
    other_growth = inputs.get("other_income_growth", rent_growth)
    selling_rate = inputs.get("selling_cost_rate", settings.default_selling_cost_rate)
    # Exit value divides by the cap rate
    exit_cap = inputs.growth.exit_cap_rate or settings.default_exit_cap_rate
    if exit_cap <= 0:
        exit_cap = settings.default_exit_cap_rate

    price = inputs.purchase_price or ZERO
    equity = price - loan

    base_expenses = year_one_expenses(inputs)
    schedule = amortization_schedule(loan, rate, amortization, io_years, hold_years=hold)

    records: list[YearRecord] = []
    cumulative = ZERO
    dscr_sum = ZERO

    for year in range(1, hold + 1):
        revenue_growth = (1 + rent_growth) ** (year - 1)
        cost_growth = (1 + expense_growth) ** (year - 1)

        gross = gpr * revenue_growth
        vacancy = gross * vacancy_rate
        other = other_income * (1 + other_growth) ** (year - 1)
        egi = gross - vacancy + other

        lines = {name: amount * cost_growth for name, amount in base_expenses.items()}
        total_expenses = sum(lines.values(), ZERO)
        noi = egi - total_expenses

        debt_year = schedule.year(year)
        interest = debt_year.interest_paid if debt_year else ZERO
        principal = debt_year.principal_paid if debt_year else ZERO
        debt_service = interest + principal
        beginning = debt_year.beginning_balance if debt_year else ZERO
        ending = debt_year.ending_balance if debt_year else ZERO

        btcf = _dollars(noi - debt_service)
        cumulative += btcf

        dscr = _ratio(noi / debt_service) if debt_service > 0 else None
        if dscr is not None:
            dscr_sum += dscr

        records.append(YearRecord(
            year=year,
            revenue=RevenueLine(
                gross_potential_rent=_dollars(gross),
                vacancy=_dollars(-vacancy),
                vacancy_rate=vacancy_rate,
                other_income=_dollars(other),
                effective_gross_income=_dollars(egi),
            ),
            expenses=ExpenseLine(
                operating=_dollars(lines["operating"]),
                taxes=_dollars(lines["taxes"]),
                insurance=_dollars(lines["insurance"]),
                management=_dollars(lines["management"]),
                reserves=_dollars(lines["reserves"]),
                total_expenses=_dollars(total_expenses),
                expense_ratio=_ratio(total_expenses / egi) if egi != 0 else None,
            ),
            noi=_dollars(noi),
            debt_service=DebtServiceLine(
                interest_payment=_dollars(interest),
                principal_payment=_dollars(principal),
                total_debt_service=_dollars(debt_service),
                beginning_balance=_dollars(beginning),
                ending_balance=_dollars(ending),
                is_interest_only=year <= io_years,
            ),
            before_tax_cash_flow=btcf,
            cumulative_cash_flow=cumulative,
            metrics=YearMetrics(
                dscr=dscr,
                debt_yield=_ratio(noi / loan) if loan > 0 else None,
                cap_rate=_ratio(noi / price) if price > 0 else None,
            ),
        ))

    final_noi = records[-1].noi
    exit_noi = final_noi * (1 + rent_growth)
    gross_sale = exit_noi / exit_cap
    selling_costs = gross_sale * selling_rate
    net_sale = gross_sale - selling_costs
    payoff = schedule.ending_balance
    net_equity = _dollars(net_sale - payoff)

    exit_record = ExitRecord(
        year=hold,
        noi_at_exit=final_noi,
        exit_noi=_dollars(exit_noi),
        exit_cap_rate=exit_cap,
        gross_sale_price=_dollars(gross_sale),
        selling_costs=_dollars(selling_costs),
        selling_cost_rate=selling_rate,
        net_sale_proceeds=_dollars(net_sale),
        loan_payoff=_dollars(payoff),
        net_equity_proceeds=net_equity,
    )

    flows = [-_dollars(equity)] + [r.before_tax_cash_flow for r in records]
    flows[-1] += net_equity
    irr = solve_irr(flows) if equity > 0 else None

    total_distributed = cumulative + net_equity
    if equity > 0:
        equity_multiple = ((total_distributed + equity) / equity).quantize(TWO_PLACES, ROUND_HALF_UP)
        avg_coc = _ratio(cumulative / hold / equity)
    else:
        equity_multiple = None
        avg_coc = None

    totals = ProjectionTotals(
        equity_invested=_dollars(equity),
        total_cash_distributed=cumulative,
        total_sale_proceeds=net_equity,
        total_returned=_dollars(total_distributed + equity),
        equity_multiple=equity_multiple,
        irr=round_irr(irr),
        avg_cash_on_cash=avg_coc,
        avg_dscr=_ratio(dscr_sum / hold) if dscr_sum else None,
    )

    logger.info(
        "Projected %d years: equity=%s irr=%s multiple=%s",
        hold, totals.equity_invested, totals.irr, totals.equity_multiple,
    )

    return CashFlowProjection(
        years=records,
        exit=exit_record,
        totals=totals,
        assumptions={
            "hold_period_years": hold,
            "rent_growth": rent_growth,
            "expense_growth": expense_growth,
            "other_income_growth": other_growth,
            "vacancy_rate": vacancy_rate,
            "exit_cap_rate": exit_cap,
            "selling_cost_rate": selling_rate,
            "interest_rate": rate,
            "amortization_years": amortization,
            "interest_only_years": io_years,
        },
    )
