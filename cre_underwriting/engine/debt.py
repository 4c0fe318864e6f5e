"""Debt service and amortization schedules.

Pure functions: Decimal in, dataclass out. No I/O.
Monthly compounding throughout: a year is 12 payment sub-steps.
"""

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


@dataclass(frozen=True)
class DebtService:
    annual_debt_service: Decimal | None
    monthly_payment: Decimal | None
    is_interest_only: bool | None


@dataclass(frozen=True)
class AmortizationPayment:
    period: int
    payment: Decimal
    principal: Decimal
    interest: Decimal
    balance: Decimal
    is_interest_only: bool = False


@dataclass(frozen=True)
class AmortizationYear:
    year: int
    beginning_balance: Decimal
    interest_paid: Decimal
    principal_paid: Decimal
    ending_balance: Decimal
    is_interest_only: bool = False

    @property
    def debt_service(self) -> Decimal:
        return self.interest_paid + self.principal_paid


@dataclass(frozen=True)
class AmortizationSchedule:
    years: list[AmortizationYear]
    monthly_payment: Decimal
    total_interest: Decimal
    total_principal: Decimal
    payments: list[AmortizationPayment] = field(default_factory=list)

    @property
    def ending_balance(self) -> Decimal:
        if not self.years:
            return ZERO
        return self.years[-1].ending_balance

    def year(self, year: int) -> AmortizationYear | None:
        """Schedule row for a 1-indexed year, or None past the schedule."""
        if 1 <= year <= len(self.years):
            return self.years[year - 1]
        return None


def monthly_payment(
    principal: Decimal, annual_rate: Decimal, amortization_years: int
) -> Decimal:
    """Fixed monthly payment on a fully amortizing loan.

    M = P * r(1+r)^n / ((1+r)^n - 1), straight-line P/n when r is zero.
    """
    if principal <= 0 or amortization_years <= 0:
        return ZERO
    n = amortization_years * 12
    if annual_rate == 0:
        return (principal / n).quantize(TWO_PLACES, ROUND_HALF_UP)

    r = annual_rate / 12
    factor = (1 + r) ** n
    payment = principal * (r * factor) / (factor - 1)
    return payment.quantize(TWO_PLACES, ROUND_HALF_UP)


def compute_debt_service(
    principal: Decimal | None,
    annual_rate: Decimal | None,
    amortization_years: int = 30,
    interest_only_years: int = 0,
) -> DebtService:
    """Annual debt service for the first loan year.

    Returns all-None fields when principal or rate is missing.
    """
    if principal is None or annual_rate is None:
        return DebtService(None, None, None)

    if interest_only_years > 0 or amortization_years <= 0:
        annual_interest = principal * annual_rate
        return DebtService(
            annual_debt_service=annual_interest.quantize(TWO_PLACES, ROUND_HALF_UP),
            monthly_payment=(annual_interest / 12).quantize(TWO_PLACES, ROUND_HALF_UP),
            is_interest_only=True,
        )

    pmt = monthly_payment(principal, annual_rate, amortization_years)
    return DebtService(
        annual_debt_service=pmt * 12,
        monthly_payment=pmt,
        is_interest_only=False,
    )


def debt_constant(
    annual_rate: Decimal, amortization_years: int = 30, interest_only_years: int = 0
) -> Decimal:
    """Annual debt service per dollar of principal (unrounded)."""
    if interest_only_years > 0 or amortization_years <= 0:
        return annual_rate
    n = amortization_years * 12
    if annual_rate == 0:
        return Decimal("12") / n
    r = annual_rate / 12
    factor = (1 + r) ** n
    return r * factor / (factor - 1) * 12


def amortization_schedule(
    principal: Decimal,
    annual_rate: Decimal,
    amortization_years: int = 30,
    interest_only_years: int = 0,
    hold_years: int | None = None,
) -> AmortizationSchedule:
    """Year-by-year schedule built from monthly payments.

    Args:
        principal: Loan amount
        annual_rate: Annual interest rate (e.g. 0.065 for 6.5%)
        amortization_years: Amortization period; 0 means interest-only throughout
        interest_only_years: Leading years paying interest only
        hold_years: Years to schedule (defaults to IO + amortization period)
    """
    io_years = max(interest_only_years, 0)
    n_years = hold_years if hold_years is not None else io_years + amortization_years
    pmt = monthly_payment(principal, annual_rate, amortization_years)
    r = annual_rate / 12
    amortizing_months = amortization_years * 12
    final_period = (io_years * 12) + amortizing_months

    payments: list[AmortizationPayment] = []
    years: list[AmortizationYear] = []
    balance = principal
    total_interest = ZERO
    total_principal = ZERO

    for year in range(1, n_years + 1):
        is_io = year <= io_years or amortizing_months == 0
        beginning = balance
        year_interest = ZERO
        year_principal = ZERO

        for month in range(1, 13):
            period = (year - 1) * 12 + month
            interest = (balance * r).quantize(TWO_PLACES, ROUND_HALF_UP)
            if is_io or balance <= 0:
                principal_paid = ZERO
            elif period >= final_period:
                # Last scheduled payment clears any rounding residue
                principal_paid = balance
            else:
                principal_paid = min(pmt - interest, balance)

            balance -= principal_paid
            year_interest += interest
            year_principal += principal_paid
            payments.append(AmortizationPayment(
                period=period,
                payment=interest + principal_paid,
                principal=principal_paid,
                interest=interest,
                balance=balance,
                is_interest_only=is_io,
            ))

        total_interest += year_interest
        total_principal += year_principal
        years.append(AmortizationYear(
            year=year,
            beginning_balance=beginning,
            interest_paid=year_interest,
            principal_paid=year_principal,
            ending_balance=balance,
            is_interest_only=is_io,
        ))

    return AmortizationSchedule(
        years=years,
        monthly_payment=pmt,
        total_interest=total_interest,
        total_principal=total_principal,
        payments=payments,
    )
