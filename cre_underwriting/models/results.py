from dataclasses import dataclass, field
from decimal import Decimal


# ---- Single-period underwriting ----

@dataclass
class IncomeMetrics:
    gross_potential_rent: Decimal | None = None
    vacancy_loss: Decimal | None = None
    other_income: Decimal | None = None
    effective_gross_income: Decimal | None = None
    net_operating_income: Decimal | None = None


@dataclass
class ExpenseMetrics:
    taxes: Decimal | None = None
    insurance: Decimal | None = None
    management: Decimal | None = None
    reserves: Decimal | None = None
    total_operating: Decimal | None = None
    expense_ratio: Decimal | None = None


@dataclass
class DebtMetrics:
    annual_debt_service: Decimal | None = None
    monthly_payment: Decimal | None = None
    is_interest_only: bool | None = None
    dscr: Decimal | None = None
    ltv: Decimal | None = None


@dataclass
class ReturnMetrics:
    going_in_cap_rate: Decimal | None = None
    equity_required: Decimal | None = None
    before_tax_cash_flow: Decimal | None = None
    cash_on_cash: Decimal | None = None
    irr: Decimal | None = None
    equity_multiple: Decimal | None = None


@dataclass
class SimplifiedProjection:
    """Quick-estimate projection: constant expense ratio, no line items."""
    cash_flows: list[Decimal] = field(default_factory=list)
    irr: Decimal | None = None
    equity_multiple: Decimal | None = None
    exit_value: Decimal = Decimal("0")
    net_sale_proceeds: Decimal = Decimal("0")
    final_loan_balance: Decimal = Decimal("0")


@dataclass
class UnderwritingResult:
    inputs: dict = field(default_factory=dict)
    income: IncomeMetrics | None = None
    expenses: ExpenseMetrics | None = None
    debt_metrics: DebtMetrics | None = None
    returns: ReturnMetrics | None = None
    projections: SimplifiedProjection | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def noi(self) -> Decimal | None:
        return self.income.net_operating_income if self.income else None


@dataclass
class CombinedReturns:
    """Headline returns merged with sector context, one flat record."""
    noi: Decimal | None = None
    going_in_cap_rate: Decimal | None = None
    equity_required: Decimal | None = None
    cash_on_cash: Decimal | None = None
    irr: Decimal | None = None
    equity_multiple: Decimal | None = None
    annual_debt_service: Decimal | None = None
    dscr: Decimal | None = None
    ltv: Decimal | None = None
    sector: str | None = None
    sector_metrics: dict = field(default_factory=dict)
    warnings: list[str] = field(default_factory=list)

    def metric(self, name: str) -> Decimal | None:
        return getattr(self, name, None)


# ---- Detailed multi-year projection ----

@dataclass(frozen=True)
class RevenueLine:
    gross_potential_rent: Decimal
    vacancy: Decimal  # Negative: a deduction
    vacancy_rate: Decimal
    other_income: Decimal
    effective_gross_income: Decimal


@dataclass(frozen=True)
class ExpenseLine:
    operating: Decimal
    taxes: Decimal
    insurance: Decimal
    management: Decimal
    reserves: Decimal
    total_expenses: Decimal
    expense_ratio: Decimal | None


@dataclass(frozen=True)
class DebtServiceLine:
    interest_payment: Decimal
    principal_payment: Decimal
    total_debt_service: Decimal
    beginning_balance: Decimal
    ending_balance: Decimal
    is_interest_only: bool


@dataclass(frozen=True)
class YearMetrics:
    dscr: Decimal | None
    debt_yield: Decimal | None
    cap_rate: Decimal | None


@dataclass(frozen=True)
class YearRecord:
    year: int
    revenue: RevenueLine
    expenses: ExpenseLine
    noi: Decimal
    debt_service: DebtServiceLine
    before_tax_cash_flow: Decimal
    cumulative_cash_flow: Decimal
    metrics: YearMetrics


@dataclass(frozen=True)
class ExitRecord:
    year: int
    noi_at_exit: Decimal  # Final hold year NOI
    exit_noi: Decimal  # Forward NOI capitalized at exit
    exit_cap_rate: Decimal
    gross_sale_price: Decimal
    selling_costs: Decimal
    selling_cost_rate: Decimal
    net_sale_proceeds: Decimal
    loan_payoff: Decimal
    net_equity_proceeds: Decimal


@dataclass(frozen=True)
class ProjectionTotals:
    equity_invested: Decimal
    total_cash_distributed: Decimal
    total_sale_proceeds: Decimal
    total_returned: Decimal
    equity_multiple: Decimal | None
    irr: Decimal | None
    avg_cash_on_cash: Decimal | None
    avg_dscr: Decimal | None


@dataclass(frozen=True)
class CashFlowProjection:
    years: list[YearRecord]
    exit: ExitRecord
    totals: ProjectionTotals
    assumptions: dict = field(default_factory=dict)

    @property
    def irr_cash_flows(self) -> list[Decimal]:
        """Equity cash-flow vector: [-equity, btcf_1, ..., btcf_n + exit]."""
        flows = [-self.totals.equity_invested]
        flows.extend(y.before_tax_cash_flow for y in self.years)
        flows[-1] += self.exit.net_equity_proceeds
        return flows
