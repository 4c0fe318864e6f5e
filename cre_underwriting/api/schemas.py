"""Pydantic schemas for API request/response models."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from cre_underwriting.models.inputs import ModelInputs


# ---- Request schemas ----

class DealInputsRequest(BaseModel):
    """Flat deal inputs; every numeric field is optional."""
    purchase_price: Decimal | None = None

    gross_potential_rent: Decimal | None = None
    vacancy_rate: Decimal | None = None
    other_income: Decimal | None = None
    other_income_growth: Decimal | None = None

    operating_expenses: Decimal | None = Field(None, description="Pre-summed annual total")
    taxes: Decimal | None = None
    insurance: Decimal | None = None
    management: Decimal | None = None
    reserves: Decimal | None = None

    loan_amount: Decimal | None = None
    interest_rate: Decimal | None = None
    amortization_years: int | None = Field(None, ge=0, description="0 for interest-only")
    loan_term_years: int | None = None
    interest_only_years: int | None = Field(None, ge=0)

    rent_growth: Decimal | None = None
    expense_growth: Decimal | None = None
    exit_cap_rate: Decimal | None = None
    hold_period_years: int | None = Field(None, ge=1)
    selling_cost_rate: Decimal | None = None

    property_type: str | None = Field(None, description="e.g. 'Multifamily Garden'")
    asset_type: str | None = None
    sector_inputs: dict[str, Any] = Field(default_factory=dict, description="Sector-specific raw fields")

    def to_model_inputs(self) -> ModelInputs:
        values = self.model_dump(exclude={"sector_inputs"}, exclude_none=True)
        values.update(self.sector_inputs)
        return ModelInputs.from_flat(values)


class ProjectionRequest(DealInputsRequest):
    years: int | None = Field(None, ge=1, le=50)


class SectorMetricsRequest(DealInputsRequest):
    sector: str | None = Field(None, description="Override keyword detection")


class PromoteTierRequest(BaseModel):
    hurdle: Decimal | None = Field(None, description="None for the final, unbounded tier")
    lp_split: Decimal
    gp_split: Decimal


class ShareClassRequest(BaseModel):
    code: str
    name: str
    capital: Decimal
    preferred_return: Decimal | None = None
    priority: int = 1


class WaterfallRequest(BaseModel):
    cash_flows: list[Decimal] = Field(..., description="Distributable cash per period, contributions excluded")
    template: str | None = Field(None, description="Template code; explicit fields override it")
    lp_equity: Decimal
    gp_equity: Decimal = Decimal("0")
    preferred_return: Decimal | None = None
    promote_tiers: list[PromoteTierRequest] | None = None
    hurdle_type: str | None = None
    gp_catch_up: bool | None = None
    catch_up_percent: Decimal | None = None
    lookback: bool | None = None
    share_classes: list[ShareClassRequest] = Field(default_factory=list)
    use_class_terms: bool = False


class SensitivityMatrixRequest(BaseModel):
    deal: DealInputsRequest
    x_field: str
    y_field: str
    metric: str = "irr"
    max_points: int | None = None


class HoldPeriodRequest(BaseModel):
    deal: DealInputsRequest
    max_years: int = Field(10, ge=1, le=30)


class BreakevenRequest(BaseModel):
    deal: DealInputsRequest
    field: str
    metric: str = "irr"
    target: Decimal
    low: Decimal
    high: Decimal


class ScenariosRequest(BaseModel):
    deal: DealInputsRequest
    sector: str | None = None
    scenarios: list[str] = Field(default_factory=lambda: ["base_case", "downside", "upside"])


class DebtSizingRequest(BaseModel):
    noi: Decimal
    interest_rate: Decimal
    property_value: Decimal | None = None
    purchase_price: Decimal | None = None
    lender_profile: str = "CMBS"
    amortization_years: int | None = None
    interest_only_years: int = 0
    total_cost: Decimal | None = None


class LenderComparisonRequest(BaseModel):
    noi: Decimal
    interest_rate: Decimal
    property_value: Decimal | None = None
    purchase_price: Decimal | None = None
    property_type: str | None = None
    total_cost: Decimal | None = None


# ---- Response schemas ----

class SectorSummaryResponse(BaseModel):
    code: str
    name: str
    description: str
    subsectors: list[str]


class WaterfallTemplateResponse(BaseModel):
    code: str
    name: str
    description: str
    preferred_return: Decimal
    hurdle_type: str
    gp_catch_up: bool
    tiers: list[PromoteTierRequest]


class SectorMetricsResponse(BaseModel):
    sector: str
    sector_name: str
    metrics: dict[str, Any]
    warnings: list[dict[str, Any]]
    risk_factors: list[str]
    primary_metrics: list[str]


class IncomeResponse(BaseModel):
    gross_potential_rent: Decimal | None = None
    vacancy_loss: Decimal | None = None
    other_income: Decimal | None = None
    effective_gross_income: Decimal | None = None
    net_operating_income: Decimal | None = None


class ExpensesResponse(BaseModel):
    taxes: Decimal | None = None
    insurance: Decimal | None = None
    management: Decimal | None = None
    reserves: Decimal | None = None
    total_operating: Decimal | None = None
    expense_ratio: Decimal | None = None


class DebtMetricsResponse(BaseModel):
    annual_debt_service: Decimal | None = None
    monthly_payment: Decimal | None = None
    is_interest_only: bool | None = None
    dscr: Decimal | None = None
    ltv: Decimal | None = None


class ReturnMetricsResponse(BaseModel):
    going_in_cap_rate: Decimal | None = None
    equity_required: Decimal | None = None
    before_tax_cash_flow: Decimal | None = None
    cash_on_cash: Decimal | None = None
    irr: Decimal | None = None
    equity_multiple: Decimal | None = None


class SimplifiedProjectionResponse(BaseModel):
    cash_flows: list[Decimal]
    irr: Decimal | None = None
    equity_multiple: Decimal | None = None
    exit_value: Decimal
    net_sale_proceeds: Decimal
    final_loan_balance: Decimal


class UnderwritingResponse(BaseModel):
    inputs: dict[str, Any]
    noi: Decimal | None = None
    income: IncomeResponse | None = None
    expenses: ExpensesResponse | None = None
    debt_metrics: DebtMetricsResponse | None = None
    returns: ReturnMetricsResponse | None = None
    projections: SimplifiedProjectionResponse | None = None
    warnings: list[str]


class RevenueLineResponse(BaseModel):
    gross_potential_rent: Decimal
    vacancy: Decimal
    vacancy_rate: Decimal
    other_income: Decimal
    effective_gross_income: Decimal


class ExpenseLineResponse(BaseModel):
    operating: Decimal
    taxes: Decimal
    insurance: Decimal
    management: Decimal
    reserves: Decimal
    total_expenses: Decimal
    expense_ratio: Decimal | None = None


class DebtServiceLineResponse(BaseModel):
    interest_payment: Decimal
    principal_payment: Decimal
    total_debt_service: Decimal
    beginning_balance: Decimal
    ending_balance: Decimal
    is_interest_only: bool


class YearMetricsResponse(BaseModel):
    dscr: Decimal | None = None
    debt_yield: Decimal | None = None
    cap_rate: Decimal | None = None


class ProjectedYearResponse(BaseModel):
    year: int
    revenue: RevenueLineResponse
    expenses: ExpenseLineResponse
    noi: Decimal
    debt_service: DebtServiceLineResponse
    before_tax_cash_flow: Decimal
    cumulative_cash_flow: Decimal
    metrics: YearMetricsResponse


class ExitResponse(BaseModel):
    year: int
    noi_at_exit: Decimal
    exit_noi: Decimal
    exit_cap_rate: Decimal
    gross_sale_price: Decimal
    selling_costs: Decimal
    selling_cost_rate: Decimal
    net_sale_proceeds: Decimal
    loan_payoff: Decimal
    net_equity_proceeds: Decimal


class ProjectionTotalsResponse(BaseModel):
    equity_invested: Decimal
    total_cash_distributed: Decimal
    total_sale_proceeds: Decimal
    total_returned: Decimal
    equity_multiple: Decimal | None = None
    irr: Decimal | None = None
    avg_cash_on_cash: Decimal | None = None
    avg_dscr: Decimal | None = None


class ProjectionResponse(BaseModel):
    years: list[ProjectedYearResponse]
    exit: ExitResponse
    totals: ProjectionTotalsResponse
    irr_cash_flows: list[Decimal]
    assumptions: dict[str, Any]
