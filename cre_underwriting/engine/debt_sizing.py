"""Maximum loan proceeds under lender constraints.

A loan is sized independently by LTV, DSCR, debt yield and (where the
lender uses it and a cost basis is given) LTC; the lowest result binds.
The sized loan is then stress tested against NOI, rate and value shocks.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from cre_underwriting.engine.debt import debt_constant
from cre_underwriting.engine.sector_config import Sector, resolve_sector

logger = logging.getLogger(__name__)

DOLLAR = Decimal("1")
FOUR_PLACES = Decimal("0.0001")


@dataclass(frozen=True)
class LenderConstraints:
    max_ltv: Decimal
    min_dscr: Decimal
    min_debt_yield: Decimal
    amortization_years: int
    max_term_years: int
    io_period_months: int = 0
    max_ltc: Decimal | None = None


@dataclass(frozen=True)
class LenderProfile:
    code: str
    name: str
    description: str
    constraints: LenderConstraints
    property_types: tuple[Sector, ...] | None = None  # None: all sectors
    min_loan: Decimal | None = None
    stabilized: bool = True
    origination_fee: Decimal | None = None


def _c(max_ltv, min_dscr, min_dy, amortization, term, io_months=0, max_ltc=None) -> LenderConstraints:
    return LenderConstraints(
        max_ltv=Decimal(max_ltv),
        min_dscr=Decimal(min_dscr),
        min_debt_yield=Decimal(min_dy),
        amortization_years=amortization,
        max_term_years=term,
        io_period_months=io_months,
        max_ltc=Decimal(max_ltc) if max_ltc else None,
    )


LENDER_PROFILES: dict[str, LenderProfile] = {
    "AGENCY": LenderProfile(
        code="AGENCY",
        name="Agency (Fannie/Freddie)",
        description="GSE multifamily loans with competitive rates",
        constraints=_c("0.80", "1.25", "0.065", 30, 10),
        property_types=(Sector.MULTIFAMILY, Sector.SENIORS_HOUSING, Sector.MANUFACTURED_HOUSING,
                        Sector.STUDENT_HOUSING),
        origination_fee=Decimal("0.01"),
    ),
    "CMBS": LenderProfile(
        code="CMBS",
        name="CMBS",
        description="Commercial mortgage-backed securities",
        constraints=_c("0.75", "1.25", "0.08", 30, 10),
        property_types=(Sector.MULTIFAMILY, Sector.OFFICE, Sector.RETAIL, Sector.INDUSTRIAL,
                        Sector.HOTEL, Sector.SELF_STORAGE),
        min_loan=Decimal("2000000"),
        origination_fee=Decimal("0.01"),
    ),
    "BANK": LenderProfile(
        code="BANK",
        name="Bank / Life Company",
        description="Portfolio loans from banks and life insurance companies",
        constraints=_c("0.70", "1.30", "0.09", 25, 10),
        min_loan=Decimal("5000000"),
        origination_fee=Decimal("0.0075"),
    ),
    "BRIDGE": LenderProfile(
        code="BRIDGE",
        name="Bridge / Transitional",
        description="Short-term loans for value-add or transitional assets",
        constraints=_c("0.80", "1.10", "0.06", 0, 3, io_months=36, max_ltc="0.90"),
        min_loan=Decimal("1000000"),
        stabilized=False,
        origination_fee=Decimal("0.015"),
    ),
    "CONSTRUCTION": LenderProfile(
        code="CONSTRUCTION",
        name="Construction",
        description="Loans for ground-up development",
        constraints=_c("0.60", "1.20", "0.08", 0, 4, io_months=48, max_ltc="0.70"),
        min_loan=Decimal("5000000"),
        stabilized=False,
        origination_fee=Decimal("0.02"),
    ),
    "HIGH_LEVERAGE": LenderProfile(
        code="HIGH_LEVERAGE",
        name="High Leverage / Mezzanine Stack",
        description="Senior + mezzanine combination for higher leverage",
        constraints=_c("0.85", "1.15", "0.055", 30, 5, io_months=24),
        property_types=(Sector.MULTIFAMILY, Sector.INDUSTRIAL),
        min_loan=Decimal("10000000"),
        origination_fee=Decimal("0.02"),
    ),
    "CORE_CONSERVATIVE": LenderProfile(
        code="CORE_CONSERVATIVE",
        name="Core / Conservative",
        description="Low-leverage loans for core assets",
        constraints=_c("0.55", "1.50", "0.10", 25, 10),
        min_loan=Decimal("25000000"),
        origination_fee=Decimal("0.005"),
    ),
}

DEFAULT_LENDER_PROFILE = "CMBS"

BINDING_REASONS = {
    "ltv": "Loan amount limited by property value leverage",
    "dscr": "Loan amount limited by cash flow coverage requirement",
    "debt_yield": "Loan amount limited by yield-on-cost requirement",
    "ltc": "Loan amount limited by project cost leverage",
}

NOI_DECLINES = (Decimal("0.10"), Decimal("0.20"), Decimal("0.30"))
RATE_INCREASES = (Decimal("0.01"), Decimal("0.02"), Decimal("0.03"))
VALUE_DECLINES = (Decimal("0.15"), Decimal("0.25"), Decimal("0.35"))
DEFAULT_TERRITORY_LTV = Decimal("0.90")

SCENARIO_LTVS = tuple(Decimal(x) for x in ("0.55", "0.60", "0.65", "0.70", "0.75", "0.80"))
SCENARIO_DSCRS = tuple(Decimal(x) for x in ("1.15", "1.20", "1.25", "1.30", "1.35", "1.40"))
SCENARIO_DEBT_YIELDS = tuple(Decimal(x) for x in ("0.07", "0.08", "0.09", "0.10", "0.11", "0.12"))


@dataclass(frozen=True)
class DebtSizingError:
    error: str


@dataclass(frozen=True)
class ConstraintSizing:
    key: str
    constraint: str
    max_loan: Decimal
    implied: Decimal


@dataclass(frozen=True)
class FinalMetrics:
    loan_amount: Decimal
    ltv: Decimal
    dscr: Decimal
    debt_yield: Decimal
    annual_debt_service: Decimal
    monthly_payment: Decimal
    equity_required: Decimal
    equity_percent: Decimal
    ltc: Decimal | None = None


@dataclass(frozen=True)
class StressTest:
    scenario: str
    stressed_noi: Decimal | None = None
    stressed_rate: Decimal | None = None
    stressed_value: Decimal | None = None
    stressed_dscr: Decimal | None = None
    stressed_ltv: Decimal | None = None
    passes_min_dscr: bool | None = None
    passes_breakeven: bool | None = None
    breaches_ltv: bool | None = None
    in_default_territory: bool | None = None


@dataclass(frozen=True)
class StressResult:
    tests: list[StressTest]
    noi_breakeven: Decimal
    noi_decline_to_breakeven: Decimal
    max_rate_increase: Decimal
    value_decline_to_breach_ltv: Decimal
    worst_case_dscr: Decimal | None
    passes_all_stress: bool


@dataclass(frozen=True)
class SizingScenario:
    scenario: str
    loan: Decimal
    ltv: Decimal
    dscr: Decimal
    debt_yield: Decimal


@dataclass(frozen=True)
class DebtSizingResult:
    profile: str
    constraints: LenderConstraints
    sizing: dict[str, ConstraintSizing]
    binding: str
    binding_description: str
    binding_reason: str
    max_proceeds: Decimal
    final_metrics: FinalMetrics
    stress_test: StressResult
    scenarios: list[SizingScenario] = field(default_factory=list)


def _ratio(value: Decimal) -> Decimal:
    return value.quantize(FOUR_PLACES, ROUND_HALF_UP)


def _pct(value: Decimal, decimals: int = 0) -> str:
    return f"{value * 100:.{decimals}f}%"


def stress_test(
    loan: Decimal, noi: Decimal, value: Decimal, interest_rate: Decimal, constraints: LenderConstraints
) -> StressResult:
    """NOI, rate and value shocks on an interest-only worst case."""
    tests = []
    interest_only = loan * interest_rate

    for decline in NOI_DECLINES:
        stressed_noi = noi * (1 - decline)
        dscr = stressed_noi / interest_only
        tests.append(StressTest(
            scenario=f"NOI -{decline * 100:.0f}%",
            stressed_noi=stressed_noi.quantize(DOLLAR, ROUND_HALF_UP),
            stressed_dscr=_ratio(dscr),
            passes_min_dscr=dscr >= constraints.min_dscr,
            passes_breakeven=dscr >= 1,
        ))

    for increase in RATE_INCREASES:
        stressed_rate = interest_rate + increase
        dscr = noi / (loan * stressed_rate)
        tests.append(StressTest(
            scenario=f"Rate +{increase * 10000:.0f}bps",
            stressed_rate=stressed_rate,
            stressed_dscr=_ratio(dscr),
            passes_min_dscr=dscr >= constraints.min_dscr,
            passes_breakeven=dscr >= 1,
        ))

    for decline in VALUE_DECLINES:
        stressed_value = value * (1 - decline)
        ltv = loan / stressed_value
        tests.append(StressTest(
            scenario=f"Value -{decline * 100:.0f}%",
            stressed_value=stressed_value.quantize(DOLLAR, ROUND_HALF_UP),
            stressed_ltv=_ratio(ltv),
            breaches_ltv=ltv > 1,
            in_default_territory=ltv > DEFAULT_TERRITORY_LTV,
        ))

    dscrs = [t.stressed_dscr for t in tests if t.stressed_dscr is not None]
    return StressResult(
        tests=tests,
        noi_breakeven=interest_only.quantize(DOLLAR, ROUND_HALF_UP),
        noi_decline_to_breakeven=_ratio((noi - interest_only) / noi),
        max_rate_increase=_ratio(noi / loan - interest_rate),
        value_decline_to_breach_ltv=_ratio(1 - (loan / value) / constraints.max_ltv),
        worst_case_dscr=min(dscrs) if dscrs else None,
        passes_all_stress=all(t.passes_breakeven is not False and not t.breaches_ltv for t in tests),
    )


def sizing_scenarios(noi: Decimal, value: Decimal, constant: Decimal) -> list[SizingScenario]:
    """Loan size across a ladder of LTV, DSCR and debt-yield targets."""
    rows = []
    for ltv in SCENARIO_LTVS:
        loan = value * ltv
        rows.append(SizingScenario(f"{ltv * 100:.0f}% LTV", loan.quantize(DOLLAR, ROUND_HALF_UP), ltv,
                                   _ratio(noi / (loan * constant)), _ratio(noi / loan)))
    for dscr in SCENARIO_DSCRS:
        loan = noi / (dscr * constant)
        rows.append(SizingScenario(f"{dscr:.2f}x DSCR", loan.quantize(DOLLAR, ROUND_HALF_UP),
                                   _ratio(loan / value), dscr, _ratio(noi / loan)))
    for dy in SCENARIO_DEBT_YIELDS:
        loan = noi / dy
        rows.append(SizingScenario(f"{dy * 100:.0f}% DY", loan.quantize(DOLLAR, ROUND_HALF_UP),
                                   _ratio(loan / value), _ratio(noi / (loan * constant)), dy))
    return rows


def calculate_debt_sizing(
    noi: Decimal | None,
    interest_rate: Decimal | None,
    property_value: Decimal | None = None,
    purchase_price: Decimal | None = None,
    lender_profile: str = DEFAULT_LENDER_PROFILE,
    amortization_years: int | None = None,
    interest_only_years: int = 0,
    constraints: LenderConstraints | None = None,
    total_cost: Decimal | None = None,
) -> DebtSizingResult | DebtSizingError:
    """Size the largest loan every lender constraint allows.

    Amortization defaults to the profile's own; a zero-amortization profile
    sizes on an interest-only constant. Unknown profiles fall back to CMBS.
    """
    profile = LENDER_PROFILES.get(lender_profile, LENDER_PROFILES[DEFAULT_LENDER_PROFILE])
    limits = constraints or profile.constraints

    if not noi or noi <= 0:
        return DebtSizingError("NOI is required and must be positive")
    if not interest_rate or interest_rate <= 0:
        return DebtSizingError("Interest rate is required and must be positive")
    value = property_value or purchase_price
    if not value or value <= 0:
        return DebtSizingError("Property value or purchase price is required")

    amortization = limits.amortization_years if amortization_years is None else amortization_years
    constant = debt_constant(interest_rate, amortization, interest_only_years)

    ltv_loan = value * limits.max_ltv
    dscr_loan = noi / (limits.min_dscr * constant)
    dy_loan = noi / limits.min_debt_yield
    sizing = {
        "ltv": ConstraintSizing("ltv", f"Max LTV {_pct(limits.max_ltv)}", ltv_loan, _ratio(ltv_loan / value)),
        "dscr": ConstraintSizing("dscr", f"Min DSCR {limits.min_dscr:.2f}x", dscr_loan,
                                 _ratio(noi / (dscr_loan * constant))),
        "debt_yield": ConstraintSizing("debt_yield", f"Min Debt Yield {_pct(limits.min_debt_yield, 1)}",
                                       dy_loan, _ratio(noi / dy_loan)),
    }
    if limits.max_ltc and total_cost:
        ltc_loan = total_cost * limits.max_ltc
        sizing["ltc"] = ConstraintSizing("ltc", f"Max LTC {_pct(limits.max_ltc)}", ltc_loan,
                                         _ratio(ltc_loan / total_cost))

    binding = min(sizing.values(), key=lambda s: s.max_loan)
    loan = binding.max_loan.quantize(DOLLAR, ROUND_HALF_UP)
    annual_debt_service = loan * constant
    basis = purchase_price or value

    final = FinalMetrics(
        loan_amount=loan,
        ltv=_ratio(loan / value),
        dscr=_ratio(noi / annual_debt_service),
        debt_yield=_ratio(noi / loan),
        annual_debt_service=annual_debt_service.quantize(DOLLAR, ROUND_HALF_UP),
        monthly_payment=(annual_debt_service / 12).quantize(Decimal("0.01"), ROUND_HALF_UP),
        equity_required=basis - loan,
        equity_percent=_ratio(1 - loan / basis),
        ltc=_ratio(loan / total_cost) if total_cost else None,
    )

    logger.info("Debt sizing (%s): %s binds at %s", profile.code, binding.key, loan)

    return DebtSizingResult(
        profile=profile.name,
        constraints=limits,
        sizing=sizing,
        binding=binding.key.upper(),
        binding_description=binding.constraint,
        binding_reason=BINDING_REASONS[binding.key],
        max_proceeds=loan,
        final_metrics=final,
        stress_test=stress_test(loan, noi, value, interest_rate, limits),
        scenarios=sizing_scenarios(noi, value, constant),
    )


def compare_lender_profiles(
    noi: Decimal | None,
    interest_rate: Decimal | None,
    property_value: Decimal | None = None,
    purchase_price: Decimal | None = None,
    property_type: Sector | str | None = None,
    total_cost: Decimal | None = None,
) -> dict:
    """Size the deal under every profile, largest proceeds first."""
    sector = resolve_sector(property_type) if property_type else None
    rows = []
    for code, profile in LENDER_PROFILES.items():
        if sector is not None and profile.property_types is not None and sector not in profile.property_types:
            rows.append({"code": code, "profile": profile.name, "eligible": False,
                         "reason": "Property type not eligible"})
            continue

        result = calculate_debt_sizing(
            noi, interest_rate, property_value, purchase_price,
            lender_profile=code, total_cost=total_cost,
        )
        if isinstance(result, DebtSizingError):
            rows.append({"code": code, "profile": profile.name, "eligible": False, "reason": result.error})
            continue

        rows.append({
            "code": code,
            "profile": profile.name,
            "eligible": True,
            "max_proceeds": result.max_proceeds,
            "binding_constraint": result.binding,
            "ltv": result.final_metrics.ltv,
            "dscr": result.final_metrics.dscr,
            "debt_yield": result.final_metrics.debt_yield,
            "equity_required": result.final_metrics.equity_required,
            "description": profile.description,
        })

    rows.sort(key=lambda r: r.get("max_proceeds") or Decimal("0"), reverse=True)
    eligible = [r for r in rows if r["eligible"]]
    return {
        "results": rows,
        "recommended": eligible[0] if eligible else None,
        "max_proceeds": eligible[0]["max_proceeds"] if eligible else None,
    }
