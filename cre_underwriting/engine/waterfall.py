"""LP/GP equity waterfall.

Distributes each period's cash through return of capital, a compounding
preferred return, an optional GP catch-up and ordered promote tiers keyed on
the LP's cumulative IRR or equity multiple.

Running balances live in a private accumulator created per run and threaded
through the period loop; nothing survives between calls.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Iterable, Sequence

from cre_underwriting.engine.irr import npv, round_irr, solve_irr

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
ONE = Decimal("1")

NO_CLASS_PRIORITY = 999


class HurdleType(str, Enum):
    IRR = "IRR"
    EQUITY_MULTIPLE = "EQUITY_MULTIPLE"


@dataclass(frozen=True)
class PromoteTier:
    hurdle: Decimal | None  # None = unbounded final tier
    lp_split: Decimal
    gp_split: Decimal


@dataclass(frozen=True)
class ShareClass:
    code: str
    name: str
    capital: Decimal
    preferred_return: Decimal | None = None  # None falls back to the deal pref
    priority: int = 1  # 1 is most senior


@dataclass(frozen=True)
class WaterfallStructure:
    lp_equity: Decimal
    gp_equity: Decimal = ZERO
    preferred_return: Decimal = Decimal("0.08")
    promote_tiers: tuple[PromoteTier, ...] = ()
    hurdle_type: HurdleType = HurdleType.IRR
    gp_catch_up: bool = True
    catch_up_percent: Decimal = ONE
    lookback: bool = False
    share_classes: tuple[ShareClass, ...] = ()


@dataclass(frozen=True)
class WaterfallError:
    error: str


@dataclass
class PeriodDistribution:
    period: int
    cash_flow: Decimal
    lp_distribution: Decimal = ZERO
    gp_distribution: Decimal = ZERO
    lp_capital_returned: Decimal = ZERO
    gp_capital_returned: Decimal = ZERO
    lp_preferred_paid: Decimal = ZERO
    preferred_outstanding: Decimal = ZERO  # Unpaid pref after this period
    lp_catch_up: Decimal = ZERO
    gp_catch_up: Decimal = ZERO
    lp_promote: Decimal = ZERO
    gp_promote: Decimal = ZERO
    cumulative_lp: Decimal = ZERO
    cumulative_gp: Decimal = ZERO
    class_distributions: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class WaterfallSummary:
    lp_irr: Decimal | None
    gp_irr: Decimal | None
    lp_equity_multiple: Decimal | None
    gp_equity_multiple: Decimal | None
    lp_total_distributed: Decimal
    gp_total_distributed: Decimal
    total_promote: Decimal
    lp_capital_returned: Decimal
    gp_capital_returned: Decimal
    lp_preferred_paid: Decimal
    gp_catch_up_paid: Decimal


@dataclass(frozen=True)
class ClassSummary:
    code: str
    name: str
    priority: int
    capital: Decimal
    preferred_return: Decimal
    capital_returned: Decimal
    preferred_paid: Decimal
    promote: Decimal
    total_distributed: Decimal
    equity_multiple: Decimal | None


@dataclass(frozen=True)
class LookbackAdjustment:
    lp_shortfall: Decimal
    clawback: Decimal
    adjusted_lp_total: Decimal
    adjusted_gp_total: Decimal


@dataclass(frozen=True)
class WaterfallResult:
    periods: list[PeriodDistribution]
    summary: WaterfallSummary
    structure: WaterfallStructure
    class_summaries: list[ClassSummary] = field(default_factory=list)
    lookback: LookbackAdjustment | None = None


@dataclass
class _ClassBalance:
    share_class: ShareClass
    pref_rate: Decimal
    unreturned: Decimal
    pref_owed: Decimal = ZERO
    capital_returned: Decimal = ZERO
    preferred_paid: Decimal = ZERO
    promote: Decimal = ZERO


@dataclass
class _WaterfallState:
    classes: list[_ClassBalance]
    gp_unreturned: Decimal
    lp_profit: Decimal = ZERO
    gp_profit: Decimal = ZERO
    lp_flows: list[Decimal] = field(default_factory=list)
    gp_flows: list[Decimal] = field(default_factory=list)

    @property
    def pref_owed(self) -> Decimal:
        return sum((c.pref_owed for c in self.classes), ZERO)

    @property
    def lp_capital(self) -> Decimal:
        return sum((c.share_class.capital for c in self.classes), ZERO)


def _tier(hurdle: str | None, lp: str, gp: str) -> PromoteTier:
    return PromoteTier(
        hurdle=Decimal(hurdle) if hurdle is not None else None,
        lp_split=Decimal(lp),
        gp_split=Decimal(gp),
    )


DEFAULT_STRUCTURE = WaterfallStructure(
    lp_equity=ZERO,
    gp_equity=ZERO,
    preferred_return=Decimal("0.08"),
    promote_tiers=(
        _tier("0.12", "0.80", "0.20"),
        _tier("0.15", "0.70", "0.30"),
        _tier("0.20", "0.60", "0.40"),
        _tier(None, "0.50", "0.50"),
    ),
    gp_catch_up=True,
    catch_up_percent=ONE,
)


@dataclass(frozen=True)
class WaterfallTemplate:
    code: str
    name: str
    description: str
    preferred_return: Decimal
    promote_tiers: tuple[PromoteTier, ...]
    gp_catch_up: bool
    catch_up_percent: Decimal
    typical_gp_co_invest: Decimal
    hurdle_type: HurdleType = HurdleType.IRR


WATERFALL_TEMPLATES: dict[str, WaterfallTemplate] = {
    t.code: t
    for t in (
        WaterfallTemplate(
            code="CORE",
            name="Core",
            description="6% pref, minimal promote - for stabilized, low-risk assets",
            preferred_return=Decimal("0.06"),
            promote_tiers=(
                _tier("0.06", "0.95", "0.05"),
                _tier("0.08", "0.90", "0.10"),
                _tier(None, "0.85", "0.15"),
            ),
            gp_catch_up=False,
            catch_up_percent=ZERO,
            typical_gp_co_invest=Decimal("0.05"),
        ),
        WaterfallTemplate(
            code="CORE_PLUS",
            name="Core Plus",
            description="7% pref, moderate promote - for stable assets with upside",
            preferred_return=Decimal("0.07"),
            promote_tiers=(
                _tier("0.10", "0.85", "0.15"),
                _tier("0.12", "0.80", "0.20"),
                _tier(None, "0.75", "0.25"),
            ),
            gp_catch_up=True,
            catch_up_percent=Decimal("0.5"),
            typical_gp_co_invest=Decimal("0.05"),
        ),
        WaterfallTemplate(
            code="VALUE_ADD",
            name="Value Add",
            description="8% pref, standard 80/20 promote - for repositioning opportunities",
            preferred_return=Decimal("0.08"),
            promote_tiers=(
                _tier("0.12", "0.80", "0.20"),
                _tier("0.15", "0.70", "0.30"),
                _tier("0.18", "0.65", "0.35"),
                _tier(None, "0.50", "0.50"),
            ),
            gp_catch_up=True,
            catch_up_percent=ONE,
            typical_gp_co_invest=Decimal("0.10"),
        ),
        WaterfallTemplate(
            code="OPPORTUNISTIC",
            name="Opportunistic",
            description="10% pref, aggressive promote - for development and distressed",
            preferred_return=Decimal("0.10"),
            promote_tiers=(
                _tier("0.15", "0.80", "0.20"),
                _tier("0.20", "0.70", "0.30"),
                _tier("0.25", "0.60", "0.40"),
                _tier(None, "0.50", "0.50"),
            ),
            gp_catch_up=True,
            catch_up_percent=ONE,
            typical_gp_co_invest=Decimal("0.10"),
        ),
        WaterfallTemplate(
            code="EQUITY_MULTIPLE",
            name="Equity Multiple Based",
            description="Hurdles based on equity multiples instead of IRR",
            preferred_return=Decimal("0.08"),
            promote_tiers=(
                _tier("1.25", "0.90", "0.10"),
                _tier("1.50", "0.80", "0.20"),
                _tier("2.00", "0.70", "0.30"),
                _tier("2.50", "0.60", "0.40"),
                _tier(None, "0.50", "0.50"),
            ),
            gp_catch_up=True,
            catch_up_percent=ONE,
            typical_gp_co_invest=Decimal("0.10"),
            hurdle_type=HurdleType.EQUITY_MULTIPLE,
        ),
        WaterfallTemplate(
            code="FAMILY_OFFICE",
            name="Family Office / HNW",
            description="Simpler 8% pref, single promote tier",
            preferred_return=Decimal("0.08"),
            promote_tiers=(_tier(None, "0.70", "0.30"),),
            gp_catch_up=True,
            catch_up_percent=ONE,
            typical_gp_co_invest=Decimal("0.10"),
        ),
        WaterfallTemplate(
            code="JOINT_VENTURE",
            name="Joint Venture (with Operator)",
            description="Partnership JV - promote to operating partner",
            preferred_return=Decimal("0.08"),
            promote_tiers=(
                _tier("0.08", "0.90", "0.10"),
                _tier("0.12", "0.80", "0.20"),
                _tier("0.15", "0.70", "0.30"),
                _tier(None, "0.60", "0.40"),
            ),
            gp_catch_up=True,
            catch_up_percent=ONE,
            typical_gp_co_invest=Decimal("0.05"),
        ),
        WaterfallTemplate(
            code="INSTITUTIONAL",
            name="Institutional Platform",
            description="Large institutional LP terms - lower promotes",
            preferred_return=Decimal("0.07"),
            promote_tiers=(
                _tier("0.10", "0.88", "0.12"),
                _tier("0.13", "0.82", "0.18"),
                _tier("0.16", "0.78", "0.22"),
                _tier(None, "0.75", "0.25"),
            ),
            gp_catch_up=True,
            catch_up_percent=Decimal("0.5"),
            typical_gp_co_invest=Decimal("0.02"),
        ),
    )
}


def create_default_structure(
    total_equity: Decimal, gp_co_invest: Decimal = Decimal("0.10")
) -> WaterfallStructure:
    """DEFAULT_STRUCTURE sized to a deal, GP funding gp_co_invest of equity."""
    gp_equity = total_equity * gp_co_invest
    return replace(DEFAULT_STRUCTURE, lp_equity=total_equity - gp_equity, gp_equity=gp_equity)


def structure_from_template(
    code: str, lp_equity: Decimal, gp_equity: Decimal = ZERO, **overrides
) -> WaterfallStructure:
    """Build a structure from a named template. Raises KeyError for unknown codes."""
    template = WATERFALL_TEMPLATES[code]
    structure = WaterfallStructure(
        lp_equity=lp_equity,
        gp_equity=gp_equity,
        preferred_return=template.preferred_return,
        promote_tiers=template.promote_tiers,
        hurdle_type=template.hurdle_type,
        gp_catch_up=template.gp_catch_up,
        catch_up_percent=template.catch_up_percent,
    )
    return replace(structure, **overrides) if overrides else structure


def validate_structure(
    structure: WaterfallStructure, use_class_terms: bool = False
) -> WaterfallError | None:
    """Reject structures the distribution loop cannot interpret unambiguously."""
    if structure.lp_equity is None or structure.lp_equity <= 0:
        return WaterfallError("LP equity must be greater than 0")
    if structure.gp_equity < 0:
        return WaterfallError("GP equity cannot be negative")
    if structure.preferred_return < 0:
        return WaterfallError("Preferred return cannot be negative")
    if not ZERO <= structure.catch_up_percent <= ONE:
        return WaterfallError("Catch-up percent must be between 0 and 1")

    tiers = structure.promote_tiers
    previous_hurdle: Decimal | None = None
    previous_gp = ZERO
    for n, tier in enumerate(tiers, start=1):
        if not (ZERO < tier.lp_split <= ONE and ZERO <= tier.gp_split < ONE):
            return WaterfallError(f"Tier {n} splits must be between 0 and 1")
        if tier.lp_split + tier.gp_split != ONE:
            return WaterfallError(f"Tier {n} LP and GP splits must sum to 1.0")
        if tier.gp_split < previous_gp:
            return WaterfallError(f"Tier {n} GP split is lower than the previous tier")
        if tier.hurdle is None:
            if n != len(tiers):
                return WaterfallError("Only the final tier may have an unbounded hurdle")
        else:
            if previous_hurdle is not None and tier.hurdle <= previous_hurdle:
                return WaterfallError("Tier hurdles must be strictly ascending")
            previous_hurdle = tier.hurdle
        previous_gp = tier.gp_split

    if use_class_terms:
        if not structure.share_classes:
            return WaterfallError("Per-class terms require at least one share class")
        for share_class in structure.share_classes:
            if share_class.capital is None or share_class.capital <= 0:
                return WaterfallError(f"Class {share_class.code} capital must be greater than 0")
            if share_class.preferred_return is not None and share_class.preferred_return < 0:
                return WaterfallError(f"Class {share_class.code} preferred return cannot be negative")
    return None


def _initial_state(structure: WaterfallStructure, use_class_terms: bool) -> _WaterfallState:
    if use_class_terms:
        classes = sorted(structure.share_classes, key=lambda c: (c.priority, c.code))
    else:
        classes = [ShareClass("LP", "Limited Partners", structure.lp_equity)]

    balances = [
        _ClassBalance(
            share_class=c,
            pref_rate=c.preferred_return if c.preferred_return is not None else structure.preferred_return,
            unreturned=c.capital,
        )
        for c in classes
    ]
    lp_capital = sum((c.capital for c in classes), ZERO)
    return _WaterfallState(
        classes=balances,
        gp_unreturned=structure.gp_equity,
        lp_flows=[-lp_capital],
        gp_flows=[-structure.gp_equity],
    )


def _hurdle_gap(
    structure: WaterfallStructure, state: _WaterfallState, hurdle: Decimal, lp_so_far: Decimal
) -> Decimal:
    """Additional LP cash this period needed for LP returns to reach hurdle."""
    if structure.hurdle_type == HurdleType.EQUITY_MULTIPLE:
        distributed = sum(state.lp_flows[1:], ZERO) + lp_so_far
        return hurdle * state.lp_capital - distributed

    t = len(state.lp_flows)
    flows = state.lp_flows + [lp_so_far]
    return -npv(hurdle, flows) * (1 + hurdle) ** t


def _distribute_period(
    structure: WaterfallStructure,
    state: _WaterfallState,
    period: int,
    cash: Decimal,
    sequential_classes: bool,
) -> PeriodDistribution:
    row = PeriodDistribution(period=period, cash_flow=cash)
    by_class = {c.share_class.code: ZERO for c in state.classes}

    # Pref accrues on unreturned capital plus unpaid pref carried forward
    for balance in state.classes:
        balance.pref_owed += balance.pref_rate * (balance.unreturned + balance.pref_owed)

    remaining = max(cash, ZERO)

    # Return of capital
    if sequential_classes:
        for balance in state.classes:
            paid = min(remaining, balance.unreturned)
            balance.unreturned -= paid
            balance.capital_returned += paid
            row.lp_capital_returned += paid
            by_class[balance.share_class.code] += paid
            remaining -= paid

            pref = min(remaining, balance.pref_owed)
            balance.pref_owed -= pref
            balance.preferred_paid += pref
            row.lp_preferred_paid += pref
            by_class[balance.share_class.code] += pref
            remaining -= pref

        gp_paid = min(remaining, state.gp_unreturned)
        state.gp_unreturned -= gp_paid
        row.gp_capital_returned += gp_paid
        remaining -= gp_paid
    else:
        balance = state.classes[0]
        needed = balance.unreturned + state.gp_unreturned
        paid = min(remaining, needed)
        if paid > 0:
            lp_paid = paid * balance.unreturned / needed
            gp_paid = paid - lp_paid
            balance.unreturned -= lp_paid
            balance.capital_returned += lp_paid
            state.gp_unreturned -= gp_paid
            row.lp_capital_returned += lp_paid
            row.gp_capital_returned += gp_paid
            by_class[balance.share_class.code] += lp_paid
            remaining -= paid

        pref = min(remaining, balance.pref_owed)
        balance.pref_owed -= pref
        balance.preferred_paid += pref
        row.lp_preferred_paid += pref
        by_class[balance.share_class.code] += pref
        remaining -= pref

    state.lp_profit += row.lp_preferred_paid
    tiers = structure.promote_tiers

    # GP catch-up toward the first tier's GP share of total profit
    if (
        structure.gp_catch_up
        and tiers
        and remaining > 0
        and state.pref_owed == 0
        and structure.catch_up_percent > tiers[0].gp_split
    ):
        target = tiers[0].gp_split
        pct = structure.catch_up_percent
        needed = (target * (state.lp_profit + state.gp_profit) - state.gp_profit) / (pct - target)
        if needed > 0:
            amount = min(remaining, needed)
            row.gp_catch_up = amount * pct
            row.lp_catch_up = amount - row.gp_catch_up
            state.gp_profit += row.gp_catch_up
            state.lp_profit += row.lp_catch_up
            remaining -= amount
            logger.debug("Period %d catch-up: gp=%s lp=%s", period, row.gp_catch_up, row.lp_catch_up)

    # Promote tiers; cash only reaches here once capital and pref are settled
    if remaining > 0:
        if tiers:
            for tier in tiers:
                if remaining <= 0:
                    break
                if tier.hurdle is None:
                    allocation = remaining
                else:
                    lp_so_far = (
                        row.lp_capital_returned + row.lp_preferred_paid
                        + row.lp_catch_up + row.lp_promote
                    )
                    gap = _hurdle_gap(structure, state, tier.hurdle, lp_so_far)
                    if gap <= 0:
                        continue
                    allocation = min(remaining, gap / tier.lp_split)
                lp_amount = allocation * tier.lp_split
                row.lp_promote += lp_amount
                row.gp_promote += allocation - lp_amount
                remaining -= allocation

            if remaining > 0:
                # Every bounded hurdle cleared: the last tier's split carries on
                last = tiers[-1]
                lp_amount = remaining * last.lp_split
                row.lp_promote += lp_amount
                row.gp_promote += remaining - lp_amount
                remaining = ZERO
        else:
            total_capital = state.lp_capital + structure.gp_equity
            lp_amount = remaining * state.lp_capital / total_capital
            row.lp_promote += lp_amount
            row.gp_promote += remaining - lp_amount
            remaining = ZERO

        state.lp_profit += row.lp_promote
        state.gp_profit += row.gp_promote

        lp_capital = state.lp_capital
        for balance in state.classes:
            share = row.lp_promote * balance.share_class.capital / lp_capital
            balance.promote += share
            by_class[balance.share_class.code] += share

    if row.lp_catch_up:
        lp_capital = state.lp_capital
        for balance in state.classes:
            share = row.lp_catch_up * balance.share_class.capital / lp_capital
            balance.promote += share
            by_class[balance.share_class.code] += share

    row.lp_distribution = (
        row.lp_capital_returned + row.lp_preferred_paid + row.lp_catch_up + row.lp_promote
    )
    row.gp_distribution = row.gp_capital_returned + row.gp_catch_up + row.gp_promote
    row.preferred_outstanding = state.pref_owed
    row.class_distributions = by_class

    state.lp_flows.append(row.lp_distribution)
    state.gp_flows.append(row.gp_distribution)
    row.cumulative_lp = sum(state.lp_flows[1:], ZERO)
    row.cumulative_gp = sum(state.gp_flows[1:], ZERO)

    logger.debug(
        "Period %d: cash=%s lp=%s gp=%s pref_outstanding=%s",
        period, cash, row.lp_distribution, row.gp_distribution, row.preferred_outstanding,
    )
    return row


def _cents(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, ROUND_HALF_UP)


def _multiple(returned: Decimal, invested: Decimal) -> Decimal | None:
    if invested <= 0:
        return None
    return (returned / invested).quantize(FOUR_PLACES, ROUND_HALF_UP)


def calculate_waterfall(
    cash_flows: Sequence[Decimal],
    structure: WaterfallStructure,
    use_class_terms: bool = False,
) -> WaterfallResult | WaterfallError:
    """Distribute per-period cash between LP and GP.

    cash_flows are distributable amounts per period, investment excluded; the
    LP and GP contributions form time zero of their IRR vectors. Negative
    periods distribute nothing.

    Returns a WaterfallError instead of raising when the structure or cash
    flows are invalid.
    """
    if not cash_flows:
        logger.warning("Waterfall rejected: no cash flows")
        return WaterfallError("Cash flows must be a non-empty list")
    error = validate_structure(structure, use_class_terms)
    if error is not None:
        logger.warning("Waterfall rejected: %s", error.error)
        return error

    state = _initial_state(structure, use_class_terms)
    periods = [
        _distribute_period(structure, state, n, Decimal(cash), sequential_classes=use_class_terms)
        for n, cash in enumerate(cash_flows, start=1)
    ]

    lp_capital = state.lp_capital
    lp_total = sum((p.lp_distribution for p in periods), ZERO)
    gp_total = sum((p.gp_distribution for p in periods), ZERO)
    lp_irr = solve_irr(state.lp_flows)
    gp_irr = solve_irr(state.gp_flows) if structure.gp_equity > 0 else None

    total_equity = lp_capital + structure.gp_equity
    gp_ownership = structure.gp_equity / total_equity
    total_promote = max(ZERO, gp_total - gp_ownership * (lp_total + gp_total))

    summary = WaterfallSummary(
        lp_irr=round_irr(lp_irr),
        gp_irr=round_irr(gp_irr),
        lp_equity_multiple=_multiple(lp_total, lp_capital),
        gp_equity_multiple=_multiple(gp_total, structure.gp_equity),
        lp_total_distributed=_cents(lp_total),
        gp_total_distributed=_cents(gp_total),
        total_promote=_cents(total_promote),
        lp_capital_returned=_cents(sum((p.lp_capital_returned for p in periods), ZERO)),
        gp_capital_returned=_cents(sum((p.gp_capital_returned for p in periods), ZERO)),
        lp_preferred_paid=_cents(sum((p.lp_preferred_paid for p in periods), ZERO)),
        gp_catch_up_paid=_cents(sum((p.gp_catch_up for p in periods), ZERO)),
    )

    lookback = None
    pref = structure.preferred_return
    if structure.lookback and (lp_irr is None or lp_irr < pref):
        n = len(periods)
        shortfall = -npv(pref, state.lp_flows) * (1 + pref) ** n
        if shortfall > 0:
            clawback = min(shortfall, total_promote)
            lookback = LookbackAdjustment(
                lp_shortfall=_cents(shortfall),
                clawback=_cents(clawback),
                adjusted_lp_total=_cents(lp_total + clawback),
                adjusted_gp_total=_cents(gp_total - clawback),
            )
            logger.info("Lookback clawback of %s from GP", lookback.clawback)

    class_summaries = []
    if use_class_terms:
        for balance in state.classes:
            distributed = balance.capital_returned + balance.preferred_paid + balance.promote
            class_summaries.append(ClassSummary(
                code=balance.share_class.code,
                name=balance.share_class.name,
                priority=balance.share_class.priority,
                capital=balance.share_class.capital,
                preferred_return=balance.pref_rate,
                capital_returned=_cents(balance.capital_returned),
                preferred_paid=_cents(balance.preferred_paid),
                promote=_cents(balance.promote),
                total_distributed=_cents(distributed),
                equity_multiple=_multiple(distributed, balance.share_class.capital),
            ))

    logger.info(
        "Waterfall complete: %d periods, lp=%s gp=%s promote=%s lp_irr=%s",
        len(periods), summary.lp_total_distributed, summary.gp_total_distributed,
        summary.total_promote, summary.lp_irr,
    )

    return WaterfallResult(
        periods=periods,
        summary=summary,
        structure=structure,
        class_summaries=class_summaries,
        lookback=lookback,
    )


def compare_waterfall_scenarios(
    scenarios: Iterable[tuple[str, Sequence[Decimal]]],
    structure: WaterfallStructure,
) -> list[dict]:
    """Run one structure against several named cash-flow streams."""
    rows = []
    for name, cash_flows in scenarios:
        result = calculate_waterfall(cash_flows, structure)
        if isinstance(result, WaterfallError):
            rows.append({"name": name, "error": result.error})
            continue
        s = result.summary
        rows.append({
            "name": name,
            "lp_irr": s.lp_irr,
            "gp_irr": s.gp_irr,
            "lp_equity_multiple": s.lp_equity_multiple,
            "gp_equity_multiple": s.gp_equity_multiple,
            "total_promote": s.total_promote,
        })
    return rows


# ---- Investor allocation within share classes ----

@dataclass(frozen=True)
class Investor:
    investor_id: str
    name: str
    ownership_pct: Decimal = ZERO
    commitment: Decimal = ZERO
    share_class: ShareClass | None = None


@dataclass
class InvestorClassGroup:
    share_class: ShareClass | None
    priority: int
    investors: list[Investor] = field(default_factory=list)
    total_capital: Decimal = ZERO
    total_ownership: Decimal = ZERO


def group_investors_by_class(investors: Iterable[Investor]) -> dict[int, InvestorClassGroup]:
    """Group investors by class priority, most senior first.

    Investors without a class land in a trailing group at priority 999.
    """
    groups: dict[int, InvestorClassGroup] = {}
    for investor in investors:
        sc = investor.share_class
        priority = sc.priority if sc is not None else NO_CLASS_PRIORITY
        group = groups.setdefault(priority, InvestorClassGroup(share_class=sc, priority=priority))
        group.investors.append(investor)
        group.total_capital += investor.commitment
        group.total_ownership += investor.ownership_pct
    return dict(sorted(groups.items()))


def allocate_within_class(
    investors: Sequence[Investor], amount: Decimal, total_ownership: Decimal | None = None
) -> dict[str, Decimal]:
    """Split amount pro rata by ownership, rounded to cents.

    The rounding remainder goes to the largest allocation. With no ownership
    data the amount is split evenly.
    """
    if not investors or amount <= 0:
        return {}
    if total_ownership is None:
        total_ownership = sum((i.ownership_pct for i in investors), ZERO)

    if total_ownership <= 0:
        even = amount / len(investors)
        return {i.investor_id: even for i in investors}

    allocations: dict[str, Decimal] = {}
    for investor in investors:
        allocations[investor.investor_id] = _cents(amount * investor.ownership_pct / total_ownership)

    diff = _cents(amount - sum(allocations.values(), ZERO))
    if diff:
        largest = max(allocations, key=allocations.get)
        allocations[largest] += diff
    return allocations
