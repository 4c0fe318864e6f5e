"""Sector-specific underwriting metrics.

Each sector maps to one pure metric function reading the flat input record.
A metric is emitted only when its inputs are present; the result is then
checked against the sector's benchmark table and out-of-range values are
collected as advisory warnings.
"""

import logging
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Mapping

from cre_underwriting.engine.sector_config import (
    Benchmark,
    Sector,
    detect_sector,
    get_sector_config,
    resolve_sector,
    validate_against_benchmark,
)
from cre_underwriting.models.inputs import ModelInputs

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")

SQ_FT_PER_ACRE = Decimal("43560")
HOURS_PER_YEAR = 8760
DRY_WAREHOUSE_RENT_PSF = Decimal("8")
REFRIGERATION_SYSTEM_LIFE = 25
REVERSION_DISCOUNT_RATE = Decimal("0.06")
INVESTMENT_GRADE = ("AAA", "AA", "A", "BBB")


@dataclass(frozen=True)
class SectorWarning:
    metric: str
    value: Any
    warning: str
    benchmark: Benchmark | None = None


@dataclass(frozen=True)
class SectorMetricsResult:
    sector: Sector
    sector_name: str
    metrics: dict[str, Any] = field(default_factory=dict)
    warnings: list[SectorWarning] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    primary_metrics: list[str] = field(default_factory=list)


class _Fields:
    """Typed reads over a flat input record; blanks and non-numbers are absent."""

    def __init__(self, values: Mapping[str, Any]):
        self._values = values

    def num(self, key: str, default: str | Decimal | None = None) -> Decimal | None:
        value = self._values.get(key)
        if value is None or value == "" or isinstance(value, bool):
            return Decimal(default) if isinstance(default, str) else default
        try:
            return value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            return Decimal(default) if isinstance(default, str) else default

    def text(self, key: str) -> str | None:
        value = self._values.get(key)
        return str(value) if value not in (None, "") else None


def _tiered(value: Decimal, bands: tuple[tuple[str, str], ...], otherwise: str) -> str:
    """First label whose upper bound the value falls below."""
    for bound, label in bands:
        if value < Decimal(bound):
            return label
    return otherwise


def hotel_metrics(f: _Fields) -> dict[str, Any]:
    rooms = f.num("room_count")
    adr = f.num("adr")
    occupancy = f.num("occupancy_rate")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if adr and occupancy:
        m["revpar"] = adr * occupancy

    total_revenue = (f.num("room_revenue") or ZERO) + f.num("fb_revenue", ZERO) + f.num("other_revenue", ZERO)
    if total_revenue > 0:
        m["total_revenue"] = total_revenue
        departmental = f.num("departmental_expenses") or total_revenue * Decimal("0.35")
        undistributed = f.num("undistributed_expenses") or total_revenue * Decimal("0.15")
        fees = total_revenue * (f.num("management_fee", "0.03") + f.num("franchise_fee", "0.05"))
        gop = total_revenue - departmental - undistributed - fees
        m["gop"] = gop
        m["gop_margin"] = gop / total_revenue
        if rooms:
            m["goppar"] = gop / rooms / 365

        reserve_rate = f.num("ff_and_e", "0.04")
        reserve = total_revenue * reserve_rate
        m["noi"] = gop - reserve
        m["noi_margin"] = m["noi"] / total_revenue
        m["ff_and_e_reserve"] = reserve
        m["ff_and_e_percent"] = reserve_rate

    if price and rooms:
        m["price_per_key"] = price / rooms
    return m


def data_center_metrics(f: _Fields) -> dict[str, Any]:
    kw = f.num("it_load_kw")
    pue = f.num("pue", "1.4")
    rate = f.num("rate_per_kw")
    sf = f.num("total_sf")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if kw:
        draw = kw * pue
        m["total_power_draw_kw"] = draw
        m["total_mw"] = draw / 1000
        m["annual_power_cost"] = draw * f.num("power_cost", "0.10") * HOURS_PER_YEAR
        if rate:
            m["annual_revenue"] = kw * rate * 12
            m["revenue_per_kw"] = rate * 12
        if m.get("annual_revenue") and m["annual_power_cost"]:
            other_opex = m["annual_revenue"] * Decimal("0.10")
            m["noi"] = m["annual_revenue"] - m["annual_power_cost"] - other_opex
            m["noi_per_kw"] = m["noi"] / kw
        if price:
            m["price_per_kw"] = price / kw

    if kw and sf:
        m["power_density"] = kw * 1000 / sf  # Watts per SF
    m["pue"] = pue
    return m


def life_sciences_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("total_sf")
    lab = f.num("lab_sf")
    office = f.num("office_sf")
    lab_rent = f.num("lab_rent_psf")
    office_rent = f.num("office_rent_psf")
    ti = f.num("tenant_improvements", "150")
    runway = f.num("tenant_funding_runway")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if sf and lab:
        m["lab_to_office_ratio"] = lab / sf
    if lab and office and lab_rent and office_rent:
        potential = lab * lab_rent + office * office_rent
        m["blended_rent_psf"] = potential / (lab + office)
        m["total_potential_rent"] = potential
    if ti and sf:
        m["total_ti_exposure"] = ti * sf
    if lab and office and ti:
        m["estimated_lab_ti"] = lab * ti * Decimal("1.5")
        m["estimated_office_ti"] = office * ti * Decimal("0.4")
    if runway:
        m["funding_runway_months"] = runway
        m["funding_risk"] = _tiered(runway, (("12", "HIGH"), ("24", "MEDIUM")), "LOW")
    if price and sf:
        m["price_per_sf"] = price / sf
    return m


def seniors_housing_metrics(f: _Fields) -> dict[str, Any]:
    units = f.num("unit_count")
    monthly = f.num("avg_monthly_rate")
    occupancy = f.num("occupancy_rate", "0.88")
    care = f.num("care_revenue", ZERO)
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if units:
        if monthly:
            m["annual_revenue"] = units * occupancy * monthly * 12
            m["revenue_per_occupied_unit"] = monthly * 12
        if price:
            m["price_per_unit"] = price / units

    revenue = m.get("annual_revenue")
    if care and revenue:
        m["care_revenue_percent"] = care / revenue
    if revenue:
        margin = Decimal("0.32")
        m["estimated_noi"] = revenue * margin
        m["noi_margin"] = margin
        if units:
            m["noi_per_unit"] = m["estimated_noi"] / units

    m["occupancy_rate"] = occupancy
    return m


def student_housing_metrics(f: _Fields) -> dict[str, Any]:
    beds = f.num("bed_count")
    units = f.num("unit_count")
    rent = f.num("avg_rent_per_bed")
    prelease = f.num("prelease_rate")
    renewal = f.num("renewal_rate")
    distance = f.num("distance_to_campus")
    enrollment = f.num("enrollment")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if beds:
        if units:
            m["beds_per_unit"] = beds / units
        if price:
            m["price_per_bed"] = price / beds
        if rent:
            m["annual_rent_per_bed"] = rent * 12
            m["gross_potential_rent"] = beds * rent * 12

    if prelease is not None:
        m["prelease_rate"] = prelease
        m["prelease_risk"] = _tiered(prelease, (("0.60", "HIGH"), ("0.80", "MEDIUM")), "LOW")
    if renewal is not None:
        m["renewal_rate"] = renewal

    if distance is not None:
        m["distance_to_campus"] = distance
        if distance <= Decimal("0.5"):
            m["distance_premium"] = Decimal("1.33")
        elif distance <= 1:
            m["distance_premium"] = Decimal("1.15")
        else:
            m["distance_premium"] = Decimal("1.0")
            m["distance_risk"] = "Properties >1 mile from campus face leasing challenges"

    if enrollment and beds:
        m["enrollment_coverage"] = beds / enrollment
    return m


def self_storage_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("net_rentable_sf")
    units = f.num("unit_count")
    rent = f.num("avg_rent_per_sf")
    street = f.num("street_rate")
    physical = f.num("physical_occupancy")
    economic = f.num("economic_occupancy")
    ancillary = f.num("ancillary_income", ZERO)
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if sf:
        if rent:
            m["revenue_per_sf"] = rent
            m["gross_potential_rent"] = sf * rent
        if price:
            m["price_per_sf"] = price / sf
    if sf and units:
        m["avg_unit_size"] = sf / units

    if physical is not None:
        m["physical_occupancy"] = physical
    if economic is not None:
        m["economic_occupancy"] = economic

    if street and rent:
        gap_percent = (street - rent) / rent
        m["street_rate"] = street
        m["rate_gap"] = street - rent
        m["rate_gap_percent"] = gap_percent
        if gap_percent > Decimal("0.10"):
            m["ecri_opportunity"] = "HIGH"
        elif gap_percent > Decimal("0.05"):
            m["ecri_opportunity"] = "MEDIUM"
        else:
            m["ecri_opportunity"] = "LOW"

    if ancillary and m.get("gross_potential_rent"):
        m["ancillary_income_percent"] = ancillary / m["gross_potential_rent"]
    return m


def manufactured_housing_metrics(f: _Fields) -> dict[str, Any]:
    pads = f.num("total_pads")
    occupied = f.num("occupied_pads")
    lot_rent = f.num("avg_lot_rent")
    market_rent = f.num("market_lot_rent")
    poh = f.num("park_owned_homes", ZERO)
    poh_premium = f.num("poh_rent_premium", ZERO)
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if pads:
        if occupied is not None:
            m["occupancy"] = occupied / pads
            m["vacant_pads"] = pads - occupied
        m["poh_count"] = poh
        m["poh_ratio"] = poh / pads
        if m["poh_ratio"] > Decimal("0.10"):
            m["poh_risk"] = "HIGH - Lenders prefer <10% POH"
        elif m["poh_ratio"] > Decimal("0.05"):
            m["poh_risk"] = "MEDIUM"
        else:
            m["poh_risk"] = "LOW"
        if price:
            m["price_per_pad"] = price / pads

    if lot_rent:
        m["avg_lot_rent"] = lot_rent
        m["annual_lot_rent_per_pad"] = lot_rent * 12
    if lot_rent and market_rent and occupied:
        m["loss_to_lease"] = (market_rent - lot_rent) * occupied * 12
        m["loss_to_lease_percent"] = (market_rent - lot_rent) / market_rent
    if poh and poh_premium:
        m["poh_annual_income"] = poh * poh_premium * 12
    return m


def retail_metrics(f: _Fields) -> dict[str, Any]:
    gla = f.num("gla")
    anchor_sf = f.num("anchor_sf")
    inline_sf = f.num("inline_sf")
    anchor_rent = f.num("anchor_rent")
    inline_rent = f.num("inline_rent")
    sales = f.num("tenant_sales")
    cam = f.num("cam")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if gla:
        if anchor_sf:
            m["anchor_percent"] = anchor_sf / gla
        if inline_sf:
            m["inline_percent"] = inline_sf / gla
        if price:
            m["price_per_sf"] = price / gla

    if anchor_sf and inline_sf and anchor_rent and inline_rent:
        base_rent = anchor_sf * anchor_rent + inline_sf * inline_rent
        m["blended_rent_psf"] = base_rent / (anchor_sf + inline_sf)
        m["total_base_rent"] = base_rent

    if sales and m.get("blended_rent_psf") and cam:
        ratio = (m["blended_rent_psf"] + cam) / sales
        m["occupancy_cost_ratio"] = ratio
        if ratio > Decimal("0.15"):
            m["occupancy_cost_risk"] = "HIGH - Occupancy cost >15% of sales"
        elif ratio > Decimal("0.10"):
            m["occupancy_cost_risk"] = "MEDIUM"
        else:
            m["occupancy_cost_risk"] = "LOW"

    if sales:
        m["sales_per_sf"] = sales
    return m


def industrial_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("total_sf")
    office = f.num("office_sf")
    warehouse = f.num("warehouse_sf")
    clear = f.num("clear_height")
    doors = f.num("dock_doors")
    rent = f.num("avg_rent_per_sf")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if sf:
        if office:
            m["office_ratio"] = office / sf
        if warehouse:
            m["warehouse_ratio"] = warehouse / sf
        if price:
            m["price_per_sf"] = price / sf
        if rent:
            m["rent_per_sf"] = rent
            m["gross_potential_rent"] = sf * rent
        if doors:
            m["dock_ratio"] = doors / (sf / 10000)  # Doors per 10,000 SF

    if clear:
        m["clear_height"] = clear
        if clear >= 36:
            m["clear_height_class"] = "Class A - Modern logistics"
        elif clear >= 28:
            m["clear_height_class"] = "Class B - Standard distribution"
        else:
            m["clear_height_class"] = "Older/Limited - May face obsolescence"
    return m


def office_metrics(f: _Fields) -> dict[str, Any]:
    rsf = f.num("rentable_sf")
    usf = f.num("usable_sf")
    rent = f.num("avg_rent_per_sf")
    ti = f.num("tenant_improvements")
    free_rent = f.num("free_rent", ZERO)
    walt = f.num("walt")
    concentration = f.num("tenant_concentration")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if rsf:
        if usf:
            m["load_factor"] = (rsf - usf) / rsf
        if price:
            m["price_per_sf"] = price / rsf
        if rent:
            m["rent_per_sf"] = rent
            m["gross_potential_rent"] = rsf * rent

    if rent and ti and walt:
        free_rent_cost = free_rent * rent / 12
        m["effective_rent_psf"] = rent - ti / walt - free_rent_cost / walt

    if walt:
        m["walt"] = walt
        m["rollover_risk"] = _tiered(walt, (("3", "HIGH - Short WALT"), ("5", "MEDIUM")), "LOW")

    if concentration:
        m["tenant_concentration"] = concentration
        if concentration > Decimal("0.50"):
            m["concentration_risk"] = "HIGH - Single tenant >50%"
        elif concentration > Decimal("0.30"):
            m["concentration_risk"] = "MEDIUM"
        else:
            m["concentration_risk"] = "LOW"

    m["building_class"] = f.text("building_class")
    return m


def multifamily_metrics(f: _Fields) -> dict[str, Any]:
    units = f.num("unit_count")
    unit_size = f.num("avg_unit_size")
    rent = f.num("avg_rent_per_unit")
    rent_psf = f.num("avg_rent_per_sf")
    concessions = f.num("concessions", ZERO)
    turnover = f.num("turnover_rate")
    turn_cost = f.num("turn_cost")
    loss_to_lease = f.num("loss_to_lease")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if units:
        if price:
            m["price_per_unit"] = price / units
        if rent:
            m["rent_per_unit"] = rent
            m["annual_rent_per_unit"] = rent * 12
            m["gross_potential_rent"] = units * rent * 12

    if rent and unit_size:
        m["rent_per_sf"] = rent / unit_size
    elif rent_psf:
        m["rent_per_sf"] = rent_psf

    if turnover and turn_cost and units:
        m["annual_turnover_cost"] = units * turnover * turn_cost

    gpr = m.get("gross_potential_rent")
    if loss_to_lease and gpr:
        m["loss_to_lease_percent"] = loss_to_lease / gpr
        m["loss_to_lease_annual"] = loss_to_lease
    if concessions and gpr:
        m["concession_percent"] = concessions / gpr

    m["occupancy_rate"] = f.num("occupancy_rate", "0.95")
    return m


def ground_lease_metrics(f: _Fields) -> dict[str, Any]:
    land_sf = f.num("land_area")
    land_acres = f.num("land_area_acres")
    rent = f.num("base_rent")
    escalation = f.num("escalation_rate", "0.02")
    interval = f.num("escalation_interval", "5")
    term = f.num("remaining_term")
    improvements = f.num("improvement_value")
    reversion = f.num("reversion_value")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if land_sf:
        m["land_area_sf"] = land_sf
        m["land_area_acres"] = land_sf / SQ_FT_PER_ACRE
    elif land_acres:
        m["land_area_acres"] = land_acres
        m["land_area_sf"] = land_acres * SQ_FT_PER_ACRE
    area = m.get("land_area_sf")

    if rent and price:
        m["cap_rate"] = rent / price
    if price and area:
        m["price_per_sf"] = price / area
    if rent and area:
        m["rent_per_sf"] = rent / area

    if rent and term:
        m["remaining_term"] = term
        m["total_remaining_rent_no_esc"] = rent * term
        if escalation:
            step = int(interval) if interval else 0
            total = ZERO
            current = rent
            for year in range(1, int(term) + 1):
                total += current
                if step and year % step == 0:
                    current *= (1 + escalation) ** step
            m["total_remaining_rent_with_esc"] = total
            m["avg_annual_rent"] = total / term

    if improvements and price:
        m["improvement_coverage"] = improvements / price
        if m["improvement_coverage"] < 2:
            m["improvement_coverage_risk"] = "LOW - Improvements less than 2x land value"

    if reversion and term:
        m["reversion_value"] = reversion
        m["reversion_pv"] = reversion / (1 + REVERSION_DISCOUNT_RATE) ** int(term)
        if price:
            m["reversion_pv_percent"] = m["reversion_pv"] / price

    if rent:
        m["ffo"] = rent - rent * Decimal("0.05")
        if price:
            m["ffo_yield"] = m["ffo"] / price
    return m


def net_lease_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("total_sf")
    rent = f.num("base_rent")
    term = f.num("remaining_term")
    escalation = f.num("escalation_rate")
    credit = f.text("tenant_credit")
    capex = f.num("cap_ex_reserve", ZERO)
    treasury = f.num("treasury_10_year", "0.04")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if rent and price:
        m["cap_rate"] = rent / price
    if sf:
        if price:
            m["price_per_sf"] = price / sf
        if rent:
            m["rent_per_sf"] = rent / sf

    if m.get("cap_rate") and treasury:
        spread = m["cap_rate"] - treasury
        m["spread_to_treasury"] = spread
        m["spread_bps"] = spread * 10000
        m["spread_assessment"] = _tiered(
            spread,
            (("0.02", "TIGHT - Below typical 200bp spread"), ("0.03", "MARKET - Within typical range")),
            "WIDE - Premium yield, check credit",
        )

    if term:
        m["walt"] = term
        m["walt_risk"] = _tiered(
            term,
            (("5", "HIGH - Short remaining term"), ("10", "MEDIUM - Monitor renewal")),
            "LOW - Long-term stability",
        )

    if credit:
        m["tenant_credit"] = credit
        m["is_investment_grade"] = credit in INVESTMENT_GRADE

    if rent:
        landlord_share = Decimal("0.03") if f.text("roof_walls") == "Landlord" else Decimal("0.01")
        m["noi"] = rent - rent * landlord_share
        m["ffo"] = m["noi"]
        m["affo"] = m["ffo"] - capex
        if price:
            m["ffo_yield"] = m["ffo"] / price
            m["affo_yield"] = m["affo"] / price

    if rent and term:
        if escalation:
            m["total_remaining_rent"] = sum(
                (rent * (1 + escalation) ** (year - 1) for year in range(1, int(term) + 1)),
                ZERO,
            )
        else:
            m["total_remaining_rent"] = rent * term
    return m


def condominium_metrics(f: _Fields) -> dict[str, Any]:
    units = f.num("total_units")
    unit_size = f.num("avg_unit_size")
    price = f.num("avg_sale_price")
    presales = f.num("current_presales", ZERO)
    deposit = f.num("deposit_amount", "0.10")
    loan = f.num("construction_loan")
    period = f.num("construction_period", "24")
    absorption = f.num("absorption_rate")
    m: dict[str, Any] = {}

    sellable = f.num("total_sellable_sf") or (units * unit_size if units and unit_size else ZERO)

    if units and price:
        m["gross_revenue"] = units * price
        m["price_per_unit"] = price
        if sellable:
            m["price_per_sf"] = m["gross_revenue"] / sellable

    land = f.num("land_cost") or ZERO
    hard = f.num("hard_costs") or ZERO
    soft = f.num("soft_costs") or hard * Decimal("0.25")
    contingency = (hard + soft) * f.num("contingency", "0.05")
    interest = loan * f.num("construction_rate", "0.08") * (period / 12) * Decimal("0.5") if loan else ZERO

    sales_cost_rate = f.num("broker_commission", "0.05") + f.num("closing_costs", "0.02") + f.num("warranty_reserve", "0.01")
    sales_costs = m["gross_revenue"] * sales_cost_rate if m.get("gross_revenue") else ZERO

    m["total_development_cost"] = land + hard + soft + contingency + interest
    m["total_costs"] = m["total_development_cost"] + sales_costs
    if hard and sellable:
        m["hard_cost_per_sf"] = hard / sellable

    if m.get("gross_revenue") and m["total_costs"]:
        m["gross_profit"] = m["gross_revenue"] - m["total_costs"]
        m["profit_margin"] = m["gross_profit"] / m["gross_revenue"]
        m["return_on_cost"] = m["gross_profit"] / m["total_development_cost"]
        m["profit_assessment"] = _tiered(
            m["profit_margin"],
            (("0.15", "THIN - Below typical 15% margin"), ("0.20", "MARKET - Acceptable margin")),
            "STRONG - Above-market returns",
        )

    if m["total_costs"] and price and units:
        m["break_even_units"] = math.ceil(m["total_costs"] / price)
        m["break_even_percent"] = m["break_even_units"] / units
        if m["break_even_percent"] > Decimal("0.80"):
            m["break_even_risk"] = "HIGH - Need >80% sell-through to break even"
        elif m["break_even_percent"] > Decimal("0.60"):
            m["break_even_risk"] = "MODERATE - Break-even at 60-80%"
        else:
            m["break_even_risk"] = "LOW - Comfortable margin"

    if units:
        required = math.ceil(units * f.num("presales_required", "0.50"))
        m["presales_required_units"] = required
        m["current_presales"] = presales
        progress = presales / required if required else ZERO
        m["presale_progress"] = progress
        m["presale_percent"] = presales / units
        if progress >= 1:
            m["presale_status"] = "MET - Lender requirement satisfied"
        elif progress >= Decimal("0.75"):
            m["presale_status"] = "CLOSE - Nearly at lender threshold"
        else:
            m["presale_status"] = "IN PROGRESS - More presales needed"
        if price and deposit:
            m["deposits_collected"] = presales * price * deposit

    if units and absorption:
        m["absorption_rate"] = absorption
        m["months_to_sell_out"] = math.ceil((units - presales) / absorption)
        m["expected_sell_out"] = f"{m['months_to_sell_out']} months from construction completion"

    if m.get("gross_profit") and m["total_development_cost"] and period and m.get("months_to_sell_out"):
        equity = m["total_development_cost"] - (loan or ZERO)
        if equity > 0:
            years = (period + m["months_to_sell_out"]) / 12
            multiple = (equity + m["gross_profit"]) / equity
            m["equity_multiple"] = multiple
            if multiple > 0:
                m["estimated_irr"] = multiple ** (1 / years) - 1
    return m


def cold_storage_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("total_sf")
    freezer = f.num("freezer_sf", ZERO)
    cooler = f.num("cooler_sf", ZERO)
    ambient = f.num("ambient_sf", ZERO)
    zone_rents = (f.num("freezer_rent_psf"), f.num("cooler_rent_psf"), f.num("ambient_rent_psf"))
    avg_rent = f.num("avg_rent_per_sf")
    clear = f.num("clear_height")
    age = f.num("refrigeration_age")
    system = f.text("refrigeration_system_type")
    amps = f.num("power_capacity")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if sf:
        m["freezer_percent"] = freezer / sf
        m["cooler_percent"] = cooler / sf
        m["ambient_percent"] = ambient / sf

        if any(zone_rents):
            freezer_rent, cooler_rent, ambient_rent = (r or ZERO for r in zone_rents)
            revenue = freezer * freezer_rent + cooler * cooler_rent + ambient * ambient_rent
            m["blended_rent_psf"] = revenue / sf
            m["gross_potential_rent"] = revenue
        elif avg_rent:
            m["blended_rent_psf"] = avg_rent
            m["gross_potential_rent"] = sf * avg_rent

        if price:
            m["price_per_sf"] = price / sf
        if m.get("blended_rent_psf"):
            m["rent_premium"] = m["blended_rent_psf"] / DRY_WAREHOUSE_RENT_PSF

    if clear:
        m["clear_height"] = clear
        if clear >= 100:
            m["clear_height_class"] = "High-Rise ASRS - Fully automated"
        elif clear >= 50:
            m["clear_height_class"] = "Modern Cold Storage - ASRS capable"
        elif clear >= 30:
            m["clear_height_class"] = "Standard Cold Storage"
        else:
            m["clear_height_class"] = "Older/Low-Rise - Limited racking"

    if age is not None:
        m["refrigeration_age"] = age
        m["refrigeration_remaining_life"] = max(ZERO, REFRIGERATION_SYSTEM_LIFE - age)
        if age > 20:
            m["refrigeration_risk"] = "HIGH - System replacement needed soon"
            m["estimated_replacement_cost"] = freezer * 50 + cooler * 30
        elif age > 15:
            m["refrigeration_risk"] = "MEDIUM - Plan for capital reserves"
        else:
            m["refrigeration_risk"] = "LOW - System in good condition"

    if system:
        m["refrigeration_system_type"] = system
        if system == "Ammonia":
            m["system_note"] = "Ammonia: Most efficient but requires PSM/RMP compliance"
        elif system == "CO2":
            m["system_note"] = "CO2: Modern, efficient, lower regulatory burden"

    if amps and sf:
        m["power_density"] = amps * 100 / sf  # Approximate watts per SF
    return m


def flex_rd_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("total_sf")
    office = f.num("office_sf", ZERO)
    warehouse = f.num("warehouse_sf", ZERO)
    office_rent = f.num("office_rent_psf")
    warehouse_rent = f.num("warehouse_rent_psf")
    avg_rent = f.num("avg_rent_per_sf")
    clear = f.num("clear_height")
    ti = f.num("tenant_improvements")
    cluster = f.text("innovation_cluster")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if sf:
        m["office_ratio"] = office / sf
        m["warehouse_ratio"] = warehouse / sf
        m["lab_ratio"] = f.num("lab_sf", ZERO) / sf
        m["manufacturing_ratio"] = f.num("manufacturing_sf", ZERO) / sf

        if m["office_ratio"] < Decimal("0.25"):
            m["classification_note"] = "Office <25% - May not qualify as Flex"
        elif m["office_ratio"] > Decimal("0.60"):
            m["classification_note"] = "Office >60% - Consider as Office/Tech"
        else:
            m["classification_note"] = "True Flex Space - 25-60% office buildout"

        if office_rent and warehouse_rent:
            revenue = office * office_rent + warehouse * warehouse_rent
            m["blended_rent_psf"] = revenue / sf
            m["gross_potential_rent"] = revenue
        elif avg_rent:
            m["blended_rent_psf"] = avg_rent
            m["gross_potential_rent"] = sf * avg_rent

        if price:
            m["price_per_sf"] = price / sf

    if clear:
        m["clear_height"] = clear
        if clear >= 20:
            m["clear_height_class"] = "High - Good for industrial use"
        elif clear >= 14:
            m["clear_height_class"] = "Standard Flex - Typical 14-16ft"
        else:
            m["clear_height_class"] = "Low - Office-like ceiling"

    if ti and sf:
        m["total_ti_exposure"] = ti * sf
        if ti < 5:
            m["ti_risk"] = "LOW - Minimal TI requirement"
        elif ti <= 20:
            m["ti_risk"] = "MARKET - Typical flex range"
        else:
            m["ti_risk"] = "HIGH - Above-market TI for flex"

    if cluster:
        m["innovation_cluster"] = cluster
        if cluster == "In Cluster":
            m["cluster_premium"] = Decimal("1.15")
            m["cluster_note"] = "In innovation cluster - commands premium rents"
        elif cluster == "Adjacent":
            m["cluster_premium"] = Decimal("1.05")
            m["cluster_note"] = "Adjacent to cluster - moderate premium"
        else:
            m["cluster_premium"] = Decimal("1.0")
            m["cluster_note"] = "Remote from cluster - standard pricing"
    return m


AFFILIATION_SCORES = {
    "Owned by System": 5,
    "Master Lease": 4,
    "Affiliated Physicians": 3,
    "Independent": 1,
}

ANCHOR_CREDIT_QUALITY = {
    "Health System": "STRONG - Health system guarantee",
    "Large Group Practice": "GOOD - Established practice",
    "Small Practice": "MODERATE - Practice-level credit",
}


def medical_office_metrics(f: _Fields) -> dict[str, Any]:
    sf = f.num("total_sf")
    campus = f.text("campus_type")
    affiliation = f.text("affiliation_strength")
    rent = f.num("avg_rent_per_sf")
    walt = f.num("walt")
    anchor_sf = f.num("anchor_tenant_sf")
    anchor_credit = f.text("anchor_tenant_credit")
    hopd = f.text("hopd")
    parking = f.num("parking_ratio")
    ti = f.num("tenant_improvements")
    price = f.num("purchase_price")
    m: dict[str, Any] = {}

    if sf:
        if price:
            m["price_per_sf"] = price / sf
        if rent:
            m["rent_per_sf"] = rent
            m["gross_potential_rent"] = sf * rent
        if anchor_sf:
            m["anchor_percent"] = anchor_sf / sf
            if m["anchor_percent"] > Decimal("0.70"):
                m["anchor_concentration"] = "HIGH - Single tenant risk"
            elif m["anchor_percent"] > Decimal("0.40"):
                m["anchor_concentration"] = "MODERATE - Significant anchor"
            else:
                m["anchor_concentration"] = "DIVERSIFIED - Multi-tenant"

    if campus:
        m["campus_type"] = campus
        if campus == "On-Campus":
            m["campus_premium"] = Decimal("1.10")
            m["campus_note"] = "On-campus MOB - Premium pricing, stable tenancy"
        elif campus == "Adjacent":
            m["campus_premium"] = Decimal("1.05")
            m["campus_note"] = "Adjacent to hospital - Good connectivity"
        else:
            m["campus_premium"] = Decimal("1.0")
            m["campus_note"] = "Off-campus - Must prove patient access"

    if affiliation:
        m["affiliation_strength"] = affiliation
        m["affiliation_score"] = AFFILIATION_SCORES.get(affiliation, 1)

    if walt:
        m["walt"] = walt
        m["walt_risk"] = _tiered(
            walt,
            (("4", "HIGH - Short remaining term"), ("6", "MEDIUM - Monitor renewals")),
            "LOW - Long-term stability",
        )

    if anchor_credit:
        m["anchor_tenant_credit"] = anchor_credit
        m["credit_quality"] = ANCHOR_CREDIT_QUALITY.get(anchor_credit, "VARIABLE - Independent physicians")

    if hopd:
        m["hopd"] = hopd
        m["hopd_note"] = "HOPD designation allows hospital outpatient billing rates"
        m["hopd_premium"] = Decimal("1.08")

    if parking:
        m["parking_ratio"] = parking
        m["parking_adequacy"] = _tiered(
            parking,
            (("4", "INADEQUATE - Medical typically needs 4-6/1000 SF"), ("5", "ADEQUATE - Meets minimum")),
            "EXCELLENT - Ample parking",
        )

    if ti and sf:
        m["total_ti_exposure"] = ti * sf
        if ti < 40:
            m["ti_assessment"] = "BELOW MARKET - May limit tenant attraction"
        elif ti <= 80:
            m["ti_assessment"] = "MARKET - Typical MOB range"
        else:
            m["ti_assessment"] = "PREMIUM - High-end medical buildout"
    return m


def development_metrics(f: _Fields) -> dict[str, Any]:
    land = f.num("land_cost") or ZERO
    hard = f.num("hard_costs") or ZERO
    soft = f.num("soft_costs") or hard * f.num("soft_cost_percent", "0.25")
    contingency_rate = f.num("contingency", "0.05")
    loan = f.num("construction_loan")
    rate = f.num("construction_rate")
    period = f.num("construction_period")
    noi = f.num("stabilized_noi")
    market_cap = f.num("market_cap_rate") or f.num("exit_cap_rate")
    target_yield = f.num("target_yield_on_cost", "0.075")
    m: dict[str, Any] = {}

    if not hard:
        return m

    interest = loan * rate * (period / 12) * Decimal("0.5") if loan and rate and period else ZERO
    budget = land + hard + soft + (hard + soft) * contingency_rate + interest
    m["total_budget"] = budget
    m["construction_interest"] = interest
    m["soft_cost_ratio"] = soft / hard
    m["contingency"] = contingency_rate

    if noi:
        m["yield_on_cost"] = noi / budget
        if market_cap:
            m["development_spread"] = m["yield_on_cost"] - market_cap
        if target_yield:
            m["residual_land_value"] = noi / target_yield - (hard + soft)
    return m


MetricFunction = Callable[[_Fields], dict[str, Any]]

SECTOR_METRIC_FUNCTIONS: dict[Sector, MetricFunction] = {
    Sector.MULTIFAMILY: multifamily_metrics,
    Sector.OFFICE: office_metrics,
    Sector.INDUSTRIAL: industrial_metrics,
    Sector.RETAIL: retail_metrics,
    Sector.HOTEL: hotel_metrics,
    Sector.DATA_CENTER: data_center_metrics,
    Sector.LIFE_SCIENCES: life_sciences_metrics,
    Sector.SENIORS_HOUSING: seniors_housing_metrics,
    Sector.STUDENT_HOUSING: student_housing_metrics,
    Sector.SELF_STORAGE: self_storage_metrics,
    Sector.MANUFACTURED_HOUSING: manufactured_housing_metrics,
    Sector.GROUND_LEASE: ground_lease_metrics,
    Sector.NET_LEASE: net_lease_metrics,
    Sector.CONDOMINIUM: condominium_metrics,
    Sector.COLD_STORAGE: cold_storage_metrics,
    Sector.FLEX_RD: flex_rd_metrics,
    Sector.MEDICAL_OFFICE: medical_office_metrics,
    Sector.DEVELOPMENT: development_metrics,
}


def _round_metric(value: Any) -> Any:
    """Ratios to 4 places, larger figures to cents."""
    if not isinstance(value, Decimal):
        return value
    places = FOUR_PLACES if abs(value) < 10 else TWO_PLACES
    return value.quantize(places, ROUND_HALF_UP)


def calculate_sector_metrics(
    inputs: ModelInputs | Mapping[str, Any], sector: Sector | str | None = None
) -> SectorMetricsResult:
    """Classify the deal and compute its sector metrics.

    An explicit sector wins; otherwise the property and asset type strings
    are matched, falling back to MULTIFAMILY.
    """
    flat = inputs.to_flat() if isinstance(inputs, ModelInputs) else dict(inputs)
    values = {k: v for k, v in flat.items() if v is not None}

    if sector is not None:
        resolved = resolve_sector(sector)
    else:
        resolved = detect_sector(values.get("property_type"), values.get("asset_type")) or Sector.MULTIFAMILY

    config = get_sector_config(resolved)
    raw = SECTOR_METRIC_FUNCTIONS[resolved](_Fields(values))

    warnings = []
    for key, value in raw.items():
        if not isinstance(value, Decimal):
            continue
        check = validate_against_benchmark(resolved, key, value)
        if check.warning:
            warnings.append(SectorWarning(key, _round_metric(value), check.warning, check.benchmark))

    metrics = {key: _round_metric(value) for key, value in raw.items()}
    logger.debug("Sector %s: %d metrics, %d warnings", resolved.value, len(metrics), len(warnings))

    return SectorMetricsResult(
        sector=resolved,
        sector_name=config.name,
        metrics=metrics,
        warnings=warnings,
        risk_factors=list(config.risk_factors),
        primary_metrics=list(config.primary_metrics),
    )
