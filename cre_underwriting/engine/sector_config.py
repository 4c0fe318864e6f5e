"""Static catalog of property sectors.

Each sector carries its headline metrics, sector-specific input fields,
benchmark ranges for key metrics, risk factors and typical lease terms.
The catalog is read-only; lookups return the shared immutable entries.
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class Sector(str, Enum):
    MULTIFAMILY = "MULTIFAMILY"
    OFFICE = "OFFICE"
    INDUSTRIAL = "INDUSTRIAL"
    RETAIL = "RETAIL"
    HOTEL = "HOTEL"
    DATA_CENTER = "DATA_CENTER"
    LIFE_SCIENCES = "LIFE_SCIENCES"
    SENIORS_HOUSING = "SENIORS_HOUSING"
    STUDENT_HOUSING = "STUDENT_HOUSING"
    SELF_STORAGE = "SELF_STORAGE"
    MANUFACTURED_HOUSING = "MANUFACTURED_HOUSING"
    GROUND_LEASE = "GROUND_LEASE"
    NET_LEASE = "NET_LEASE"
    CONDOMINIUM = "CONDOMINIUM"
    COLD_STORAGE = "COLD_STORAGE"
    FLEX_RD = "FLEX_RD"
    MEDICAL_OFFICE = "MEDICAL_OFFICE"
    DEVELOPMENT = "DEVELOPMENT"


def resolve_sector(value: Sector | str) -> Sector:
    """Sector from a member or a case-insensitive code. Raises ValueError."""
    if isinstance(value, Sector):
        return value
    return Sector(str(value).upper())


@dataclass(frozen=True)
class Benchmark:
    min: Decimal | None = None
    max: Decimal | None = None
    typical: Decimal | None = None
    unit: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class InputField:
    key: str
    label: str
    required: bool = False
    default: Decimal | None = None


@dataclass(frozen=True)
class SectorConfig:
    code: Sector
    name: str
    description: str
    subsectors: tuple[str, ...]
    primary_metrics: tuple[str, ...]
    inputs: tuple[InputField, ...]
    benchmarks: dict[str, Benchmark]
    risk_factors: tuple[str, ...]
    lease_structure: str | None = None
    typical_lease_term_months: int | None = None

    @property
    def required_inputs(self) -> tuple[InputField, ...]:
        return tuple(f for f in self.inputs if f.required)


@dataclass(frozen=True)
class BenchmarkCheck:
    warning: str | None = None
    benchmark: Benchmark | None = None

    @property
    def within_range(self) -> bool:
        return self.warning is None


DEFAULT_PRIMARY_METRICS = ("irr", "cash_on_cash", "cap_rate", "dscr")


def _bm(low: str | None, high: str | None, typical: str | None = None, unit: str | None = None,
        description: str | None = None) -> Benchmark:
    return Benchmark(
        min=Decimal(low) if low is not None else None,
        max=Decimal(high) if high is not None else None,
        typical=Decimal(typical) if typical is not None else None,
        unit=unit,
        description=description,
    )


def _in(key: str, label: str, required: bool = False, default: str | None = None) -> InputField:
    return InputField(key, label, required, Decimal(default) if default is not None else None)


_CATALOG = (
    SectorConfig(
        code=Sector.MULTIFAMILY,
        name="Multifamily / Apartments",
        description="Residential rental properties with multiple units",
        subsectors=("Garden", "Mid-Rise", "High-Rise", "Student Housing", "Seniors Housing",
                    "Affordable", "Build-to-Rent"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "dscr", "price_per_unit", "rent_per_unit"),
        inputs=(
            _in("unit_count", "Total Units", required=True),
            _in("avg_unit_size", "Avg Unit Size (SF)"),
            _in("avg_rent_per_unit", "Avg Rent/Unit"),
            _in("avg_rent_per_sf", "Avg Rent/SF"),
            _in("occupancy_rate", "Occupancy Rate", default="0.95"),
            _in("concessions", "Concessions"),
            _in("turnover_rate", "Annual Turnover", default="0.50"),
            _in("turn_cost", "Cost Per Turn", default="2500"),
            _in("loss_to_lease", "Loss to Lease"),
        ),
        benchmarks={
            "cap_rate": _bm("0.04", "0.07", "0.05"),
            "occupancy": _bm("0.90", "0.98", "0.95"),
            "expense_ratio": _bm("0.30", "0.45", "0.38"),
            "dscr": _bm("1.20", "1.50", "1.25"),
            "price_per_unit": _bm(None, None, description="Varies widely by market - $100K-$500K+"),
        },
        risk_factors=(
            "Rent control/stabilization regulations",
            "Concession burn-off timing",
            "Turnover costs and lease-up velocity",
            "Utility passthrough limitations",
            "Age and deferred maintenance",
        ),
        lease_structure="GROSS",
        typical_lease_term_months=12,
    ),
    SectorConfig(
        code=Sector.OFFICE,
        name="Office",
        description="Commercial office buildings for business tenants",
        subsectors=("Class A CBD", "Class A Suburban", "Class B", "Class C", "Medical Office",
                    "Life Sciences"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "dscr", "price_per_sf", "rent_per_sf", "walt"),
        inputs=(
            _in("rentable_sf", "Rentable SF", required=True),
            _in("usable_sf", "Usable SF"),
            _in("avg_rent_per_sf", "Avg Rent/SF (Annual)"),
            _in("tenant_improvements", "TI Allowance/SF"),
            _in("free_rent", "Free Rent (months)", default="3"),
            _in("walt", "Weighted Avg Lease Term"),
            _in("tenant_concentration", "Largest Tenant %"),
            _in("building_class", "Building Class"),
        ),
        benchmarks={
            "cap_rate": _bm("0.055", "0.09", "0.07"),
            "occupancy": _bm("0.80", "0.95", "0.88"),
            "expense_ratio": _bm("0.35", "0.50", "0.42"),
            "dscr": _bm("1.25", "1.50", "1.30"),
            "ti_allowance": _bm("30", "80", "50", unit="$/SF"),
            "walt": _bm("3", "10", "5", unit="years"),
        },
        risk_factors=(
            "Work from home / hybrid trends",
            "Tenant credit quality and concentration",
            "Lease rollover clustering",
            "TI/LC capital requirements",
            "Building obsolescence (tech infrastructure)",
            "ESG requirements and retrofits",
        ),
        lease_structure="FULL_SERVICE_GROSS",
        typical_lease_term_months=60,
    ),
    SectorConfig(
        code=Sector.INDUSTRIAL,
        name="Industrial",
        description="Warehouse, distribution, and manufacturing facilities",
        subsectors=("Warehouse", "Distribution", "Last Mile", "Cold Storage", "Manufacturing", "Flex",
                    "Data Center"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "dscr", "price_per_sf", "rent_per_sf",
                         "clear_height"),
        inputs=(
            _in("total_sf", "Total SF", required=True),
            _in("office_sf", "Office SF"),
            _in("warehouse_sf", "Warehouse SF"),
            _in("clear_height", "Clear Height (ft)"),
            _in("dock_doors", "Dock Doors"),
            _in("avg_rent_per_sf", "Avg Rent/SF (Annual)"),
        ),
        benchmarks={
            "cap_rate": _bm("0.04", "0.065", "0.05"),
            "occupancy": _bm("0.92", "0.99", "0.96"),
            "expense_ratio": _bm("0.15", "0.25", "0.18"),
            "dscr": _bm("1.25", "1.50", "1.35"),
            "clear_height": _bm("24", "40", "32", unit="feet"),
        },
        risk_factors=(
            "E-commerce demand shifts",
            "Automation impact on space needs",
            "Clear height adequacy for modern logistics",
            "Loading and truck court configuration",
            "Power capacity for cold storage/data",
            "Environmental contamination history",
        ),
        lease_structure="NNN",
        typical_lease_term_months=84,
    ),
    SectorConfig(
        code=Sector.RETAIL,
        name="Retail",
        description="Shopping centers, strip centers, and standalone retail",
        subsectors=("Regional Mall", "Power Center", "Neighborhood Center", "Strip Center",
                    "Single Tenant", "Grocery Anchored", "Lifestyle Center"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "dscr", "price_per_sf", "rent_per_sf",
                         "sales_per_sf", "occupancy_cost"),
        inputs=(
            _in("gla", "Gross Leasable Area (SF)", required=True),
            _in("anchor_sf", "Anchor Tenant SF"),
            _in("inline_sf", "Inline Tenant SF"),
            _in("anchor_rent", "Anchor Rent/SF"),
            _in("inline_rent", "Inline Rent/SF"),
            _in("percent_rent", "Percentage Rent"),
            _in("cam", "CAM/SF"),
            _in("tenant_sales", "Tenant Sales/SF"),
        ),
        benchmarks={
            "cap_rate": _bm("0.055", "0.085", "0.07"),
            "occupancy": _bm("0.85", "0.97", "0.92"),
            "expense_ratio": _bm("0.20", "0.35", "0.25"),
            "dscr": _bm("1.25", "1.50", "1.30"),
            "occupancy_cost_ratio": _bm("0.08", "0.15", "0.10", description="Total rent / tenant sales"),
        },
        risk_factors=(
            "E-commerce competition",
            "Anchor tenant bankruptcy risk",
            "Co-tenancy clause exposure",
            "Percentage rent volatility",
            "Parking adequacy",
            "Trade area demographics shift",
        ),
        lease_structure="NNN",
        typical_lease_term_months=120,
    ),
    SectorConfig(
        code=Sector.HOTEL,
        name="Hotel / Hospitality",
        description="Hotels, resorts, and hospitality properties",
        subsectors=("Full Service", "Select Service", "Limited Service", "Extended Stay", "Resort",
                    "Boutique"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_key", "revpar", "adr",
                         "occupancy", "goppar"),
        inputs=(
            _in("room_count", "Room Count (Keys)", required=True),
            _in("adr", "Average Daily Rate"),
            _in("occupancy_rate", "Occupancy Rate"),
            _in("room_revenue", "Room Revenue"),
            _in("fb_revenue", "F&B Revenue"),
            _in("other_revenue", "Other Revenue"),
            _in("departmental_expenses", "Departmental Expenses"),
            _in("undistributed_expenses", "Undistributed Expenses"),
            _in("management_fee", "Management Fee %", default="0.03"),
            _in("franchise_fee", "Franchise Fee %", default="0.05"),
            _in("ff_and_e", "FF&E Reserve %", default="0.04"),
        ),
        benchmarks={
            "cap_rate": _bm("0.065", "0.10", "0.08"),
            "occupancy": _bm("0.55", "0.80", "0.68"),
            "adr": _bm(None, None, description="Highly market dependent"),
            "gop_margin": _bm("0.30", "0.50", "0.38"),
            "ff_and_e_percent": _bm("0.03", "0.05", "0.04"),
        },
        risk_factors=(
            "Economic cycle sensitivity",
            "Seasonal demand patterns",
            "Brand/franchise requirements",
            "PIP capital requirements",
            "Competition from Airbnb/VRBO",
            "Group/convention demand",
            "Travel pattern changes",
        ),
        lease_structure="OPERATING",
    ),
    SectorConfig(
        code=Sector.DATA_CENTER,
        name="Data Center",
        description="Mission-critical facilities for IT infrastructure and cloud computing",
        subsectors=("Hyperscale", "Colocation", "Enterprise", "Edge", "AI/GPU Cluster", "Carrier Hotel"),
        primary_metrics=("irr", "cash_on_cash", "price_per_kw", "noi_per_kw", "pue", "yield_on_cost",
                         "wue"),
        inputs=(
            _in("it_load_kw", "IT Load (kW)", required=True),
            _in("pue", "PUE", default="1.4"),
            _in("rate_per_kw", "Rate per kW (Monthly)"),
            _in("power_cost", "Utility Cost/kWh", default="0.10"),
            _in("total_sf", "Total Building SF"),
        ),
        benchmarks={
            "cap_rate": _bm("0.045", "0.075", "0.055"),
            "pue": _bm("1.09", "1.80", "1.47"),
            "wue": _bm("0.5", "2.0", "1.0", description="Liters per kWh - lower is better"),
            "rate_per_kw": _bm("100", "250", "150", unit="$/kW/month"),
            "yield_on_cost": _bm("0.08", "0.15", "0.10"),
            "price_per_kw": _bm("8000", "20000", "12000", unit="$/kW"),
            "construction_cost_per_kw": _bm("6000", "15000", "9000", unit="$/kW"),
            "downtime_cost_per_minute": _bm("5000", "10000", "7500"),
        },
        risk_factors=(
            "Power grid availability and expansion capacity",
            "Utility rate volatility and energy cost hedging",
            "Water availability for cooling (especially in arid regions)",
            "Technology obsolescence (power density requirements)",
            "Hyperscaler concentration risk (single tenant dependency)",
            "AI/GPU demand volatility and power density migration",
            "Fiber/network connectivity adequacy",
            "Environmental regulations (carbon, water)",
            "Local zoning and permitting for expansion",
            "Competition from new builds in market",
            "Skilled labor availability for operations",
            "Supply chain for critical equipment (generators, UPS, chillers)",
        ),
        lease_structure="NNN_POWER",
        typical_lease_term_months=120,
    ),
    SectorConfig(
        code=Sector.LIFE_SCIENCES,
        name="Life Sciences / Lab",
        description="Laboratory and research facilities",
        subsectors=("Wet Lab", "Dry Lab", "GMP Manufacturing", "Vivarium", "Cleanroom"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "rent_per_sf",
                         "lab_to_office_ratio"),
        inputs=(
            _in("total_sf", "Total SF", required=True),
            _in("lab_sf", "Lab SF"),
            _in("office_sf", "Office SF"),
            _in("lab_rent_psf", "Lab Rent/SF"),
            _in("office_rent_psf", "Office Rent/SF"),
            _in("tenant_improvements", "TI Allowance/SF", default="150"),
            _in("tenant_funding_runway", "Funding Runway (months)"),
        ),
        benchmarks={
            "cap_rate": _bm("0.05", "0.075", "0.06"),
            "occupancy": _bm("0.75", "0.95", "0.85"),
            "expense_ratio": _bm("0.35", "0.50", "0.42"),
            "ti_allowance": _bm("100", "200", "150", unit="$/SF"),
            "security_deposit": _bm("12", "24", "18", unit="months rent"),
        },
        risk_factors=(
            "Tenant credit (many are pre-revenue startups)",
            "Funding environment (VC/biotech cycles)",
            "High TI exposure on default",
            "Specialized infrastructure maintenance",
            "Regulatory compliance costs",
            "Supply pipeline (overbuilding risk)",
        ),
        lease_structure="NNN",
        typical_lease_term_months=84,
    ),
    SectorConfig(
        code=Sector.SENIORS_HOUSING,
        name="Seniors Housing",
        description="Age-restricted housing and care facilities",
        subsectors=("Independent Living", "Assisted Living", "Memory Care", "Skilled Nursing", "CCRC"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_unit", "revenue_per_unit",
                         "noi_margin", "occupancy"),
        inputs=(
            _in("unit_count", "Total Units/Beds", required=True),
            _in("avg_monthly_rate", "Avg Monthly Rate"),
            _in("care_revenue", "Care Revenue"),
            _in("occupancy_rate", "Occupancy Rate", default="0.88"),
            _in("management_fee", "Management Fee %", default="0.05"),
        ),
        benchmarks={
            "cap_rate": _bm("0.055", "0.08", "0.065"),
            "occupancy": _bm("0.82", "0.95", "0.88"),
            "noi_margin": _bm("0.25", "0.40", "0.32"),
            "price_per_unit": _bm("150000", "400000", "250000", unit="$"),
        },
        risk_factors=(
            "Labor costs and availability",
            "Regulatory compliance (state licensing)",
            "Reimbursement rate changes (Medicaid/Medicare)",
            "Operator performance risk (RIDEA)",
            "Demographics and local supply",
            "Pandemic/health event exposure",
        ),
        lease_structure="RIDEA",
    ),
    SectorConfig(
        code=Sector.STUDENT_HOUSING,
        name="Student Housing",
        description="Purpose-built housing near universities",
        subsectors=("On-Campus", "Off-Campus", "Luxury", "Affordable"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_bed", "rent_per_bed",
                         "prelease_rate"),
        inputs=(
            _in("bed_count", "Total Beds", required=True),
            _in("unit_count", "Total Units"),
            _in("avg_rent_per_bed", "Avg Rent/Bed (Monthly)"),
            _in("prelease_rate", "Prelease Rate"),
            _in("renewal_rate", "Renewal Rate"),
            _in("enrollment", "University Enrollment"),
            _in("distance_to_campus", "Distance to Campus (miles)"),
        ),
        benchmarks={
            "cap_rate": _bm("0.0475", "0.065", "0.055"),
            "occupancy": _bm("0.90", "0.99", "0.95"),
            "prelease_rate": _bm("0.60", "0.95", "0.80"),
            "price_per_bed": _bm("50000", "150000", "100000", unit="$"),
            "distance_premium": _bm(None, None, description="<0.5 miles = 33% premium"),
        },
        risk_factors=(
            "University enrollment trends",
            "On-campus housing expansion",
            "Distance to campus (>1 mile = significant risk)",
            "Greek life and athletics impact",
            "Competition pipeline",
            "Lease-up velocity (Aug/Sept critical)",
        ),
        lease_structure="BY_BED",
        typical_lease_term_months=12,
    ),
    SectorConfig(
        code=Sector.SELF_STORAGE,
        name="Self Storage",
        description="Mini-warehouse and storage facilities",
        subsectors=("Climate Controlled", "Drive-Up", "Multi-Story", "Boat/RV"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "revenue_per_sf",
                         "occupancy", "ecri"),
        inputs=(
            _in("net_rentable_sf", "Net Rentable SF", required=True),
            _in("unit_count", "Total Units"),
            _in("avg_rent_per_sf", "Avg Rent/SF (Annual)"),
            _in("physical_occupancy", "Physical Occupancy"),
            _in("economic_occupancy", "Economic Occupancy"),
            _in("street_rate", "Street Rate/SF"),
            _in("ancillary_income", "Ancillary Income"),
        ),
        benchmarks={
            "cap_rate": _bm("0.05", "0.07", "0.055"),
            "physical_occupancy": _bm("0.85", "0.95", "0.90"),
            "economic_occupancy": _bm("0.80", "0.92", "0.87"),
            "expense_ratio": _bm("0.30", "0.40", "0.35"),
            "revenue_per_sf": _bm("12", "20", "15", unit="$/SF/year"),
        },
        risk_factors=(
            "New supply in 3-mile radius",
            "Street rate vs. in-place rent gap",
            "Technology/automation needs",
            "Manager dependency",
            "Climate control premium sustainability",
        ),
        lease_structure="MONTH_TO_MONTH",
        typical_lease_term_months=1,
    ),
    SectorConfig(
        code=Sector.MANUFACTURED_HOUSING,
        name="Manufactured Housing / MHP",
        description="Mobile home parks and manufactured housing communities",
        subsectors=("All-Age", "Age-Restricted (55+)", "RV Parks"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_pad", "lot_rent", "occupancy",
                         "poh_ratio"),
        inputs=(
            _in("total_pads", "Total Pads/Sites", required=True),
            _in("occupied_pads", "Occupied Pads"),
            _in("avg_lot_rent", "Avg Lot Rent (Monthly)"),
            _in("market_lot_rent", "Market Lot Rent"),
            _in("park_owned_homes", "Park-Owned Homes", default="0"),
            _in("poh_rent_premium", "POH Rent Premium", default="0"),
        ),
        benchmarks={
            "cap_rate": _bm("0.04", "0.065", "0.05"),
            "occupancy": _bm("0.90", "0.98", "0.94"),
            "expense_ratio": _bm("0.30", "0.45", "0.35"),
            "poh_ratio": _bm("0", "0.10", "0.05", description="Lenders prefer <10%"),
            "price_per_pad": _bm("40000", "150000", "80000", unit="$"),
        },
        risk_factors=(
            "Rent control/stabilization ordinances",
            "Park-owned home concentration",
            "Utility system age (private well/septic)",
            "Pre-HUD home concentrations",
            "Infill vs. expansion markets",
            "Resident demographics and turnover",
        ),
        lease_structure="LOT_RENT",
        typical_lease_term_months=12,
    ),
    SectorConfig(
        code=Sector.GROUND_LEASE,
        name="Ground Lease",
        description="Long-term land leases where landowner retains fee ownership",
        subsectors=("Credit Tenant", "Multi-Tenant", "Build-to-Suit", "Subordinated", "Unsubordinated"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "rent_escalation",
                         "remaining_term", "ffo", "affo"),
        inputs=(
            _in("land_area", "Land Area (SF)", required=True),
            _in("land_area_acres", "Land Area (Acres)"),
            _in("base_rent", "Base Ground Rent (Annual)", required=True),
            _in("escalation_rate", "Escalation Rate", default="0.02"),
            _in("escalation_interval", "Escalation Interval (Years)", default="5"),
            _in("remaining_term", "Remaining Lease Term (Years)", required=True),
            _in("improvement_value", "Improvement Value"),
            _in("reversion_value", "Estimated Reversion Value"),
        ),
        benchmarks={
            "cap_rate": _bm("0.03", "0.06", "0.045"),
            "rent_escalation": _bm("0.015", "0.03", "0.02", description="Annual escalation rate"),
            "remaining_term": _bm("30", "99", "60", unit="years"),
            "price_per_sf": _bm(None, None, description="Highly location dependent"),
        },
        risk_factors=(
            "Tenant credit deterioration",
            "Subordination exposure (if subordinated)",
            "Below-market rent resets",
            "Improvement reversion timing mismatch",
            "Extension option exercise uncertainty",
            "Land use restriction changes",
            "Ground lease financing limitations",
        ),
        lease_structure="GROUND_LEASE",
        typical_lease_term_months=792,
    ),
    SectorConfig(
        code=Sector.NET_LEASE,
        name="Net Lease / Single Tenant",
        description="Single-tenant properties with long-term NNN leases",
        subsectors=("Investment Grade", "Sub-Investment Grade", "Sale-Leaseback", "Build-to-Suit",
                    "Drug Store", "QSR", "Auto Service", "Bank Branch", "Dollar Store"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "walt", "ffo", "affo",
                         "spread_to_treasury"),
        inputs=(
            _in("total_sf", "Total SF", required=True),
            _in("base_rent", "Base Rent (Annual)", required=True),
            _in("tenant_name", "Tenant Name", required=True),
            _in("tenant_credit", "Tenant Credit Rating"),
            _in("remaining_term", "Remaining Lease Term (Years)", required=True),
            _in("escalation_rate", "Escalation Rate"),
            _in("roof_walls", "Roof/Walls Responsibility"),
            _in("cap_ex_reserve", "CapEx Reserve", default="0"),
            _in("treasury_10_year", "10-Year Treasury", default="0.04"),
        ),
        benchmarks={
            "cap_rate": _bm("0.045", "0.08", "0.06"),
            "occupancy": _bm("1.0", "1.0", "1.0", description="Single tenant = 100% or 0%"),
            "walt": _bm("5", "20", "10", unit="years"),
            "spread_to_treasury": _bm("0.02", "0.04", "0.025", description="Spread over 10-year Treasury"),
        },
        risk_factors=(
            "Single tenant concentration (binary outcome)",
            "Tenant credit deterioration",
            "Dark store risk (tenant abandonment)",
            "Below-market rent at expiry",
            "Franchisee vs. corporate guarantee",
            "Building fungibility/re-tenanting costs",
            "E-commerce disruption to retail tenants",
            "Roof/structure maintenance exposure",
        ),
        lease_structure="NNN",
        typical_lease_term_months=180,
    ),
    SectorConfig(
        code=Sector.CONDOMINIUM,
        name="Condominium Development",
        description="For-sale residential condominium development projects",
        subsectors=("High-Rise", "Mid-Rise", "Low-Rise", "Townhome", "Luxury", "Affordable",
                    "Conversion"),
        primary_metrics=("irr", "equity_multiple", "profit_margin", "price_per_unit", "price_per_sf",
                         "absorption_rate", "break_even_sales"),
        inputs=(
            _in("total_units", "Total Units", required=True),
            _in("avg_unit_size", "Avg Unit Size (SF)"),
            _in("total_sellable_sf", "Total Sellable SF"),
            _in("avg_sale_price", "Avg Sale Price/Unit", required=True),
            _in("presales_required", "Presales Required %", default="0.50"),
            _in("current_presales", "Current Presales", default="0"),
            _in("deposit_amount", "Deposit %", default="0.10"),
            _in("land_cost", "Land Cost", required=True),
            _in("hard_costs", "Hard Costs", required=True),
            _in("soft_costs", "Soft Costs"),
            _in("contingency", "Contingency %", default="0.05"),
            _in("construction_loan", "Construction Loan"),
            _in("construction_rate", "Construction Rate", default="0.08"),
            _in("construction_period", "Construction (months)", default="24"),
            _in("absorption_rate", "Absorption Rate (units/month)"),
            _in("broker_commission", "Broker Commission %", default="0.05"),
            _in("closing_costs", "Closing Costs %", default="0.02"),
            _in("warranty_reserve", "Warranty Reserve %", default="0.01"),
        ),
        benchmarks={
            "profit_margin": _bm("0.15", "0.30", "0.20", description="Target profit margin on total revenue"),
            "absorption_rate": _bm("2", "10", "4", unit="units/month"),
            "presales_required": _bm("0.30", "0.70", "0.50", description="Lender presale requirement"),
            "hard_cost_per_sf": _bm(None, None, description="Varies significantly by market and building type"),
            "price_per_sf": _bm(None, None, description="Highly market dependent"),
        },
        risk_factors=(
            "Absorption velocity uncertainty",
            "Construction cost escalation",
            "Presale cancellation risk",
            "Market timing (delivery vs. cycle)",
            "Financing availability/presale requirements",
            "HOA budget and reserve adequacy",
            "Defect liability and warranty claims",
            "Competing project supply",
            "Interest rate impact on buyer qualification",
        ),
        lease_structure="FOR_SALE",
    ),
    SectorConfig(
        code=Sector.COLD_STORAGE,
        name="Cold Storage / Refrigerated Warehouse",
        description="Temperature-controlled facilities for perishable goods storage and distribution",
        subsectors=("Freezer (-20°F)", "Cooler (32-55°F)", "Multi-Temperature", "Blast Freezer",
                    "Pharmaceutical Cold Chain"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "rent_per_sf",
                         "clear_height", "temperature_zones"),
        inputs=(
            _in("total_sf", "Total SF", required=True),
            _in("freezer_sf", "Freezer SF", default="0"),
            _in("cooler_sf", "Cooler SF", default="0"),
            _in("ambient_sf", "Ambient SF", default="0"),
            _in("freezer_rent_psf", "Freezer Rent/SF"),
            _in("cooler_rent_psf", "Cooler Rent/SF"),
            _in("ambient_rent_psf", "Ambient Rent/SF"),
            _in("avg_rent_per_sf", "Avg Rent/SF (Annual)"),
            _in("clear_height", "Clear Height (ft)"),
            _in("refrigeration_age", "Refrigeration System Age (years)"),
            _in("refrigeration_system_type", "Refrigeration System Type"),
            _in("power_capacity", "Power (Amps)"),
        ),
        benchmarks={
            "cap_rate": _bm("0.055", "0.07", "0.06"),
            "occupancy": _bm("0.92", "0.99", "0.97"),
            "rent_premium": _bm("2.0", "4.0", "3.0", description="Multiple over dry warehouse rent"),
            "refrigeration_age": _bm("0", "25", "10", description="Systems last 20-25 years"),
            "clear_height": _bm("30", "150", "50", unit="feet"),
        },
        risk_factors=(
            "Refrigeration system age and maintenance costs",
            "Power reliability and backup requirements",
            "Ammonia regulations and safety compliance",
            "Single-tenant concentration risk",
            "Temperature-specific tenant requirements",
            "Insurance costs (spoilage coverage)",
            "Energy cost volatility",
            "Obsolescence from newer automated facilities",
        ),
        lease_structure="NNN",
        typical_lease_term_months=120,
    ),
    SectorConfig(
        code=Sector.FLEX_RD,
        name="Flex / R&D Industrial",
        description="Hybrid properties combining office, lab, light manufacturing, and warehouse space",
        subsectors=("Tech Flex", "R&D Lab", "Light Manufacturing", "Creative Office/Warehouse",
                    "Maker Space"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "rent_per_sf", "office_ratio",
                         "development_spread"),
        inputs=(
            _in("total_sf", "Total SF", required=True),
            _in("office_sf", "Office SF", required=True),
            _in("warehouse_sf", "Warehouse SF", default="0"),
            _in("lab_sf", "Lab SF", default="0"),
            _in("manufacturing_sf", "Manufacturing SF", default="0"),
            _in("office_rent_psf", "Office Rent/SF"),
            _in("warehouse_rent_psf", "Warehouse Rent/SF"),
            _in("avg_rent_per_sf", "Avg Rent/SF (Annual)"),
            _in("clear_height", "Clear Height (ft)"),
            _in("tenant_improvements", "TI Allowance/SF"),
            _in("innovation_cluster", "Innovation Cluster Proximity"),
        ),
        benchmarks={
            "cap_rate": _bm("0.055", "0.08", "0.065"),
            "occupancy": _bm("0.88", "0.98", "0.96"),
            "office_ratio": _bm("0.25", "0.60", "0.35", description="25-60% office buildout"),
            "expense_ratio": _bm("0.20", "0.35", "0.25"),
            "ti_allowance": _bm("5", "20", "12", unit="$/SF"),
            "clear_height": _bm("14", "24", "16", unit="feet"),
        },
        risk_factors=(
            "Specialized buildout limits tenant flexibility",
            "Higher office ratio = higher TI/LC costs",
            "Tech sector cyclicality",
            "Competition from purpose-built lab space",
            "Innovation cluster proximity critical",
            "Power and infrastructure requirements",
            "Zoning restrictions on manufacturing use",
        ),
        lease_structure="NNN",
        typical_lease_term_months=36,
    ),
    SectorConfig(
        code=Sector.MEDICAL_OFFICE,
        name="Medical Office Building (MOB)",
        description="Healthcare facilities for physician practices and outpatient services",
        subsectors=("On-Campus", "Off-Campus", "Single Specialty", "Multi-Specialty", "ASC",
                    "Imaging Center", "Dialysis"),
        primary_metrics=("irr", "cash_on_cash", "cap_rate", "price_per_sf", "rent_per_sf", "walt",
                         "health_system_anchor"),
        inputs=(
            _in("total_sf", "Total SF", required=True),
            _in("campus_type", "Campus Type", required=True),
            _in("affiliation_strength", "Health System Affiliation"),
            _in("avg_rent_per_sf", "Avg Rent/SF (Annual)"),
            _in("walt", "WALT (Years)"),
            _in("anchor_tenant_sf", "Anchor Tenant SF"),
            _in("anchor_tenant_credit", "Anchor Tenant Credit"),
            _in("hopd", "HOPD Designation"),
            _in("parking_ratio", "Parking Ratio"),
            _in("tenant_improvements", "TI Allowance/SF"),
        ),
        benchmarks={
            "cap_rate": _bm("0.055", "0.075", "0.065"),
            "occupancy": _bm("0.90", "0.98", "0.95"),
            "walt": _bm("5", "12", "7", unit="years"),
            "parking_ratio": _bm("4", "6", "5", description="Medical needs more parking"),
            "ti_allowance": _bm("40", "100", "60", unit="$/SF"),
        },
        risk_factors=(
            "Healthcare reimbursement changes",
            "Physician practice consolidation",
            "Health system financial stability",
            "Telehealth impact on space demand",
            "Certificate of Need requirements",
            "Specialized buildout limits reuse",
            "ADA and healthcare code compliance",
            "Parking adequacy for patient volume",
            "Proximity to hospital campus",
        ),
        lease_structure="FULL_SERVICE_GROSS",
        typical_lease_term_months=84,
    ),
    SectorConfig(
        code=Sector.DEVELOPMENT,
        name="Ground-Up Development",
        description="New construction projects across all property types",
        subsectors=("Speculative", "Build-to-Suit", "Pre-Leased"),
        primary_metrics=("yield_on_cost", "development_spread", "irr", "equity_multiple",
                         "residual_land_value"),
        inputs=(
            _in("land_cost", "Land Cost", required=True),
            _in("hard_costs", "Hard Costs", required=True),
            _in("soft_costs", "Soft Costs"),
            _in("soft_cost_percent", "Soft Cost %", default="0.25"),
            _in("contingency", "Contingency %", default="0.05"),
            _in("construction_loan", "Construction Loan"),
            _in("construction_rate", "Construction Rate"),
            _in("construction_period", "Construction (months)"),
            _in("stabilized_noi", "Stabilized NOI"),
            _in("market_cap_rate", "Market Cap Rate"),
            _in("target_yield_on_cost", "Target Yield on Cost", default="0.075"),
        ),
        benchmarks={
            "yield_on_cost": _bm("0.06", "0.10", "0.075", description="Stabilized NOI / Total Cost"),
            "development_spread": _bm("0.01", "0.03", "0.015", description="YOC - Market Cap Rate"),
            "contingency": _bm("0.03", "0.10", "0.05"),
            "soft_cost_ratio": _bm("0.20", "0.35", "0.25"),
        },
        risk_factors=(
            "Entitlement and permitting delays",
            "Construction cost escalation",
            "Interest rate movement during construction",
            "Lease-up velocity uncertainty",
            "Material and labor availability",
            "Subcontractor risk",
            "Market timing risk",
        ),
    ),
)

SECTOR_CATALOG: dict[Sector, SectorConfig] = {config.code: config for config in _CATALOG}


def get_sector_config(sector: Sector | str) -> SectorConfig | None:
    try:
        return SECTOR_CATALOG[resolve_sector(sector)]
    except ValueError:
        return None


def list_sectors() -> list[dict]:
    """Summary rows for every sector, in catalog order."""
    return [
        {
            "code": config.code.value,
            "name": config.name,
            "description": config.description,
            "subsectors": list(config.subsectors),
        }
        for config in SECTOR_CATALOG.values()
    ]


def required_inputs(sector: Sector | str) -> tuple[InputField, ...]:
    config = get_sector_config(sector)
    return config.required_inputs if config else ()


def primary_metrics(sector: Sector | str) -> tuple[str, ...]:
    config = get_sector_config(sector)
    return config.primary_metrics if config else DEFAULT_PRIMARY_METRICS


# Keyword rules in priority order: specific lease structures, then subtypes
# ahead of the broad categories that would also match them.
_DETECTION_RULES: tuple[tuple[Sector, tuple[str, ...]], ...] = (
    (Sector.GROUND_LEASE, ("GROUND LEASE", "LAND LEASE")),
    (Sector.NET_LEASE, ("NET LEASE", "SINGLE TENANT", "NNN")),
    (Sector.CONDOMINIUM, ("CONDO", "CONDOMINIUM", "FOR-SALE")),
    (Sector.MULTIFAMILY, ("MULTIFAMILY", "APARTMENT")),
    (Sector.MEDICAL_OFFICE, ("MEDICAL OFFICE", r"\bMOB\b", "HEALTHCARE")),
    (Sector.OFFICE, ("OFFICE",)),
    (Sector.COLD_STORAGE, ("COLD STORAGE", "REFRIGERATED", "FREEZER")),
    (Sector.FLEX_RD, ("FLEX", "R&D", "TECH INDUSTRIAL")),
    (Sector.DATA_CENTER, ("DATA CENTER", "DATACENTER")),
    (Sector.INDUSTRIAL, ("INDUSTRIAL", "WAREHOUSE", "DISTRIBUTION", "LOGISTICS")),
    (Sector.RETAIL, ("RETAIL", "SHOPPING")),
    (Sector.HOTEL, ("HOTEL", "HOSPITALITY")),
    (Sector.LIFE_SCIENCES, ("LIFE SCIENCE", "LAB", "BIOTECH")),
    (Sector.SENIORS_HOUSING, ("SENIOR", "ASSISTED", "MEMORY CARE", "SKILLED NURSING")),
    (Sector.STUDENT_HOUSING, ("STUDENT",)),
    (Sector.SELF_STORAGE, ("SELF STORAGE", "MINI STORAGE", "SELF-STORAGE")),
    (Sector.MANUFACTURED_HOUSING, ("MOBILE HOME", "MANUFACTURED", "MHP", "TRAILER PARK")),
    (Sector.DEVELOPMENT, ("DEVELOPMENT", "GROUND-UP", "CONSTRUCTION")),
    (Sector.MULTIFAMILY, ("RESIDENTIAL",)),
)


def _matches(text: str, keyword: str) -> bool:
    if keyword.startswith(r"\b"):
        return re.search(keyword, text) is not None
    return keyword in text


def detect_sector(property_type: str | None, asset_type: str | None = None) -> Sector | None:
    """Classify a deal by keywords in its property and asset type strings.

    Returns None when nothing matches; callers default to MULTIFAMILY.
    """
    combined = f"{property_type or ''} {asset_type or ''}".upper()
    for sector, keywords in _DETECTION_RULES:
        if sector is Sector.OFFICE and "OFFICE" in combined:
            if "LAB" in combined or "LIFE SCIENCE" in combined:
                return Sector.LIFE_SCIENCES
            return Sector.OFFICE
        if any(_matches(combined, k) for k in keywords):
            return sector
    return None


def _format_bound(value: Decimal) -> str:
    return format(value.normalize(), "f")


def validate_against_benchmark(sector: Sector | str, metric: str, value) -> BenchmarkCheck:
    """Compare a metric to the sector's typical range.

    Metrics without a numeric benchmark, and non-numeric values, pass.
    """
    config = get_sector_config(sector)
    benchmark = config.benchmarks.get(metric) if config else None
    if benchmark is None or isinstance(value, (bool, str)) or value is None:
        return BenchmarkCheck(benchmark=benchmark)

    value = Decimal(str(value))
    warning = None
    if benchmark.min is not None and value < benchmark.min:
        warning = f"Below typical range (min: {_format_bound(benchmark.min)})"
    if benchmark.max is not None and value > benchmark.max:
        warning = f"Above typical range (max: {_format_bound(benchmark.max)})"
    return BenchmarkCheck(warning=warning, benchmark=benchmark)
