"""Deal inputs for the underwriting engine.

Every numeric field is optional. The engine computes whatever subset of
metrics the supplied fields support and leaves the rest as None.
"""

from dataclasses import dataclass, field, fields, replace
from decimal import Decimal
from typing import Any, Mapping


@dataclass(frozen=True)
class IncomeInputs:
    gross_potential_rent: Decimal | None = None  # Annual
    vacancy_rate: Decimal | None = None
    other_income: Decimal | None = None  # Annual: parking, laundry, fees
    other_income_growth: Decimal | None = None  # Defaults to rent growth


@dataclass(frozen=True)
class ExpenseInputs:
    operating_expenses: Decimal | None = None  # Pre-summed annual total
    taxes: Decimal | None = None
    insurance: Decimal | None = None
    management: Decimal | None = None
    reserves: Decimal | None = None


@dataclass(frozen=True)
class DebtInputs:
    loan_amount: Decimal | None = None
    interest_rate: Decimal | None = None  # Annual
    amortization_years: int | None = None
    loan_term_years: int | None = None
    interest_only_years: int | None = None


@dataclass(frozen=True)
class GrowthInputs:
    rent_growth: Decimal | None = None
    expense_growth: Decimal | None = None
    exit_cap_rate: Decimal | None = None
    hold_period_years: int | None = None
    selling_cost_rate: Decimal | None = None


_GROUPS = {
    "income": IncomeInputs,
    "expenses": ExpenseInputs,
    "debt": DebtInputs,
    "growth": GrowthInputs,
}

# Flat field name -> owning group attribute
FIELD_GROUPS: dict[str, str] = {
    f.name: group for group, cls in _GROUPS.items() for f in fields(cls)
}

INTEGER_FIELDS = frozenset({
    "amortization_years",
    "loan_term_years",
    "interest_only_years",
    "hold_period_years",
})


def _coerce(name: str, value: Any) -> Any:
    if value is None:
        return None
    if name in INTEGER_FIELDS:
        return int(value)
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


@dataclass(frozen=True)
class ModelInputs:
    purchase_price: Decimal | None = None
    income: IncomeInputs = field(default_factory=IncomeInputs)
    expenses: ExpenseInputs = field(default_factory=ExpenseInputs)
    debt: DebtInputs = field(default_factory=DebtInputs)
    growth: GrowthInputs = field(default_factory=GrowthInputs)

    # Classification hints, e.g. "Multifamily Garden"
    property_type: str | None = None
    asset_type: str | None = None

    # Raw sector-specific fields (room_count, adr, it_load_kw, ...)
    sector_inputs: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_flat(cls, values: Mapping[str, Any]) -> "ModelInputs":
        """Build inputs from a flat name -> value mapping.

        Names not belonging to a core group are kept in sector_inputs.
        """
        grouped: dict[str, dict[str, Any]] = {group: {} for group in _GROUPS}
        top: dict[str, Any] = {}
        sector: dict[str, Any] = {}
        for name, value in values.items():
            if name in FIELD_GROUPS:
                grouped[FIELD_GROUPS[name]][name] = _coerce(name, value)
            elif name == "purchase_price":
                top[name] = _coerce(name, value)
            elif name in ("property_type", "asset_type"):
                top[name] = value
            else:
                sector[name] = value
        return cls(
            **top,
            **{group: _GROUPS[group](**kwargs) for group, kwargs in grouped.items()},
            sector_inputs=sector,
        )

    def to_flat(self) -> dict[str, Any]:
        flat: dict[str, Any] = dict(self.sector_inputs)
        flat["purchase_price"] = self.purchase_price
        flat["property_type"] = self.property_type
        flat["asset_type"] = self.asset_type
        for group in _GROUPS:
            block = getattr(self, group)
            for f in fields(block):
                flat[f.name] = getattr(block, f.name)
        return flat

    def get(self, name: str, default: Any = None) -> Any:
        if name in FIELD_GROUPS:
            value = getattr(getattr(self, FIELD_GROUPS[name]), name)
        elif name in ("purchase_price", "property_type", "asset_type"):
            value = getattr(self, name)
        else:
            value = self.sector_inputs.get(name)
        return default if value is None else value

    def with_overrides(self, **overrides: Any) -> "ModelInputs":
        """Copy with the named fields replaced, routed to their group."""
        changes: dict[str, dict[str, Any]] = {}
        top: dict[str, Any] = {}
        sector = dict(self.sector_inputs)
        for name, value in overrides.items():
            if name in FIELD_GROUPS:
                changes.setdefault(FIELD_GROUPS[name], {})[name] = _coerce(name, value)
            elif name == "purchase_price":
                top[name] = _coerce(name, value)
            elif name in ("property_type", "asset_type"):
                top[name] = value
            else:
                sector[name] = value
        for group, kwargs in changes.items():
            top[group] = replace(getattr(self, group), **kwargs)
        return replace(self, **top, sector_inputs=sector)

    @property
    def equity_required(self) -> Decimal | None:
        if self.purchase_price is None or self.debt.loan_amount is None:
            return None
        return self.purchase_price - self.debt.loan_amount
