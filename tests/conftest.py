"""Canonical test fixtures used across engine and API tests.

Fixture: $10M garden multifamily, $1M GPR, 5% vacancy, $400K opex,
$6M loan at 6% on a 30yr amortization, 5-year hold exiting at a 5.5% cap.
"""

import pytest
from decimal import Decimal

from fastapi.testclient import TestClient

from cre_underwriting.api.app import app
from cre_underwriting.engine.waterfall import PromoteTier, WaterfallStructure
from cre_underwriting.models.inputs import ModelInputs


CANONICAL_DEAL = {
    "purchase_price": "10000000",
    "gross_potential_rent": "1000000",
    "vacancy_rate": "0.05",
    "operating_expenses": "400000",
    "loan_amount": "6000000",
    "interest_rate": "0.06",
    "amortization_years": 30,
    "rent_growth": "0.03",
    "expense_growth": "0.02",
    "exit_cap_rate": "0.055",
    "hold_period_years": 5,
    "property_type": "Multifamily Garden",
}


@pytest.fixture
def deal_payload() -> dict:
    """Flat JSON-style deal body, as posted to the API."""
    return dict(CANONICAL_DEAL)


@pytest.fixture
def canonical_inputs() -> ModelInputs:
    return ModelInputs.from_flat(CANONICAL_DEAL)


@pytest.fixture
def unlevered_inputs() -> ModelInputs:
    """Same property, no loan fields at all."""
    return ModelInputs.from_flat({
        "gross_potential_rent": Decimal("1000000"),
        "vacancy_rate": Decimal("0.05"),
        "operating_expenses": Decimal("400000"),
        "purchase_price": Decimal("10000000"),
    })


@pytest.fixture
def standard_structure() -> WaterfallStructure:
    """90/10 LP/GP, 8% pref, full catch-up, 80/20 then 70/30 then 50/50."""
    return WaterfallStructure(
        lp_equity=Decimal("900000"),
        gp_equity=Decimal("100000"),
        preferred_return=Decimal("0.08"),
        promote_tiers=(
            PromoteTier(Decimal("0.12"), Decimal("0.80"), Decimal("0.20")),
            PromoteTier(Decimal("0.15"), Decimal("0.70"), Decimal("0.30")),
            PromoteTier(None, Decimal("0.50"), Decimal("0.50")),
        ),
        gp_catch_up=True,
        catch_up_percent=Decimal("1"),
    )


@pytest.fixture
def deal_cash_flows() -> list[Decimal]:
    """Five years of distributable cash; sale in year 5."""
    return [
        Decimal("80000"),
        Decimal("85000"),
        Decimal("90000"),
        Decimal("95000"),
        Decimal("1600000"),
    ]


@pytest.fixture(scope="session")
def client() -> TestClient:
    return TestClient(app)
