from decimal import Decimal

import pytest


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


class TestUnderwritingRoutes:
    def test_underwrite(self, client, deal_payload):
        r = client.post("/api/v1/underwriting", json=deal_payload)
        assert r.status_code == 200
        body = r.json()
        assert Decimal(body["noi"]) == Decimal("550000")
        assert Decimal(body["debt_metrics"]["ltv"]) == Decimal("0.6")
        assert body["warnings"] == []

    def test_empty_body_computes_nothing(self, client):
        r = client.post("/api/v1/underwriting", json={})
        assert r.status_code == 200
        assert r.json()["returns"] is None

    def test_projection_years(self, client, deal_payload):
        r = client.post("/api/v1/underwriting/projection", json={**deal_payload, "years": 3})
        assert r.status_code == 200
        body = r.json()
        assert [y["year"] for y in body["years"]] == [1, 2, 3]
        assert body["exit"]["year"] == 3
        flows = [Decimal(f) for f in body["irr_cash_flows"]]
        assert len(flows) == 4
        assert flows[0] == -Decimal(body["totals"]["equity_invested"])

    def test_projection_rejects_zero_years(self, client, deal_payload):
        r = client.post("/api/v1/underwriting/projection", json={**deal_payload, "years": 0})
        assert r.status_code == 422

    def test_projection_rejects_negative_hold(self, client, deal_payload):
        r = client.post("/api/v1/underwriting/projection", json={**deal_payload, "hold_period_years": -2})
        assert r.status_code == 422

    def test_rejects_negative_amortization(self, client, deal_payload):
        r = client.post("/api/v1/underwriting", json={**deal_payload, "amortization_years": -1})
        assert r.status_code == 422

    def test_returns_include_sector(self, client, deal_payload):
        r = client.post("/api/v1/underwriting/returns", json=deal_payload)
        assert r.status_code == 200
        assert r.json()["sector"] == "MULTIFAMILY"


WATERFALL_BODY = {
    "cash_flows": ["80000", "85000", "90000", "95000", "1600000"],
    "lp_equity": "900000",
    "gp_equity": "100000",
}


class TestWaterfallRoutes:
    def test_default_structure(self, client):
        r = client.post("/api/v1/waterfall", json=WATERFALL_BODY)
        assert r.status_code == 200
        body = r.json()
        assert len(body["periods"]) == 5
        summary = body["summary"]
        assert summary["lp_total_distributed"] + summary["gp_total_distributed"] == pytest.approx(1950000, abs=0.02)
        assert body["structure"]["preferred_return"] == 0.08

    def test_template_with_override(self, client):
        r = client.post("/api/v1/waterfall", json={
            **WATERFALL_BODY, "template": "value_add", "preferred_return": "0.09",
        })
        assert r.status_code == 200
        assert r.json()["structure"]["preferred_return"] == 0.09

    def test_unknown_template(self, client):
        r = client.post("/api/v1/waterfall", json={**WATERFALL_BODY, "template": "nope"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Unknown waterfall template: nope"

    def test_bad_hurdle_type(self, client):
        r = client.post("/api/v1/waterfall", json={**WATERFALL_BODY, "hurdle_type": "vibes"})
        assert r.status_code == 400

    def test_invalid_structure(self, client):
        r = client.post("/api/v1/waterfall", json={**WATERFALL_BODY, "lp_equity": "0"})
        assert r.status_code == 400
        assert r.json()["detail"] == "LP equity must be greater than 0"

    def test_templates(self, client):
        r = client.get("/api/v1/waterfall/templates")
        assert r.status_code == 200
        codes = [t["code"] for t in r.json()]
        assert "VALUE_ADD" in codes
        assert "INSTITUTIONAL" in codes


class TestSectorRoutes:
    def test_list(self, client):
        r = client.get("/api/v1/sectors")
        assert r.status_code == 200
        assert r.json()[0]["code"] == "MULTIFAMILY"

    def test_detail(self, client):
        r = client.get("/api/v1/sectors/hotel")
        assert r.status_code == 200
        assert r.json()["code"] == "HOTEL"

    def test_unknown_sector_is_404(self, client):
        r = client.get("/api/v1/sectors/spaceport")
        assert r.status_code == 404

    def test_metrics(self, client):
        r = client.post("/api/v1/sectors/metrics", json={
            "property_type": "Hotel",
            "purchase_price": "40000000",
            "sector_inputs": {"room_count": 200, "adr": "180", "occupancy_rate": "0.70"},
        })
        assert r.status_code == 200
        body = r.json()
        assert body["sector"] == "HOTEL"
        assert float(body["metrics"]["revpar"]) == 126

    def test_metrics_unknown_sector(self, client):
        r = client.post("/api/v1/sectors/metrics", json={"sector": "spaceport"})
        assert r.status_code == 400


class TestSensitivityRoutes:
    def test_matrix(self, client, deal_payload):
        r = client.post("/api/v1/sensitivity/matrix", json={
            "deal": deal_payload, "x_field": "exit_cap_rate", "y_field": "hold_period_years",
        })
        assert r.status_code == 200
        body = r.json()
        assert len(body["matrix"]) == 8
        assert len(body["matrix"][0]) == 7

    def test_matrix_too_large(self, client, deal_payload):
        r = client.post("/api/v1/sensitivity/matrix", json={
            "deal": deal_payload, "x_field": "exit_cap_rate", "y_field": "vacancy_rate", "max_points": 10,
        })
        assert r.status_code == 400
        assert r.json()["detail"].startswith("Matrix too large")

    def test_bad_field(self, client, deal_payload):
        r = client.post("/api/v1/sensitivity/matrix", json={
            "deal": deal_payload, "x_field": "color", "y_field": "vacancy_rate",
        })
        assert r.status_code == 400

    def test_hold_period(self, client, deal_payload):
        r = client.post("/api/v1/sensitivity/hold-period", json={"deal": deal_payload, "max_years": 3})
        assert r.status_code == 200
        assert len(r.json()["years"]) == 3

    def test_quick(self, client, deal_payload):
        r = client.post("/api/v1/sensitivity/quick", json=deal_payload)
        assert r.status_code == 200
        assert len(r.json()["sensitivities"]) == 8

    def test_options(self, client):
        r = client.get("/api/v1/sensitivity/options")
        assert r.status_code == 200
        assert "fields" in r.json()

    def test_breakeven(self, client, deal_payload):
        r = client.post("/api/v1/sensitivity/breakeven", json={
            "deal": deal_payload, "field": "interest_rate", "metric": "dscr",
            "target": "1.25", "low": "0.05", "high": "0.08",
        })
        assert r.status_code == 200
        assert 0.06 < r.json()["value"] < 0.065


class TestScenarioRoutes:
    def test_default_scenarios(self, client, deal_payload):
        r = client.post("/api/v1/scenarios", json={"deal": deal_payload})
        assert r.status_code == 200
        body = r.json()
        assert [s["key"] for s in body["scenarios"]] == ["base_case", "downside", "upside"]
        assert body["comparison"]["scenarios"][0] == "Base Case"

    def test_unknown_scenario(self, client, deal_payload):
        r = client.post("/api/v1/scenarios", json={"deal": deal_payload, "scenarios": ["moonshot"]})
        assert r.status_code == 400
        assert r.json()["detail"] == "Unknown scenario: moonshot"

    def test_unknown_sector(self, client, deal_payload):
        r = client.post("/api/v1/scenarios", json={"deal": deal_payload, "sector": "spaceport"})
        assert r.status_code == 400


class TestDebtRoutes:
    def test_sizing(self, client):
        r = client.post("/api/v1/debt/sizing", json={
            "noi": "550000", "interest_rate": "0.06", "property_value": "10000000",
        })
        assert r.status_code == 200
        body = r.json()
        assert body["binding"] == "DSCR"
        assert len(body["stress_test"]["tests"]) == 9

    def test_sizing_needs_value(self, client):
        r = client.post("/api/v1/debt/sizing", json={"noi": "550000", "interest_rate": "0.06"})
        assert r.status_code == 400
        assert r.json()["detail"] == "Property value or purchase price is required"

    def test_compare(self, client):
        r = client.post("/api/v1/debt/compare", json={
            "noi": "550000", "interest_rate": "0.06", "property_value": "10000000", "property_type": "hotel",
        })
        assert r.status_code == 200
        assert r.json()["recommended"]["eligible"] is True

    def test_compare_unknown_type(self, client):
        r = client.post("/api/v1/debt/compare", json={
            "noi": "550000", "interest_rate": "0.06", "property_value": "10000000", "property_type": "castle",
        })
        assert r.status_code == 400

    def test_profiles(self, client):
        r = client.get("/api/v1/debt/profiles")
        assert r.status_code == 200
        assert {p["code"] for p in r.json()} >= {"AGENCY", "CMBS", "BRIDGE"}
