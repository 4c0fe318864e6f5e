from decimal import Decimal

import pytest

from cre_underwriting.engine.sector_config import (
    SECTOR_CATALOG,
    Sector,
    detect_sector,
    get_sector_config,
    list_sectors,
    primary_metrics,
    required_inputs,
    validate_against_benchmark,
)
from cre_underwriting.engine.sectors import SECTOR_METRIC_FUNCTIONS, calculate_sector_metrics
from cre_underwriting.models.inputs import ModelInputs


class TestDetectSector:
    @pytest.mark.parametrize("property_type,expected", [
        ("Multifamily Garden", Sector.MULTIFAMILY),
        ("Cold Storage Warehouse", Sector.COLD_STORAGE),
        ("Class A Office", Sector.OFFICE),
        ("Office / Lab Conversion", Sector.LIFE_SCIENCES),
        ("Medical Office Building", Sector.MEDICAL_OFFICE),
        ("Suburban MOB", Sector.MEDICAL_OFFICE),
        ("Bulk Distribution Warehouse", Sector.INDUSTRIAL),
        ("Flex Industrial", Sector.FLEX_RD),
        ("NNN Pharmacy", Sector.NET_LEASE),
        ("Ground Lease - Retail Pad", Sector.GROUND_LEASE),
        ("Luxury Condo Tower", Sector.CONDOMINIUM),
        ("Select Service Hotel", Sector.HOTEL),
        ("Self Storage", Sector.SELF_STORAGE),
        ("Assisted Living", Sector.SENIORS_HOUSING),
        ("Purpose-Built Student", Sector.STUDENT_HOUSING),
        ("Manufactured Home Community", Sector.MANUFACTURED_HOUSING),
        ("Ground-Up", Sector.DEVELOPMENT),
        ("Residential", Sector.MULTIFAMILY),
    ])
    def test_keyword_priority(self, property_type, expected):
        assert detect_sector(property_type) == expected

    def test_mob_is_a_whole_word(self):
        assert detect_sector("Mobile Home Park") == Sector.MANUFACTURED_HOUSING

    def test_asset_type_is_considered(self):
        assert detect_sector(None, "Apartment") == Sector.MULTIFAMILY

    def test_no_match(self):
        assert detect_sector("Vacant Parcel") is None
        assert detect_sector(None) is None


class TestSectorCatalog:
    def test_every_sector_has_a_config(self):
        assert set(SECTOR_CATALOG) == set(Sector)

    def test_every_sector_has_a_metric_function(self):
        assert set(SECTOR_METRIC_FUNCTIONS) == set(Sector)

    def test_list_sectors(self):
        rows = list_sectors()
        assert len(rows) == len(Sector)
        assert rows[0]["code"] == "MULTIFAMILY"
        assert "Garden" in rows[0]["subsectors"]

    def test_lookup_by_string(self):
        assert get_sector_config("HOTEL").code == Sector.HOTEL
        assert get_sector_config("NOT_A_SECTOR") is None

    def test_required_inputs(self):
        keys = [field.key for field in required_inputs(Sector.MULTIFAMILY)]
        assert keys == ["unit_count"]
        assert required_inputs("NOT_A_SECTOR") == ()

    def test_primary_metrics_default(self):
        assert "price_per_key" in primary_metrics(Sector.HOTEL)
        assert primary_metrics("NOT_A_SECTOR") == ("irr", "cash_on_cash", "cap_rate", "dscr")


class TestBenchmarkValidation:
    def test_low_dscr_warns(self):
        check = validate_against_benchmark(Sector.MULTIFAMILY, "dscr", Decimal("1.10"))
        assert check.warning == "Below typical range (min: 1.2)"
        assert not check.within_range

    def test_healthy_dscr_passes(self):
        check = validate_against_benchmark(Sector.MULTIFAMILY, "dscr", Decimal("1.30"))
        assert check.warning is None
        assert check.within_range

    def test_above_max(self):
        check = validate_against_benchmark(Sector.MULTIFAMILY, "cap_rate", Decimal("0.08"))
        assert check.warning == "Above typical range (max: 0.07)"

    def test_unknown_metric_passes(self):
        check = validate_against_benchmark(Sector.MULTIFAMILY, "sparkle", Decimal("99"))
        assert check.warning is None
        assert check.benchmark is None

    def test_open_ended_benchmark_never_warns(self):
        check = validate_against_benchmark(Sector.MULTIFAMILY, "price_per_unit", Decimal("1000000"))
        assert check.warning is None


class TestCalculateSectorMetrics:
    def test_multifamily_from_model_inputs(self):
        inputs = ModelInputs.from_flat({
            "property_type": "Multifamily Garden",
            "purchase_price": "24000000",
            "unit_count": 120,
            "avg_rent_per_unit": "1800",
            "avg_unit_size": "900",
        })
        result = calculate_sector_metrics(inputs)
        assert result.sector == Sector.MULTIFAMILY
        assert result.metrics["price_per_unit"] == Decimal("200000.00")
        assert result.metrics["gross_potential_rent"] == Decimal("2592000.00")
        assert result.metrics["rent_per_sf"] == Decimal("2.0000")
        assert "price_per_unit" in result.primary_metrics

    def test_explicit_sector_wins(self):
        result = calculate_sector_metrics({"property_type": "Office", "room_count": 100}, Sector.HOTEL)
        assert result.sector == Sector.HOTEL

    def test_sector_string_is_case_insensitive(self):
        assert calculate_sector_metrics({}, "hotel").sector == Sector.HOTEL

    def test_falls_back_to_multifamily(self):
        result = calculate_sector_metrics({"property_type": "Vacant Parcel"})
        assert result.sector == Sector.MULTIFAMILY
        assert result.metrics["occupancy_rate"] == Decimal("0.9500")

    def test_unknown_sector_raises(self):
        with pytest.raises(ValueError):
            calculate_sector_metrics({}, "SPACEPORT")

    def test_hotel_revpar_and_margins(self):
        result = calculate_sector_metrics({
            "property_type": "Hotel",
            "room_count": 200,
            "adr": "180",
            "occupancy_rate": "0.70",
            "room_revenue": "9198000",
            "purchase_price": "40000000",
        })
        m = result.metrics
        assert m["revpar"] == Decimal("126.00")
        assert m["gop_margin"] == Decimal("0.4200")
        assert m["price_per_key"] == Decimal("200000.00")
        assert m["ff_and_e_percent"] == Decimal("0.0400")
        assert result.warnings == []

    def test_cold_storage_warns_on_old_refrigeration(self):
        result = calculate_sector_metrics({
            "property_type": "Cold Storage Warehouse",
            "total_sf": "200000",
            "freezer_sf": "120000",
            "cooler_sf": "80000",
            "avg_rent_per_sf": "16",
            "refrigeration_age": "27",
        })
        m = result.metrics
        assert result.sector == Sector.COLD_STORAGE
        assert m["rent_premium"] == Decimal("2.0000")
        assert m["refrigeration_remaining_life"] == Decimal("0")
        assert m["refrigeration_risk"].startswith("HIGH")
        assert [w.metric for w in result.warnings] == ["refrigeration_age"]
        assert result.warnings[0].warning == "Above typical range (max: 25)"

    def test_self_storage_ecri(self):
        result = calculate_sector_metrics({
            "property_type": "Self Storage",
            "net_rentable_sf": "60000",
            "avg_rent_per_sf": "15",
            "street_rate": "17",
        })
        assert result.metrics["ecri_opportunity"] == "HIGH"
        assert result.metrics["gross_potential_rent"] == Decimal("900000.00")

    def test_development_yield_on_cost(self):
        result = calculate_sector_metrics({
            "land_cost": "2000000",
            "hard_costs": "10000000",
            "soft_costs": "2500000",
            "stabilized_noi": "1000000",
            "market_cap_rate": "0.055",
        }, Sector.DEVELOPMENT)
        m = result.metrics
        # 2M + 10M + 2.5M + 5% contingency on 12.5M
        assert m["total_budget"] == Decimal("15125000.00")
        assert m["yield_on_cost"] == Decimal("0.0661")
        assert m["development_spread"] == Decimal("0.0111")

    def test_development_without_hard_costs_is_empty(self):
        assert calculate_sector_metrics({"land_cost": "1000000"}, Sector.DEVELOPMENT).metrics == {}

    def test_bad_numbers_are_ignored(self):
        result = calculate_sector_metrics({"unit_count": "lots", "purchase_price": "1000000"}, Sector.MULTIFAMILY)
        assert "price_per_unit" not in result.metrics

    @pytest.mark.parametrize("sector", list(Sector))
    def test_every_sector_runs_on_empty_inputs(self, sector):
        result = calculate_sector_metrics({}, sector)
        assert result.sector == sector
        assert result.sector_name == SECTOR_CATALOG[sector].name
