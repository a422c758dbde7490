#!/usr/bin/env python3
"""Tests for regional configuration and fuel form normalization."""

import pytest

from myventi import REGIONS, get_region, normalize_fuel_form
from myventi.region import display_quantity
from myventi.units import EfficiencyUnit
from myventi.validation import reconcile_amount


class TestGetRegion:
    """Tests for get_region."""

    def test_case_insensitive(self):
        """Region codes are matched case-insensitively."""
        assert get_region("us") is REGIONS["US"]
        assert get_region("Id") is REGIONS["ID"]

    def test_unknown_raises(self):
        """Unknown codes raise ValueError."""
        with pytest.raises(ValueError, match="Unknown region"):
            get_region("XX")

    def test_region_properties(self):
        """Each region carries its own units and labels."""
        us, indonesia = REGIONS["US"], REGIONS["ID"]
        assert not us.is_metric
        assert us.volume_abbreviation == "gal"
        assert indonesia.is_metric
        assert indonesia.distance_abbreviation == "km"
        assert indonesia.currency_symbol == "Rp"
        assert indonesia.efficiency_unit == EfficiencyUnit.KM_PER_LITER


class TestDisplayQuantity:
    """Tests for display_quantity."""

    def test_us_keeps_gallons(self):
        """US quantities stay in gallons."""
        assert display_quantity(12.345, REGIONS["US"]) == 12.35

    def test_metric_shows_liters(self):
        """Metric regions show liters."""
        assert display_quantity(12, REGIONS["ID"]) == 45.42


class TestNormalizeFuelForm:
    """Tests for normalize_fuel_form."""

    def test_us_form_unchanged(self):
        """US forms only lose the electric flag."""
        form = {"quantity": 10, "price_per_unit": 4, "mileage": 1000, "electric": False}
        assert normalize_fuel_form(form, REGIONS["US"]) == {
            "quantity": 10,
            "price_per_unit": 4,
            "mileage": 1000,
        }

    def test_metric_converts_quantity_price_and_odometer(self):
        """Liters, price per liter and kilometers are converted to storage units."""
        form = {"quantity": 40, "price_per_unit": 10000, "amount": 400000, "mileage": 1000}
        result = normalize_fuel_form(form, REGIONS["ID"])
        assert result["quantity"] == pytest.approx(10.56688)
        assert result["price_per_unit"] == pytest.approx(37854.1, rel=1e-5)
        assert result["mileage"] == 621
        assert result["amount"] == 400000

    def test_metric_conversion_keeps_amount_consistent(self):
        """Large currency amounts still reconcile after conversion."""
        form = {"quantity": 40, "price_per_unit": 10000, "amount": 400000, "mileage": 1000}
        result = normalize_fuel_form(form, REGIONS["ID"])
        amount, _, _ = reconcile_amount(
            result["amount"], result["quantity"], result["price_per_unit"]
        )
        assert amount == 400000

    def test_electric_quantity_untouched(self):
        """kWh quantities are not converted."""
        form = {"quantity": 30, "price_per_unit": 2500, "mileage": 160, "electric": True}
        result = normalize_fuel_form(form, REGIONS["ID"])
        assert result["quantity"] == 30
        assert result["price_per_unit"] == 2500
        assert result["mileage"] == 99
        assert "electric" not in result

    def test_input_not_modified(self):
        """The caller's form is left as it was."""
        form = {"quantity": 40, "mileage": 1000}
        normalize_fuel_form(form, REGIONS["ID"])
        assert form == {"quantity": 40, "mileage": 1000}
