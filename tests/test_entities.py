#!/usr/bin/env python3
"""Tests for entity classes, enums and row mapping."""

from myventi import FuelEntry, ServiceRecord, Vehicle, VehicleStatus, VehicleType
from myventi.rows import fuel_entry_from_row, service_record_from_row, utc_now, vehicle_from_row


class TestEnums:
    """Tests for VehicleType and VehicleStatus values."""

    def test_values_match_stored_strings(self):
        """Enum values are the strings written to the store."""
        assert [t.value for t in VehicleType] == ["gas", "electric", "hybrid"]
        assert [s.value for s in VehicleStatus] == ["active", "inactive"]


class TestVehicle:
    """Tests for Vehicle properties."""

    def test_display_name(self):
        """Display name joins year, make and model."""
        vehicle = Vehicle("v1", "Daily", 2020, "Toyota", "Camry", VehicleType.GAS)
        assert vehicle.display_name == "2020 Toyota Camry"

    def test_defaults_to_active(self):
        """A new vehicle is active."""
        vehicle = Vehicle("v1", "Daily", 2020, "Toyota", "Camry", VehicleType.GAS)
        assert vehicle.status == VehicleStatus.ACTIVE
        assert vehicle.is_active

    def test_is_electric(self):
        """Electric vehicles report is_electric."""
        vehicle = Vehicle("v1", "Leaf", 2021, "Nissan", "Leaf", VehicleType.ELECTRIC)
        assert vehicle.is_electric


class TestFuelEntry:
    """Tests for FuelEntry properties."""

    def test_sort_key_orders_by_date_then_mileage(self):
        """Entries sort by date, then odometer."""
        a = FuelEntry("a", "v", "2024-01-01", 40, 10, 4, 1500)
        b = FuelEntry("b", "v", "2024-01-01", 40, 10, 4, 1200)
        c = FuelEntry("c", "v", "2023-12-31", 40, 10, 4, 9000)
        assert [e.id for e in sorted([a, b, c], key=lambda e: e.sort_key)] == ["c", "b", "a"]

    def test_has_efficiency(self):
        """has_efficiency follows whether mpg is set."""
        assert not FuelEntry("a", "v", "2024-01-01", 40, 10, 4, 1500).has_efficiency
        assert FuelEntry("a", "v", "2024-01-01", 40, 10, 4, 1500, mpg=30.0).has_efficiency


class TestRowMapping:
    """Tests for the row -> entity helpers."""

    def test_vehicle_from_row(self):
        """Row values are coerced and a null status means active."""
        row = {
            "id": "v1", "name": "Daily", "year": "2020", "make": "Toyota",
            "model": "Camry", "type": "hybrid", "status": None,
        }
        vehicle = vehicle_from_row(row)
        assert vehicle.year == 2020
        assert vehicle.type == VehicleType.HYBRID
        assert vehicle.status == VehicleStatus.ACTIVE

    def test_fuel_entry_keeps_null_mpg(self):
        """A null mpg stays None rather than zero."""
        row = {
            "id": "f1", "vehicle_id": "v1", "date": "2024-01-01", "amount": 40,
            "quantity": 10, "price_per_unit": 4, "mileage": 1000, "mpg": None,
        }
        entry = fuel_entry_from_row(row)
        assert entry.mpg is None
        assert isinstance(entry.amount, float)

    def test_service_record_completed_flag(self):
        """Stored 1/0 flags become booleans."""
        row = {
            "id": "s1", "vehicle_id": "v1", "date": "2024-01-01", "type": "Oil",
            "description": "Oil", "cost": 10, "mileage": 1000, "is_completed": 0,
        }
        record = service_record_from_row(row)
        assert isinstance(record, ServiceRecord)
        assert record.is_completed is False
        row["is_completed"] = None
        assert service_record_from_row(row).is_completed is True

    def test_utc_now_is_iso(self):
        """Timestamps are ISO-8601 in UTC."""
        assert "T" in utc_now()
        assert utc_now().endswith("+00:00")
