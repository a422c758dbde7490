#!/usr/bin/env python3
"""Tests for VehicleService."""

import pytest

from conftest import fuel_form, service_form, vehicle_form
from myventi import NotFoundError, Select, ValidationError, VehicleStatus, VehicleType


class TestCreate:
    """Tests for VehicleService.create."""

    def test_assigns_id_and_defaults(self, ctx):
        """A new vehicle gets an id, active status and matching timestamps."""
        vehicle = ctx.vehicles.create(vehicle_form(type="hybrid"))
        assert vehicle.id
        assert vehicle.type == VehicleType.HYBRID
        assert vehicle.status == VehicleStatus.ACTIVE
        assert vehicle.created_at == vehicle.updated_at
        assert ctx.vehicles.get_by_id(vehicle.id).name == "Daily"

    def test_keeps_imported_id_and_timestamps(self, ctx):
        """Imported ids and timestamps are kept."""
        vehicle = ctx.vehicles.create(
            vehicle_form(), entity_id="legacy-1", created_at="2023-01-01T00:00:00.000Z"
        )
        stored = ctx.vehicles.get_by_id("legacy-1")
        assert vehicle.id == "legacy-1"
        assert stored.created_at == "2023-01-01T00:00:00.000Z"
        assert stored.updated_at == "2023-01-01T00:00:00.000Z"

    def test_invalid_form_writes_nothing(self, ctx):
        """An invalid form writes nothing."""
        with pytest.raises(ValidationError):
            ctx.vehicles.create(vehicle_form(year=1800))
        assert ctx.vehicles.get_all() == []


class TestRead:
    """Tests for the read operations."""

    def test_get_all_newest_first(self, ctx):
        """Vehicles are listed newest first."""
        ctx.vehicles.create(vehicle_form(name="Old"), created_at="2023-01-01T00:00:00.000Z")
        ctx.vehicles.create(vehicle_form(name="New"), created_at="2024-01-01T00:00:00.000Z")
        assert [v.name for v in ctx.vehicles.get_all()] == ["New", "Old"]

    def test_get_active(self, ctx):
        """Inactive vehicles are left out of get_active."""
        ctx.vehicles.create(vehicle_form(name="Daily"))
        ctx.vehicles.create(vehicle_form(name="Sold", status="inactive"))
        assert [v.name for v in ctx.vehicles.get_active()] == ["Daily"]

    def test_get_by_id_missing(self, ctx):
        """Missing ids give None, or NotFoundError from require."""
        assert ctx.vehicles.get_by_id("nope") is None
        with pytest.raises(NotFoundError, match="Vehicle 'nope' not found"):
            ctx.vehicles.require("nope")


class TestUpdate:
    """Tests for VehicleService.update."""

    def test_merges_given_fields(self, ctx, car):
        """Only the given fields change."""
        updated = ctx.vehicles.update(car.id, {"name": "Weekend", "status": "inactive"})
        assert updated.name == "Weekend"
        assert updated.status == VehicleStatus.INACTIVE
        assert updated.make == car.make
        assert updated.created_at == car.created_at

    def test_missing_vehicle(self, ctx):
        """Updating a missing vehicle raises NotFoundError."""
        with pytest.raises(NotFoundError):
            ctx.vehicles.update("nope", {"name": "Weekend"})

    def test_invalid_change(self, ctx, car):
        """An invalid change writes nothing."""
        with pytest.raises(ValidationError):
            ctx.vehicles.update(car.id, {"year": "soon"})
        assert ctx.vehicles.get_by_id(car.id).year == 2020

    def test_change_to_electric_clears_efficiency(self, ctx, car):
        """Switching to electric drops the efficiency of existing entries."""
        ctx.fuel.create(fuel_form(car.id))
        later = ctx.fuel.create(fuel_form(car.id, date="2024-02-10", mileage=1300))
        assert later.mpg == 30.0

        ctx.vehicles.update(car.id, {"type": "electric"})

        assert [e.mpg for e in ctx.fuel.get_by_vehicle_id(car.id)] == [None, None]

    def test_change_from_electric_computes_efficiency(self, ctx, ev):
        """Switching away from electric derives efficiency from the history."""
        ctx.fuel.create(fuel_form(ev.id))
        later = ctx.fuel.create(fuel_form(ev.id, date="2024-02-10", mileage=1300))
        assert later.mpg is None

        updated = ctx.vehicles.update(ev.id, {"type": "gas"})

        assert updated.type == VehicleType.GAS
        assert ctx.fuel.get_by_id(later.id).mpg == 30.0

    def test_same_type_leaves_entries_alone(self, ctx, car):
        """Changes that keep the type do not rewrite fuel entries."""
        entry = ctx.fuel.create(fuel_form(car.id))
        ctx.vehicles.update(car.id, {"name": "Weekend", "type": "gas"})
        assert ctx.fuel.get_by_id(entry.id).updated_at == entry.updated_at


class TestDelete:
    """Deleting a vehicle removes its dependent records."""

    def test_cascades_to_fuel_and_services(self, ctx, car):
        """Deleting a vehicle removes only its own records."""
        other = ctx.vehicles.create(vehicle_form(name="Other"))
        ctx.fuel.create(fuel_form(car.id))
        ctx.fuel.create(fuel_form(car.id, date="2024-01-20", mileage=1300))
        ctx.fuel.create(fuel_form(other.id))
        ctx.services.create(service_form(car.id))

        ctx.vehicles.delete(car.id)

        assert ctx.vehicles.get_by_id(car.id) is None
        fuel_rows = ctx.store.execute(Select("fuel_entries")).rows
        service_rows = ctx.store.execute(Select("service_records")).rows
        assert [r["vehicle_id"] for r in fuel_rows] == [other.id]
        assert service_rows == []

    def test_missing_vehicle(self, ctx):
        """Deleting a missing vehicle raises NotFoundError."""
        with pytest.raises(NotFoundError):
            ctx.vehicles.delete("nope")
