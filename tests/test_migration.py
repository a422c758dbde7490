#!/usr/bin/env python3
"""Tests for the one-shot legacy migration."""

import json
import logging

import pytest

from myventi import MemoryKeyValueStore, MigrationError, NotFoundError, Select, validate_snapshot
from myventi.migration import BACKUP_KEY, LEGACY_KEYS

VEHICLES = [
    {
        "id": "veh-1",
        "name": "Daily",
        "year": 2019,
        "make": "Honda",
        "model": "Civic",
        "type": "gas",
        "status": "active",
        "createdAt": "2023-05-01T10:00:00.000Z",
        "updatedAt": "2023-06-01T10:00:00.000Z",
    }
]

FUEL = [
    {
        "id": "fuel-2",
        "vehicleId": "veh-1",
        "date": "2024-01-20",
        "amount": 40,
        "quantity": 10,
        "pricePerUnit": 4,
        "mileage": 1300,
        "mpg": 0,
        "fuelStation": "Shell",
    },
    {
        "id": "fuel-1",
        "vehicleId": "veh-1",
        "date": "2024-01-10",
        "amount": 40,
        "quantity": 10,
        "pricePerUnit": 4,
        "mileage": 1000,
    },
]

SERVICES = [
    {
        "id": "svc-1",
        "vehicleId": "veh-1",
        "date": "2024-01-15",
        "type": "Oil Change",
        "description": "Oil and filter",
        "cost": 60,
        "mileage": 1150,
        "isCompleted": False,
    }
]


def legacy_store(vehicles=VEHICLES, fuel=FUEL, services=SERVICES, region="US", theme="dark"):
    items = {
        LEGACY_KEYS["vehicles"]: json.dumps(vehicles),
        LEGACY_KEYS["fuelEntries"]: json.dumps(fuel),
        LEGACY_KEYS["serviceRecords"]: json.dumps(services),
    }
    if region:
        items[LEGACY_KEYS["region"]] = region
    if theme:
        items[LEGACY_KEYS["themeMode"]] = theme
    return MemoryKeyValueStore(items)


def migration_rows(ctx):
    return [int(r["success"]) for r in ctx.store.execute(Select("migration_log")).rows]


class TestValidateSnapshot:
    """Tests for validate_snapshot."""

    def test_valid(self):
        """A complete snapshot has no errors."""
        snapshot = {"vehicles": VEHICLES, "fuelEntries": FUEL, "serviceRecords": SERVICES}
        assert validate_snapshot(snapshot) == []

    def test_missing_list(self):
        """A missing list is reported at the root."""
        errors = validate_snapshot({"vehicles": [], "fuelEntries": []})
        assert errors == ["(root): 'serviceRecords' is a required property"]

    def test_bad_item(self):
        """An invalid item yields one error."""
        vehicle = dict(VEHICLES[0], type="diesel")
        errors = validate_snapshot({"vehicles": [vehicle], "fuelEntries": [], "serviceRecords": []})
        assert len(errors) == 1
        assert errors[0].startswith("vehicles.0.type:")


class TestMigrate:
    """Tests for MigrationImporter.migrate."""

    def test_imports_everything(self, ctx):
        """Vehicles, fuel, services and settings are all imported."""
        importer = ctx.migration_importer(legacy_store())
        assert importer.migrate() is True

        vehicle = ctx.vehicles.get_by_id("veh-1")
        assert vehicle.created_at == "2023-05-01T10:00:00.000Z"
        assert vehicle.updated_at == "2023-06-01T10:00:00.000Z"
        assert ctx.fuel.get_by_id("fuel-1").mpg is None
        assert ctx.fuel.get_by_id("fuel-2").mpg == 30.0
        assert ctx.fuel.get_by_id("fuel-2").fuel_station == "Shell"
        assert ctx.services.get_by_id("svc-1").is_completed is False
        assert ctx.settings.get("region") == "US"
        assert ctx.settings.get("theme_mode") == "dark"
        assert migration_rows(ctx) == [1]

    def test_runs_once(self, ctx):
        """A second run is a no-op once the log shows success."""
        importer = ctx.migration_importer(legacy_store())
        importer.migrate()
        assert importer.is_migrated()
        assert importer.migrate() is False
        assert len(ctx.vehicles.get_all()) == 1

    def test_backup_written(self, ctx):
        """The legacy data is backed up before import."""
        legacy = legacy_store()
        ctx.migration_importer(legacy).migrate()
        backup = json.loads(legacy.get_item(BACKUP_KEY))
        assert [v["id"] for v in backup["vehicles"]] == ["veh-1"]
        assert backup["region"] == "US"

    def test_empty_legacy_store(self, ctx):
        """An empty legacy store migrates to nothing."""
        assert ctx.migration_importer(MemoryKeyValueStore()).migrate() is True
        assert ctx.vehicles.get_all() == []
        assert ctx.settings.get("region") == "ID"

    def test_invalid_snapshot(self, ctx):
        """An invalid snapshot stops the import."""
        vehicle = {k: v for k, v in VEHICLES[0].items() if k != "make"}
        importer = ctx.migration_importer(legacy_store(vehicles=[vehicle]))
        with pytest.raises(MigrationError, match="Invalid backup data"):
            importer.migrate()
        assert not importer.is_migrated()
        assert migration_rows(ctx) == [0]

    def test_write_failure_rolls_back(self, ctx):
        """A failed write leaves nothing imported."""
        orphan = dict(FUEL[1], id="fuel-9", vehicleId="missing")
        importer = ctx.migration_importer(legacy_store(fuel=FUEL + [orphan]))
        with pytest.raises(MigrationError) as excinfo:
            importer.migrate()
        assert isinstance(excinfo.value.__cause__, NotFoundError)
        assert ctx.vehicles.get_all() == []
        assert ctx.fuel.get_all() == []
        assert ctx.settings.get("region") == "ID"
        assert migration_rows(ctx) == [0]

    def test_retry_after_failure(self, ctx):
        """A failed run is not logged as done, so a retry proceeds."""
        bad = dict(VEHICLES[0], year=1800)
        with pytest.raises(MigrationError):
            ctx.migration_importer(legacy_store(vehicles=[bad])).migrate()
        assert ctx.migration_importer(legacy_store()).migrate() is True
        assert migration_rows(ctx) == [0, 1]


class TestBackupAndRollback:
    """Tests for restore_from_backup, rollback and clear_backup."""

    def test_rollback_restores_legacy_keys(self, ctx):
        """Rollback puts the legacy keys back."""
        legacy = legacy_store()
        importer = ctx.migration_importer(legacy)
        importer.migrate()
        legacy.set_item(LEGACY_KEYS["vehicles"], "[]")
        legacy.remove_item(LEGACY_KEYS["region"])

        importer.rollback()

        assert json.loads(legacy.get_item(LEGACY_KEYS["vehicles"]))[0]["id"] == "veh-1"
        assert legacy.get_item(LEGACY_KEYS["region"]) == "US"

    def test_rollback_closes_embedded_store(self, ctx):
        """Rollback closes the store."""
        importer = ctx.migration_importer(legacy_store())
        importer.migrate()
        importer.rollback()
        assert not ctx.store.is_embedded_engine_active()

    def test_rollback_without_backup(self, ctx):
        """Rollback without a backup fails loudly."""
        with pytest.raises(MigrationError, match="No backup available for rollback"):
            ctx.migration_importer(MemoryKeyValueStore()).rollback()

    def test_restore_without_backup(self, ctx):
        """Restore without a backup fails loudly."""
        with pytest.raises(MigrationError, match="No backup found"):
            ctx.migration_importer(MemoryKeyValueStore()).restore_from_backup()

    def test_clear_backup(self, ctx, caplog):
        """clear_backup removes the stored backup."""
        legacy = legacy_store()
        importer = ctx.migration_importer(legacy)
        importer.migrate()
        importer.clear_backup()
        assert legacy.get_item(BACKUP_KEY) is None
        with caplog.at_level(logging.WARNING, logger="myventi.migration"):
            importer.clear_backup()
        assert "No migration backup to clear" in caplog.text
