"""
One-shot import from the legacy key-value store.

migrate() checks the migration log, backs the legacy data up, validates the
snapshot, writes everything through the entity services in one transaction,
verifies the result and logs success. A failure logs an unsuccessful run
and re-raises, so the import can simply be retried.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from jsonschema import Draft7Validator

from .commands import Eq, Insert, Select
from .errors import MigrationError, VentiError
from .fuel_service import FuelService
from .rows import utc_now
from .service_record_service import ServiceRecordService
from .settings_service import SettingsService
from .store import RecordStore
from .vehicle_service import VehicleService

_logger = logging.getLogger(__name__)

MIGRATION_VERSION = "1.0.0"
BACKUP_KEY = "myventi_migration_backup"

# snapshot field -> legacy storage key
LEGACY_KEYS = {
    "vehicles": "myventi_vehicles",
    "fuelEntries": "myventi_fuel_entries",
    "serviceRecords": "myventi_service_records",
    "region": "myVenti_region",
    "themeMode": "app_theme_mode",
}
LIST_FIELDS = ("vehicles", "fuelEntries", "serviceRecords")


def load_snapshot_schema() -> dict:
    """Load the JSON schema from snapshot_schema.yaml."""
    schema_path = Path(__file__).parent / "snapshot_schema.yaml"
    with open(schema_path) as f:
        return yaml.safe_load(f)


def validate_snapshot(snapshot: Any, schema: Optional[dict] = None) -> List[str]:
    """Check a snapshot's structure. Returns a list of errors."""
    validator = Draft7Validator(schema or load_snapshot_schema())
    errors = []
    for error in sorted(validator.iter_errors(snapshot), key=lambda e: [str(p) for p in e.path]):
        location = ".".join(str(p) for p in error.path) or "(root)"
        errors.append(f"{location}: {error.message}")
    return errors


class MigrationImporter:
    """Moves legacy key-value data into the record store."""

    def __init__(
        self,
        store: RecordStore,
        legacy,
        vehicles: VehicleService,
        fuel: FuelService,
        services: ServiceRecordService,
        settings: SettingsService,
    ):
        self.store = store
        self.legacy = legacy
        self.vehicles = vehicles
        self.fuel = fuel
        self.services = services
        self.settings = settings

    def is_migrated(self) -> bool:
        """Whether the current version has been imported successfully."""
        rows = self.store.execute(
            Select("migration_log", Eq("version", MIGRATION_VERSION))
        ).rows
        return any(int(row["success"]) == 1 for row in rows)

    def backup_legacy_store(self) -> Dict[str, Any]:
        """Read all legacy keys into a snapshot and store it under BACKUP_KEY."""
        snapshot: Dict[str, Any] = {}
        for field, key in LEGACY_KEYS.items():
            raw = self.legacy.get_item(key)
            if field in LIST_FIELDS:
                snapshot[field] = json.loads(raw) if raw else []
            else:
                snapshot[field] = raw
        self.legacy.set_item(BACKUP_KEY, json.dumps(snapshot))
        _logger.info(
            "Backed up %d vehicles, %d fuel entries, %d service records",
            len(snapshot["vehicles"]),
            len(snapshot["fuelEntries"]),
            len(snapshot["serviceRecords"]),
        )
        return snapshot

    def migrate(self) -> bool:
        """
        Import the legacy data once.

        Returns False when this version was already imported.
        """
        if self.is_migrated():
            _logger.info("Migration %s already completed", MIGRATION_VERSION)
            return False

        _logger.info("Starting migration %s", MIGRATION_VERSION)
        try:
            snapshot = self.backup_legacy_store()
            errors = validate_snapshot(snapshot)
            if errors:
                raise MigrationError("Invalid backup data: " + "; ".join(errors))
            with self.store.transaction():
                self._import_vehicles(snapshot["vehicles"])
                self._import_fuel_entries(snapshot["fuelEntries"])
                self._import_service_records(snapshot["serviceRecords"])
                self._import_settings(snapshot.get("region"), snapshot.get("themeMode"))
            self._verify(snapshot)
            self._log_run(True)
        except (VentiError, ValueError, OSError, yaml.YAMLError) as exc:
            self._log_failure()
            if isinstance(exc, MigrationError):
                raise
            raise MigrationError(f"Migration failed: {exc}") from exc

        _logger.info("Migration %s completed", MIGRATION_VERSION)
        return True

    def _import_vehicles(self, vehicles: List[Dict[str, Any]]) -> None:
        _logger.info("Migrating %d vehicles", len(vehicles))
        for item in vehicles:
            self.vehicles.create(
                {
                    "name": item["name"],
                    "year": item["year"],
                    "make": item["make"],
                    "model": item["model"],
                    "type": item["type"],
                    "status": item.get("status"),
                },
                entity_id=item["id"],
                created_at=item.get("createdAt"),
                updated_at=item.get("updatedAt"),
            )

    def _import_fuel_entries(self, entries: List[Dict[str, Any]]) -> None:
        _logger.info("Migrating %d fuel entries", len(entries))
        # Chronological order so each entry's efficiency sees its predecessor
        for item in sorted(entries, key=lambda e: (e["vehicleId"], e["date"], e["mileage"])):
            self.fuel.create(
                {
                    "vehicle_id": item["vehicleId"],
                    "date": item["date"],
                    "amount": item["amount"],
                    "quantity": item["quantity"],
                    "price_per_unit": item.get("pricePerUnit"),
                    "mileage": item["mileage"],
                    "fuel_station": item.get("fuelStation"),
                    "notes": item.get("notes"),
                },
                entity_id=item["id"],
                created_at=item.get("createdAt"),
                updated_at=item.get("updatedAt"),
            )

    def _import_service_records(self, records: List[Dict[str, Any]]) -> None:
        _logger.info("Migrating %d service records", len(records))
        for item in records:
            self.services.create(
                {
                    "vehicle_id": item["vehicleId"],
                    "date": item["date"],
                    "type": item["type"],
                    "description": item["description"],
                    "cost": item["cost"],
                    "mileage": item["mileage"],
                    "notes": item.get("notes"),
                    "is_completed": item.get("isCompleted", True),
                },
                entity_id=item["id"],
                created_at=item.get("createdAt"),
                updated_at=item.get("updatedAt"),
            )

    def _import_settings(self, region: Optional[str], theme_mode: Optional[str]) -> None:
        if region:
            self.settings.set("region", region)
        if theme_mode:
            self.settings.set("theme_mode", theme_mode)

    def _verify(self, snapshot: Dict[str, Any]) -> None:
        """Every backed-up id must now exist in the store."""
        checks = (
            ("vehicles", self.vehicles.get_by_id),
            ("fuelEntries", self.fuel.get_by_id),
            ("serviceRecords", self.services.get_by_id),
        )
        for field, lookup in checks:
            missing = [item["id"] for item in snapshot[field] if lookup(item["id"]) is None]
            if missing:
                raise MigrationError(f"{field} missing after import: {', '.join(missing)}")
        _logger.info("Migration verification successful")

    def _log_run(self, success: bool) -> None:
        self.store.execute(
            Insert(
                "migration_log",
                ("version", "applied_at", "success"),
                (MIGRATION_VERSION, utc_now(), 1 if success else 0),
            )
        )

    def _log_failure(self) -> None:
        try:
            self._log_run(False)
        except VentiError:
            # Best effort; the migration error itself is re-raised by the caller
            _logger.exception("Failed to log migration failure")

    def restore_from_backup(self) -> None:
        """Write the backed-up snapshot back into the legacy keys."""
        raw = self.legacy.get_item(BACKUP_KEY)
        if not raw:
            raise MigrationError("No backup found")
        snapshot = json.loads(raw)
        for field in LIST_FIELDS:
            self.legacy.set_item(LEGACY_KEYS[field], json.dumps(snapshot.get(field, [])))
        for field in ("region", "themeMode"):
            if snapshot.get(field):
                self.legacy.set_item(LEGACY_KEYS[field], snapshot[field])
        _logger.info("Restored legacy store from backup")

    def rollback(self) -> None:
        """Close the record store and restore the legacy data from backup."""
        if not self.legacy.get_item(BACKUP_KEY):
            raise MigrationError("No backup available for rollback")
        self.store.close()
        self.restore_from_backup()
        _logger.info("Rollback completed")

    def clear_backup(self) -> None:
        if self.legacy.get_item(BACKUP_KEY) is None:
            _logger.warning("No migration backup to clear")
            return
        self.legacy.remove_item(BACKUP_KEY)
        _logger.info("Migration backup cleared")
