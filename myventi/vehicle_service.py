"""Vehicle CRUD over the record store."""

import logging
from enum import Enum
from typing import Any, List, Mapping, Optional

from .commands import Delete, Eq, Insert, Select, Update
from .errors import NotFoundError
from .reconcile import store_recomputed_efficiency
from .rows import fuel_entry_from_row, new_id, utc_now, vehicle_from_row
from .status import VehicleStatus
from .store import RecordStore
from .validation import validate_vehicle_form, validate_vehicle_update
from .vehicle import Vehicle

_logger = logging.getLogger(__name__)

TABLE = "vehicles"


class VehicleService:
    """Create, read, update and delete vehicles."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get_all(self) -> List[Vehicle]:
        """All vehicles, newest first."""
        rows = self.store.execute(Select(TABLE)).rows
        vehicles = [vehicle_from_row(r) for r in rows]
        return sorted(vehicles, key=lambda v: (v.created_at or "", v.id), reverse=True)

    def get_active(self) -> List[Vehicle]:
        return [v for v in self.get_all() if v.status == VehicleStatus.ACTIVE]

    def get_by_id(self, vehicle_id: str) -> Optional[Vehicle]:
        rows = self.store.execute(Select(TABLE, Eq("id", vehicle_id))).rows
        return vehicle_from_row(rows[0]) if rows else None

    def require(self, vehicle_id: str) -> Vehicle:
        """get_by_id that raises NotFoundError instead of returning None."""
        vehicle = self.get_by_id(vehicle_id)
        if vehicle is None:
            raise NotFoundError("Vehicle", vehicle_id)
        return vehicle

    def create(
        self,
        form: Mapping[str, Any],
        *,
        entity_id: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> Vehicle:
        """
        Validate and insert a vehicle.

        `entity_id` and the timestamps let an importer keep legacy values.
        """
        cleaned = validate_vehicle_form(form)
        now = utc_now()
        row = {
            "id": entity_id or new_id(),
            "name": cleaned["name"],
            "year": cleaned["year"],
            "make": cleaned["make"],
            "model": cleaned["model"],
            "type": cleaned["type"].value,
            "status": cleaned["status"].value,
            "created_at": created_at or now,
            "updated_at": updated_at or created_at or now,
        }
        self.store.execute(Insert.from_mapping(TABLE, row))
        _logger.debug("Created vehicle %s", row["id"])
        return vehicle_from_row(row)

    def update(self, vehicle_id: str, changes: Mapping[str, Any]) -> Vehicle:
        """
        Merge only the provided fields into an existing vehicle.

        A type change recomputes the efficiency of the vehicle's fuel entries
        in the same transaction, since electric vehicles never carry one.
        """
        cleaned = validate_vehicle_update(changes)
        existing = self.require(vehicle_id)
        values = {
            key: value.value if isinstance(value, Enum) else value
            for key, value in cleaned.items()
        }
        values["updated_at"] = utc_now()
        with self.store.transaction():
            self.store.execute(Update.from_mapping(TABLE, values, Eq("id", vehicle_id)))
            vehicle = self.require(vehicle_id)
            if vehicle.type != existing.type:
                rows = self.store.execute(
                    Select("fuel_entries", Eq("vehicle_id", vehicle_id))
                ).rows
                changed = store_recomputed_efficiency(
                    self.store, [fuel_entry_from_row(r) for r in rows], [vehicle]
                )
                _logger.info(
                    "Vehicle %s changed to %s: %d fuel entries recomputed",
                    vehicle_id,
                    vehicle.type.value,
                    changed,
                )
        return vehicle

    def delete(self, vehicle_id: str) -> None:
        """
        Delete a vehicle together with its fuel entries and service records.

        The dependent rows are removed explicitly in the same transaction, so
        the cascade does not rely on the engine's foreign keys.
        """
        self.require(vehicle_id)
        with self.store.transaction():
            fuel = self.store.execute(
                Delete("fuel_entries", Eq("vehicle_id", vehicle_id))
            ).rows_affected
            services = self.store.execute(
                Delete("service_records", Eq("vehicle_id", vehicle_id))
            ).rows_affected
            self.store.execute(Delete(TABLE, Eq("id", vehicle_id)))
        _logger.info(
            "Deleted vehicle %s with %d fuel entries and %d service records",
            vehicle_id,
            fuel,
            services,
        )
