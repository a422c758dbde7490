"""Service record CRUD over the record store."""

import logging
from typing import Any, Dict, List, Mapping, Optional

from .commands import Delete, Eq, Insert, Select, Update
from .errors import NotFoundError
from .rows import new_id, service_record_from_row, utc_now
from .service_record import ServiceRecord
from .store import RecordStore
from .validation import validate_service_form
from .vehicle_service import VehicleService

_logger = logging.getLogger(__name__)

TABLE = "service_records"


def _to_row_values(cleaned: Mapping[str, Any]) -> Dict[str, Any]:
    values = dict(cleaned)
    values["is_completed"] = 1 if cleaned["is_completed"] else 0
    return values


class ServiceRecordService:
    """Maintenance records. No derived fields."""

    def __init__(self, store: RecordStore, vehicles: VehicleService):
        self.store = store
        self.vehicles = vehicles

    def get_all(self) -> List[ServiceRecord]:
        """All records, most recent first."""
        rows = self.store.execute(Select(TABLE)).rows
        records = [service_record_from_row(r) for r in rows]
        return sorted(records, key=lambda r: (r.date, r.mileage), reverse=True)

    def get_by_id(self, record_id: str) -> Optional[ServiceRecord]:
        rows = self.store.execute(Select(TABLE, Eq("id", record_id))).rows
        return service_record_from_row(rows[0]) if rows else None

    def get_by_vehicle_id(self, vehicle_id: str) -> List[ServiceRecord]:
        return [r for r in self.get_all() if r.vehicle_id == vehicle_id]

    def create(
        self,
        form: Mapping[str, Any],
        *,
        entity_id: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> ServiceRecord:
        cleaned = validate_service_form(form)
        self.vehicles.require(cleaned["vehicle_id"])
        now = utc_now()
        row = {
            "id": entity_id or new_id(),
            **_to_row_values(cleaned),
            "created_at": created_at or now,
            "updated_at": updated_at or created_at or now,
        }
        self.store.execute(Insert.from_mapping(TABLE, row))
        return service_record_from_row(row)

    def update(self, record_id: str, form: Mapping[str, Any]) -> ServiceRecord:
        """Replace all fields of a record."""
        cleaned = validate_service_form(form)
        existing = self.get_by_id(record_id)
        if existing is None:
            raise NotFoundError("Service record", record_id)
        self.vehicles.require(cleaned["vehicle_id"])
        changes = {**_to_row_values(cleaned), "updated_at": utc_now()}
        self.store.execute(Update.from_mapping(TABLE, changes, Eq("id", record_id)))
        return service_record_from_row(
            {"id": record_id, "created_at": existing.created_at, **changes}
        )

    def delete(self, record_id: str) -> None:
        if self.get_by_id(record_id) is None:
            raise NotFoundError("Service record", record_id)
        self.store.execute(Delete(TABLE, Eq("id", record_id)))

    def delete_by_vehicle_id(self, vehicle_id: str) -> int:
        removed = self.store.execute(Delete(TABLE, Eq("vehicle_id", vehicle_id))).rows_affected
        _logger.debug("Removed %d service records for vehicle %s", removed, vehicle_id)
        return removed
