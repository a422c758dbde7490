"""Mapping between table rows and entity objects."""

import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

from .fuel_entry import FuelEntry
from .service_record import ServiceRecord
from .status import VehicleStatus, VehicleType
from .vehicle import Vehicle


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds")


def new_id() -> str:
    return uuid.uuid4().hex


def _optional_float(value: Any):
    return None if value is None else float(value)


def vehicle_from_row(row: Mapping[str, Any]) -> Vehicle:
    return Vehicle(
        row["id"],
        row["name"],
        int(row["year"]),
        row["make"],
        row["model"],
        VehicleType(row["type"]),
        VehicleStatus(row.get("status") or VehicleStatus.ACTIVE.value),
        row.get("created_at"),
        row.get("updated_at"),
    )



def fuel_entry_from_row(row: Mapping[str, Any]) -> FuelEntry:
    return FuelEntry(
        row["id"],
        row["vehicle_id"],
        row["date"],
        float(row["amount"]),
        float(row["quantity"]),
        float(row["price_per_unit"]),
        int(row["mileage"]),
        _optional_float(row.get("mpg")),
        row.get("fuel_station"),
        row.get("notes"),
        row.get("created_at"),
        row.get("updated_at"),
    )



def service_record_from_row(row: Mapping[str, Any]) -> ServiceRecord:
    completed = row.get("is_completed")
    return ServiceRecord(
        row["id"],
        row["vehicle_id"],
        row["date"],
        row["type"],
        row["description"],
        float(row["cost"]),
        int(row["mileage"]),
        row.get("notes"),
        True if completed is None else bool(completed),
        row.get("created_at"),
        row.get("updated_at"),
    )
