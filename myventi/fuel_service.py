"""
Fuel entry service: CRUD, batches, search and efficiency.

Efficiency (mpg) for a new or edited entry is measured against the most
recent earlier entry of the same vehicle:

    mpg = (mileage - prior.mileage) / quantity

It is None when there is no earlier entry, the odometer did not increase,
or the vehicle is electric. Editing an entry does not touch later entries
unless cascade_efficiency is on; reconcile_efficiency() repairs them.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from .analytics import (
    AnalyticsSummary,
    MonthlyTrend,
    VehicleTotals,
    in_date_range,
    monthly_trends,
    summarize,
    summarize_by_vehicle,
)
from .commands import Delete, Eq, Insert, Select, Update
from .efficiency import compute_efficiency, find_prior_entry
from .errors import BatchError, NotFoundError, StorageError, ValidationError
from .fuel_entry import FuelEntry
from .reconcile import store_recomputed_efficiency
from .rows import fuel_entry_from_row, new_id, utc_now
from .store import RecordStore
from .validation import check_quantity_ceiling, validate_fuel_form
from .vehicle import Vehicle
from .vehicle_service import VehicleService

_logger = logging.getLogger(__name__)

TABLE = "fuel_entries"


def _newest_first(entries: List[FuelEntry]) -> List[FuelEntry]:
    return sorted(entries, key=lambda e: (e.date, e.mileage, e.created_at or ""), reverse=True)


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle.lower() in haystack.lower()


class FuelService:
    """Fuel entries for all vehicles."""

    def __init__(
        self,
        store: RecordStore,
        vehicles: VehicleService,
        cascade_efficiency: bool = False,
    ):
        self.store = store
        self.vehicles = vehicles
        self.cascade_efficiency = cascade_efficiency

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get_all(self) -> List[FuelEntry]:
        """All entries, most recent first."""
        rows = self.store.execute(Select(TABLE)).rows
        return _newest_first([fuel_entry_from_row(r) for r in rows])

    def get_by_id(self, entry_id: str) -> Optional[FuelEntry]:
        rows = self.store.execute(Select(TABLE, Eq("id", entry_id))).rows
        return fuel_entry_from_row(rows[0]) if rows else None

    def get_by_vehicle_id(self, vehicle_id: str) -> List[FuelEntry]:
        rows = self.store.execute(Select(TABLE, Eq("vehicle_id", vehicle_id))).rows
        return _newest_first([fuel_entry_from_row(r) for r in rows])

    def get_by_date_range(self, start: str, end: str) -> List[FuelEntry]:
        """Entries dated between start and end, inclusive."""
        return [e for e in self.get_all() if in_date_range(e.date, start, end)]

    def get_unique_fuel_stations(self) -> List[str]:
        stations = {e.fuel_station.strip() for e in self.get_all() if e.fuel_station and e.fuel_station.strip()}
        return sorted(stations)

    def search(
        self,
        vehicle_id: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        fuel_station: Optional[str] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        min_amount: Optional[float] = None,
        max_amount: Optional[float] = None,
        search_term: Optional[str] = None,
    ) -> List[FuelEntry]:
        """
        Entries matching every given filter, most recent first.

        Station and search-term matches are case-insensitive substrings;
        price filters apply to price_per_unit; ranges are inclusive.
        """
        entries = self.get_by_vehicle_id(vehicle_id) if vehicle_id else self.get_all()
        checks: List[Callable[[FuelEntry], bool]] = []
        if start_date or end_date:
            checks.append(lambda e: in_date_range(e.date, start_date, end_date))
        if fuel_station:
            checks.append(lambda e: _contains(e.fuel_station, fuel_station))
        if min_price is not None:
            checks.append(lambda e: e.price_per_unit >= min_price)
        if max_price is not None:
            checks.append(lambda e: e.price_per_unit <= max_price)
        if min_amount is not None:
            checks.append(lambda e: e.amount >= min_amount)
        if max_amount is not None:
            checks.append(lambda e: e.amount <= max_amount)
        if search_term:
            checks.append(
                lambda e: _contains(e.notes, search_term) or _contains(e.fuel_station, search_term)
            )
        return [e for e in entries if all(check(e) for check in checks)]

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def get_monthly_total(self, today: Optional[date] = None) -> float:
        """Amount spent in the current calendar month."""
        month = (today or date.today()).strftime("%Y-%m")
        return sum(e.amount for e in self.get_all() if e.date[:7] == month)

    def get_analytics_summary(
        self, start: Optional[str] = None, end: Optional[str] = None
    ) -> AnalyticsSummary:
        return summarize([e for e in self.get_all() if in_date_range(e.date, start, end)])

    def get_monthly_trends(
        self, months: int = 12, today: Optional[date] = None
    ) -> List[MonthlyTrend]:
        return monthly_trends(self.get_all(), months, today)

    def get_vehicle_comparison(
        self, start: Optional[str] = None, end: Optional[str] = None
    ) -> List[VehicleTotals]:
        entries = [e for e in self.get_all() if in_date_range(e.date, start, end)]
        return summarize_by_vehicle(entries, self.vehicles.get_all())

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def _efficiency_for(
        self, vehicle: Vehicle, cleaned: Mapping[str, Any], exclude_id: Optional[str] = None
    ) -> Optional[float]:
        if vehicle.is_electric:
            return None
        prior = find_prior_entry(
            self.get_by_vehicle_id(vehicle.id),
            cleaned["date"],
            cleaned["mileage"],
            exclude_id=exclude_id,
        )
        return compute_efficiency(
            cleaned["mileage"], cleaned["quantity"], prior.mileage if prior else None
        )

    def _insert(
        self,
        cleaned: Dict[str, Any],
        entity_id: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> FuelEntry:
        vehicle = self.vehicles.require(cleaned["vehicle_id"])
        check_quantity_ceiling(cleaned["quantity"], vehicle.type)
        now = utc_now()
        row = {
            "id": entity_id or new_id(),
            **cleaned,
            "mpg": self._efficiency_for(vehicle, cleaned),
            "created_at": created_at or now,
            "updated_at": updated_at or created_at or now,
        }
        self.store.execute(Insert.from_mapping(TABLE, row))
        return fuel_entry_from_row(row)

    def _replace(self, entry_id: str, cleaned: Dict[str, Any]) -> Tuple[FuelEntry, FuelEntry]:
        existing = self.get_by_id(entry_id)
        if existing is None:
            raise NotFoundError("Fuel entry", entry_id)
        vehicle = self.vehicles.require(cleaned["vehicle_id"])
        check_quantity_ceiling(cleaned["quantity"], vehicle.type)
        changes = {
            **cleaned,
            "mpg": self._efficiency_for(vehicle, cleaned, exclude_id=entry_id),
            "updated_at": utc_now(),
        }
        self.store.execute(Update.from_mapping(TABLE, changes, Eq("id", entry_id)))
        row = {"id": entry_id, "created_at": existing.created_at, **changes}
        return existing, fuel_entry_from_row(row)

    def _remove(self, entry_id: str) -> FuelEntry:
        existing = self.get_by_id(entry_id)
        if existing is None:
            raise NotFoundError("Fuel entry", entry_id)
        self.store.execute(Delete(TABLE, Eq("id", entry_id)))
        return existing

    def create(
        self,
        form: Mapping[str, Any],
        *,
        entity_id: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ) -> FuelEntry:
        """Validate, compute efficiency and insert one entry."""
        cleaned = validate_fuel_form(form)
        return self._insert(cleaned, entity_id, created_at, updated_at)

    def update(self, entry_id: str, form: Mapping[str, Any]) -> FuelEntry:
        """
        Replace all fields of an entry and recompute its own efficiency.

        The entry is never its own predecessor.
        """
        cleaned = validate_fuel_form(form)
        with self.store.transaction():
            existing, entry = self._replace(entry_id, cleaned)
            if self.cascade_efficiency:
                self._reconcile_vehicles({existing.vehicle_id, entry.vehicle_id})
        if self.cascade_efficiency:
            entry = self.get_by_id(entry_id)
        return entry

    def delete(self, entry_id: str) -> None:
        with self.store.transaction():
            existing = self._remove(entry_id)
            if self.cascade_efficiency:
                self._reconcile_vehicles({existing.vehicle_id})

    def delete_by_vehicle_id(self, vehicle_id: str) -> int:
        """Remove every entry of a vehicle; returns how many were removed."""
        return self.store.execute(Delete(TABLE, Eq("vehicle_id", vehicle_id))).rows_affected

    # -------------------------------------------------------------------------
    # Batches
    # -------------------------------------------------------------------------

    def _run_batch(self, operation: str, items: Sequence[Any], apply: Callable[[Any], Any]) -> List[Any]:
        """
        Apply every item inside one transaction.

        A failure at item k aborts the rest and raises BatchError; whether
        items 1..k-1 were undone depends on the store's atomicity.
        """
        _logger.info("%s: %d item(s)", operation, len(items))
        atomic = self.store.is_atomic
        results: List[Any] = []
        try:
            with self.store.transaction():
                for item in items:
                    results.append(apply(item))
                if self.cascade_efficiency and results:
                    self._reconcile_vehicles(None)
        except (NotFoundError, ValidationError, StorageError) as exc:
            _logger.error("%s aborted after %d of %d item(s): %s", operation, len(results), len(items), exc)
            raise BatchError(operation, len(results), len(items), atomic) from exc
        return results

    def create_batch(self, forms: Sequence[Mapping[str, Any]]) -> List[FuelEntry]:
        """Create several entries; all forms are validated before any write."""
        cleaned = [validate_fuel_form(form) for form in forms]
        return self._run_batch("create_batch", cleaned, self._insert)

    def update_batch(self, updates: Sequence[Tuple[str, Mapping[str, Any]]]) -> List[FuelEntry]:
        """Replace several entries given (id, form) pairs."""
        cleaned = [(entry_id, validate_fuel_form(form)) for entry_id, form in updates]
        results = self._run_batch(
            "update_batch", cleaned, lambda item: self._replace(*item)[1]
        )
        if self.cascade_efficiency:
            return [self.get_by_id(e.id) for e in results]
        return results

    def delete_batch(self, entry_ids: Sequence[str]) -> int:
        """Delete several entries; a missing id aborts the batch."""
        return len(self._run_batch("delete_batch", list(entry_ids), self._remove))

    # -------------------------------------------------------------------------
    # Efficiency repair
    # -------------------------------------------------------------------------

    def _reconcile_vehicles(self, vehicle_ids) -> int:
        entries = self.get_all()
        if vehicle_ids is not None:
            entries = [e for e in entries if e.vehicle_id in vehicle_ids]
        return store_recomputed_efficiency(self.store, entries, self.vehicles.get_all())

    def reconcile_efficiency(self, vehicle_id: Optional[str] = None) -> int:
        """
        Recompute every stored efficiency and write back the ones that differ.

        Returns the number of entries changed.
        """
        with self.store.transaction():
            changed = self._reconcile_vehicles({vehicle_id} if vehicle_id else None)
        _logger.info("Reconciled efficiency: %d entries changed", changed)
        return changed
