"""Write recomputed fuel efficiency back to the store."""

from typing import Iterable

from .analytics import recompute_all_efficiency
from .commands import Eq, Update
from .fuel_entry import FuelEntry
from .rows import utc_now
from .store import RecordStore
from .vehicle import Vehicle

# Efficiencies closer than this are treated as unchanged
_EPSILON = 1e-9


def _same(before, after) -> bool:
    if before is None or after is None:
        return before is after
    return abs(before - after) < _EPSILON


def store_recomputed_efficiency(
    store: RecordStore, entries: Iterable[FuelEntry], vehicles: Iterable[Vehicle]
) -> int:
    """
    Recompute mpg for the given entries and update the rows that differ.

    Returns the number of rows written. Callers own the transaction.
    """
    entries = list(entries)
    current = {e.id: e.mpg for e in entries}
    changed = 0
    for entry in recompute_all_efficiency(entries, vehicles):
        if _same(current[entry.id], entry.mpg):
            continue
        store.execute(
            Update(
                "fuel_entries",
                (("mpg", entry.mpg), ("updated_at", utc_now())),
                Eq("id", entry.id),
            )
        )
        changed += 1
    return changed
