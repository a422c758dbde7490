"""Helper functions for per-entry fuel efficiency."""

from typing import Iterable, Optional, Tuple

from .fuel_entry import FuelEntry


def find_prior_entry(
    entries: Iterable[FuelEntry],
    date: str,
    mileage: int,
    exclude_id: Optional[str] = None,
) -> Optional[FuelEntry]:
    """
    Most recent entry strictly before (date, mileage).

    Ordering is by date, then odometer. `exclude_id` keeps an entry being
    edited from being its own predecessor.
    """
    key: Tuple[str, int] = (date, mileage)
    prior = None
    for entry in entries:
        if exclude_id is not None and entry.id == exclude_id:
            continue
        if entry.sort_key >= key:
            continue
        if prior is None or entry.sort_key > prior.sort_key:
            prior = entry
    return prior


def compute_efficiency(
    mileage: int, quantity: float, prior_mileage: Optional[int]
) -> Optional[float]:
    """
    Distance per unit of fuel since the prior fill-up.

    - No prior entry: None
    - Odometer not increased, or quantity <= 0: None
    - Otherwise: (mileage - prior_mileage) / quantity
    """
    if prior_mileage is None:
        return None
    if mileage <= prior_mileage or quantity <= 0:
        return None
    return (mileage - prior_mileage) / quantity
