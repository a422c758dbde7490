"""ServiceRecord class for maintenance records."""
from typing import Optional


class ServiceRecord:
    """A record of maintenance performed on a vehicle."""

    def __init__(
            self,
            id: str,
            vehicle_id: str,
            date: str,
            type: str,
            description: str,
            cost: float,
            mileage: int,
            notes: Optional[str] = None,
            is_completed: bool = True,
            created_at: Optional[str] = None,
            updated_at: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.date = date
        self.type = type
        self.description = description
        self.cost = cost
        self.mileage = mileage
        self.notes = notes
        self.is_completed = is_completed
        self.created_at = created_at
        self.updated_at = updated_at
