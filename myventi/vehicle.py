"""Vehicle class for vehicle identification."""

from typing import Optional

from .status import VehicleStatus, VehicleType


class Vehicle:
    """A tracked vehicle. Fuel entries and service records reference it by id."""

    def __init__(
        self,
        id: str,
        name: str,
        year: int,
        make: str,
        model: str,
        type: VehicleType,
        status: VehicleStatus = VehicleStatus.ACTIVE,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ):
        self.id = id
        self.name = name
        self.year = year
        self.make = make
        self.model = model
        self.type = type
        self.status = status
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def display_name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.year} {self.make} {self.model}"

    @property
    def is_electric(self) -> bool:
        return self.type == VehicleType.ELECTRIC

    @property
    def is_active(self) -> bool:
        return self.status == VehicleStatus.ACTIVE
