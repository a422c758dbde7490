"""FuelEntry class for fill-up records."""

from typing import Optional


class FuelEntry:
    """
    A single fill-up (or charge) for a vehicle.

    `quantity` is gallons for gas/hybrid vehicles and kWh for electric ones.
    `mpg` is None when there is no basis to compute it (first entry, odometer
    not increased, electric vehicle); it is never stored as 0 for that case.
    """

    def __init__(
        self,
        id: str,
        vehicle_id: str,
        date: str,
        amount: float,
        quantity: float,
        price_per_unit: float,
        mileage: int,
        mpg: Optional[float] = None,
        fuel_station: Optional[str] = None,
        notes: Optional[str] = None,
        created_at: Optional[str] = None,
        updated_at: Optional[str] = None,
    ):
        self.id = id
        self.vehicle_id = vehicle_id
        self.date = date
        self.amount = amount
        self.quantity = quantity
        self.price_per_unit = price_per_unit
        self.mileage = mileage
        self.mpg = mpg
        self.fuel_station = fuel_station
        self.notes = notes
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def has_efficiency(self) -> bool:
        return self.mpg is not None

    @property
    def sort_key(self):
        """Chronological ordering key: date first, odometer breaks ties."""
        return (self.date, self.mileage)
