"""Regional unit configuration and boundary conversion.

Gallons, miles and price-per-gallon are the storage-canonical units. Forms
entered in a metric region are converted here before they reach a service.
"""

from dataclasses import dataclass
from typing import Any, Dict, Mapping

from .units import (
    DistanceUnit,
    EfficiencyUnit,
    VolumeUnit,
    convert_distance,
    convert_volume,
    gallons_to_liters,
)


@dataclass(frozen=True)
class RegionConfig:
    """Currency and unit preferences for a region."""

    code: str
    name: str
    currency_code: str
    currency_symbol: str
    volume_unit: VolumeUnit
    distance_unit: DistanceUnit
    efficiency_unit: EfficiencyUnit

    @property
    def is_metric(self) -> bool:
        return self.volume_unit == VolumeUnit.LITERS

    @property
    def volume_abbreviation(self) -> str:
        return "gal" if self.volume_unit == VolumeUnit.GALLONS else "L"

    @property
    def distance_abbreviation(self) -> str:
        return "mi" if self.distance_unit == DistanceUnit.MILES else "km"


REGIONS: Dict[str, RegionConfig] = {
    "US": RegionConfig(
        code="US",
        name="United States",
        currency_code="USD",
        currency_symbol="$",
        volume_unit=VolumeUnit.GALLONS,
        distance_unit=DistanceUnit.MILES,
        efficiency_unit=EfficiencyUnit.MPG,
    ),
    "ID": RegionConfig(
        code="ID",
        name="Indonesia",
        currency_code="IDR",
        currency_symbol="Rp",
        volume_unit=VolumeUnit.LITERS,
        distance_unit=DistanceUnit.KILOMETERS,
        efficiency_unit=EfficiencyUnit.KM_PER_LITER,
    ),
}

DEFAULT_REGION = "ID"


def get_region(code: str) -> RegionConfig:
    """Look up a region by code (case-insensitive)."""
    try:
        return REGIONS[code.upper()]
    except KeyError:
        raise ValueError(
            f"Unknown region '{code}' (expected one of {', '.join(sorted(REGIONS))})"
        ) from None


def display_quantity(gallons: float, region: RegionConfig) -> float:
    """Stored gallons in the region's volume unit, rounded to 2 decimals."""
    if region.volume_unit == VolumeUnit.LITERS:
        return round(gallons_to_liters(gallons), 2)
    return round(gallons, 2)


def normalize_fuel_form(form: Mapping[str, Any], region: RegionConfig) -> Dict[str, Any]:
    """
    Convert a fuel form from regional units to storage units.

    Quantity goes liters -> gallons and price per liter -> price per gallon
    by the same factor, so amount = quantity * price still holds. The odometer goes
    km -> miles and stays an integer. Electric entries (kWh) are left alone
    when `electric` is set in the form.
    """
    data = dict(form)
    electric = data.pop("electric", False)
    if region.code == "US":
        return data

    if not electric:
        factor = convert_volume(1.0, region.volume_unit, VolumeUnit.GALLONS)
        if data.get("quantity") not in (None, ""):
            data["quantity"] = float(data["quantity"]) * factor
        if data.get("price_per_unit") not in (None, ""):
            data["price_per_unit"] = float(data["price_per_unit"]) / factor

    if data.get("mileage") not in (None, ""):
        km = float(data["mileage"])
        data["mileage"] = int(
            round(convert_distance(km, region.distance_unit, DistanceUnit.MILES))
        )
    return data
