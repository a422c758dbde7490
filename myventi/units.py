"""Unit conversion helpers for volume, distance and fuel efficiency."""

from enum import Enum

GALLON_TO_LITER = 3.78541
LITER_TO_GALLON = 0.264172
MILE_TO_KILOMETER = 1.60934
KILOMETER_TO_MILE = 0.621371

MPG_TO_KM_PER_LITER = 0.425144
MPG_L_PER_100KM_FACTOR = 235.215  # L/100km = 235.215 / mpg
KWH_PER_GALLON_EQUIVALENT = 33.7


class VolumeUnit(Enum):
    GALLONS = "gallons"
    LITERS = "liters"


class DistanceUnit(Enum):
    MILES = "miles"
    KILOMETERS = "kilometers"


class EfficiencyUnit(Enum):
    MPG = "mpg"
    KM_PER_LITER = "kmPerLiter"
    LITERS_PER_100KM = "litersPer100km"


def gallons_to_liters(gallons: float) -> float:
    return gallons * GALLON_TO_LITER


def liters_to_gallons(liters: float) -> float:
    return liters * LITER_TO_GALLON


def miles_to_kilometers(miles: float) -> float:
    return miles * MILE_TO_KILOMETER


def kilometers_to_miles(kilometers: float) -> float:
    return kilometers * KILOMETER_TO_MILE


def convert_volume(value: float, from_unit: VolumeUnit, to_unit: VolumeUnit) -> float:
    """Convert a volume between gallons and liters."""
    if from_unit == to_unit:
        return value
    if from_unit == VolumeUnit.GALLONS:
        return gallons_to_liters(value)
    return liters_to_gallons(value)


def convert_distance(
    value: float, from_unit: DistanceUnit, to_unit: DistanceUnit
) -> float:
    """Convert a distance between miles and kilometers."""
    if from_unit == to_unit:
        return value
    if from_unit == DistanceUnit.MILES:
        return miles_to_kilometers(value)
    return kilometers_to_miles(value)


def convert_efficiency(mpg: float, unit: EfficiencyUnit) -> float:
    """
    Express an MPG value in another efficiency unit.

    L/100km is inversely proportional to MPG, so 0 MPG maps to 0 rather
    than infinity.
    """
    if unit == EfficiencyUnit.KM_PER_LITER:
        return mpg * MPG_TO_KM_PER_LITER
    if unit == EfficiencyUnit.LITERS_PER_100KM:
        return MPG_L_PER_100KM_FACTOR / mpg if mpg > 0 else 0.0
    return mpg


def efficiency_to_mpg(value: float, unit: EfficiencyUnit) -> float:
    """Inverse of convert_efficiency."""
    if unit == EfficiencyUnit.KM_PER_LITER:
        return value / MPG_TO_KM_PER_LITER
    if unit == EfficiencyUnit.LITERS_PER_100KM:
        return MPG_L_PER_100KM_FACTOR / value if value > 0 else 0.0
    return value
