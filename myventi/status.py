"""Enums for vehicle classification and trend direction."""

from enum import Enum


class VehicleType(Enum):
    """Powertrain of a vehicle. Values match the persisted strings."""

    GAS = "gas"
    ELECTRIC = "electric"  # quantity is kWh, no MPG is ever computed
    HYBRID = "hybrid"


class VehicleStatus(Enum):
    """Whether a vehicle is still in use."""

    ACTIVE = "active"
    INACTIVE = "inactive"


class Trend(Enum):
    """Direction of a series over time."""

    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
