"""
Vehicle, fuel and service tracking.

This package provides:
- VehicleType, VehicleStatus, Trend: enums
- Vehicle, FuelEntry, ServiceRecord: entities
- RecordStore: SQLite-backed store with an in-memory fallback
- VehicleService, FuelService, ServiceRecordService, SettingsService,
  DashboardService: operations over the store
- analytics / stats: pure functions over fetched entries
- units / region: unit conversion and regional form normalisation
- MigrationImporter: one-shot import from the legacy key-value store
- create_context: wires one store into every service
"""

from .status import Trend, VehicleStatus, VehicleType
from .vehicle import Vehicle
from .fuel_entry import FuelEntry
from .service_record import ServiceRecord
from .errors import (
    BatchError,
    ConsistencyError,
    MigrationError,
    NotFoundError,
    NotInitializedError,
    StorageError,
    ValidationError,
    VentiError,
)
from .config import VentiConfig, load_config
from .commands import Delete, Eq, Insert, QueryResult, Select, Update
from .store import RecordStore, StoreState
from .units import (
    DistanceUnit,
    EfficiencyUnit,
    VolumeUnit,
    convert_distance,
    convert_efficiency,
    convert_volume,
    efficiency_to_mpg,
    gallons_to_liters,
    kilometers_to_miles,
    liters_to_gallons,
    miles_to_kilometers,
)
from .region import REGIONS, RegionConfig, get_region, normalize_fuel_form
from .stats import (
    Statistics,
    analyze_trend,
    calculate_correlation,
    calculate_statistics,
    project_fuel_costs,
)
from .analytics import (
    analyze_seasonal_patterns,
    analyze_weekly_patterns,
    calculate_fuel_efficiency,
    calculate_savings,
    compare_vehicles,
    format_efficiency,
    recompute_all_efficiency,
)
from .vehicle_service import VehicleService
from .fuel_service import FuelService
from .service_record_service import ServiceRecordService
from .settings_service import SettingsService
from .dashboard import DashboardService
from .legacy_store import MemoryKeyValueStore, YamlKeyValueStore
from .migration import MigrationImporter, validate_snapshot
from .context import AppContext, create_context

__all__ = [
    "Trend",
    "VehicleStatus",
    "VehicleType",
    "Vehicle",
    "FuelEntry",
    "ServiceRecord",
    "BatchError",
    "ConsistencyError",
    "MigrationError",
    "NotFoundError",
    "NotInitializedError",
    "StorageError",
    "ValidationError",
    "VentiError",
    "VentiConfig",
    "load_config",
    "Delete",
    "Eq",
    "Insert",
    "QueryResult",
    "Select",
    "Update",
    "RecordStore",
    "StoreState",
    "DistanceUnit",
    "EfficiencyUnit",
    "VolumeUnit",
    "convert_distance",
    "convert_efficiency",
    "convert_volume",
    "efficiency_to_mpg",
    "gallons_to_liters",
    "kilometers_to_miles",
    "liters_to_gallons",
    "miles_to_kilometers",
    "REGIONS",
    "RegionConfig",
    "get_region",
    "normalize_fuel_form",
    "Statistics",
    "analyze_trend",
    "calculate_correlation",
    "calculate_statistics",
    "project_fuel_costs",
    "analyze_seasonal_patterns",
    "analyze_weekly_patterns",
    "calculate_fuel_efficiency",
    "calculate_savings",
    "compare_vehicles",
    "format_efficiency",
    "recompute_all_efficiency",
    "VehicleService",
    "FuelService",
    "ServiceRecordService",
    "SettingsService",
    "DashboardService",
    "MemoryKeyValueStore",
    "YamlKeyValueStore",
    "MigrationImporter",
    "validate_snapshot",
    "AppContext",
    "create_context",
]
