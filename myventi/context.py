"""Application wiring: one record store shared by every service."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import VentiConfig
from .dashboard import DashboardService
from .fuel_service import FuelService
from .legacy_store import MemoryKeyValueStore, YamlKeyValueStore
from .migration import MigrationImporter
from .region import RegionConfig, get_region
from .service_record_service import ServiceRecordService
from .settings_service import SettingsService
from .store import RecordStore
from .vehicle_service import VehicleService

_logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    config: VentiConfig
    store: RecordStore
    vehicles: VehicleService
    fuel: FuelService
    services: ServiceRecordService
    settings: SettingsService
    dashboard: DashboardService

    @property
    def region(self) -> RegionConfig:
        """Region from the stored setting, falling back to the configured one."""
        return get_region(self.settings.get("region") or self.config.region)

    def migration_importer(self, legacy=None) -> MigrationImporter:
        """Importer reading `legacy`, or the configured legacy YAML file."""
        if legacy is None:
            if self.config.legacy_path:
                legacy = YamlKeyValueStore(self.config.legacy_path)
            else:
                legacy = MemoryKeyValueStore()
        return MigrationImporter(
            self.store, legacy, self.vehicles, self.fuel, self.services, self.settings
        )

    def close(self) -> None:
        self.store.close()


def create_context(config: Optional[VentiConfig] = None) -> AppContext:
    """Build and initialise the store, then inject it into every service."""
    config = config or VentiConfig.from_env()
    store = RecordStore.from_config(config).init()
    _logger.info("Store state: %s", store.state.value)

    vehicles = VehicleService(store)
    fuel = FuelService(store, vehicles, cascade_efficiency=config.cascade_efficiency)
    services = ServiceRecordService(store, vehicles)
    return AppContext(
        config=config,
        store=store,
        vehicles=vehicles,
        fuel=fuel,
        services=services,
        settings=SettingsService(store),
        dashboard=DashboardService(vehicles, fuel, services),
    )
