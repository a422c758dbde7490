"""Table definitions shared by both storage backends."""

from typing import Any, Dict, Tuple

TABLES = {
    "vehicles": """
        CREATE TABLE IF NOT EXISTS vehicles (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            year INTEGER NOT NULL,
            make TEXT NOT NULL,
            model TEXT NOT NULL,
            type TEXT CHECK(type IN ('gas', 'electric', 'hybrid')) NOT NULL,
            status TEXT CHECK(status IN ('active', 'inactive')) DEFAULT 'active',
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""",
    "fuel_entries": """
        CREATE TABLE IF NOT EXISTS fuel_entries (
            id TEXT PRIMARY KEY,
            vehicle_id TEXT NOT NULL,
            date DATE NOT NULL,
            amount REAL NOT NULL,
            quantity REAL NOT NULL,
            price_per_unit REAL NOT NULL,
            mileage INTEGER NOT NULL,
            mpg REAL,
            fuel_station TEXT,
            notes TEXT,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (vehicle_id) REFERENCES vehicles(id) ON DELETE CASCADE
        )""",
    "service_records": """
        CREATE TABLE IF NOT EXISTS service_records (
            id TEXT PRIMARY KEY,
            vehicle_id TEXT NOT NULL,
            date DATE NOT NULL,
            type TEXT NOT NULL,
            description TEXT NOT NULL,
            cost REAL NOT NULL,
            mileage INTEGER NOT NULL,
            notes TEXT,
            is_completed BOOLEAN DEFAULT 1,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (vehicle_id) REFERENCES vehicles(id) ON DELETE CASCADE
        )""",
    "app_settings": """
        CREATE TABLE IF NOT EXISTS app_settings (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )""",
    "migration_log": """
        CREATE TABLE IF NOT EXISTS migration_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            version TEXT NOT NULL,
            applied_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            success BOOLEAN NOT NULL
        )""",
}

INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_vehicles_status ON vehicles(status)",
    "CREATE INDEX IF NOT EXISTS idx_vehicles_type ON vehicles(type)",
    "CREATE INDEX IF NOT EXISTS idx_fuel_vehicle_id ON fuel_entries(vehicle_id)",
    "CREATE INDEX IF NOT EXISTS idx_fuel_date ON fuel_entries(date)",
    "CREATE INDEX IF NOT EXISTS idx_fuel_vehicle_date ON fuel_entries(vehicle_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_fuel_mileage ON fuel_entries(mileage)",
    "CREATE INDEX IF NOT EXISTS idx_fuel_station ON fuel_entries(fuel_station)",
    "CREATE INDEX IF NOT EXISTS idx_service_vehicle_id ON service_records(vehicle_id)",
    "CREATE INDEX IF NOT EXISTS idx_service_date ON service_records(date)",
    "CREATE INDEX IF NOT EXISTS idx_service_vehicle_date ON service_records(vehicle_id, date)",
    "CREATE INDEX IF NOT EXISTS idx_service_type ON service_records(type)",
]

# Column order matches the DDL above.
TABLE_COLUMNS: Dict[str, Tuple[str, ...]] = {
    "vehicles": (
        "id", "name", "year", "make", "model", "type", "status",
        "created_at", "updated_at",
    ),
    "fuel_entries": (
        "id", "vehicle_id", "date", "amount", "quantity", "price_per_unit",
        "mileage", "mpg", "fuel_station", "notes", "created_at", "updated_at",
    ),
    "service_records": (
        "id", "vehicle_id", "date", "type", "description", "cost", "mileage",
        "notes", "is_completed", "created_at", "updated_at",
    ),
    "app_settings": ("key", "value", "created_at", "updated_at"),
    "migration_log": ("id", "version", "applied_at", "success"),
}

PRIMARY_KEYS: Dict[str, str] = {
    "vehicles": "id",
    "fuel_entries": "id",
    "service_records": "id",
    "app_settings": "key",
    "migration_log": "id",
}

# Integer ids assigned by the engine
AUTOINCREMENT_TABLES = frozenset({"migration_log"})

# Columns filled at insert time; CURRENT_TIMESTAMP is resolved by the backend
TIMESTAMP_COLUMNS = ("created_at", "updated_at", "applied_at")

COLUMN_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "vehicles": {"status": "active"},
    "service_records": {"is_completed": 1},
}

DEFAULT_SETTINGS: Dict[str, str] = {
    "region": "ID",
    "theme_mode": "system",
}


def check_table(table: str) -> None:
    """Raise ValueError for a table outside the schema."""
    if table not in TABLE_COLUMNS:
        raise ValueError(f"Unknown table '{table}'")


def check_columns(table: str, columns) -> None:
    """Raise ValueError for columns the table does not have."""
    check_table(table)
    unknown = [c for c in columns if c not in TABLE_COLUMNS[table]]
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")
