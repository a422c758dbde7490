"""Runtime configuration for the record store and services."""

import dataclasses
import os
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

ENGINES = ("sqlite", "memory")


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class VentiConfig:
    """
    Store and service configuration.

    - db_path: SQLite database file (":memory:" for a throwaway database)
    - engine: "sqlite" tries the embedded engine first; "memory" forces fallback
    - auto_downgrade: switch to fallback mode after a non-integrity engine error
    - fallback_undo_log: make fallback transactions all-or-nothing
    - cascade_efficiency: re-derive later efficiencies after fuel edits/deletes
    - region: region code used to normalize fuel forms (US or ID)
    - legacy_path: YAML key-value document read by the migration importer
    """

    db_path: str = "myventi.db"
    engine: str = "sqlite"
    auto_downgrade: bool = False
    fallback_undo_log: bool = True
    cascade_efficiency: bool = False
    region: str = "ID"
    legacy_path: Optional[str] = None

    def __post_init__(self):
        if self.engine not in ENGINES:
            raise ValueError(
                f"Unknown engine '{self.engine}' (expected one of {', '.join(ENGINES)})"
            )

    @classmethod
    def from_env(cls, **overrides: Any) -> "VentiConfig":
        """
        Create configuration from VENTI_* environment variables.

        Explicit keyword arguments override environment values.
        """
        return cls(**{**_env_values(), **overrides})


_ENV_STRINGS = {
    "VENTI_DB_PATH": "db_path",
    "VENTI_ENGINE": "engine",
    "VENTI_REGION": "region",
    "VENTI_LEGACY_PATH": "legacy_path",
}

_ENV_BOOLS = {
    "VENTI_AUTO_DOWNGRADE": "auto_downgrade",
    "VENTI_FALLBACK_UNDO_LOG": "fallback_undo_log",
    "VENTI_CASCADE_EFFICIENCY": "cascade_efficiency",
}


def _env_values() -> Dict[str, Any]:
    env = os.environ
    values: Dict[str, Any] = {}
    for env_key, field_name in _ENV_STRINGS.items():
        val = env.get(env_key)
        if val is not None:
            values[field_name] = val.strip()
    for env_key, field_name in _ENV_BOOLS.items():
        val = env.get(env_key)
        if val is not None:
            default = getattr(VentiConfig, field_name)
            values[field_name] = _env_bool(val, default)
    return values


def load_config(
    path: Optional[Union[str, Path]] = None, **overrides: Any
) -> VentiConfig:
    """
    Build configuration from a YAML file, the environment, then overrides.

    Later sources win. Unknown keys in the file are rejected.
    """
    file_values: Dict[str, Any] = {}
    if path is not None:
        with open(path, "r") as fp:
            file_values = yaml.safe_load(fp) or {}
        if not isinstance(file_values, dict):
            raise ValueError(f"{path}: expected a mapping of configuration keys")
        known = {f.name for f in dataclasses.fields(VentiConfig)}
        unknown = sorted(set(file_values) - known)
        if unknown:
            raise ValueError(f"{path}: unknown configuration keys: {', '.join(unknown)}")
    return VentiConfig(**{**file_values, **_env_values(), **overrides})
