"""Legacy key-value stores read by the migration importer.

Values are JSON strings (or plain strings for scalar settings), keyed the
way the old application stored them.
"""

from pathlib import Path
from typing import Dict, Optional, Union

import yaml


class MemoryKeyValueStore:
    """Key-value store held in a dict."""

    def __init__(self, items: Optional[Dict[str, str]] = None):
        self.items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self.items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self.items[key] = value

    def remove_item(self, key: str) -> None:
        self.items.pop(key, None)


class YamlKeyValueStore:
    """
    Key-value store persisted as a YAML mapping of key -> string.

    The file is re-read on every access and rewritten on every change.
    A missing file is an empty store.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r") as fp:
            data = yaml.safe_load(fp) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path}: expected a mapping of keys to strings")
        return data

    def _save(self, data: Dict[str, str]) -> None:
        with open(self.path, "w") as fp:
            yaml.safe_dump(data, fp, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def get_item(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return None if value is None else str(value)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
