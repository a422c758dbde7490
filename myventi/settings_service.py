"""Key-value application settings."""

from typing import Dict, Optional

from .commands import Eq, Insert, Select, Update
from .rows import utc_now
from .store import RecordStore

TABLE = "app_settings"


class SettingsService:
    """One row per key, upserted with insert-or-ignore then update."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        rows = self.store.execute(Select(TABLE, Eq("key", key))).rows
        if rows:
            return rows[0]["value"]
        return default

    def set(self, key: str, value: str) -> None:
        now = utc_now()
        with self.store.transaction():
            self.store.execute(
                Insert(
                    TABLE,
                    ("key", "value", "created_at", "updated_at"),
                    (key, value, now, now),
                    or_ignore=True,
                )
            )
            self.store.execute(
                Update(TABLE, (("value", value), ("updated_at", now)), Eq("key", key))
            )

    def get_all(self) -> Dict[str, str]:
        rows = self.store.execute(Select(TABLE)).rows
        return {row["key"]: row["value"] for row in sorted(rows, key=lambda r: r["key"])}
