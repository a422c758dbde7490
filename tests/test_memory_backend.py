#!/usr/bin/env python3
"""Tests for the in-memory table backend."""

import pytest

from myventi import Delete, Eq, Insert, Select, StorageError, Update
from myventi.interpreter import CURRENT_TIMESTAMP
from myventi.memory_backend import MemoryBackend


def vehicle_insert(vehicle_id="v1", name="Daily"):
    return Insert.from_mapping(
        "vehicles",
        {"id": vehicle_id, "name": name, "year": 2020, "make": "Toyota", "model": "Camry", "type": "gas"},
    )


@pytest.fixture
def backend():
    return MemoryBackend()


class TestInsert:
    """Tests for inserts."""

    def test_fills_defaults_and_timestamps(self, backend):
        """Schema defaults and timestamps are filled in."""
        result = backend.apply(vehicle_insert())
        assert result.rows_affected == 1
        assert result.insert_id == "v1"
        row = backend.apply(Select("vehicles")).rows[0]
        assert row["status"] == "active"
        assert row["created_at"] is not None
        assert row["updated_at"] is not None

    def test_generates_missing_id(self, backend):
        """A missing text id is generated."""
        result = backend.apply(Insert("app_settings", ("value",), ("x",)))
        assert isinstance(result.insert_id, str)

    def test_autoincrement(self, backend):
        """Integer keys count up from 1."""
        first = backend.apply(Insert("migration_log", ("version", "success"), ("1.0.0", 0)))
        second = backend.apply(Insert("migration_log", ("version", "success"), ("1.0.0", 1)))
        assert (first.insert_id, second.insert_id) == (1, 2)

    def test_current_timestamp_resolved(self, backend):
        """CURRENT_TIMESTAMP becomes a real timestamp."""
        backend.apply(
            Insert("migration_log", ("version", "applied_at", "success"), ("1.0.0", CURRENT_TIMESTAMP, 1))
        )
        row = backend.apply(Select("migration_log")).rows[0]
        assert isinstance(row["applied_at"], str)

    def test_duplicate_key(self, backend):
        """A duplicate primary key is rejected like SQLite does."""
        backend.apply(vehicle_insert())
        with pytest.raises(StorageError, match="UNIQUE constraint failed: vehicles.id"):
            backend.apply(vehicle_insert())

    def test_duplicate_key_or_ignore(self, backend):
        """or_ignore keeps the existing row."""
        backend.apply(Insert("app_settings", ("key", "value"), ("region", "US")))
        result = backend.apply(
            Insert("app_settings", ("key", "value"), ("region", "ID"), or_ignore=True)
        )
        assert result.rows_affected == 0
        assert backend.apply(Select("app_settings")).rows[0]["value"] == "US"


class TestSelect:
    """Tests for selects."""

    def test_filter(self, backend):
        """An equality filter selects matching rows."""
        backend.apply(vehicle_insert("v1"))
        backend.apply(vehicle_insert("v2", name="Other"))
        rows = backend.apply(Select("vehicles", Eq("id", "v2"))).rows
        assert [r["name"] for r in rows] == ["Other"]

    def test_rows_are_copies(self, backend):
        """Changing returned rows leaves the table alone."""
        backend.apply(vehicle_insert())
        backend.apply(Select("vehicles")).rows[0]["name"] = "Changed"
        assert backend.apply(Select("vehicles")).rows[0]["name"] == "Daily"


class TestUpdateDelete:
    """Tests for updates and deletes."""

    def test_update_counts_and_stamps(self, backend):
        """Update counts rows and refreshes updated_at."""
        backend.apply(vehicle_insert())
        before = backend.apply(Select("vehicles")).rows[0]
        backend.tables["vehicles"][0]["updated_at"] = "2000-01-01T00:00:00.000+00:00"
        result = backend.apply(Update("vehicles", (("name", "New"),), Eq("id", "v1")))
        row = backend.apply(Select("vehicles")).rows[0]
        assert result.rows_affected == 1
        assert row["name"] == "New"
        assert row["created_at"] == before["created_at"]
        assert row["updated_at"] != "2000-01-01T00:00:00.000+00:00"

    def test_update_missing_row(self, backend):
        """Updating a missing row affects nothing."""
        result = backend.apply(Update("vehicles", (("name", "New"),), Eq("id", "nope")))
        assert result.rows_affected == 0

    def test_delete_filtered_and_truncate(self, backend):
        """Delete removes matching rows or the whole table."""
        backend.apply(vehicle_insert("v1"))
        backend.apply(vehicle_insert("v2"))
        backend.apply(vehicle_insert("v3"))
        assert backend.apply(Delete("vehicles", Eq("id", "v1"))).rows_affected == 1
        assert backend.apply(Delete("vehicles")).rows_affected == 2
        assert backend.apply(Select("vehicles")).rows == []


class TestSnapshot:
    """Tests for snapshot/restore."""

    def test_restore_undoes_writes(self, backend):
        """Restoring a snapshot drops later writes."""
        backend.apply(vehicle_insert("v1"))
        snapshot = backend.snapshot()
        backend.apply(vehicle_insert("v2"))
        backend.apply(Delete("vehicles", Eq("id", "v1")))
        backend.restore(snapshot)
        assert [r["id"] for r in backend.apply(Select("vehicles")).rows] == ["v1"]
