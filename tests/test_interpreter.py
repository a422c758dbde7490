#!/usr/bin/env python3
"""Tests for the fallback SQL-subset interpreter."""

import logging

import pytest

from myventi import Delete, Eq, Insert, Select, StorageError, Update
from myventi.interpreter import CURRENT_TIMESTAMP, classify, parse_statement


class TestClassify:
    """Tests for classify."""

    def test_known_verbs(self):
        """Leading verbs are recognised regardless of case and whitespace."""
        assert classify("  select * from vehicles") == "select"
        assert classify("INSERT INTO x (a) VALUES (1)") == "insert"
        assert classify("Update x SET a = 1") == "update"
        assert classify("DELETE FROM x") == "delete"

    def test_everything_else_is_other(self):
        """DDL, pragmas and blanks classify as other."""
        assert classify("CREATE TABLE x (a)") == "other"
        assert classify("PRAGMA foreign_keys = ON") == "other"
        assert classify("") == "other"


class TestParseSelect:
    """Tests for SELECT parsing."""

    def test_select_all(self):
        """A bare SELECT reads the whole table."""
        assert parse_statement("SELECT * FROM vehicles") == Select("vehicles")

    def test_select_where_param(self):
        """A single equality filter binds the first parameter."""
        assert parse_statement("SELECT * FROM vehicles WHERE id = ?", ["v1"]) == Select(
            "vehicles", Eq("id", "v1")
        )

    def test_select_where_literal(self):
        """Quoted literals work as filter values."""
        assert parse_statement("SELECT * FROM vehicles WHERE status = 'active';") == Select(
            "vehicles", Eq("status", "active")
        )

    def test_extra_predicates_ignored_with_warning(self, caplog):
        """Only the first predicate is used and the rest are logged."""
        sql = "SELECT * FROM fuel_entries WHERE vehicle_id = ? AND date >= ?"
        with caplog.at_level(logging.WARNING, logger="myventi.interpreter"):
            command = parse_statement(sql, ["v1", "2024-01-01"])
        assert command == Select("fuel_entries", Eq("vehicle_id", "v1"))
        assert "ignores extra predicates" in caplog.text

    def test_unsupported_filter_returns_whole_table(self, caplog):
        """A filter that cannot be parsed returns every row."""
        with caplog.at_level(logging.WARNING, logger="myventi.interpreter"):
            command = parse_statement("SELECT * FROM vehicles WHERE name LIKE ?", ["%a%"])
        assert command == Select("vehicles")
        assert "cannot filter" in caplog.text


class TestParseInsert:
    """Tests for INSERT parsing."""

    def test_values_with_params_and_literals(self):
        """VALUES may mix literals and placeholders."""
        command = parse_statement(
            "INSERT INTO app_settings (key, value) VALUES ('region', ?)", ["US"]
        )
        assert command == Insert("app_settings", ("key", "value"), ("region", "US"))

    def test_columns_only_takes_params(self):
        """Without VALUES the parameters fill the columns in order."""
        command = parse_statement("INSERT INTO app_settings (key, value)", ["region", "US"])
        assert command == Insert("app_settings", ("key", "value"), ("region", "US"))

    def test_or_ignore_and_keywords(self):
        """OR IGNORE and CURRENT_TIMESTAMP are understood."""
        command = parse_statement(
            "INSERT OR IGNORE INTO migration_log (version, applied_at, success) "
            "VALUES (?, CURRENT_TIMESTAMP, 1)",
            ["1.0.0"],
        )
        assert command.or_ignore
        assert command.values[0] == "1.0.0"
        assert command.values[1] is CURRENT_TIMESTAMP
        assert command.values[2] == 1

    def test_quoted_comma(self):
        """Commas inside quotes do not split values."""
        command = parse_statement(
            "INSERT INTO app_settings (key, value) VALUES ('note', 'a, b')"
        )
        assert command.values == ("note", "a, b")

    def test_missing_params(self):
        """Too few parameters raise StorageError."""
        with pytest.raises(StorageError, match="Not enough parameters"):
            parse_statement("INSERT INTO app_settings (key, value) VALUES (?, ?)", ["x"])

    def test_unknown_table(self):
        """Unknown tables raise StorageError."""
        with pytest.raises(StorageError):
            parse_statement("INSERT INTO cars (id) VALUES (?)", ["c1"])


class TestParseUpdateDelete:
    """Tests for UPDATE and DELETE parsing."""

    def test_update(self):
        """SET values come first and the WHERE value last."""
        command = parse_statement(
            "UPDATE vehicles SET name = ?, year = ? WHERE id = ?", ["A", 2020, "v1"]
        )
        assert command == Update(
            "vehicles", (("name", "A"), ("year", 2020)), Eq("id", "v1")
        )

    def test_update_without_where_is_noop(self):
        """An UPDATE without WHERE does nothing."""
        assert parse_statement("UPDATE vehicles SET name = ?", ["A"]) is None

    def test_update_with_unsupported_where_is_noop(self):
        """An UPDATE with a non-equality filter does nothing."""
        assert parse_statement("UPDATE vehicles SET name = ? WHERE year > ?", ["A", 1]) is None

    def test_delete(self):
        """DELETE truncates or filters by one column."""
        assert parse_statement("DELETE FROM vehicles") == Delete("vehicles")
        assert parse_statement("DELETE FROM vehicles WHERE id = ?", ["v1"]) == Delete(
            "vehicles", Eq("id", "v1")
        )

    def test_delete_with_unsupported_where_is_noop(self):
        """A DELETE with a non-equality filter does nothing."""
        assert parse_statement("DELETE FROM vehicles WHERE year < ?", [2000]) is None

    def test_other_statements_are_noops(self):
        """Schema and transaction statements parse to nothing."""
        assert parse_statement("CREATE TABLE IF NOT EXISTS x (a TEXT)") is None
        assert parse_statement("BEGIN") is None
