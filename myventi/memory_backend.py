"""In-memory tables used when the embedded engine is unavailable."""

import copy
import uuid
from typing import Any, Dict, List

from .commands import Command, Delete, Insert, QueryResult, Select, Update
from .errors import StorageError
from .interpreter import CURRENT_TIMESTAMP
from .rows import utc_now
from .schema import (
    AUTOINCREMENT_TABLES,
    COLUMN_DEFAULTS,
    PRIMARY_KEYS,
    TABLE_COLUMNS,
    TIMESTAMP_COLUMNS,
)


class MemoryBackend:
    """
    One list of row dicts per table.

    Rows handed out by SELECT are copies; callers never see live storage.
    """

    def __init__(self):
        self.tables: Dict[str, List[Dict[str, Any]]] = {
            name: [] for name in TABLE_COLUMNS
        }
        self._sequences: Dict[str, int] = {name: 0 for name in AUTOINCREMENT_TABLES}

    def snapshot(self):
        """Deep copy of all tables, for the transaction undo log."""
        return copy.deepcopy((self.tables, self._sequences))

    def restore(self, snapshot) -> None:
        self.tables, self._sequences = copy.deepcopy(snapshot)

    def apply(self, command: Command) -> QueryResult:
        if isinstance(command, Select):
            return self._select(command)
        if isinstance(command, Insert):
            return self._insert(command)
        if isinstance(command, Update):
            return self._update(command)
        if isinstance(command, Delete):
            return self._delete(command)
        raise TypeError(f"Not a store command: {command!r}")

    def _select(self, command: Select) -> QueryResult:
        rows = self.tables[command.table]
        if command.where is not None:
            rows = [r for r in rows if r.get(command.where.column) == command.where.value]
        return QueryResult(rows=[dict(r) for r in rows])

    def _insert(self, command: Insert) -> QueryResult:
        table = command.table
        now = utc_now()
        row: Dict[str, Any] = {column: None for column in TABLE_COLUMNS[table]}
        row.update(COLUMN_DEFAULTS.get(table, {}))
        for column, value in command.as_row().items():
            row[column] = now if value is CURRENT_TIMESTAMP else value

        key = PRIMARY_KEYS[table]
        if row[key] is None:
            row[key] = self._generate_id(table)
        elif table in AUTOINCREMENT_TABLES:
            self._sequences[table] = max(self._sequences[table], int(row[key]))

        for column in TIMESTAMP_COLUMNS:
            if column in row and row[column] is None:
                row[column] = now

        if any(existing[key] == row[key] for existing in self.tables[table]):
            if command.or_ignore:
                return QueryResult(rows_affected=0)
            raise StorageError(
                f"UNIQUE constraint failed: {table}.{key}",
                statement=f"INSERT INTO {table}",
                params=command.values,
            )

        self.tables[table].append(row)
        return QueryResult(rows_affected=1, insert_id=row[key])

    def _generate_id(self, table: str) -> Any:
        if table in AUTOINCREMENT_TABLES:
            self._sequences[table] += 1
            return self._sequences[table]
        return uuid.uuid4().hex

    def _update(self, command: Update) -> QueryResult:
        now = utc_now()
        changes = {
            column: now if value is CURRENT_TIMESTAMP else value
            for column, value in command.assignments
        }
        stamp = "updated_at" in TABLE_COLUMNS[command.table] and "updated_at" not in changes
        affected = 0
        for row in self.tables[command.table]:
            if row.get(command.where.column) != command.where.value:
                continue
            row.update(changes)
            if stamp:
                row["updated_at"] = now
            affected += 1
        return QueryResult(rows_affected=affected)

    def _delete(self, command: Delete) -> QueryResult:
        rows = self.tables[command.table]
        if command.where is None:
            self.tables[command.table] = []
            return QueryResult(rows_affected=len(rows))
        kept = [r for r in rows if r.get(command.where.column) != command.where.value]
        self.tables[command.table] = kept
        return QueryResult(rows_affected=len(rows) - len(kept))
