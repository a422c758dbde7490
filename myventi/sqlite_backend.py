"""Embedded SQLite engine backend."""

import logging
import sqlite3
from typing import Any, Optional, Sequence

from .commands import Command, QueryResult, to_sql
from .errors import StorageError
from .schema import INDEXES, TABLES

_logger = logging.getLogger(__name__)


class SqliteBackend:
    """
    Thin wrapper over a sqlite3 connection.

    The connection runs in autocommit mode; transactions are opened
    explicitly with begin() so that commit/rollback stay under the
    record store's control.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def open(self) -> None:
        """Connect and create the schema. Raises sqlite3.Error or OSError."""
        conn = sqlite3.connect(self.db_path, isolation_level=None)
        try:
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA foreign_keys = ON")
            for ddl in TABLES.values():
                conn.execute(ddl)
            for ddl in INDEXES:
                conn.execute(ddl)
        except sqlite3.Error:
            conn.close()
            raise
        self._conn = conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def execute(self, command: Command) -> QueryResult:
        sql, params = to_sql(command)
        return self.execute_sql(sql, params)

    def execute_sql(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        if self._conn is None:
            raise StorageError("Database is closed", statement=sql, params=params)
        _logger.debug("SQL: %s %s", sql, list(params))
        try:
            cursor = self._conn.execute(sql, tuple(params))
            rows = [dict(r) for r in cursor.fetchall()] if cursor.description else []
        except sqlite3.Error as exc:
            _logger.error("SQL execution error: %s (statement=%s params=%s)", exc, sql, list(params))
            raise StorageError(str(exc), statement=sql, params=params) from exc
        return QueryResult(
            rows=rows,
            rows_affected=max(cursor.rowcount, 0),
            insert_id=cursor.lastrowid or None,
        )

    def begin(self) -> None:
        self.execute_sql("BEGIN")

    def commit(self) -> None:
        self.execute_sql("COMMIT")

    def rollback(self) -> None:
        self.execute_sql("ROLLBACK")
