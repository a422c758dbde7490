"""
Record store with an embedded engine and an in-memory fallback.

The store is an explicit state machine:

    UNINITIALIZED --init()--> EMBEDDED --downgrade()--> FALLBACK
          |                      |
          +--init() fails--------+--close()--> UNINITIALIZED
          +--engine="memory"---> FALLBACK

FALLBACK is permanent for the lifetime of the instance.
"""

import logging
import sqlite3
from contextlib import contextmanager
from enum import Enum
from typing import Any, Iterator, Optional, Sequence

from .commands import Command, Insert, QueryResult
from .errors import NotInitializedError, StorageError
from .interpreter import classify, parse_statement
from .memory_backend import MemoryBackend
from .rows import utc_now
from .schema import DEFAULT_SETTINGS
from .sqlite_backend import SqliteBackend

_logger = logging.getLogger(__name__)


class StoreState(Enum):
    UNINITIALIZED = "uninitialized"
    EMBEDDED = "embedded"  # SQLite engine
    FALLBACK = "fallback"  # in-memory tables


class RecordStore:
    """
    SQL-shaped persistence used by the entity services.

    - execute(command): run a tagged command on the active backend
    - execute_sql(statement, params): run a raw statement (interpreted in fallback mode)
    - transaction(): all-or-nothing block, re-entrant
    """

    def __init__(
        self,
        db_path: str = ":memory:",
        engine: str = "sqlite",
        auto_downgrade: bool = False,
        fallback_undo_log: bool = True,
    ):
        self.db_path = db_path
        self.engine = engine
        self.auto_downgrade = auto_downgrade
        self.fallback_undo_log = fallback_undo_log
        self._state = StoreState.UNINITIALIZED
        self._sqlite: Optional[SqliteBackend] = None
        self._memory: Optional[MemoryBackend] = None
        self._depth = 0
        self._pending_downgrade: Optional[str] = None

    @classmethod
    def from_config(cls, config) -> "RecordStore":
        return cls(
            db_path=config.db_path,
            engine=config.engine,
            auto_downgrade=config.auto_downgrade,
            fallback_undo_log=config.fallback_undo_log,
        )

    @property
    def state(self) -> StoreState:
        return self._state

    def is_embedded_engine_active(self) -> bool:
        return self._state == StoreState.EMBEDDED

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @property
    def is_atomic(self) -> bool:
        """Whether a failed transaction undoes its writes in the current mode."""
        return self._state == StoreState.EMBEDDED or self.fallback_undo_log

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def init(self) -> "RecordStore":
        """Open the embedded engine, or switch to fallback mode if that fails."""
        if self._state != StoreState.UNINITIALIZED:
            return self
        if self.engine == "memory":
            self._enter_fallback("memory engine configured")
            return self

        backend = SqliteBackend(self.db_path)
        try:
            backend.open()
        except (sqlite3.Error, OSError) as exc:
            _logger.warning("Embedded engine unavailable (%s); using fallback store", exc)
            self._enter_fallback(str(exc))
            return self

        self._sqlite = backend
        self._state = StoreState.EMBEDDED
        self._seed_settings()
        _logger.info("Record store initialised with SQLite at %s", self.db_path)
        return self

    def close(self) -> None:
        """Release the embedded engine. No-op in fallback mode."""
        if self._state != StoreState.EMBEDDED:
            return
        self._sqlite.close()
        self._sqlite = None
        self._state = StoreState.UNINITIALIZED
        _logger.info("Record store closed")

    def downgrade(self, reason: str) -> None:
        """Switch from the embedded engine to the fallback store for good."""
        if self._state == StoreState.FALLBACK:
            return
        if self._state != StoreState.EMBEDDED:
            raise NotInitializedError("Cannot downgrade a store that is not initialised")
        if self.in_transaction:
            raise StorageError("Cannot downgrade inside a transaction")
        _logger.warning(
            "Downgrading record store to fallback mode: %s "
            "(data in %s is not visible to the fallback store)",
            reason,
            self.db_path,
        )
        self._sqlite.close()
        self._sqlite = None
        self._enter_fallback(reason)

    def _enter_fallback(self, reason: str) -> None:
        self._memory = MemoryBackend()
        self._state = StoreState.FALLBACK
        self._seed_settings()
        _logger.info("Record store running in fallback mode (%s)", reason)

    def _seed_settings(self) -> None:
        now = utc_now()
        for key, value in DEFAULT_SETTINGS.items():
            self.execute(
                Insert(
                    "app_settings",
                    ("key", "value", "created_at", "updated_at"),
                    (key, value, now, now),
                    or_ignore=True,
                )
            )

    def _require_ready(self) -> None:
        if self._state == StoreState.UNINITIALIZED:
            raise NotInitializedError("Record store not initialised. Call init() first.")

    # -------------------------------------------------------------------------
    # Statements
    # -------------------------------------------------------------------------

    def execute(self, command: Command) -> QueryResult:
        self._require_ready()
        if self._state == StoreState.FALLBACK:
            _logger.debug("Fallback: %s", command)
            return self._memory.apply(command)
        try:
            return self._sqlite.execute(command)
        except StorageError as exc:
            self._note_failure(exc)
            raise

    def execute_sql(self, statement: str, params: Sequence[Any] = ()) -> QueryResult:
        self._require_ready()
        if self._state == StoreState.FALLBACK:
            _logger.debug("Fallback SQL (%s): %s %s", classify(statement), statement, list(params))
            command = parse_statement(statement, params)
            if command is None:
                return QueryResult()
            return self._memory.apply(command)
        try:
            return self._sqlite.execute_sql(statement, params)
        except StorageError as exc:
            self._note_failure(exc)
            raise

    def _note_failure(self, exc: StorageError) -> None:
        if not self.auto_downgrade:
            return
        # Constraint violations are the caller's fault, not the engine's
        if isinstance(exc.__cause__, sqlite3.IntegrityError):
            return
        reason = f"engine error: {exc}"
        if self.in_transaction:
            self._pending_downgrade = reason
        else:
            self.downgrade(reason)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator["RecordStore"]:
        """
        Run a block all-or-nothing.

        Nested blocks join the outermost one. In fallback mode the undo log
        snapshots every table on entry and restores it on error; with
        fallback_undo_log disabled, writes made before the error stay.
        """
        self._require_ready()
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        embedded = self._state == StoreState.EMBEDDED
        snapshot = None
        if embedded:
            self._sqlite.begin()
        elif self.fallback_undo_log:
            snapshot = self._memory.snapshot()

        self._depth = 1
        try:
            yield self
            if embedded:
                self._sqlite.commit()
        except BaseException:
            if embedded:
                self._rollback_embedded()
            elif snapshot is not None:
                self._memory.restore(snapshot)
                _logger.debug("Fallback transaction rolled back")
            raise
        finally:
            self._depth = 0
            if self._pending_downgrade:
                reason, self._pending_downgrade = self._pending_downgrade, None
                self.downgrade(reason)

    def _rollback_embedded(self) -> None:
        try:
            self._sqlite.rollback()
        except StorageError:
            # The original error is re-raised by the caller
            _logger.exception("Rollback failed")
