"""
SQL-subset interpreter for fallback mode.

Turns the statement shapes the application issues into store commands:

- SELECT * FROM t [WHERE col = ?]
- INSERT [OR IGNORE] INTO t (cols) [VALUES (...)]
- UPDATE t SET a = ?, b = ? WHERE col = ?
- DELETE FROM t [WHERE col = ?]

Anything else (CREATE, PRAGMA, BEGIN, ...) is a no-op. Joins, aggregates and
multi-predicate filters are not supported; only the first equality predicate
is honoured.
"""

import logging
import re
from typing import Any, List, Optional, Sequence, Tuple

from .commands import Command, Delete, Eq, Insert, Select, Update
from .errors import StorageError

_logger = logging.getLogger(__name__)

CURRENT_TIMESTAMP = object()

_SELECT_RE = re.compile(r"\bFROM\s+(\w+)", re.IGNORECASE)
_INSERT_RE = re.compile(
    r"^INSERT\s+(OR\s+IGNORE\s+)?INTO\s+(\w+)\s*\(([^)]+)\)"
    r"(?:\s*VALUES\s*\((.*)\))?",
    re.IGNORECASE | re.DOTALL,
)
_UPDATE_RE = re.compile(
    r"^UPDATE\s+(\w+)\s+SET\s+(.+?)(?:\s+WHERE\s+(.+))?$",
    re.IGNORECASE | re.DOTALL,
)
_DELETE_RE = re.compile(
    r"^DELETE\s+FROM\s+(\w+)(?:\s+WHERE\s+(.+))?$",
    re.IGNORECASE | re.DOTALL,
)
_WHERE_EQ_RE = re.compile(r"^\s*(\w+)\s*=\s*(\?|'[^']*'|-?\d+(?:\.\d+)?)", re.IGNORECASE)
_EXTRA_PREDICATE_RE = re.compile(r"\b(AND|OR|ORDER|GROUP|LIMIT)\b", re.IGNORECASE)


def classify(sql: str) -> str:
    """Leading verb in lower case: select/insert/update/delete/other."""
    verb = sql.strip().split(None, 1)[0].lower() if sql.strip() else ""
    return verb if verb in ("select", "insert", "update", "delete") else "other"


class _Params:
    """Positional parameter cursor."""

    def __init__(self, sql: str, params: Sequence[Any]):
        self._sql = sql
        self._params = list(params)
        self._index = 0

    def next(self) -> Any:
        if self._index >= len(self._params):
            raise StorageError(
                "Not enough parameters for statement",
                statement=self._sql,
                params=self._params,
            )
        value = self._params[self._index]
        self._index += 1
        return value


def _literal(token: str, cursor: _Params) -> Any:
    token = token.strip()
    if token == "?":
        return cursor.next()
    upper = token.upper()
    if upper == "CURRENT_TIMESTAMP":
        return CURRENT_TIMESTAMP
    if upper == "NULL":
        return None
    if len(token) >= 2 and token[0] == token[-1] == "'":
        return token[1:-1].replace("''", "'")
    try:
        return int(token)
    except ValueError:
        pass
    try:
        return float(token)
    except ValueError:
        raise StorageError(
            f"Unsupported value expression: {token}", statement=cursor._sql
        ) from None


def _split_list(text: str) -> List[str]:
    """Split on commas outside single quotes."""
    parts, current, quoted = [], [], False
    for ch in text:
        if ch == "'":
            quoted = not quoted
        if ch == "," and not quoted:
            parts.append("".join(current))
            current = []
        else:
            current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _parse_where(
    clause: Optional[str], cursor: _Params, sql: str
) -> Optional[Eq]:
    if not clause:
        return None
    match = _WHERE_EQ_RE.match(clause)
    if not match:
        return None
    rest = clause[match.end():]
    if _EXTRA_PREDICATE_RE.search(rest):
        _logger.warning("Fallback mode ignores extra predicates in: %s", sql)
    return Eq(match.group(1), _literal(match.group(2), cursor))


def _build(sql: str, params: Sequence[Any], factory, *args, **kwargs) -> Command:
    try:
        return factory(*args, **kwargs)
    except ValueError as exc:
        raise StorageError(str(exc), statement=sql, params=params) from exc


def parse_statement(sql: str, params: Sequence[Any] = ()) -> Optional[Command]:
    """
    Parse one statement into a command.

    Returns None for statements that are no-ops in fallback mode (DDL,
    pragmas, transaction control, UPDATE without WHERE, unparseable WHERE).
    """
    text = sql.strip().rstrip(";").strip()
    verb = classify(text)
    cursor = _Params(sql, params)

    if verb == "select":
        match = _SELECT_RE.search(text)
        if not match:
            return None
        where_match = re.search(r"\bWHERE\s+(.+)$", text, re.IGNORECASE | re.DOTALL)
        where = None
        if where_match:
            where = _parse_where(where_match.group(1), cursor, sql)
            if where is None:
                _logger.warning("Fallback mode cannot filter on: %s", sql)
        return _build(sql, params, Select, match.group(1), where)

    if verb == "insert":
        match = _INSERT_RE.match(text)
        if not match:
            return None
        or_ignore, table, column_text, value_text = match.groups()
        columns = tuple(c.strip() for c in column_text.split(","))
        if value_text is None:
            values = tuple(cursor.next() for _ in columns)
        else:
            values = tuple(_literal(v, cursor) for v in _split_list(value_text))
        return _build(sql, params, Insert, table, columns, values, bool(or_ignore))

    if verb == "update":
        match = _UPDATE_RE.match(text)
        if not match:
            return None
        table, set_text, where_text = match.groups()
        if not where_text:
            _logger.warning("Fallback mode skips UPDATE without WHERE: %s", sql)
            return None
        assignments: List[Tuple[str, Any]] = []
        for assignment in _split_list(set_text):
            column, _, value = assignment.partition("=")
            assignments.append((column.strip(), _literal(value, cursor)))
        where = _parse_where(where_text, cursor, sql)
        if where is None:
            _logger.warning("Fallback mode cannot filter on: %s", sql)
            return None
        return _build(sql, params, Update, table, tuple(assignments), where)

    if verb == "delete":
        match = _DELETE_RE.match(text)
        if not match:
            return None
        table, where_text = match.groups()
        if where_text is None:
            return _build(sql, params, Delete, table)
        where = _parse_where(where_text, cursor, sql)
        if where is None:
            _logger.warning("Fallback mode cannot filter on: %s", sql)
            return None
        return _build(sql, params, Delete, table, where)

    return None
