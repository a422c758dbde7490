"""
Tagged store commands.

Entity services describe what they want as one of four commands; each
backend applies them its own way (compiled to SQL, or applied to in-memory
tables). Filters are single-column equality, which is all the services need.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .schema import check_columns, check_table


@dataclass(frozen=True)
class Eq:
    """column = value"""

    column: str
    value: Any


@dataclass(frozen=True)
class Select:
    table: str
    where: Optional[Eq] = None

    def __post_init__(self):
        check_columns(self.table, [self.where.column] if self.where else [])


@dataclass(frozen=True)
class Insert:
    table: str
    columns: Tuple[str, ...]
    values: Tuple[Any, ...]
    or_ignore: bool = False

    def __post_init__(self):
        if len(self.columns) != len(self.values):
            raise ValueError(
                f"Insert into {self.table}: {len(self.columns)} columns "
                f"but {len(self.values)} values"
            )
        check_columns(self.table, self.columns)

    @classmethod
    def from_mapping(
        cls, table: str, row: Mapping[str, Any], or_ignore: bool = False
    ) -> "Insert":
        """Build an insert from a column -> value mapping."""
        return cls(table, tuple(row), tuple(row.values()), or_ignore)

    def as_row(self) -> Dict[str, Any]:
        return dict(zip(self.columns, self.values))


@dataclass(frozen=True)
class Update:
    table: str
    assignments: Tuple[Tuple[str, Any], ...]
    where: Eq

    def __post_init__(self):
        if not self.assignments:
            raise ValueError(f"Update of {self.table} has no assignments")
        check_columns(
            self.table, [c for c, _ in self.assignments] + [self.where.column]
        )

    @classmethod
    def from_mapping(
        cls, table: str, changes: Mapping[str, Any], where: Eq
    ) -> "Update":
        return cls(table, tuple(changes.items()), where)


@dataclass(frozen=True)
class Delete:
    """Delete matching rows; with no filter the table is truncated."""

    table: str
    where: Optional[Eq] = None

    def __post_init__(self):
        check_table(self.table)
        if self.where:
            check_columns(self.table, [self.where.column])


Command = Union[Select, Insert, Update, Delete]


@dataclass
class QueryResult:
    """Rows returned by a statement, plus write bookkeeping."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    rows_affected: int = 0
    insert_id: Optional[Any] = None


def to_sql(command: Command) -> Tuple[str, Tuple[Any, ...]]:
    """Compile a command to a parameterised SQL statement."""
    if isinstance(command, Select):
        sql = f"SELECT * FROM {command.table}"
        if command.where is None:
            return sql, ()
        return f"{sql} WHERE {command.where.column} = ?", (command.where.value,)

    if isinstance(command, Insert):
        verb = "INSERT OR IGNORE" if command.or_ignore else "INSERT"
        placeholders = ", ".join("?" for _ in command.columns)
        return (
            f"{verb} INTO {command.table} ({', '.join(command.columns)}) "
            f"VALUES ({placeholders})",
            tuple(command.values),
        )

    if isinstance(command, Update):
        sets = ", ".join(f"{column} = ?" for column, _ in command.assignments)
        params = tuple(value for _, value in command.assignments)
        return (
            f"UPDATE {command.table} SET {sets} WHERE {command.where.column} = ?",
            params + (command.where.value,),
        )

    if isinstance(command, Delete):
        sql = f"DELETE FROM {command.table}"
        if command.where is None:
            return sql, ()
        return f"{sql} WHERE {command.where.column} = ?", (command.where.value,)

    raise TypeError(f"Not a store command: {command!r}")
