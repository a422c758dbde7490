"""Exception hierarchy for myventi."""

from typing import Any, Dict, Optional, Sequence


class VentiError(Exception):
    """Base exception for all myventi errors."""


class NotInitializedError(VentiError):
    """Record store used before init() (or after close())."""


class ValidationError(VentiError):
    """Form input is malformed or out of range.

    Raised by the entity services before any store call, so a validation
    failure never leaves a partial write behind.
    """

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        self.errors = dict(errors or {})
        super().__init__(message)


class ConsistencyError(ValidationError):
    """amount, quantity and price_per_unit disagree beyond the tolerance."""


class NotFoundError(VentiError):
    """Update or delete target does not exist."""

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found")


class StorageError(VentiError):
    """The storage backend failed.

    Carries the offending statement and parameters; the native error is
    available as ``__cause__``.
    """

    def __init__(
        self,
        message: str,
        *,
        statement: str = "",
        params: Sequence[Any] = (),
    ) -> None:
        self.statement = statement
        self.params = tuple(params)
        super().__init__(message)


class BatchError(StorageError):
    """A batch operation aborted part-way.

    ``completed`` is how many items were applied before the failure;
    ``rolled_back`` says whether those writes were undone.
    """

    def __init__(
        self,
        operation: str,
        completed: int,
        total: int,
        rolled_back: bool,
    ) -> None:
        self.operation = operation
        self.completed = completed
        self.total = total
        self.rolled_back = rolled_back
        outcome = "rolled back" if rolled_back else "left in place"
        super().__init__(
            f"{operation} failed at item {completed + 1} of {total}; "
            f"{completed} completed item(s) {outcome}"
        )


class MigrationError(VentiError):
    """Legacy import failed: invalid snapshot, write failure, or missing backup."""
