"""Error taxonomy for the note tree store.

Every failure reported by the store carries a human-readable message and a
machine-readable kind. No error leaves the database partially mutated: the
store rolls back the surrounding transaction before the error propagates.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Machine-readable error kinds."""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    STRUCTURAL_CONFLICT = "structural_conflict"
    STORAGE = "storage"


class NoteTreeError(Exception):
    """Base exception for all note tree errors.

    Attributes:
        message: Human-readable error message.
        kind: Machine-readable error kind.
        details: Additional context about the error.
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for tool and JSON responses."""
        result: dict[str, Any] = {"error": self.message, "kind": self.kind.value}
        if self.details:
            result["details"] = self.details
        return result


class ValidationError(NoteTreeError):
    """A malformed or unparseable identifier or argument."""

    kind = ErrorKind.VALIDATION


class NotFoundError(NoteTreeError):
    """A referenced note does not exist."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, note_id: int, *, role: str = "Note") -> None:
        super().__init__(f"{role} {note_id} not found", details={"id": note_id})
        self.note_id = note_id


class StructuralConflictError(NoteTreeError):
    """A move would make a note its own parent or ancestor."""

    kind = ErrorKind.STRUCTURAL_CONFLICT


class StorageError(NoteTreeError):
    """The underlying database failed; the operation was rolled back."""

    kind = ErrorKind.STORAGE
