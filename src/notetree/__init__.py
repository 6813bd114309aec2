"""Ordered tree of notes with trash and full-text search."""

from notetree.errors import (
    NotFoundError,
    NoteTreeError,
    StorageError,
    StructuralConflictError,
    ValidationError,
)
from notetree.store import NoteStore

__all__ = [
    "NoteStore",
    "NoteTreeError",
    "NotFoundError",
    "StorageError",
    "StructuralConflictError",
    "ValidationError",
]
