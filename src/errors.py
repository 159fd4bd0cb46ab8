"""Exception hierarchy for the task board.

ValidationError and NotFoundError are recoverable: the operation is
rejected and state is left unchanged. Storage problems never propagate
out of the TaskStore; they surface as a PersistenceWarning instead.
"""
from __future__ import annotations
from typing import Optional


class KanbanError(Exception):
    """Base exception for board failures."""


class ValidationError(ValueError, KanbanError):
    """Blank fields, bad point values, budget overruns, invalid statuses."""


class NotFoundError(LookupError, KanbanError):
    """A task or subtask id did not resolve."""

    def __init__(self, message: str, ident: Optional[str] = None):
        super().__init__(message)
        self.ident = ident


class StorageError(KanbanError):
    """Key-value store read/write failures."""


class PersistenceWarning(UserWarning):
    """Emitted when a load or save failed; in-memory state is kept."""
