"""
Error taxonomy shared by the classifier, the reconciler and the stores.
"""

from __future__ import annotations

from typing import Any


class BookSyncError(Exception):
    """Base class for every error raised by booksync."""


class ValidationError(BookSyncError, ValueError):
    """Malformed input, e.g. a negative amount or an over-received line."""

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFound(BookSyncError, LookupError):
    """A referenced account or document does not exist in tenant scope."""

    def __init__(self, entity: str, key: Any, tenant_id: int | None = None) -> None:
        scope = f" for tenant {tenant_id}" if tenant_id is not None else ""
        super().__init__(f"{entity} {key} not found{scope}")
        self.entity = entity
        self.key = key
        self.tenant_id = tenant_id


class StorageError(BookSyncError, RuntimeError):
    """The persistence layer failed to run a query or an update."""
