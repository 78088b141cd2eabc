"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from svelte5search.config.errors import ErrorCode, Svelte5SearchError

    raise Svelte5SearchError(ErrorCode.SEARCH_INVALID_QUERY, "Unbalanced quote")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Corpus / sync errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    SYNC_TRANSACTION_FAILED = "SYNC_TRANSACTION_FAILED"

    # Index errors
    INDEX_INCONSISTENT = "INDEX_INCONSISTENT"

    # Search errors
    SEARCH_INVALID_QUERY = "SEARCH_INVALID_QUERY"
    SEARCH_INDEX_UNAVAILABLE = "SEARCH_INDEX_UNAVAILABLE"

    # Storage errors
    STORAGE_CONNECTION_FAILED = "STORAGE_CONNECTION_FAILED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"


class Svelte5SearchError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class CorpusValidationError(Svelte5SearchError):
    """A corpus record is missing a required field. The record is skipped."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.VALIDATION_ERROR, message, details)


class TransactionError(Svelte5SearchError):
    """The sync transaction failed and was rolled back as a whole."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SYNC_TRANSACTION_FAILED, message, details)


class IndexConsistencyError(Svelte5SearchError):
    """The lexical index diverged from the primary rows and needs a rebuild."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INDEX_INCONSISTENT, message, details)


class QueryError(Svelte5SearchError):
    """The index engine rejected a search expression."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.SEARCH_INVALID_QUERY, message, details)


class StorageError(Svelte5SearchError):
    """Storage/database errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.STORAGE_CONNECTION_FAILED, message, details)
