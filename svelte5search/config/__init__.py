"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    CorpusValidationError,
    ErrorCode,
    IndexConsistencyError,
    QueryError,
    StorageError,
    Svelte5SearchError,
    TransactionError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "Svelte5SearchError",
    "CorpusValidationError",
    "TransactionError",
    "IndexConsistencyError",
    "QueryError",
    "StorageError",
]
