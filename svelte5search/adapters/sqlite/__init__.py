"""
SQLite Adapter - Durable corpus storage with FTS5 search.
"""

from .repository import SQLiteIndexStore

__all__ = ["SQLiteIndexStore"]
