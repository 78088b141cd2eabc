"""
Adapters - Storage backends.

Storage engines are wrapped here to isolate domains from driver details.
"""

from .memory import InMemoryCorpusStore
from .sqlite import SQLiteIndexStore

__all__ = [
    "SQLiteIndexStore",
    "InMemoryCorpusStore",
]
