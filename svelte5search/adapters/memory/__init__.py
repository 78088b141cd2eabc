"""
Memory Adapter - In-process corpus storage.
"""

from .store import InMemoryCorpusStore

__all__ = ["InMemoryCorpusStore"]
