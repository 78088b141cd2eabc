"""
Sync Domain - Incremental, transactional ingestion of corpus snapshots.
"""

from .contracts import CorpusStore
from .manager import SyncManager

__all__ = ["CorpusStore", "SyncManager"]
