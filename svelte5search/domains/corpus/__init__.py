"""
Corpus Domain - Typed knowledge/example items and their persisted metadata.
"""

from .loader import load_corpus, read_corpus_file
from .models import (
    CorpusItem,
    CorpusRecord,
    ExampleItem,
    ExampleRecord,
    ItemKind,
    KnowledgeItem,
    KnowledgeRecord,
    RejectedRecord,
    SyncCounts,
    SyncMetadata,
    SyncReport,
    compute_content_hash,
    validate_item,
)

__all__ = [
    "ItemKind",
    "KnowledgeItem",
    "ExampleItem",
    "CorpusItem",
    "KnowledgeRecord",
    "ExampleRecord",
    "CorpusRecord",
    "SyncCounts",
    "SyncReport",
    "SyncMetadata",
    "RejectedRecord",
    "compute_content_hash",
    "validate_item",
    "read_corpus_file",
    "load_corpus",
]
