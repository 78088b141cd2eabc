"""
Sync Contracts - Interfaces for sync domain.
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Protocol, runtime_checkable

from svelte5search.domains.corpus.models import (
    CorpusItem,
    CorpusRecord,
    ItemKind,
    SyncMetadata,
)


@runtime_checkable
class CorpusStore(Protocol):
    """Contract for stores the sync manager can write a corpus into."""

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Scope in which all writes commit together or not at all."""
        ...

    async def fetch_hashes(self, kind: ItemKind) -> dict[str, tuple[int, str | None]]:
        """Map unique key -> (id, content_hash) for every stored row."""
        ...

    async def insert_item(self, item: CorpusItem) -> int:
        """Insert a new row and return its id."""
        ...

    async def update_item(self, record_id: int, item: CorpusItem) -> None:
        """Replace the content of an existing row, keeping its id."""
        ...

    async def count(self, kind: ItemKind) -> int:
        """Number of stored rows of a kind."""
        ...

    async def list_records(self, kind: ItemKind) -> list[CorpusRecord]:
        """All stored rows of a kind, ordered by id."""
        ...

    async def get_metadata(self) -> SyncMetadata:
        """Read sync bookkeeping."""
        ...

    async def set_metadata(self, metadata: SyncMetadata) -> None:
        """Write sync bookkeeping."""
        ...
