"""
In-Memory Corpus Store - Process-local corpus storage for the fuzzy backend.

Implements the same write contract as the SQLite store so the sync manager
drives both. Transactions snapshot the tables and restore them on failure.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from svelte5search.domains.corpus.models import (
    RECORD_TYPES,
    CorpusItem,
    CorpusRecord,
    ItemKind,
    SyncMetadata,
)

logger = logging.getLogger(__name__)

__all__ = ["InMemoryCorpusStore"]


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InMemoryCorpusStore:
    """
    Dictionary-backed corpus store.

    Example:
        >>> store = InMemoryCorpusStore()
        >>> async with store.transaction():
        ...     await store.insert_item(item)
        >>> records = await store.list_records(ItemKind.KNOWLEDGE)
    """

    def __init__(self) -> None:
        self._rows: dict[ItemKind, dict[int, CorpusRecord]] = {kind: {} for kind in ItemKind}
        self._next_id: dict[ItemKind, int] = {kind: 1 for kind in ItemKind}
        self._metadata = SyncMetadata()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Apply the enclosed writes atomically."""
        snapshot = (
            copy.deepcopy(self._rows),
            dict(self._next_id),
            self._metadata.model_copy(),
        )
        try:
            yield
        except BaseException:
            self._rows, self._next_id, self._metadata = snapshot
            logger.warning("In-memory transaction rolled back")
            raise

    async def fetch_hashes(self, kind: ItemKind) -> dict[str, tuple[int, str | None]]:
        key_field = RECORD_TYPES[kind].text_fields[0]
        return {
            getattr(record, key_field): (record_id, record.content_hash)
            for record_id, record in self._rows[kind].items()
        }

    async def insert_item(self, item: CorpusItem) -> int:
        record_id = self._next_id[item.kind]
        self._next_id[item.kind] += 1

        timestamp = _now()
        self._rows[item.kind][record_id] = RECORD_TYPES[item.kind](
            id=record_id,
            content_hash=item.content_hash,
            version=1,
            created_at=timestamp,
            updated_at=timestamp,
            **item.model_dump(),
        )
        return record_id

    async def update_item(self, record_id: int, item: CorpusItem) -> None:
        current = self._rows[item.kind][record_id]
        self._rows[item.kind][record_id] = current.model_copy(
            update={
                **item.model_dump(),
                "content_hash": item.content_hash,
                "version": current.version + 1,
                "updated_at": _now(),
            }
        )

    async def get_record(self, kind: ItemKind, key: str) -> CorpusRecord | None:
        key_field = RECORD_TYPES[kind].text_fields[0]
        for record in self._rows[kind].values():
            if getattr(record, key_field) == key:
                return record
        return None

    async def list_records(self, kind: ItemKind) -> list[CorpusRecord]:
        return [self._rows[kind][record_id] for record_id in sorted(self._rows[kind])]

    async def count(self, kind: ItemKind) -> int:
        return len(self._rows[kind])

    async def get_metadata(self) -> SyncMetadata:
        return self._metadata.model_copy()

    async def set_metadata(self, metadata: SyncMetadata) -> None:
        self._metadata = metadata.model_copy()
