"""
Search Contracts - Interfaces for search domain.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from svelte5search.domains.corpus.models import CorpusRecord, ItemKind, SyncMetadata, SyncReport
from svelte5search.domains.sync.manager import RawRecords

from .models import BoostedHit, BoostOptions, BoostResponse, SearchResponse


@runtime_checkable
class SearchBackend(Protocol):
    """Contract shared by the FTS engine and the fuzzy fallback."""

    name: str
    default_options: BoostOptions

    async def load(
        self,
        knowledge: RawRecords,
        examples: RawRecords,
        *,
        data_version: str | None = None,
        source_name: str | None = None,
    ) -> SyncReport:
        """Sync a corpus snapshot into the backend."""
        ...

    async def search(self, kind: ItemKind | str, query: str, limit: int = 5) -> SearchResponse:
        """Expanded, highlighted search over one corpus kind."""
        ...

    async def search_with_boost(
        self,
        kind: ItemKind | str,
        query: str,
        options: BoostOptions | None = None,
    ) -> BoostResponse:
        """Search then re-rank with field and code boosts."""
        ...

    async def list_records(self, kind: ItemKind | str) -> list[CorpusRecord]:
        """Every stored record of one kind."""
        ...

    async def metadata(self) -> SyncMetadata:
        """Last sync bookkeeping."""
        ...

    async def close(self) -> None:
        """Release backend resources."""
        ...


@runtime_checkable
class Ranker(Protocol):
    """Contract for result re-ranking implementations."""

    def rerank(
        self,
        scored: Iterable[tuple[CorpusRecord, float]],
        options: BoostOptions,
    ) -> list[BoostedHit]:
        """Re-rank ``(record, native_rank)`` pairs."""
        ...
