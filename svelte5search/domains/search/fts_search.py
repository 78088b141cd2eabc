"""
FTS Search Engine - Synonym-expanded SQLite FTS5 search.

Features:
- Content-hash incremental sync into SQLite
- Synonym query expansion (OR-ed phrases)
- Native BM25 ranking with <mark> highlighting
- Optional field/code boost re-ranking
- Search failures degrade to empty results with an error status
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from svelte5search.config.errors import IndexConsistencyError, QueryError
from svelte5search.domains.corpus.models import (
    RECORD_TYPES,
    CorpusRecord,
    ItemKind,
    SyncMetadata,
    SyncReport,
)
from svelte5search.domains.sync.manager import RawRecords, SyncManager

from .expansion import QueryExpander
from .highlight import MARK_CLOSE, MARK_OPEN
from .models import HIT_TYPES, BoostOptions, BoostResponse, SearchResponse
from .ranking import BoostRanker, relevance_from_rank

if TYPE_CHECKING:
    from svelte5search.adapters.sqlite import SQLiteIndexStore

logger = logging.getLogger(__name__)

__all__ = ["FTSSearchEngine"]


class FTSSearchEngine:
    """
    Primary search backend over an SQLite FTS5 index.

    Example:
        >>> engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()))
        >>> await engine.load(knowledge, examples, data_version="1.0.0")
        >>> response = await engine.search("knowledge", "effect")
    """

    name = "fts"

    def __init__(
        self,
        store: SQLiteIndexStore,
        expander: QueryExpander,
        ranker: BoostRanker | None = None,
        default_options: BoostOptions | None = None,
    ) -> None:
        """
        Initialize FTS engine.

        Args:
            store: Initialized SQLite index store
            expander: Synonym query expander
            ranker: Boost re-ranker (default BoostRanker)
            default_options: Boost parameters used when a call passes none
        """
        self._store = store
        self._expander = expander
        self._ranker = ranker or BoostRanker()
        self._default_options = default_options or BoostOptions()
        self._sync = SyncManager(store)

    @property
    def store(self) -> SQLiteIndexStore:
        return self._store

    @property
    def default_options(self) -> BoostOptions:
        return self._default_options

    async def load(
        self,
        knowledge: RawRecords,
        examples: RawRecords,
        *,
        data_version: str | None = None,
        source_name: str | None = None,
    ) -> SyncReport:
        """Sync the snapshot, then check the index and rebuild it if it diverged."""
        report = await self._sync.sync(
            knowledge, examples, data_version=data_version, source_name=source_name
        )

        try:
            await self._store.verify_index()
        except IndexConsistencyError as e:
            logger.warning("Rebuilding full-text index: %s", e.message)
            await self._store.rebuild_index()
            await self._store.verify_index()

        return report

    async def search(self, kind: ItemKind | str, query: str, limit: int = 5) -> SearchResponse:
        """
        Execute expanded search over one corpus kind.

        Args:
            kind: "knowledge" or "examples"
            query: Free-text query
            limit: Maximum number of results

        Returns:
            Ranked, highlighted results; ``status='error'`` if the index
            rejected the query or needs a rebuild
        """
        kind = ItemKind(kind)
        expanded = self._expander.expand(query)
        response = SearchResponse(
            query=query,
            expanded_query=expanded.expression,
            search_variations=list(expanded.terms),
            backend=self.name,
        )

        if not query.strip():
            return response

        try:
            rows = await self._store.query(
                kind, expanded.expression, limit, markers=(MARK_OPEN, MARK_CLOSE)
            )
        except (QueryError, IndexConsistencyError) as e:
            logger.warning("Search failed for '%s': %s", query[:50], e.message)
            return response.model_copy(update={"status": "error", "error": e.to_dict()})

        hit_type = HIT_TYPES[kind]
        results = [
            hit_type.model_validate({**row, "relevance_score": relevance_from_rank(row["rank"])})
            for row in rows
        ]

        logger.info("FTS search: %s query='%s' -> %d results", kind.value, query[:50], len(results))

        return response.model_copy(update={"results": results, "total_results": len(results)})

    async def search_with_boost(
        self,
        kind: ItemKind | str,
        query: str,
        options: BoostOptions | None = None,
    ) -> BoostResponse:
        """
        Rank every match by native rank, then re-score with field and code boosts.

        Returns:
            Boosted hits, lowest ``custom_score`` first; ``status='error'``
            with no hits if the index rejected the query or needs a rebuild
        """
        kind = ItemKind(kind)
        options = options or self._default_options
        response = BoostResponse(query=query, options=options, backend=self.name)

        if not query.strip():
            return response

        expanded = self._expander.expand(query)
        try:
            rows = await self._store.query(kind, expanded.expression, None)
        except (QueryError, IndexConsistencyError) as e:
            logger.warning("Boosted search failed for '%s': %s", query[:50], e.message)
            return response.model_copy(update={"status": "error", "error": e.to_dict()})

        record_type = RECORD_TYPES[kind]
        scored = [(record_type.model_validate(row), row["rank"]) for row in rows]
        hits = self._ranker.rerank(scored, options)
        return response.model_copy(update={"results": hits, "total": len(hits)})

    async def list_records(self, kind: ItemKind | str) -> list[CorpusRecord]:
        return await self._store.list_records(ItemKind(kind))

    async def metadata(self) -> SyncMetadata:
        return await self._store.get_metadata()

    async def verify(self) -> None:
        """Raises IndexConsistencyError if the index diverged from its rows."""
        await self._store.verify_index()

    async def rebuild(self) -> None:
        await self._store.rebuild_index()

    async def close(self) -> None:
        await self._store.close()
