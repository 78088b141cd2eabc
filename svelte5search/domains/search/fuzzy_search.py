"""
Fuzzy Search Engine - In-memory approximate matching fallback.

Used when the SQLite FTS5 backend is not wanted or not available. Every
expansion term is matched independently against weighted fields; results
for the same item are merged keeping the best score.

Scores follow the index convention: lower is better, 0 is a perfect match.
"""

from __future__ import annotations

import logging
import math
import sys
from dataclasses import dataclass, field

from rapidfuzz import fuzz

from svelte5search.adapters.memory import InMemoryCorpusStore
from svelte5search.domains.corpus.models import (
    CorpusRecord,
    ItemKind,
    SyncMetadata,
    SyncReport,
)
from svelte5search.domains.sync.manager import RawRecords, SyncManager

from .expansion import QueryExpander
from .highlight import highlight_spans
from .models import HIT_TYPES, BoostOptions, BoostResponse, SearchResponse
from .ranking import BoostRanker
from .synonyms import SynonymDictionary

logger = logging.getLogger(__name__)

__all__ = ["FuzzySearchEngine", "FIELD_WEIGHTS"]

FIELD_WEIGHTS: dict[ItemKind, dict[str, float]] = {
    ItemKind.KNOWLEDGE: {"question": 0.6, "answer": 0.4},
    ItemKind.EXAMPLES: {"instruction": 0.4, "input": 0.3, "output": 0.3},
}

# Exact matches still contribute a non-zero factor to the product
_EPSILON = sys.float_info.epsilon

_IndexEntry = tuple[CorpusRecord, tuple[str, ...], tuple[float, ...]]


def _fold(text: str) -> str:
    """Lower-case one character at a time, keeping any whose lower form is longer.

    Alignment offsets computed on the folded text stay valid on the original.
    """
    return "".join(ch.lower() if len(ch.lower()) == 1 else ch for ch in text)


@dataclass
class _FuzzyMatch:
    record: CorpusRecord
    score: float
    spans: dict[str, tuple[int, int]] = field(default_factory=dict)


class FuzzySearchEngine:
    """
    Fallback search backend using rapidfuzz partial alignment.

    Example:
        >>> engine = FuzzySearchEngine(InMemoryCorpusStore(), expander, threshold=0.6)
        >>> await engine.load(knowledge, examples)
        >>> response = await engine.search("knowledge", "efect")
    """

    name = "fuzzy"

    def __init__(
        self,
        store: InMemoryCorpusStore | None = None,
        expander: QueryExpander | None = None,
        ranker: BoostRanker | None = None,
        threshold: float = 0.6,
        min_match_length: int = 1,
        default_options: BoostOptions | None = None,
    ) -> None:
        """
        Initialize fuzzy engine.

        Args:
            store: Record store (default: fresh in-memory store)
            expander: Synonym query expander
            ranker: Boost re-ranker
            threshold: Maximum per-field distance (0 exact, 1 anything) to count as a match
            min_match_length: Shortest query variant considered
            default_options: Boost parameters used when a call passes none
        """
        self._store = store or InMemoryCorpusStore()
        self._expander = expander or QueryExpander(SynonymDictionary.default())
        self._ranker = ranker or BoostRanker()
        self._threshold = threshold
        self._min_match_length = min_match_length
        self._default_options = default_options or BoostOptions()
        self._sync = SyncManager(self._store)
        self._index: dict[ItemKind, list[_IndexEntry]] = {kind: [] for kind in ItemKind}

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
        report = await self._sync.sync(
            knowledge, examples, data_version=data_version, source_name=source_name
        )
        await self._reindex()
        return report

    async def _reindex(self) -> None:
        """Snapshot lower-cased field text and field-length norms per record."""
        for kind in ItemKind:
            fields = tuple(FIELD_WEIGHTS[kind])
            entries = []
            for record in await self._store.list_records(kind):
                texts = tuple(_fold(getattr(record, name)) for name in fields)
                norms = tuple(1.0 / math.sqrt(max(1, len(text.split()))) for text in texts)
                entries.append((record, texts, norms))
            self._index[kind] = entries
        logger.info(
            "Fuzzy index ready: %d knowledge, %d examples",
            len(self._index[ItemKind.KNOWLEDGE]),
            len(self._index[ItemKind.EXAMPLES]),
        )

    def _match(self, kind: ItemKind, variant: str) -> list[_FuzzyMatch]:
        needle = _fold(variant).strip()
        if len(needle) < self._min_match_length:
            return []

        weights = FIELD_WEIGHTS[kind]
        matches = []
        for record, texts, norms in self._index[kind]:
            score = 1.0
            spans: dict[str, tuple[int, int]] = {}
            for (name, weight), text, norm in zip(weights.items(), texts, norms):
                alignment = fuzz.partial_ratio_alignment(needle, text)
                if alignment is None:
                    continue
                distance = 1.0 - alignment.score / 100.0
                if distance > self._threshold:
                    continue
                score *= max(distance, _EPSILON) ** (weight * norm)
                spans[name] = (alignment.dest_start, alignment.dest_end)
            if spans:
                matches.append(_FuzzyMatch(record=record, score=score, spans=spans))
        return matches

    def _best_matches(self, kind: ItemKind, query: str) -> tuple[list[str], list[_FuzzyMatch]]:
        variants = list(self._expander.expand(query).terms)
        best: dict[int, _FuzzyMatch] = {}
        for variant in variants:
            for match in self._match(kind, variant):
                current = best.get(match.record.id)
                if current is None or match.score < current.score:
                    best[match.record.id] = match

        ordered = sorted(best.values(), key=lambda m: (m.score, m.record.id))
        return variants, ordered

    async def search(self, kind: ItemKind | str, query: str, limit: int = 5) -> SearchResponse:
        """
        Execute fuzzy search over one corpus kind.

        Args:
            kind: "knowledge" or "examples"
            query: Free-text query
            limit: Maximum number of results

        Returns:
            Results with ``relevance_score = 1 - score`` and highlighted spans
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

        _, ordered = self._best_matches(kind, query)
        hit_type = HIT_TYPES[kind]
        results = []
        for match in ordered[:limit]:
            data = match.record.model_dump()
            for name in FIELD_WEIGHTS[kind]:
                text = data[name]
                span = match.spans.get(name)
                data[f"highlighted_{name}"] = highlight_spans(text, [span]) if span else text
            data["relevance_score"] = 1.0 - match.score
            results.append(hit_type.model_validate(data))

        logger.info(
            "Fuzzy search: %s query='%s' -> %d results", kind.value, query[:50], len(results)
        )

        return response.model_copy(update={"results": results, "total_results": len(results)})

    async def search_with_boost(
        self,
        kind: ItemKind | str,
        query: str,
        options: BoostOptions | None = None,
    ) -> BoostResponse:
        """Boost re-ranking over fuzzy scores mapped onto the negative native-rank scale."""
        kind = ItemKind(kind)
        options = options or self._default_options
        response = BoostResponse(query=query, options=options, backend=self.name)

        if not query.strip():
            return response

        _, ordered = self._best_matches(kind, query)
        scored = [(match.record, -(1.0 - match.score)) for match in ordered]
        hits = self._ranker.rerank(scored, options)
        return response.model_copy(update={"results": hits, "total": len(hits)})

    async def list_records(self, kind: ItemKind | str) -> list[CorpusRecord]:
        return await self._store.list_records(ItemKind(kind))

    async def metadata(self) -> SyncMetadata:
        return await self._store.get_metadata()

    async def close(self) -> None:
        for kind in ItemKind:
            self._index[kind] = []
