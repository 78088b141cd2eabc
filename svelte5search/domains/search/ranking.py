"""
Boost Ranking - Re-score native index ranks with field and code-content boosts.

Scores follow the index convention: lower is better. A strong native match
(rank below ``STRONG_MATCH_RANK``) is multiplied by the primary-field boost,
and rows whose text carries code markers get the code boost added.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from svelte5search.domains.corpus.models import CorpusRecord, ItemKind

from .models import BoostedHit, BoostOptions

logger = logging.getLogger(__name__)

__all__ = ["BoostRanker", "STRONG_MATCH_RANK", "CODE_MARKERS", "relevance_from_rank"]

STRONG_MATCH_RANK = -10.0

# kind -> (fields inspected, marker characters)
CODE_MARKERS: dict[ItemKind, tuple[tuple[str, ...], tuple[str, ...]]] = {
    ItemKind.KNOWLEDGE: (("question", "answer"), ("$",)),
    ItemKind.EXAMPLES: (("output",), ("$", "{")),
}


def relevance_from_rank(rank: float) -> float:
    """Native rank is a negated BM25 score; flip it so higher means more relevant."""
    return -rank


class BoostRanker:
    """
    Field-weighted re-ranking over native ranks.

    Example:
        >>> ranker = BoostRanker()
        >>> hits = ranker.rerank([(record, -12.3)], BoostOptions(limit=5))
    """

    def has_code_marker(self, record: CorpusRecord) -> bool:
        fields, markers = CODE_MARKERS[record.kind]
        return any(marker in getattr(record, field) for field in fields for marker in markers)

    def custom_score(
        self, native_rank: float, record: CorpusRecord, options: BoostOptions
    ) -> float:
        field_factor = options.primary_field_boost if native_rank < STRONG_MATCH_RANK else 1.0
        code_term = options.code_boost if self.has_code_marker(record) else 1.0
        return native_rank * field_factor + code_term

    def rerank(
        self,
        scored: Iterable[tuple[CorpusRecord, float]],
        options: BoostOptions,
    ) -> list[BoostedHit]:
        """Score every row, sort ascending (stable) and keep the top ``options.limit``."""
        hits = [
            BoostedHit(
                record=record,
                native_rank=rank,
                custom_score=self.custom_score(rank, record, options),
            )
            for record, rank in scored
        ]
        hits.sort(key=lambda hit: hit.custom_score)
        logger.debug("Boost re-ranked %d rows, keeping %d", len(hits), options.limit)
        return hits[: options.limit]
