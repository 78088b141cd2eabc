"""
Search Models - Data types for search domain.
"""

from __future__ import annotations

from typing import Any, Literal, Union

from pydantic import BaseModel, Field

from svelte5search.domains.corpus.models import ExampleRecord, ItemKind, KnowledgeRecord


class BoostOptions(BaseModel):
    """Field-weighted re-scoring parameters."""

    limit: int = Field(default=5, ge=1, le=100)
    primary_field_boost: float = Field(default=2.0, gt=0)
    code_boost: float = 1.5

    model_config = {"frozen": True}

    def merged(self, **overrides: Any) -> BoostOptions:
        """Copy with the given fields replaced; ``None`` keeps the current value."""
        updates = {key: value for key, value in overrides.items() if value is not None}
        return BoostOptions.model_validate({**self.model_dump(), **updates})


class KnowledgeHit(BaseModel):
    """Knowledge search result with highlighted fields."""

    id: int
    question: str
    answer: str
    highlighted_question: str
    highlighted_answer: str
    relevance_score: float = 0.0


class ExampleHit(BaseModel):
    """Example search result with highlighted fields."""

    id: int
    instruction: str
    input: str
    output: str
    highlighted_instruction: str
    highlighted_input: str
    highlighted_output: str
    relevance_score: float = 0.0


SearchHit = Union[KnowledgeHit, ExampleHit]

HIT_TYPES: dict[ItemKind, type[KnowledgeHit] | type[ExampleHit]] = {
    ItemKind.KNOWLEDGE: KnowledgeHit,
    ItemKind.EXAMPLES: ExampleHit,
}


class SearchResponse(BaseModel):
    """Search outcome. Failures degrade to an empty result set with ``status='error'``."""

    query: str
    expanded_query: str
    search_variations: list[str] = Field(default_factory=list)
    total_results: int = 0
    results: list[SearchHit] = Field(default_factory=list)
    backend: str = "fts"
    status: Literal["ok", "error"] = "ok"
    error: dict[str, Any] | None = None


class BoostedHit(BaseModel):
    """Row re-scored by the boost ranker. Lower ``custom_score`` is better."""

    record: Union[KnowledgeRecord, ExampleRecord]
    native_rank: float
    custom_score: float


class BoostResponse(BaseModel):
    """Boosted search outcome. Failures degrade like ``SearchResponse``."""

    query: str
    options: BoostOptions
    results: list[BoostedHit] = Field(default_factory=list)
    total: int = 0
    backend: str = "fts"
    status: Literal["ok", "error"] = "ok"
    error: dict[str, Any] | None = None
