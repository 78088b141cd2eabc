"""
Tests for the FTS search engine.
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from svelte5search.adapters.sqlite import SQLiteIndexStore
from svelte5search.config.errors import IndexConsistencyError, QueryError
from svelte5search.domains.corpus.models import ItemKind

from .contracts import SearchBackend
from .expansion import QueryExpander
from .fts_search import FTSSearchEngine
from .highlight import strip_highlights
from .models import BoostOptions, KnowledgeHit
from .synonyms import SynonymDictionary

STATE_QUESTION = "How do you manage reactive state in Svelte 5?"

KNOWLEDGE = [
    {
        "question": STATE_QUESTION,
        "answer": "Declare reactive values with $state; they persist for the component lifecycle.",
    },
    {
        "question": "How do you run side effects?",
        "answer": "Use $effect to run code after the DOM updates, and return a cleanup function.",
    },
    {
        "question": "What are snippets?",
        "answer": "Snippets replace slots for reusable markup.",
    },
]

EXAMPLES = [
    {
        "instruction": "Counter component",
        "input": "A button that counts clicks",
        "output": "<script>let count = $state(0);</script><button onclick={() => count++}>{count}</button>",
    },
    {
        "instruction": "Static greeting",
        "input": "Render a greeting",
        "output": "<p>Hello world</p>",
    },
]


@pytest.fixture
async def store(tmp_path: Path):
    store = SQLiteIndexStore(tmp_path / "search.db")
    await store.initialize(SynonymDictionary.default().as_dict())
    yield store
    await store.close()


@pytest.fixture
async def engine(store: SQLiteIndexStore) -> FTSSearchEngine:
    engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()))
    await engine.load(KNOWLEDGE, EXAMPLES, data_version="1.0.0")
    return engine


async def test_engine_satisfies_contract(engine: FTSSearchEngine) -> None:
    assert isinstance(engine, SearchBackend)


async def test_load_is_idempotent(engine: FTSSearchEngine) -> None:
    report = await engine.load(KNOWLEDGE, EXAMPLES, data_version="1.0.0")
    assert report.inserted == 0
    assert report.updated == 0


async def test_expansion_surfaces_related_item(engine: FTSSearchEngine) -> None:
    """'effect' reaches the $state item through the 'lifecycle' synonym."""
    response = await engine.search("knowledge", "effect", limit=10)

    assert response.status == "ok"
    assert response.query == "effect"
    assert '"lifecycle"' in response.expanded_query
    questions = {hit.question: hit for hit in response.results}
    assert STATE_QUESTION in questions
    assert questions[STATE_QUESTION].relevance_score > 0
    assert response.total_results == len(response.results)


async def test_expansion_is_superset_of_literal(engine: FTSSearchEngine, store: SQLiteIndexStore) -> None:
    for query in ("effect", "state", "snippets", "migrate"):
        literal = await store.query(ItemKind.KNOWLEDGE, f'"{query}"', None)
        expanded = await engine.search(ItemKind.KNOWLEDGE, query, limit=100)

        assert {row["id"] for row in literal} <= {hit.id for hit in expanded.results}


async def test_results_ordered_by_relevance(engine: FTSSearchEngine) -> None:
    response = await engine.search("knowledge", "effect", limit=10)
    scores = [hit.relevance_score for hit in response.results]
    assert scores == sorted(scores, reverse=True)


async def test_highlight_strips_back_to_original(engine: FTSSearchEngine) -> None:
    response = await engine.search("examples", "state counter", limit=10)
    assert response.results

    for hit in response.results:
        assert strip_highlights(hit.highlighted_instruction) == hit.instruction
        assert strip_highlights(hit.highlighted_input) == hit.input
        assert strip_highlights(hit.highlighted_output) == hit.output
    assert any("<mark>" in hit.highlighted_output for hit in response.results)


async def test_knowledge_hit_fields(engine: FTSSearchEngine) -> None:
    response = await engine.search("knowledge", "snippets", limit=5)

    assert len(response.results) == 1
    hit = response.results[0]
    assert isinstance(hit, KnowledgeHit)
    assert hit.highlighted_question == "What are <mark>snippets</mark>?"


async def test_limit_truncates(engine: FTSSearchEngine) -> None:
    response = await engine.search("knowledge", "effect", limit=1)
    assert response.total_results == 1


async def test_no_matching_tokens_is_empty_not_error(engine: FTSSearchEngine) -> None:
    response = await engine.search("knowledge", "zzzzqqq", limit=5)
    assert response.status == "ok"
    assert response.total_results == 0
    assert response.results == []


async def test_empty_corpus(store: SQLiteIndexStore) -> None:
    engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()))
    report = await engine.load([], [])

    response = await engine.search("knowledge", "state", limit=5)

    assert report.inserted == 0
    assert response.status == "ok"
    assert response.total_results == 0


async def test_blank_query_skips_store() -> None:
    store = AsyncMock()
    engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()))

    response = await engine.search("knowledge", "   ", limit=5)

    assert response.total_results == 0
    assert response.status == "ok"
    store.query.assert_not_called()


async def test_query_error_degrades_to_empty_response() -> None:
    store = AsyncMock()
    store.query.side_effect = QueryError("fts5: syntax error", details={"kind": "knowledge"})
    engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()))

    response = await engine.search("knowledge", "state", limit=5)

    assert response.status == "error"
    assert response.results == []
    assert response.error["code"] == "SEARCH_INVALID_QUERY"


async def test_untrusted_index_degrades_to_empty_response() -> None:
    store = AsyncMock()
    store.query.side_effect = IndexConsistencyError("needs rebuild")
    engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()))

    response = await engine.search("examples", "counter", limit=5)
    boosted = await engine.search_with_boost("examples", "counter")

    assert response.status == "error"
    assert response.error["code"] == "INDEX_INCONSISTENT"
    assert boosted.status == "error"
    assert boosted.error["code"] == "INDEX_INCONSISTENT"
    assert boosted.results == []
    assert boosted.total == 0


async def test_load_rebuilds_diverged_index(engine: FTSSearchEngine, store: SQLiteIndexStore) -> None:
    conn = await store._get_connection()
    await conn.execute("DROP TRIGGER knowledge_ai")
    await conn.execute(
        "INSERT INTO knowledge (question, answer) VALUES ('What is $bindable?', 'Marks a prop bindable.')"
    )

    await engine.load(KNOWLEDGE, EXAMPLES, data_version="1.0.0")

    response = await engine.search("knowledge", "bindable", limit=5)
    assert response.status == "ok"
    assert response.total_results == 1


async def test_search_with_boost(engine: FTSSearchEngine) -> None:
    boosted = await engine.search_with_boost("examples", "state counter", BoostOptions(limit=5))
    hits = boosted.results

    assert boosted.status == "ok"
    assert boosted.total == len(hits)
    assert hits
    assert hits[0].record.instruction == "Counter component"
    scores = [hit.custom_score for hit in hits]
    assert scores == sorted(scores)
    # Output holds '$' and '{', so the code term applies
    top = hits[0]
    factor = 2.0 if top.native_rank < -10 else 1.0
    assert top.custom_score == pytest.approx(top.native_rank * factor + 1.5)


async def test_search_with_boost_blank_query(engine: FTSSearchEngine) -> None:
    boosted = await engine.search_with_boost("knowledge", "")

    assert boosted.status == "ok"
    assert boosted.results == []


async def test_list_records_and_metadata(engine: FTSSearchEngine) -> None:
    records = await engine.list_records("knowledge")
    metadata = await engine.metadata()

    assert [r.question for r in records] == [k["question"] for k in KNOWLEDGE]
    assert metadata.data_version == "1.0.0"
    assert metadata.knowledge_count == 3
    assert metadata.examples_count == 2


async def test_boost_query_error_carries_error_indicator() -> None:
    store = AsyncMock()
    store.query.side_effect = QueryError("fts5: syntax error")
    options = BoostOptions(limit=3, code_boost=0.5)
    engine = FTSSearchEngine(store, QueryExpander(SynonymDictionary.default()), default_options=options)

    boosted = await engine.search_with_boost("knowledge", "state")

    assert boosted.status == "error"
    assert boosted.error["code"] == "SEARCH_INVALID_QUERY"
    assert boosted.options == options
    assert engine.default_options == options
