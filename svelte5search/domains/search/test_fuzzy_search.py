"""
Tests for the fuzzy fallback engine.
"""

from __future__ import annotations

import pytest

from svelte5search.adapters.memory import InMemoryCorpusStore
from svelte5search.domains.corpus import ItemKind

from .contracts import SearchBackend
from .expansion import QueryExpander
from .fuzzy_search import FuzzySearchEngine
from .highlight import strip_highlights
from .models import BoostOptions, ExampleHit
from .synonyms import SynonymDictionary

KNOWLEDGE = [
    {
        "question": "How do you manage reactive state in Svelte 5?",
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
        "output": "<script>let count = $state(0);</script>",
    },
]


@pytest.fixture
async def engine() -> FuzzySearchEngine:
    engine = FuzzySearchEngine(
        InMemoryCorpusStore(),
        QueryExpander(SynonymDictionary.default()),
        threshold=0.6,
    )
    await engine.load(KNOWLEDGE, EXAMPLES)
    return engine


async def test_engine_satisfies_contract(engine: FuzzySearchEngine) -> None:
    assert isinstance(engine, SearchBackend)
    assert engine.name == "fuzzy"


async def test_exact_phrase_ranks_first(engine: FuzzySearchEngine) -> None:
    response = await engine.search("knowledge", "side effect", limit=5)

    assert response.backend == "fuzzy"
    assert response.results[0].question == "How do you run side effects?"
    assert response.results[0].relevance_score > 0.9


async def test_tolerates_typos(engine: FuzzySearchEngine) -> None:
    response = await engine.search("knowledge", "efect", limit=5)

    assert response.status == "ok"
    assert "How do you run side effects?" in {hit.question for hit in response.results}


async def test_single_character_sigil_matches(engine: FuzzySearchEngine) -> None:
    response = await engine.search("knowledge", "$", limit=5)

    questions = {hit.question for hit in response.results}
    assert "How do you manage reactive state in Svelte 5?" in questions
    assert "How do you run side effects?" in questions


async def test_reports_variations(engine: FuzzySearchEngine) -> None:
    response = await engine.search("knowledge", "effect", limit=5)

    assert response.search_variations[0] == "effect"
    assert "lifecycle" in response.search_variations


async def test_results_sorted_and_limited(engine: FuzzySearchEngine) -> None:
    response = await engine.search("knowledge", "effect", limit=2)

    scores = [hit.relevance_score for hit in response.results]
    assert len(scores) <= 2
    assert scores == sorted(scores, reverse=True)
    assert all(0.0 <= score <= 1.0 for score in scores)


async def test_highlight_strips_back_to_original(engine: FuzzySearchEngine) -> None:
    response = await engine.search("examples", "counter", limit=5)

    assert response.results
    hit = response.results[0]
    assert isinstance(hit, ExampleHit)
    assert "<mark>" in hit.highlighted_instruction
    assert strip_highlights(hit.highlighted_instruction) == hit.instruction
    assert strip_highlights(hit.highlighted_input) == hit.input
    assert strip_highlights(hit.highlighted_output) == hit.output


async def test_empty_corpus_and_blank_query() -> None:
    engine = FuzzySearchEngine()
    await engine.load([], [])

    assert (await engine.search("knowledge", "state", limit=5)).total_results == 0
    assert (await engine.search("knowledge", "", limit=5)).total_results == 0


async def test_search_with_boost(engine: FuzzySearchEngine) -> None:
    boosted = await engine.search_with_boost("knowledge", "side effect", BoostOptions(limit=2))
    hits = boosted.results

    assert boosted.status == "ok"
    assert boosted.backend == "fuzzy"
    assert boosted.total == len(hits)
    assert 0 < len(hits) <= 2
    scores = [hit.custom_score for hit in hits]
    assert scores == sorted(scores)
    assert all(-1.0 <= hit.native_rank <= 0.0 for hit in hits)


async def test_reload_refreshes_index(engine: FuzzySearchEngine) -> None:
    changed = [*KNOWLEDGE, {"question": "What is $bindable?", "answer": "Marks a prop as bindable."}]
    report = await engine.load(changed, EXAMPLES)

    assert report.knowledge.inserted == 1
    response = await engine.search("knowledge", "bindable", limit=1)
    assert response.results[0].question == "What is $bindable?"
    assert len(await engine.list_records("knowledge")) == 4


async def test_variants_merge_to_best_score_per_item(engine: FuzzySearchEngine) -> None:
    variants = list(engine._expander.expand("effect").terms)
    per_variant = [engine._match(ItemKind.KNOWLEDGE, variant) for variant in variants]

    expected: dict[int, float] = {}
    for matches in per_variant:
        for match in matches:
            expected[match.record.id] = min(expected.get(match.record.id, float("inf")), match.score)

    reported, merged = engine._best_matches(ItemKind.KNOWLEDGE, "effect")

    assert reported == variants
    ids = [match.record.id for match in merged]
    assert len(ids) == len(set(ids))
    assert {match.record.id: match.score for match in merged} == expected
    # "side effects" is hit by several variants but reported once
    assert sum(len(matches) for matches in per_variant) > len(merged)


async def test_highlight_survives_case_folding_that_changes_length() -> None:
    engine = FuzzySearchEngine(
        InMemoryCorpusStore(),
        QueryExpander(SynonymDictionary.from_mapping({})),
    )
    await engine.load([{"question": "İİİ What is $state?", "answer": "A rune."}], [])

    response = await engine.search("knowledge", "$state", limit=1)

    hit = response.results[0]
    assert hit.highlighted_question == "İİİ What is <mark>$state</mark>?"
    assert strip_highlights(hit.highlighted_question) == hit.question


async def test_case_insensitive_match_on_non_ascii_text() -> None:
    engine = FuzzySearchEngine(
        InMemoryCorpusStore(),
        QueryExpander(SynonymDictionary.from_mapping({})),
    )
    await engine.load([{"question": "ÜBER $STATE", "answer": "Runes."}], [])

    response = await engine.search("knowledge", "über $state", limit=1)

    assert response.results[0].highlighted_question == "<mark>ÜBER $STATE</mark>"
