"""
Tests for the synonym dictionary, query expansion and highlighting helpers.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from .expansion import QueryExpander, build_match_expression, quote_phrase
from .highlight import MARK_CLOSE, MARK_OPEN, highlight_spans, strip_highlights
from .synonyms import DEFAULT_SYNONYMS, SynonymDictionary


@pytest.fixture
def expander() -> QueryExpander:
    return QueryExpander(SynonymDictionary.default())


# --- SynonymDictionary Tests ---


def test_default_dictionary_terms() -> None:
    synonyms = SynonymDictionary.default()
    assert len(synonyms) == len(DEFAULT_SYNONYMS)
    assert synonyms.as_dict()["$effect"] == ["effect", "side effect", "side-effect", "lifecycle", "cleanup"]


def test_lookup_is_bidirectional() -> None:
    synonyms = SynonymDictionary.default()

    # word inside term
    assert [e.term for e in synonyms.lookup("state")] == ["$state"]
    # term inside word
    assert [e.term for e in synonyms.lookup("bind:value")] == ["bind:"]
    # case-insensitive
    assert [e.term for e in synonyms.lookup("$EFFECT")] == ["$effect"]
    assert synonyms.lookup("") == []


def test_sigil_matches_every_rune() -> None:
    terms = [e.term for e in SynonymDictionary.default().lookup("$")]
    assert terms == ["$state", "$derived", "$effect", "$props"]


def test_from_mapping_dedupes_synonyms() -> None:
    synonyms = SynonymDictionary.from_mapping({"x": ["a", "b", "a"]})
    assert synonyms.as_dict() == {"x": ["a", "b"]}


def test_from_json(tmp_path: Path) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text(json.dumps({"$host": ["host element", "custom element"]}))

    synonyms = SynonymDictionary.from_json(path)
    assert [e.term for e in synonyms] == ["$host"]


def test_from_json_rejects_array(tmp_path: Path) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text("[]")

    with pytest.raises(ValueError):
        SynonymDictionary.from_json(path)


# --- QueryExpander Tests ---


def test_no_match_keeps_literal_query(expander: QueryExpander) -> None:
    expanded = expander.expand("zzzz qqqq")
    assert expanded.terms == ("zzzz qqqq",)
    assert expanded.expression == '"zzzz qqqq"'


def test_expansion_adds_synonyms_and_substitutions(expander: QueryExpander) -> None:
    expanded = expander.expand("effect cleanup")

    assert expanded.terms[0] == "effect cleanup"
    assert "side effect" in expanded.terms
    assert "lifecycle" in expanded.terms
    assert "side effect cleanup" in expanded.terms
    assert "lifecycle cleanup" in expanded.terms
    assert len(expanded.terms) == len(set(expanded.terms))


def test_substitution_is_case_insensitive(expander: QueryExpander) -> None:
    expanded = expander.expand("Svelte $STATE")

    assert expanded.terms[0] == "Svelte $STATE"
    assert "Svelte reactive state" in expanded.terms
    assert "reactivity" in expanded.terms


def test_substitution_replaces_every_occurrence() -> None:
    expander = QueryExpander(SynonymDictionary.from_mapping({"slot": ["snippet"]}))
    expanded = expander.expand("slot inside SLOT")

    assert "snippet inside snippet" in expanded.terms


def test_expansion_is_stable(expander: QueryExpander) -> None:
    assert expander.expand("migrate runes").terms == expander.expand("migrate runes").terms


def test_whitespace_only_query(expander: QueryExpander) -> None:
    assert expander.expand("   ").terms == ("   ",)


def test_quote_escaping() -> None:
    assert quote_phrase('say "hi"') == '"say ""hi"""'
    assert build_match_expression(["a", "b c"]) == '"a" OR "b c"'


# --- Highlight Tests ---


def test_highlight_spans_merges_overlaps() -> None:
    text = "let count = $state(0);"
    highlighted = highlight_spans(text, [(12, 18), (13, 15), (0, 3)])

    assert highlighted == f"{MARK_OPEN}let{MARK_CLOSE} count = {MARK_OPEN}$state{MARK_CLOSE}(0);"
    assert strip_highlights(highlighted) == text


def test_highlight_spans_ignores_empty_and_out_of_range() -> None:
    assert highlight_spans("abc", [(1, 1), (5, 9)]) == "abc"
    assert highlight_spans("abc", [(2, 10)]) == f"ab{MARK_OPEN}c{MARK_CLOSE}"
