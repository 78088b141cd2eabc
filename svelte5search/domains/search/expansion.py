"""
Query Expansion - Turn a raw query into OR-ed phrase terms using domain synonyms.

For every query word that overlaps a dictionary term, each synonym is added
on its own and as a copy of the full query with that word substituted. The
literal query is always the first term, so expansion never narrows results.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from .synonyms import SynonymDictionary

__all__ = ["ExpandedQuery", "QueryExpander", "quote_phrase", "build_match_expression"]


def quote_phrase(term: str) -> str:
    """Quote a term as an FTS5 phrase, doubling embedded quotes."""
    return '"' + term.replace('"', '""') + '"'


def build_match_expression(terms: Iterable[str]) -> str:
    return " OR ".join(quote_phrase(term) for term in terms)


@dataclass(frozen=True)
class ExpandedQuery:
    """Literal query plus its expansion terms in stable insertion order."""

    query: str
    terms: tuple[str, ...]

    @property
    def expression(self) -> str:
        return build_match_expression(self.terms)


class QueryExpander:
    """
    Synonym-driven query expansion.

    Example:
        >>> expander = QueryExpander(SynonymDictionary.default())
        >>> expander.expand("effect cleanup").terms[:3]
        ('effect cleanup', 'effect', 'side effect')
    """

    def __init__(self, synonyms: SynonymDictionary) -> None:
        self._synonyms = synonyms

    @property
    def synonyms(self) -> SynonymDictionary:
        return self._synonyms

    def expand(self, query: str) -> ExpandedQuery:
        terms: dict[str, None] = {query: None}

        for word in query.lower().split():
            pattern = re.compile(re.escape(word), re.IGNORECASE)
            for entry in self._synonyms.lookup(word):
                for synonym in entry.synonyms:
                    terms.setdefault(synonym, None)
                for synonym in entry.synonyms:
                    substituted = pattern.sub(lambda _match, s=synonym: s, query)
                    terms.setdefault(substituted, None)

        return ExpandedQuery(query=query, terms=tuple(terms))
