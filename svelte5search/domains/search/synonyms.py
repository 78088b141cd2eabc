"""
Synonym Dictionary - Static Svelte 5 vocabulary used for query expansion.

The dictionary is built once at startup and never mutated afterwards; the
query expander and the index store receive the same instance.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

__all__ = ["DEFAULT_SYNONYMS", "SynonymEntry", "SynonymDictionary"]

DEFAULT_SYNONYMS: dict[str, list[str]] = {
    "$state": ["state", "reactive state", "reactivity", "reactive variable"],
    "$derived": ["derived", "computed", "derived state", "computed value"],
    "$effect": ["effect", "side effect", "side-effect", "lifecycle", "cleanup"],
    "$props": ["props", "properties", "component props", "export let"],
    "snippets": ["snippet", "slot", "content projection", "render", "@render"],
    "runes": ["rune", "$state", "$derived", "$effect", "$props", "svelte 5"],
    "migrate": ["migration", "upgrade", "convert", "transition", "svelte 4 to 5"],
    "onclick": ["on:click", "event handler", "event attribute", "click handler"],
    "bind:": ["binding", "two-way binding", "bind directive"],
    "use:": ["action", "use directive", "action function"],
    "legacy": ["old", "svelte 4", "deprecated", "previous"],
}


@dataclass(frozen=True)
class SynonymEntry:
    """A dictionary term and its ordered, duplicate-free synonyms."""

    term: str
    synonyms: tuple[str, ...]


class SynonymDictionary:
    """
    Immutable term -> synonyms mapping.

    Example:
        >>> synonyms = SynonymDictionary.default()
        >>> [entry.term for entry in synonyms.lookup("effect")]
        ['$effect']
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[SynonymEntry]) -> None:
        self._entries: tuple[SynonymEntry, ...] = tuple(entries)

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[str]]) -> SynonymDictionary:
        return cls(
            SynonymEntry(term=term, synonyms=tuple(dict.fromkeys(synonyms)))
            for term, synonyms in mapping.items()
        )

    @classmethod
    def default(cls) -> SynonymDictionary:
        return cls.from_mapping(DEFAULT_SYNONYMS)

    @classmethod
    def from_json(cls, path: str | Path) -> SynonymDictionary:
        """Load a JSON object of ``{"term": ["synonym", ...]}``."""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object of term -> synonyms in {path}")
        logger.info("Loaded %d synonym terms from %s", len(data), path)
        return cls.from_mapping(data)

    def lookup(self, word: str) -> list[SynonymEntry]:
        """Entries whose term contains ``word`` or is contained in it (case-insensitive)."""
        word = word.lower()
        if not word:
            return []
        matches = []
        for entry in self._entries:
            term = entry.term.lower()
            if term in word or word in term:
                matches.append(entry)
        return matches

    def as_dict(self) -> dict[str, list[str]]:
        return {entry.term: list(entry.synonyms) for entry in self._entries}

    def __iter__(self) -> Iterator[SynonymEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)
