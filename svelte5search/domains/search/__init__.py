"""
Search Domain - Synonym-expanded lexical search with boost ranking.

Components:
- FTSSearchEngine: SQLite FTS5 backend with native BM25 rank
- FuzzySearchEngine: in-memory approximate-match fallback
- QueryExpander: Svelte 5 synonym expansion
- BoostRanker: field and code-content re-ranking
"""

from .contracts import Ranker, SearchBackend
from .expansion import ExpandedQuery, QueryExpander, build_match_expression, quote_phrase
from .factory import create_search_engine, default_boost_options, load_synonyms
from .fts_search import FTSSearchEngine
from .fuzzy_search import FuzzySearchEngine
from .highlight import MARK_CLOSE, MARK_OPEN, highlight_spans, strip_highlights
from .models import (
    BoostedHit,
    BoostOptions,
    BoostResponse,
    ExampleHit,
    KnowledgeHit,
    SearchResponse,
)
from .ranking import STRONG_MATCH_RANK, BoostRanker
from .synonyms import DEFAULT_SYNONYMS, SynonymDictionary, SynonymEntry

__all__ = [
    # Contracts
    "SearchBackend",
    "Ranker",
    # Models
    "BoostOptions",
    "BoostedHit",
    "BoostResponse",
    "KnowledgeHit",
    "ExampleHit",
    "SearchResponse",
    # Expansion
    "SynonymEntry",
    "SynonymDictionary",
    "DEFAULT_SYNONYMS",
    "ExpandedQuery",
    "QueryExpander",
    "quote_phrase",
    "build_match_expression",
    # Ranking / highlighting
    "BoostRanker",
    "STRONG_MATCH_RANK",
    "MARK_OPEN",
    "MARK_CLOSE",
    "highlight_spans",
    "strip_highlights",
    # Implementations
    "FTSSearchEngine",
    "FuzzySearchEngine",
    "create_search_engine",
    "load_synonyms",
    "default_boost_options",
]
