"""
Search Factory - Build the configured search backend.
"""

from __future__ import annotations

import logging

from svelte5search.adapters.memory import InMemoryCorpusStore
from svelte5search.adapters.sqlite import SQLiteIndexStore
from svelte5search.config.settings import Settings, get_settings

from .contracts import SearchBackend
from .expansion import QueryExpander
from .fts_search import FTSSearchEngine
from .fuzzy_search import FuzzySearchEngine
from .models import BoostOptions
from .ranking import BoostRanker
from .synonyms import SynonymDictionary

logger = logging.getLogger(__name__)

__all__ = ["create_search_engine", "load_synonyms", "default_boost_options"]


def load_synonyms(settings: Settings) -> SynonymDictionary:
    if settings.synonyms_path is not None:
        return SynonymDictionary.from_json(settings.synonyms_path)
    return SynonymDictionary.default()


def default_boost_options(settings: Settings) -> BoostOptions:
    return BoostOptions(
        limit=settings.search_default_limit,
        primary_field_boost=settings.primary_field_boost,
        code_boost=settings.code_boost,
    )


async def create_search_engine(
    settings: Settings | None = None,
    synonyms: SynonymDictionary | None = None,
) -> SearchBackend:
    """
    Create and initialize the backend selected by ``settings.search_backend``.

    The returned engine is empty until ``load`` is called (the FTS backend
    keeps previously synced rows in its database file).
    """
    settings = settings or get_settings()
    synonyms = synonyms or load_synonyms(settings)
    expander = QueryExpander(synonyms)
    options = default_boost_options(settings)

    if settings.search_backend == "fuzzy":
        logger.info("Using fuzzy search backend (threshold=%.2f)", settings.fuzzy_threshold)
        return FuzzySearchEngine(
            InMemoryCorpusStore(),
            expander,
            BoostRanker(),
            threshold=settings.fuzzy_threshold,
            default_options=options,
        )

    store = SQLiteIndexStore(settings.db_path)
    await store.initialize(synonyms.as_dict())
    logger.info("Using FTS search backend: %s", settings.db_path)
    return FTSSearchEngine(store, expander, BoostRanker(), default_options=options)
