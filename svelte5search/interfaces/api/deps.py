"""
API Dependencies - Dependency injection for FastAPI routes.

Holds the search engine created at startup.
"""

from __future__ import annotations

import logging

from svelte5search.config import ErrorCode, Svelte5SearchError, get_settings
from svelte5search.domains.corpus import SyncReport, load_corpus
from svelte5search.domains.search import SearchBackend, create_search_engine

logger = logging.getLogger(__name__)

_engine: SearchBackend | None = None


def get_search_engine() -> SearchBackend:
    """Get the search engine singleton."""
    if _engine is None:
        raise Svelte5SearchError(
            ErrorCode.SEARCH_INDEX_UNAVAILABLE,
            "Search engine is not initialized",
        )
    return _engine


async def init_services() -> SyncReport:
    """
    Create the search engine and sync the configured corpus into it.

    This should be called from the FastAPI lifespan handler.
    """
    global _engine

    settings = get_settings()
    engine = await create_search_engine(settings)
    knowledge, examples = load_corpus(settings.knowledge_path, settings.examples_path)
    report = await engine.load(
        knowledge,
        examples,
        data_version=settings.data_version,
        source_name=settings.source_name,
    )
    _engine = engine

    logger.info(
        "Corpus synced: inserted=%d updated=%d skipped=%d rejected=%d",
        report.inserted,
        report.updated,
        report.skipped,
        len(report.rejected),
    )
    return report


async def cleanup_services() -> None:
    """Cleanup services on shutdown."""
    global _engine

    if _engine is not None:
        await _engine.close()
        _engine = None
