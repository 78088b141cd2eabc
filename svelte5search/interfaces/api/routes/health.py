"""
Health Routes - System health and status endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from svelte5search import __version__
from svelte5search.domains.search import SearchBackend
from svelte5search.interfaces.api.deps import get_search_engine

router = APIRouter()


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy", "service": "svelte5-search"}


@router.get("/api")
async def api_info() -> dict[str, Any]:
    """API info endpoint."""
    return {
        "name": "Svelte 5 Search API",
        "version": __version__,
        "description": "Synonym-expanded search over Svelte 5 knowledge and code patterns",
        "docs": "/docs",
    }


@router.get("/api/status")
async def status(engine: SearchBackend = Depends(get_search_engine)) -> dict[str, Any]:
    """Backend in use and last sync bookkeeping."""
    metadata = await engine.metadata()
    return {"backend": engine.name, **metadata.model_dump()}
