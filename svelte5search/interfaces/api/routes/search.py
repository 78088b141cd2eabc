"""
Search Routes - Expanded and boosted search over one corpus kind.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response

from svelte5search.domains.corpus import ItemKind
from svelte5search.domains.search import BoostResponse, SearchBackend, SearchResponse
from svelte5search.interfaces.api.deps import get_search_engine
from svelte5search.interfaces.api.middleware import BACKEND_HEADER

router = APIRouter()


@router.get("/{kind}", response_model=SearchResponse)
async def search(
    kind: ItemKind,
    response: Response,
    q: str = Query(..., description="Search query"),
    limit: int = Query(default=5, ge=1, le=100),
    engine: SearchBackend = Depends(get_search_engine),
):
    """
    Search one corpus kind with synonym expansion.

    - **kind**: `knowledge` or `examples`
    - **q**: Free-text query
    - **limit**: Maximum results (1-100)

    Index failures come back as an empty result list with `status="error"`.
    """
    response.headers[BACKEND_HEADER] = engine.name
    return await engine.search(kind, q, limit)


@router.get("/{kind}/boost", response_model=BoostResponse)
async def search_with_boost(
    kind: ItemKind,
    response: Response,
    q: str = Query(..., description="Search query"),
    limit: int | None = Query(default=None, ge=1, le=100),
    primary_field_boost: float | None = Query(default=None, gt=0),
    code_boost: float | None = Query(default=None),
    engine: SearchBackend = Depends(get_search_engine),
):
    """
    Search one corpus kind and re-rank with field and code boosts.

    Omitted parameters use the configured defaults. Lower `custom_score`
    is better; index failures come back with `status="error"`.
    """
    options = engine.default_options.merged(
        limit=limit,
        primary_field_boost=primary_field_boost,
        code_boost=code_boost,
    )
    response.headers[BACKEND_HEADER] = engine.name
    return await engine.search_with_boost(kind, q, options)
