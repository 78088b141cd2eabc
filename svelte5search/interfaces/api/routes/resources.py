"""
Resource Routes - Read-only access to the full stored corpus.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Response

from svelte5search.domains.corpus import ItemKind
from svelte5search.domains.search import SearchBackend
from svelte5search.interfaces.api.deps import get_search_engine
from svelte5search.interfaces.api.middleware import BACKEND_HEADER

router = APIRouter()


@router.get("/{kind}")
async def list_resources(
    kind: ItemKind,
    response: Response,
    engine: SearchBackend = Depends(get_search_engine),
) -> dict[str, Any]:
    """Every stored record of one kind, in insertion order."""
    response.headers[BACKEND_HEADER] = engine.name
    records = await engine.list_records(kind)
    return {
        "kind": kind.value,
        "total": len(records),
        "items": [record.model_dump() for record in records],
    }
