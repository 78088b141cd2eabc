"""
API Middleware - Search request tracing and error mapping.

Provides:
- SearchTracingMiddleware: request ID echo and latency logged per corpus kind and backend
- register_error_handlers: Svelte5SearchError codes mapped onto HTTP statuses
"""

from __future__ import annotations

import logging
import re
import time
import uuid
from collections.abc import Awaitable, Callable

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from svelte5search.config.errors import ErrorCode, Svelte5SearchError

logger = logging.getLogger(__name__)

__all__ = [
    "BACKEND_HEADER",
    "STATUS_BY_CODE",
    "SearchTracingMiddleware",
    "register_error_handlers",
    "status_for",
]

BACKEND_HEADER = "X-Search-Backend"

# /api/search/{kind}, /api/search/{kind}/boost, /api/resources/{kind}
_CORPUS_PATH = re.compile(
    r"^/api/(?P<surface>search|resources)/(?P<kind>[^/]+)(?P<boost>/boost)?/?$"
)

STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.SEARCH_INVALID_QUERY: 400,
    ErrorCode.NOT_FOUND: 404,
    # The previous snapshot is still served after a rolled-back sync
    ErrorCode.SYNC_TRANSACTION_FAILED: 409,
    ErrorCode.INDEX_INCONSISTENT: 503,
    ErrorCode.SEARCH_INDEX_UNAVAILABLE: 503,
    ErrorCode.STORAGE_CONNECTION_FAILED: 503,
}

RETRY_AFTER_SECONDS = 5


def status_for(code: ErrorCode) -> int:
    return STATUS_BY_CODE.get(code, 500)


class SearchTracingMiddleware(BaseHTTPMiddleware):
    """
    Tag every request with an ID and log its latency.

    Corpus requests are logged with the kind, the search mode and the backend
    that served them (routes report it through ``X-Search-Backend``).
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        request.state.request_id = request_id
        start = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"

        match = _CORPUS_PATH.match(request.url.path)
        if match is None:
            logger.debug(
                "%s %s status=%d latency_ms=%.2f",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
            return response

        mode = "boost" if match["boost"] else "plain"
        logger.info(
            "%s kind=%s mode=%s backend=%s status=%d latency_ms=%.2f request_id=%s",
            match["surface"],
            match["kind"],
            mode if match["surface"] == "search" else "list",
            response.headers.get(BACKEND_HEADER, "-"),
            response.status_code,
            duration_ms,
            request_id,
        )
        return response


def register_error_handlers(app: FastAPI) -> None:
    """Render Svelte5SearchError as ``{"error": ..., "request_id": ...}`` with a mapped status."""

    @app.exception_handler(Svelte5SearchError)
    async def search_error_handler(request: Request, exc: Svelte5SearchError) -> JSONResponse:
        status_code = status_for(exc.code)
        request_id = getattr(request.state, "request_id", None)

        if status_code >= 500:
            logger.error(
                "%s on %s: %s request_id=%s details=%s",
                exc.code.value,
                request.url.path,
                exc.message,
                request_id,
                exc.details,
            )
        else:
            logger.warning("%s on %s: %s", exc.code.value, request.url.path, exc.message)

        headers = {"Retry-After": str(RETRY_AFTER_SECONDS)} if status_code == 503 else None
        return JSONResponse(
            status_code=status_code,
            content={"error": exc.to_dict(), "request_id": request_id},
            headers=headers,
        )
