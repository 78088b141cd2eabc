"""
FastAPI Main Application - Read-only search API.

Run with: uvicorn svelte5search.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from svelte5search import __version__
from svelte5search.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import SearchTracingMiddleware, register_error_handlers
from .routes import health, resources, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting Svelte 5 Search API...")
    logger.info("  Backend: %s", settings.search_backend)
    logger.info("  Database: %s", settings.db_path)

    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down Svelte 5 Search API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="Svelte 5 Search API",
        description="Synonym-expanded full-text search over Svelte 5 knowledge and code patterns",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    register_error_handlers(app)
    app.add_middleware(SearchTracingMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            f"http://localhost:{settings.api_port}",
            f"http://127.0.0.1:{settings.api_port}",
        ],
        allow_credentials=True,
        allow_methods=["GET", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-Response-Time-Ms", "X-Search-Backend"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api/search", tags=["Search"])
    app.include_router(resources.router, prefix="/api/resources", tags=["Resources"])

    return app


app = create_app()
