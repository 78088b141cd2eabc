"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables (prefix ``SVELTE5_SEARCH_``) and .env files.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from svelte5search import __version__


class Settings(BaseSettings):
    """Application settings."""

    # Paths (unset files resolve under data_dir)
    data_dir: Path = Path("data")
    db_path: Path | None = None
    knowledge_path: Path | None = None
    examples_path: Path | None = None
    synonyms_path: Path | None = None

    # Backend: "fts" (SQLite FTS5, durable) or "fuzzy" (in-memory fallback)
    search_backend: Literal["fts", "fuzzy"] = "fts"

    # Sync
    data_version: str | None = __version__
    source_name: str = "svelte5-search"

    # Search
    search_default_limit: int = 5
    primary_field_boost: float = 2.0
    code_boost: float = 1.5
    fuzzy_threshold: float = 0.6

    # Logging
    log_level: str = "INFO"

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    model_config = SettingsConfigDict(
        env_prefix="SVELTE5_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _resolve_paths(self) -> Settings:
        if self.db_path is None:
            self.db_path = self.data_dir / "svelte5search.db"
        if self.knowledge_path is None:
            self.knowledge_path = self.data_dir / "svelte_5_knowledge.json"
        if self.examples_path is None:
            self.examples_path = self.data_dir / "svelte_5_patterns.json"
        return self


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
