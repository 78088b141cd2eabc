"""
CLI Interface - Command-line tools for Svelte 5 Search.

Provides commands for:
- Corpus loading and sync
- Search and boosted search
- Index status and verification
"""

from .main import app, main

__all__ = ["app", "main"]
