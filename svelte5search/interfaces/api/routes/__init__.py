"""
API Routes.
"""

from . import health, resources, search

__all__ = ["health", "search", "resources"]
