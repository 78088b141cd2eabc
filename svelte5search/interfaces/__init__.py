"""
Interfaces - User-facing applications.

- api: FastAPI read-only REST API
- cli: Command-line interface
"""

__all__ = ["api", "cli"]
