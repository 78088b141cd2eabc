"""
Svelte5 Search - Curated Svelte 5 knowledge base and code-pattern index.

Example:
    >>> from svelte5search.domains.search import create_search_engine
    >>> engine = await create_search_engine()
    >>> report = await engine.load(knowledge, examples)
    >>> response = await engine.search("knowledge", "$state", limit=5)
"""

__version__ = "1.0.0"
__all__ = ["__version__"]
