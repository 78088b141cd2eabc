"""
Corpus Loader - Read knowledge and example records from JSON or JSON Lines files.

Records are returned raw; validation happens per item during sync so a single
malformed entry never blocks the rest of the corpus.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

__all__ = ["read_corpus_file", "load_corpus"]


def read_corpus_file(path: str | Path) -> list[dict[str, Any]]:
    """
    Read an ordered sequence of records.

    Args:
        path: ``.jsonl`` file (one object per line) or ``.json`` file holding an array

    Returns:
        Records in file order
    """
    path = Path(path)
    text = path.read_text(encoding="utf-8")

    if path.suffix == ".jsonl":
        records = [json.loads(line) for line in text.splitlines() if line.strip()]
    else:
        records = json.loads(text)
        if not isinstance(records, list):
            raise ValueError(f"Expected a JSON array in {path}")

    logger.debug("Read %d records from %s", len(records), path)
    return records


def load_corpus(
    knowledge_path: str | Path,
    examples_path: str | Path,
) -> tuple[list[dict[str, Any]], list[dict[str, Any]]]:
    """Read both corpus files. A missing file yields an empty sequence."""
    corpus: list[list[dict[str, Any]]] = []
    for path in (Path(knowledge_path), Path(examples_path)):
        if path.exists():
            corpus.append(read_corpus_file(path))
        else:
            logger.warning("Corpus file not found: %s", path)
            corpus.append([])
    return corpus[0], corpus[1]
