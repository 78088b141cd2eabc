"""
Highlighting - Marker pair wrapping matched spans of field text.
"""

from __future__ import annotations

from collections.abc import Iterable

__all__ = ["MARK_OPEN", "MARK_CLOSE", "highlight_spans", "strip_highlights"]

MARK_OPEN = "<mark>"
MARK_CLOSE = "</mark>"


def highlight_spans(text: str, spans: Iterable[tuple[int, int]]) -> str:
    """Wrap each ``[start, end)`` span of ``text``; overlapping spans are merged."""
    merged: list[list[int]] = []
    for start, end in sorted(spans):
        start, end = max(0, start), min(len(text), end)
        if start >= end:
            continue
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    parts: list[str] = []
    cursor = 0
    for start, end in merged:
        parts.append(text[cursor:start])
        parts.append(MARK_OPEN + text[start:end] + MARK_CLOSE)
        cursor = end
    parts.append(text[cursor:])
    return "".join(parts)


def strip_highlights(text: str) -> str:
    return text.replace(MARK_OPEN, "").replace(MARK_CLOSE, "")
