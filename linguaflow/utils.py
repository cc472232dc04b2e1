"""Utility helpers for the LinguaFlow app."""
from __future__ import annotations

import re
from typing import Iterable, List, Tuple

from . import config

EMPHASIS_MARKER = "**"
EMPHASIS_PATTERN = re.compile(r"\*\*(.+?)\*\*", re.DOTALL)


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp *value* to the inclusive interval [lower, upper]."""

    return max(lower, min(upper, value))


def clamp_daily_target(value: int) -> int:
    return int(clamp(value, config.DAILY_TARGET_MIN, config.DAILY_TARGET_MAX))


def safe_join(parts: Iterable[str], delimiter: str = "\n") -> str:
    """Join an iterable of strings filtering out falsy values."""

    return delimiter.join(part for part in parts if part)


def unique_in_order(items: Iterable[str]) -> List[str]:
    """Drop repeated entries while keeping the first occurrence of each."""

    return list(dict.fromkeys(items))


def split_emphasis(text: str) -> List[Tuple[str, bool]]:
    """Split *text* into ``(segment, emphasised)`` pairs.

    Only paired ``**`` markers produce emphasis. A dangling marker is removed
    rather than shown to the learner.
    """

    segments: List[Tuple[str, bool]] = []
    position = 0
    for match in EMPHASIS_PATTERN.finditer(text):
        if match.start() > position:
            segments.append((text[position:match.start()], False))
        segments.append((match.group(1), True))
        position = match.end()
    tail = text[position:].replace(EMPHASIS_MARKER, "")
    if tail:
        segments.append((tail, False))
    return segments


def strip_emphasis(text: str) -> str:
    """Return *text* without emphasis markers, e.g. for speech synthesis."""

    return "".join(segment for segment, _ in split_emphasis(text))


def normalize_emphasis(text: str) -> str:
    """Rewrite *text* so that every remaining marker is part of a pair."""

    return "".join(
        f"{EMPHASIS_MARKER}{segment}{EMPHASIS_MARKER}" if emphasised else segment
        for segment, emphasised in split_emphasis(text)
    )


def has_balanced_emphasis(text: str) -> bool:
    return text.count(EMPHASIS_MARKER) % 2 == 0


def progress_percentage(current: int, total: int) -> float:
    """Percentage of *total* reached, capped at 100."""

    if total <= 0:
        return 0.0
    return min(100.0, current / total * 100)
