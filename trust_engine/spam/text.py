"""
Text normalization and similarity used by duplicate detection.

Both functions are pure and callable on their own::

    a = normalize_content("Great game!!  Runs at 60FPS")   # "great game runs at 60fps"
    b = normalize_content("great game, runs at 60fps")
    calculate_similarity(a, b)                             # 1.0
"""

from __future__ import annotations

import re
from collections import Counter

# ASCII word characters only: accented letters are stripped, not kept.
_NON_WORD = re.compile(r"[^a-z0-9_\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize_content(content: str) -> str:
    """Lower-case, drop punctuation and symbols, collapse whitespace, trim.

    >>> normalize_content("  Hello,   WORLD!  ")
    'hello world'
    >>> normalize_content("café")
    'caf'
    """
    text = _NON_WORD.sub("", content.lower())
    return _WHITESPACE.sub(" ", text).strip()


def calculate_similarity(first: str, second: str) -> float:
    """Frequency-aware Jaccard similarity over whitespace-separated words.

    Each word contributes ``min(count_a, count_b)`` to the intersection and
    ``max(count_a, count_b)`` to the union, so repetition counts against
    similarity: ``"spam spam spam"`` vs ``"spam"`` is 1/3, not 1.0.

    Returns:
        Value in [0, 1].  Two empty inputs are identical (1.0); exactly one
        empty input gives 0.0.
    """
    words_a = Counter(first.split())
    words_b = Counter(second.split())

    if not words_a and not words_b:
        return 1.0
    if not words_a or not words_b:
        return 0.0

    intersection = sum((words_a & words_b).values())
    union = sum((words_a | words_b).values())
    return intersection / union
