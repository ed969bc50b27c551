"""Field-level similarity scoring in [0, 1]."""

from __future__ import annotations

from rapidfuzz.distance import Levenshtein

from linkrec.config import CONTAINS_PARTIAL_SCORE


def _clean(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def levenshtein_similarity(a: str, b: str) -> float:
    """(longest - edit distance) / longest for two non-empty strings."""
    longest = max(len(a), len(b))
    # Callers filter out empty input, so longest is never zero here
    assert longest > 0, "levenshtein_similarity called with two empty strings"
    distance = Levenshtein.distance(a, b)
    return (longest - distance) / longest


def word_similarity(a: str, b: str) -> float:
    """Shared lower-cased tokens over the larger token set."""
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    largest = max(len(words_a), len(words_b))
    if largest == 0:
        return 0.0
    return len(words_a & words_b) / largest


def contains_similarity(a: str, b: str) -> float:
    lower_a = a.lower()
    lower_b = b.lower()
    if lower_a == lower_b:
        return 1.0
    if lower_a in lower_b or lower_b in lower_a:
        return CONTAINS_PARTIAL_SCORE
    return 0.0


def similarity(a: object, b: object, mode: str = "fuzzy") -> float:
    """Score two scalar values under a match mode.

    Empty or missing input on either side scores 0.0. Unknown modes
    fall back to fuzzy (Levenshtein) scoring.
    """
    a_str = _clean(a)
    b_str = _clean(b)
    if not a_str or not b_str:
        return 0.0

    if mode == "exact":
        return 1.0 if a_str.lower() == b_str.lower() else 0.0
    if mode == "word":
        return word_similarity(a_str, b_str)
    if mode == "contains":
        return contains_similarity(a_str, b_str)
    return levenshtein_similarity(a_str, b_str)
