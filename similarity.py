"""Edit-distance similarity between normalized titles."""

from __future__ import annotations

from rapidfuzz.distance import OSA

DEFAULT_SIMILARITY_THRESHOLD = 0.9


def edit_distance(a: str, b: str) -> int:
    """Optimal string alignment distance.

    Unlike classic Levenshtein, a swap of two adjacent characters costs one
    edit instead of two, so a transposed-letter typo such as "modle" for
    "model" still clears the default threshold on short titles.
    """
    return OSA.distance(a, b)


def similarity(a: str, b: str) -> float:
    """Return ``(longest - distance) / longest``, or 1.0 for two empty strings."""
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return (longest - edit_distance(a, b)) / longest


def is_similar(a: str, b: str, threshold: float | None = None) -> bool:
    if threshold is None:
        threshold = DEFAULT_SIMILARITY_THRESHOLD
    return similarity(a, b) >= threshold
