"""Lesson-filter validation with fuzzy "did you mean" suggestions."""

from __future__ import annotations

from collections.abc import Sequence

from rapidfuzz.distance import Levenshtein

from src.errors import UnknownLessonsError

MAX_SUGGESTIONS = 5


def lesson_similarity(a: str, b: str) -> float:
    """Case-insensitive similarity in ``[0, 1]``.

    1.0 for equal names, 0.95 when one contains the other, otherwise one
    minus the edit distance over the longer length.
    """
    a_lower = a.lower()
    b_lower = b.lower()
    if a_lower == b_lower:
        return 1.0
    if a_lower in b_lower or b_lower in a_lower:
        return 0.95
    distance = Levenshtein.distance(a_lower, b_lower)
    return 1.0 - distance / max(len(a_lower), len(b_lower))


def rank_lessons(name: str, available: Sequence[str]) -> list[tuple[str, float]]:
    """``(lesson, score)`` pairs with a positive score, best first."""
    scored = [(lesson, lesson_similarity(name, lesson)) for lesson in available]
    scored = [pair for pair in scored if pair[1] > 0]
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return scored


def suggest_lessons(name: str, available: Sequence[str], limit: int = MAX_SUGGESTIONS) -> list[str]:
    """Up to ``limit`` known lesson names closest to ``name``."""
    return [lesson for lesson, _score in rank_lessons(name, available)[:limit]]


def validate_lesson_filter(requested: Sequence[str], available: Sequence[str]) -> list[str]:
    """Check every requested lesson exists; never substitutes a near match.

    Returns:
        The requested names, unchanged.

    Raises:
        UnknownLessonsError: If any name is unknown, or nothing is ingested.
    """
    if not available:
        raise UnknownLessonsError(
            list(requested), {name: [] for name in requested}, corpus_empty=True
        )

    known = set(available)
    unknown = [name for name in requested if name not in known]
    if unknown:
        raise UnknownLessonsError(
            unknown,
            {name: suggest_lessons(name, available) for name in unknown},
        )
    return list(requested)

