"""Tests for lesson-name similarity, suggestions and filter validation."""

from __future__ import annotations

import pytest

from src.errors import UnknownLessonsError
from src.retrieval.lessons import (
    lesson_similarity,
    rank_lessons,
    suggest_lessons,
    validate_lesson_filter,
)


class TestLessonSimilarity:
    def test_exact_case_insensitive(self) -> None:
        assert lesson_similarity("Lesson1", "lesson1") == 1.0

    def test_containment(self) -> None:
        assert lesson_similarity("intro", "01-Intro-to-Python") == 0.95
        assert lesson_similarity("01-Intro-to-Python", "INTRO") == 0.95

    def test_edit_distance(self) -> None:
        # one substitution over five characters
        assert lesson_similarity("graph", "grapf") == pytest.approx(0.8)

    def test_completely_different(self) -> None:
        assert lesson_similarity("abc", "xyz") == 0.0


class TestSuggestions:
    def test_exact_match_ranked_first(self) -> None:
        ranked = rank_lessons("Lesson1", ["lesson2", "lesson1"])
        assert ranked[0] == ("lesson1", 1.0)
        assert suggest_lessons("Lesson1", ["lesson1", "lesson2"])[0] == "lesson1"

    def test_at_most_five(self) -> None:
        available = [f"lesson{i}" for i in range(10)]
        assert len(suggest_lessons("lesson", available)) == 5

    def test_zero_scores_excluded(self) -> None:
        assert suggest_lessons("abc", ["xyz"]) == []


class TestValidateLessonFilter:
    def test_known_lessons_pass_through(self) -> None:
        assert validate_lesson_filter(["b", "a"], ["a", "b", "c"]) == ["b", "a"]

    def test_unknown_raises_with_suggestions(self) -> None:
        with pytest.raises(UnknownLessonsError) as excinfo:
            validate_lesson_filter(["Lesson1", "lesson2"], ["lesson1", "lesson2"])
        err = excinfo.value
        assert err.unknown == ["Lesson1"]
        assert err.suggestions["Lesson1"][0] == "lesson1"
        assert not err.corpus_empty
        assert "Lesson1" in str(err)

    def test_empty_corpus(self) -> None:
        with pytest.raises(UnknownLessonsError) as excinfo:
            validate_lesson_filter(["anything"], [])
        assert excinfo.value.corpus_empty
        assert excinfo.value.suggestions == {"anything": []}
