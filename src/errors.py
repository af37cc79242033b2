"""Exception types shared by the ingestion and query pipelines."""

from __future__ import annotations


class LessonRagError(Exception):
    """Base class for errors raised by the transcript RAG core."""


class EmbeddingDimensionError(LessonRagError, ValueError):
    """An embedding vector does not have the configured dimensionality."""

    def __init__(self, actual: int, expected: int) -> None:
        super().__init__(f"Embedding length {actual} does not match expected {expected}")
        self.actual = actual
        self.expected = expected


class ScoringError(LessonRagError):
    """The relevance-scoring response could not be turned into a score list."""


class UnknownLessonsError(LessonRagError, ValueError):
    """A lesson filter names lessons that are not in the index.

    ``suggestions`` maps every unknown name to up to five close matches
    (possibly none). Nothing is auto-corrected; the caller decides how to
    present the alternatives. ``corpus_empty`` is set when no lesson has
    been ingested at all.
    """

    def __init__(
        self,
        unknown: list[str],
        suggestions: dict[str, list[str]],
        corpus_empty: bool = False,
    ) -> None:
        self.unknown = unknown
        self.suggestions = suggestions
        self.corpus_empty = corpus_empty
        if corpus_empty:
            msg = "No lessons found. Run ingest first."
        else:
            msg = f"Unknown lesson(s): {', '.join(unknown)}"
        super().__init__(msg)
