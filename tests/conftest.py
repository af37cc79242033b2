"""Shared fixtures: in-memory index and inference fakes (no external services)."""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from src.config import Settings
from src.context import AppContext
from src.errors import ScoringError
from src.ingestion.models import Chunk, LessonFingerprint
from src.ingestion.storage import LexicalHit, VectorHit, check_embedding_dimensions
from src.pipeline_config import EmbeddingMode, PipelineConfig

DIMENSIONS = 4


def make_chunk(lesson: str, index: int, text: str | None = None) -> Chunk:
    start = index * 35.0
    return Chunk(
        lesson=lesson,
        chunk_index=index,
        start_time=f"00:00:{index:02d}",
        end_time=f"00:00:{index + 1:02d}",
        start_seconds=start,
        end_seconds=start + 45.0,
        text=text if text is not None else f"{lesson} chunk {index}",
    )


class FakeIndexGateway:
    """Dictionary-backed index; search results are scripted by the test."""

    def __init__(self, dimensions: int = DIMENSIONS) -> None:
        self.dimensions = dimensions
        self.chunks: dict[tuple[str, int], Chunk] = {}
        self.vectors: dict[tuple[str, int], list[float]] = {}
        self.fingerprints: dict[str, LessonFingerprint] = {}
        self.vector_results: list[VectorHit] = []
        self.lexical_results: list[LexicalHit] = []
        self.calls: list[tuple] = []

    def add(self, *chunks: Chunk) -> None:
        for chunk in chunks:
            self.chunks[chunk.key] = chunk

    def vector_search(
        self, embedding: Sequence[float], limit: int, lessons: Sequence[str] | None = None
    ) -> list[VectorHit]:
        self.calls.append(("vector_search", limit, lessons))
        # Nearest-neighbour primitive: no lesson pre-filtering
        return self.vector_results[:limit]

    def lexical_search(
        self, query_text: str, limit: int, lessons: Sequence[str] | None = None
    ) -> list[LexicalHit]:
        self.calls.append(("lexical_search", query_text, limit, lessons))
        hits = self.lexical_results
        if lessons:
            hits = [h for h in hits if h.chunk.lesson in lessons]
        return hits[:limit]

    def fetch_by_lesson_and_indexes(self, lesson: str, indexes: Sequence[int]) -> list[Chunk]:
        self.calls.append(("fetch", lesson, sorted(indexes)))
        return [self.chunks[(lesson, i)] for i in sorted(indexes) if (lesson, i) in self.chunks]

    def list_lessons(self) -> list[str]:
        return sorted({lesson for lesson, _ in self.chunks})

    def upsert_chunks(self, pairs: Sequence[tuple[Chunk, Sequence[float]]]) -> None:
        for _chunk, embedding in pairs:
            check_embedding_dimensions(embedding, self.dimensions)
        for chunk, embedding in pairs:
            self.chunks[chunk.key] = chunk
            self.vectors[chunk.key] = list(embedding)

    def upsert_chunk(self, chunk: Chunk, embedding: Sequence[float]) -> None:
        self.upsert_chunks([(chunk, embedding)])

    def delete_lesson(self, lesson: str) -> None:
        self.calls.append(("delete_lesson", lesson))
        for key in [k for k in self.chunks if k[0] == lesson]:
            del self.chunks[key]
            self.vectors.pop(key, None)
        self.fingerprints.pop(lesson, None)

    def get_fingerprint(self, lesson: str) -> LessonFingerprint | None:
        return self.fingerprints.get(lesson)

    def set_fingerprint(self, fingerprint: LessonFingerprint) -> None:
        self.fingerprints[fingerprint.lesson] = fingerprint

    def chunk_count(self, lesson: str) -> int:
        return sum(1 for k in self.chunks if k[0] == lesson)


class FakeInference:
    """Deterministic embeddings; scores and answers set per test."""

    def __init__(self, dimensions: int = DIMENSIONS) -> None:
        self.dimensions = dimensions
        self.scores: list[float] | Exception | None = None
        self.answer = "The answer [1]."
        self.prompts: list[str] = []
        self.embedded: list[tuple[str, EmbeddingMode]] = []

    def embed(self, text: str, mode: EmbeddingMode) -> list[float]:
        return self.embed_many([text], mode)[0]

    def embed_many(self, texts: list[str], mode: EmbeddingMode) -> list[list[float]]:
        self.embedded.extend((t, mode) for t in texts)
        return [[float(len(t))] + [0.0] * (self.dimensions - 1) for t in texts]

    def score(self, question: str, chunks: Sequence[Chunk]) -> list[float]:
        if isinstance(self.scores, Exception):
            raise self.scores
        if self.scores is None:
            raise ScoringError("no scores scripted")
        return list(self.scores)

    def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return self.answer


@pytest.fixture
def chunk_factory() -> Callable[..., Chunk]:
    return make_chunk


@pytest.fixture
def gateway() -> FakeIndexGateway:
    return FakeIndexGateway()


@pytest.fixture
def inference() -> FakeInference:
    return FakeInference()


@pytest.fixture
def ctx(gateway: FakeIndexGateway, inference: FakeInference) -> AppContext:
    settings = Settings(_env_file=None, embedding_dimensions=DIMENSIONS)  # type: ignore[call-arg]
    return AppContext(
        gateway=gateway,
        inference=inference,
        settings=settings,
        config=PipelineConfig(),
    )
