"""Pydantic request/response schemas for the Lesson Transcript RAG API."""

from __future__ import annotations

from pydantic import BaseModel

from src.ingestion.models import Chunk


class QueryRequest(BaseModel):
    """Request body for the /api/query endpoint."""

    question: str
    top_k: int | None = None
    lessons: list[str] | None = None


class SourceChunk(BaseModel):
    """A single transcript excerpt used as answer context."""

    lesson: str
    chunk_index: int
    start_time: str
    end_time: str
    start_seconds: float
    end_seconds: float
    text: str

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> SourceChunk:
        return cls(
            lesson=chunk.lesson,
            chunk_index=chunk.chunk_index,
            start_time=chunk.start_time,
            end_time=chunk.end_time,
            start_seconds=chunk.start_seconds,
            end_seconds=chunk.end_seconds,
            text=chunk.text,
        )


class QueryResponse(BaseModel):
    """Response body for the /api/query endpoint."""

    answer: str
    sources: list[SourceChunk]
    model: str | None = None
    reranked: bool = False
    rerank_fallback_reason: str | None = None


class UnknownLessonsDetail(BaseModel):
    """Error detail returned when a lesson filter names unknown lessons."""

    message: str
    unknown: list[str]
    suggestions: dict[str, list[str]]


class IngestRequest(BaseModel):
    """Request body for the /api/ingest endpoint."""

    transcripts_dir: str | None = None
    force: bool = False


class IngestResponse(BaseModel):
    """Response body for the /api/ingest endpoint."""

    ingested: dict[str, int]
    skipped: list[str]
    empty: list[str]
    failed: dict[str, str]
    total_files: int
