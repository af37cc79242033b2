"""Index/storage contract and its Supabase (pgvector + full-text) implementation."""

from __future__ import annotations

import logging
import os
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol, cast

from supabase import Client, create_client

from src.errors import EmbeddingDimensionError
from src.ingestion.models import Chunk, LessonFingerprint

logger = logging.getLogger(__name__)

CHUNKS_TABLE = "lesson_chunks"
FINGERPRINTS_TABLE = "lesson_fingerprints"


@dataclass
class VectorHit:
    """A chunk returned by vector search; lower distance is better."""

    chunk: Chunk
    distance: float


@dataclass
class LexicalHit:
    """A chunk returned by lexical search; lower score is better."""

    chunk: Chunk
    score: float


class IndexGateway(Protocol):
    """Capability interface over the chunk index and its persisted state."""

    def vector_search(
        self, embedding: Sequence[float], limit: int, lessons: Sequence[str] | None = None
    ) -> list[VectorHit]:
        """Nearest chunks by ascending distance.

        ``lessons`` may be applied after the nearest-neighbour step, so a
        filtered call can return fewer than ``limit`` hits.
        """
        ...

    def lexical_search(
        self, query_text: str, limit: int, lessons: Sequence[str] | None = None
    ) -> list[LexicalHit]:
        """Full-text matches by ascending score."""
        ...

    def fetch_by_lesson_and_indexes(self, lesson: str, indexes: Sequence[int]) -> list[Chunk]:
        """Chunks of ``lesson`` at the given indexes, in index order; missing ones omitted."""
        ...

    def list_lessons(self) -> list[str]: ...

    def upsert_chunks(self, pairs: Sequence[tuple[Chunk, Sequence[float]]]) -> None: ...

    def upsert_chunk(self, chunk: Chunk, embedding: Sequence[float]) -> None: ...

    def delete_lesson(self, lesson: str) -> None:
        """Remove every chunk, vector and the fingerprint of ``lesson``."""
        ...

    def get_fingerprint(self, lesson: str) -> LessonFingerprint | None: ...

    def set_fingerprint(self, fingerprint: LessonFingerprint) -> None: ...


def check_embedding_dimensions(embedding: Sequence[float], expected: int) -> None:
    """Raise :class:`EmbeddingDimensionError` unless ``embedding`` has ``expected`` values."""
    if len(embedding) != expected:
        raise EmbeddingDimensionError(len(embedding), expected)


def get_supabase_client(url: str | None = None, key: str | None = None) -> Client:
    """Create and return a Supabase client, defaulting to environment variables."""
    return create_client(
        url or os.getenv("SUPABASE_URL", ""),
        key or os.getenv("SUPABASE_KEY", ""),
    )


def _row_to_chunk(row: dict[str, Any]) -> Chunk:
    return Chunk(
        lesson=row["lesson_name"],
        chunk_index=int(row["chunk_index"]),
        start_time=row["start_time"],
        end_time=row["end_time"],
        start_seconds=float(row["start_seconds"]),
        end_seconds=float(row["end_seconds"]),
        text=row["text"],
    )


def _chunk_to_row(chunk: Chunk, embedding: Sequence[float]) -> dict[str, object]:
    return {
        "lesson_name": chunk.lesson,
        "chunk_index": chunk.chunk_index,
        "start_time": chunk.start_time,
        "end_time": chunk.end_time,
        "start_seconds": chunk.start_seconds,
        "end_seconds": chunk.end_seconds,
        "text": chunk.text,
        "embedding": list(embedding),
    }


class SupabaseIndexGateway:
    """:class:`IndexGateway` backed by Supabase tables and RPC functions.

    Expects the schema in ``supabase/migrations/001_lesson_chunks.sql``:
    ``lesson_chunks`` (with a pgvector ``embedding`` column),
    ``lesson_fingerprints``, and the ``match_lesson_chunks``,
    ``search_lesson_chunks`` and ``list_lesson_names`` functions.
    """

    batch_size = 50

    def __init__(self, client: Client, embedding_dimensions: int) -> None:
        self.client = client
        self.embedding_dimensions = embedding_dimensions

    def vector_search(
        self, embedding: Sequence[float], limit: int, lessons: Sequence[str] | None = None
    ) -> list[VectorHit]:
        check_embedding_dimensions(embedding, self.embedding_dimensions)
        result = self.client.rpc(
            "match_lesson_chunks",
            {
                "query_embedding": list(embedding),
                "match_count": limit,
                "filter_lessons": list(lessons) if lessons else None,
            },
        ).execute()
        # Supabase .data is typed as JSON (broad union); cast to concrete type.
        rows = cast(list[dict[str, Any]], result.data)
        return [VectorHit(chunk=_row_to_chunk(r), distance=float(r["distance"])) for r in rows]

    def lexical_search(
        self, query_text: str, limit: int, lessons: Sequence[str] | None = None
    ) -> list[LexicalHit]:
        result = self.client.rpc(
            "search_lesson_chunks",
            {
                "query_text": query_text,
                "match_count": limit,
                "filter_lessons": list(lessons) if lessons else None,
            },
        ).execute()
        rows = cast(list[dict[str, Any]], result.data)
        return [LexicalHit(chunk=_row_to_chunk(r), score=float(r["score"])) for r in rows]

    def fetch_by_lesson_and_indexes(self, lesson: str, indexes: Sequence[int]) -> list[Chunk]:
        if not indexes:
            return []
        result = (
            self.client.table(CHUNKS_TABLE)
            .select(
                "lesson_name,chunk_index,start_time,end_time,start_seconds,end_seconds,text"
            )
            .eq("lesson_name", lesson)
            .in_("chunk_index", sorted(set(indexes)))
            .order("chunk_index")
            .execute()
        )
        rows = cast(list[dict[str, Any]], result.data)
        return [_row_to_chunk(r) for r in rows]

    def list_lessons(self) -> list[str]:
        result = self.client.rpc("list_lesson_names", {}).execute()
        rows = cast(list[dict[str, Any]], result.data)
        return sorted({r["lesson_name"] for r in rows})

    def upsert_chunks(self, pairs: Sequence[tuple[Chunk, Sequence[float]]]) -> None:
        """Store chunks with embeddings (batched by 50).

        Every embedding is checked before the first batch is written.
        """
        for _chunk, embedding in pairs:
            check_embedding_dimensions(embedding, self.embedding_dimensions)

        rows = [_chunk_to_row(chunk, embedding) for chunk, embedding in pairs]
        for i in range(0, len(rows), self.batch_size):
            self.client.table(CHUNKS_TABLE).upsert(
                rows[i : i + self.batch_size], on_conflict="lesson_name,chunk_index"
            ).execute()

    def upsert_chunk(self, chunk: Chunk, embedding: Sequence[float]) -> None:
        self.upsert_chunks([(chunk, embedding)])

    def delete_lesson(self, lesson: str) -> None:
        # The embedding lives on the chunk row, so one delete covers both.
        self.client.table(CHUNKS_TABLE).delete().eq("lesson_name", lesson).execute()
        self.client.table(FINGERPRINTS_TABLE).delete().eq("lesson_name", lesson).execute()
        logger.debug("Deleted stored chunks and fingerprint for lesson %s", lesson)

    def get_fingerprint(self, lesson: str) -> LessonFingerprint | None:
        result = (
            self.client.table(FINGERPRINTS_TABLE)
            .select("lesson_name,mtime,size")
            .eq("lesson_name", lesson)
            .limit(1)
            .execute()
        )
        rows = cast(list[dict[str, Any]], result.data)
        if not rows:
            return None
        row = rows[0]
        return LessonFingerprint(lesson=row["lesson_name"], mtime=int(row["mtime"]), size=int(row["size"]))

    def set_fingerprint(self, fingerprint: LessonFingerprint) -> None:
        self.client.table(FINGERPRINTS_TABLE).upsert(
            {
                "lesson_name": fingerprint.lesson,
                "mtime": fingerprint.mtime,
                "size": fingerprint.size,
                "processed_at": datetime.now(timezone.utc).isoformat(),
            },
            on_conflict="lesson_name",
        ).execute()
