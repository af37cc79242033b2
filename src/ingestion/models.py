"""Data models for the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class SubtitleEntry:
    """One timed cue from a subtitle file.

    ``start_time``/``end_time`` are display strings (``HH:MM:SS``);
    the ``*_seconds`` fields keep millisecond precision.
    """

    start_time: str
    end_time: str
    start_seconds: float
    end_seconds: float
    text: str


@dataclass(frozen=True)
class Chunk:
    """A time-windowed excerpt of one lesson, ready for embedding and storage."""

    lesson: str
    chunk_index: int
    start_time: str
    end_time: str
    start_seconds: float
    end_seconds: float
    text: str

    @property
    def key(self) -> tuple[str, int]:
        """Identity of the chunk within the corpus."""
        return self.lesson, self.chunk_index


@dataclass(frozen=True)
class LessonFingerprint:
    """Modification time (ms) and size of a lesson's source file."""

    lesson: str
    mtime: int
    size: int

    def matches(self, other: LessonFingerprint | None) -> bool:
        return other is not None and self.mtime == other.mtime and self.size == other.size


@dataclass
class IngestReport:
    """Outcome of one ingest run over a transcripts directory."""

    ingested: dict[str, int] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)
    empty: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    total_files: int = 0
