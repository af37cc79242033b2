"""End-to-end ingestion pipeline: parse -> normalize -> chunk -> embed -> store."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from src.ingestion.chunking import aggregate_entries
from src.ingestion.models import IngestReport, LessonFingerprint
from src.ingestion.normalize import normalize_entries
from src.ingestion.parsers import parse_srt_file
from src.ingestion.storage import check_embedding_dimensions
from src.pipeline_config import EmbeddingMode

if TYPE_CHECKING:
    from src.context import AppContext

logger = logging.getLogger(__name__)

TRANSCRIPT_EXTENSION = ".srt"


def list_transcripts(transcripts_dir: str | Path) -> list[Path]:
    """Return the ``.srt`` files directly inside ``transcripts_dir``, sorted by name.

    Raises:
        NotADirectoryError: If ``transcripts_dir`` is not a directory.
    """
    directory = Path(transcripts_dir)
    if not directory.is_dir():
        raise NotADirectoryError(f"Transcripts directory not found: {directory}")
    return sorted(
        p for p in directory.iterdir() if p.is_file() and p.suffix.lower() == TRANSCRIPT_EXTENSION
    )


def fingerprint_file(path: Path) -> LessonFingerprint:
    """Fingerprint a transcript by modification time (whole ms) and size."""
    stats = os.stat(path)
    return LessonFingerprint(
        lesson=path.stem,
        mtime=stats.st_mtime_ns // 1_000_000,
        size=stats.st_size,
    )


def ingest_lesson(ctx: AppContext, path: Path, force: bool = False) -> int | None:
    """Ingest one transcript file as the lesson named by its stem.

    Returns:
        The number of chunks stored, ``0`` if the file produced no chunks
        (any previously stored chunks are removed), or ``None`` if the file is unchanged
        since the last ingest and ``force`` is not set.

    Raises:
        EmbeddingDimensionError: If an embedding has the wrong size. Raised
            before anything is deleted or written.
    """
    lesson = path.stem
    fingerprint = fingerprint_file(path)
    previous = ctx.gateway.get_fingerprint(lesson)

    if not force and fingerprint.matches(previous):
        logger.info("Skipping unchanged: %s", path.name)
        return None

    # 1. Parse
    entries = parse_srt_file(path)
    if not entries:
        logger.warning("No entries parsed from %s", path.name)
        ctx.gateway.delete_lesson(lesson)
        return 0

    # 2. Normalize + chunk
    normalized = normalize_entries(entries)
    chunks = aggregate_entries(
        normalized,
        lesson,
        window_seconds=ctx.config.window_seconds,
        overlap_seconds=ctx.config.overlap_seconds,
    )
    if not chunks:
        logger.warning("No chunks created from %s", path.name)
        ctx.gateway.delete_lesson(lesson)
        return 0

    # 3. Embed and check every vector before touching stored state
    embeddings = ctx.inference.embed_many([c.text for c in chunks], EmbeddingMode.DOCUMENT)
    if len(embeddings) != len(chunks):
        msg = f"Expected {len(chunks)} embeddings for {path.name}, got {len(embeddings)}"
        raise ValueError(msg)
    for embedding in embeddings:
        check_embedding_dimensions(embedding, ctx.settings.embedding_dimensions)

    # 4. Replace the lesson. Always wipe first: a lesson interrupted on an
    # earlier run may have rows but no fingerprint.
    ctx.gateway.delete_lesson(lesson)
    ctx.gateway.upsert_chunks(list(zip(chunks, embeddings, strict=True)))

    # Fingerprint last, so a half-written lesson is never considered current.
    ctx.gateway.set_fingerprint(fingerprint)
    return len(chunks)


def ingest(ctx: AppContext, transcripts_dir: str | Path, force: bool = False) -> IngestReport:
    """Ingest every ``.srt`` file in ``transcripts_dir``, one lesson at a time.

    A lesson that fails is logged and recorded in the report; the run moves on
    to the next file.

    Args:
        ctx: Collaborators for this run.
        transcripts_dir: Directory holding one ``.srt`` file per lesson.
        force: Re-ingest lessons even if their files are unchanged.

    Returns:
        An :class:`IngestReport` summarising the run.
    """
    files = list_transcripts(transcripts_dir)
    report = IngestReport(total_files=len(files))

    if not files:
        logger.warning("No .srt files found in %s", transcripts_dir)
        return report

    for path in files:
        lesson = path.stem
        try:
            stored = ingest_lesson(ctx, path, force=force)
        except Exception as exc:
            logger.exception("Ingest failed for %s", path.name)
            report.failed[lesson] = str(exc)
            continue

        if stored is None:
            report.skipped.append(lesson)
        elif stored == 0:
            report.empty.append(lesson)
        else:
            report.ingested[lesson] = stored
            logger.info("Ingested: %s (%d chunks)", path.name, stored)

    logger.info(
        "Ingest complete. Ingested %d, skipped %d, failed %d, total files %d.",
        len(report.ingested),
        len(report.skipped),
        len(report.failed),
        report.total_files,
    )
    return report
