"""Time-windowed chunking of normalized subtitle entries."""

from __future__ import annotations

import logging

from src.ingestion.models import Chunk, SubtitleEntry

logger = logging.getLogger(__name__)


def aggregate_entries(
    entries: list[SubtitleEntry],
    lesson: str,
    window_seconds: float = 45.0,
    overlap_seconds: float = 10.0,
) -> list[Chunk]:
    """Group consecutive entries into overlapping time windows.

    A window opens at the start of the entry under the cursor and takes every
    following entry whose end lies within ``window_seconds`` of that start
    (inclusive). At least one entry is always taken. The next window opens at
    the first included entry that starts no earlier than ``overlap_seconds``
    before the end of the window, and always at least one entry further on,
    so the loop runs at most ``len(entries)`` times.

    Args:
        entries: Normalized entries in temporal order.
        lesson: Lesson name stamped on every chunk.
        window_seconds: Maximum span of a window, measured entry-end to
            window-start.
        overlap_seconds: How far back from a window's end the next window
            may reach.

    Returns:
        Chunks with dense ``chunk_index`` values ``0..n-1``.
    """
    if not entries:
        logger.info("No entries to aggregate for lesson %s", lesson)
        return []

    chunks: list[Chunk] = []
    chunk_idx = 0
    cursor = 0

    while cursor < len(entries):
        window_start = entries[cursor].start_seconds

        end = cursor
        while end < len(entries) and entries[end].end_seconds - window_start <= window_seconds:
            end += 1
        if end == cursor:
            # Single entry longer than the window
            end = cursor + 1

        window = entries[cursor:end]
        first, last = window[0], window[-1]
        text = " ".join(e.text for e in window).strip()

        if text:
            chunks.append(
                Chunk(
                    lesson=lesson,
                    chunk_index=chunk_idx,
                    start_time=first.start_time,
                    end_time=last.end_time,
                    start_seconds=first.start_seconds,
                    end_seconds=max(last.end_seconds, first.start_seconds),
                    text=text,
                )
            )
            chunk_idx += 1

        overlap_start = last.end_seconds - overlap_seconds
        next_cursor = cursor
        while next_cursor < end and entries[next_cursor].start_seconds < overlap_start:
            next_cursor += 1
        cursor = max(next_cursor, cursor + 1)

    return chunks
