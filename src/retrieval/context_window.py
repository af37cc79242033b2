"""
Helpers for expanding selected chunks with their neighbours in the same lesson.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.ingestion.models import Chunk
from src.ingestion.storage import IndexGateway


def collect_neighbor_indexes(chunks: Sequence[Chunk], radius: int = 1) -> dict[str, set[int]]:
    """Indexes within ``radius`` of each chunk (excluding itself), per lesson, never negative."""
    by_lesson: dict[str, set[int]] = {}
    for chunk in chunks:
        indexes = by_lesson.setdefault(chunk.lesson, set())
        for offset in range(-radius, radius + 1):
            if offset == 0:
                continue
            idx = chunk.chunk_index + offset
            if idx >= 0:
                indexes.add(idx)
    return by_lesson


def expand_with_neighbors(
    gateway: IndexGateway,
    selection: Sequence[Chunk],
    radius: int = 1,
) -> list[Chunk]:
    """
    Add neighbouring chunks to a relevance-ordered selection.

    Args:
        gateway: Index used to look up neighbours.
        selection: Chosen chunks, best first.
        radius: Number of neighbours to include on each side.

    Returns:
        Selection plus existing neighbours, deduplicated by identity and
        sorted by (lesson, chunk_index) for reading order.
    """
    if radius <= 0 or not selection:
        return list(selection)

    neighbors: list[Chunk] = []
    for lesson, indexes in collect_neighbor_indexes(selection, radius).items():
        neighbors.extend(gateway.fetch_by_lesson_and_indexes(lesson, sorted(indexes)))

    expanded: dict[tuple[str, int], Chunk] = {}
    for chunk in [*selection, *neighbors]:
        expanded.setdefault(chunk.key, chunk)

    return sorted(expanded.values(), key=lambda c: (c.lesson, c.chunk_index))
