"""
Reciprocal Rank Fusion (RRF) of vector and lexical result lists.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from src.ingestion.models import Chunk
from src.ingestion.storage import LexicalHit, VectorHit

RRF_K = 60


@dataclass
class RetrievalCandidate:
    """A chunk found by one or both searches, with its fused score."""

    chunk: Chunk
    distance: float | None = None
    lexical_score: float | None = None
    fused_score: float = 0.0

    @property
    def key(self) -> tuple[str, int]:
        return self.chunk.key


def rrf_fuse(
    vector_hits: Sequence[VectorHit],
    lexical_hits: Sequence[LexicalHit],
    k_rrf: int = RRF_K,
) -> list[RetrievalCandidate]:
    """
    Merge the two ranked lists using Reciprocal Rank Fusion.

    Each list adds ``1 / (k_rrf + rank)`` (rank is 1-based) to every chunk it
    contains; contributions for the same chunk identity are summed.

    Args:
        vector_hits: Vector results, best first.
        lexical_hits: Lexical results, best first.
        k_rrf: Constant in 1 / (k_rrf + rank), typically 60.

    Returns:
        Deduplicated candidates by descending fused score. Equal scores keep
        first-seen order (vector list first, then lexical list).
    """
    candidates: dict[tuple[str, int], RetrievalCandidate] = {}

    for rank, vhit in enumerate(vector_hits, start=1):
        cand = candidates.setdefault(vhit.chunk.key, RetrievalCandidate(chunk=vhit.chunk))
        if cand.distance is None:
            cand.distance = vhit.distance
        cand.fused_score += 1.0 / (k_rrf + rank)

    for rank, lhit in enumerate(lexical_hits, start=1):
        cand = candidates.setdefault(lhit.chunk.key, RetrievalCandidate(chunk=lhit.chunk))
        if cand.lexical_score is None:
            cand.lexical_score = lhit.score
        cand.fused_score += 1.0 / (k_rrf + rank)

    # dict keeps insertion order and sorted() is stable: ties stay first-seen.
    return sorted(candidates.values(), key=lambda c: c.fused_score, reverse=True)
