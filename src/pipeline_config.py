"""Pipeline configuration: embedding modes and PipelineConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EmbeddingMode(str, Enum):
    """Which side of the retrieval pair a text is embedded for."""

    DOCUMENT = "document"
    QUERY = "query"


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable windowing and retrieval parameters.

    Defaults are the values the corpus was built and tuned with: 45 second
    windows overlapping by 10 seconds, 50 candidates per search list, RRF
    constant 60, the top 30 fused candidates reranked, one neighbour on
    each side of every selected chunk.
    """

    window_seconds: float = 45.0
    overlap_seconds: float = 10.0
    vector_limit: int = 50
    lexical_limit: int = 50
    overfetch_factor: int = 10
    rerank_limit: int = 30
    rrf_k: int = 60
    neighbor_radius: int = 1
