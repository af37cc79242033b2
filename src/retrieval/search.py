"""Hybrid retrieval: vector + lexical search over the lesson index, fused with RRF."""

from __future__ import annotations

import re
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING

from src.ingestion.storage import IndexGateway, LexicalHit, VectorHit
from src.pipeline_config import EmbeddingMode
from src.retrieval.fusion import RetrievalCandidate, rrf_fuse

if TYPE_CHECKING:
    from src.context import AppContext

_NON_TERM_RE = re.compile(r"[^A-Za-z0-9_]+")


def clean_lexical_query(query: str) -> str:
    """Reduce a question to plain search terms separated by single spaces."""
    return _NON_TERM_RE.sub(" ", query).strip()


def vector_search(
    gateway: IndexGateway,
    embedding: Sequence[float],
    limit: int,
    lessons: Sequence[str] | None = None,
    overfetch_factor: int = 10,
) -> list[VectorHit]:
    """Nearest chunks, optionally restricted to ``lessons``.

    The nearest-neighbour step cannot pre-filter by lesson, so a filtered
    search fetches ``limit * overfetch_factor`` neighbours, keeps those in the
    allowed lessons and truncates to ``limit``. Sparse lessons can come back
    with fewer than ``limit`` hits; the fetch is not widened further.
    """
    if not lessons:
        return gateway.vector_search(embedding, limit)[:limit]

    allowed = set(lessons)
    hits = gateway.vector_search(embedding, limit * overfetch_factor, lessons)
    return [h for h in hits if h.chunk.lesson in allowed][:limit]


def lexical_search(
    gateway: IndexGateway,
    question: str,
    limit: int,
    lessons: Sequence[str] | None = None,
) -> list[LexicalHit]:
    """Full-text matches for the question's terms, optionally restricted to ``lessons``."""
    cleaned = clean_lexical_query(question)
    if not cleaned:
        return []

    hits = gateway.lexical_search(cleaned, limit, lessons or None)
    if lessons:
        # Python-side filter as well; the gateway may ignore the parameter
        allowed = set(lessons)
        hits = [h for h in hits if h.chunk.lesson in allowed]
    return hits[:limit]


def retrieve(
    ctx: AppContext,
    question: str,
    lessons: Sequence[str] | None = None,
) -> list[RetrievalCandidate]:
    """Embed the question, run both searches and fuse the results.

    The two searches are independent reads and run side by side; fusion
    waits for both.

    Args:
        ctx: Collaborators for this query.
        question: The user's question.
        lessons: Optional allow-list of lesson names.

    Returns:
        Deduplicated candidates, best fused score first.
    """
    cfg = ctx.config
    embedding = ctx.inference.embed(question, EmbeddingMode.QUERY)

    with ThreadPoolExecutor(max_workers=2) as pool:
        vector_future = pool.submit(
            vector_search,
            ctx.gateway,
            embedding,
            cfg.vector_limit,
            lessons,
            cfg.overfetch_factor,
        )
        lexical_future = pool.submit(
            lexical_search, ctx.gateway, question, cfg.lexical_limit, lessons
        )
        vector_hits = vector_future.result()
        lexical_hits = lexical_future.result()

    return rrf_fuse(vector_hits, lexical_hits, k_rrf=cfg.rrf_k)
