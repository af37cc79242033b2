"""Query pipeline: validate filter -> retrieve -> rerank -> expand -> generate."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from src.ingestion.models import Chunk
from src.retrieval.context_window import expand_with_neighbors
from src.retrieval.generation import build_answer_prompt
from src.retrieval.lessons import validate_lesson_filter
from src.retrieval.reranker import RerankResult, rerank
from src.retrieval.search import retrieve

if TYPE_CHECKING:
    from src.context import AppContext

logger = logging.getLogger(__name__)

NO_MATCHES_ANSWER = "No matches found."


@dataclass
class AnswerResult:
    """Answer text plus the excerpts it was generated from, in reading order."""

    answer: str
    sources: list[Chunk] = field(default_factory=list)
    rerank: RerankResult | None = None
    model: str | None = None


def ask(
    ctx: AppContext,
    question: str,
    top_k: int | None = None,
    lessons: Sequence[str] | None = None,
) -> AnswerResult:
    """Answer a question from the indexed transcripts.

    Args:
        ctx: Collaborators for this query.
        question: The user's question.
        top_k: Chunks kept after reranking, before neighbour expansion.
            Non-positive or missing values fall back to the configured default.
        lessons: Optional lesson allow-list; every name must exist.

    Returns:
        An :class:`AnswerResult`. ``rerank.refined`` tells whether the
        reranker succeeded or fell back to fused order.

    Raises:
        UnknownLessonsError: If ``lessons`` names a lesson that is not indexed.
    """
    if top_k is None or top_k <= 0:
        top_k = ctx.settings.default_top_k

    if lessons:
        lessons = validate_lesson_filter(lessons, ctx.gateway.list_lessons())

    candidates = retrieve(ctx, question, lessons or None)
    if not candidates:
        logger.info("No matches for question")
        return AnswerResult(answer=NO_MATCHES_ANSWER)

    reranked = rerank(ctx.inference, question, candidates[: ctx.config.rerank_limit])
    selection = [c.chunk for c in reranked.candidates[:top_k]]
    context_chunks = expand_with_neighbors(ctx.gateway, selection, ctx.config.neighbor_radius)

    answer = ctx.inference.generate(build_answer_prompt(question, context_chunks))
    return AnswerResult(
        answer=answer.strip(),
        sources=context_chunks,
        rerank=reranked,
        model=ctx.settings.llm_model,
    )
