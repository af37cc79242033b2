"""
LLM reranker for second-stage ordering of fused candidates.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from src.retrieval.fusion import RetrievalCandidate
from src.retrieval.generation import as_score

if TYPE_CHECKING:
    from src.inference import InferenceService

logger = logging.getLogger(__name__)


@dataclass
class RerankResult:
    """Candidates after reranking.

    ``fallback_reason`` is set when scoring failed and ``candidates`` is the
    input order unchanged.
    """

    candidates: list[RetrievalCandidate]
    fallback_reason: str | None = None

    @property
    def refined(self) -> bool:
        return self.fallback_reason is None


def rerank(
    inference: InferenceService,
    question: str,
    candidates: list[RetrievalCandidate],
) -> RerankResult:
    """
    Reorder candidates by model-assigned relevance (0-5).

    Candidates are never dropped. Equal scores keep their incoming order.
    If scoring raises, or returns a list whose length differs from the
    candidate list, the input order is returned with a fallback reason.

    Args:
        inference: Service providing ``score``.
        question: User question.
        candidates: Fused candidates, best first.

    Returns:
        A :class:`RerankResult`.
    """
    if not candidates:
        return RerankResult(candidates=[])

    try:
        scores = inference.score(question, [c.chunk for c in candidates])
    except Exception as exc:
        reason = f"scoring failed: {exc}"
        logger.warning("Rerank fallback to fused order (%s)", reason)
        return RerankResult(candidates=list(candidates), fallback_reason=reason)

    if len(scores) != len(candidates):
        reason = f"expected {len(candidates)} scores, got {len(scores)}"
        logger.warning("Rerank fallback to fused order (%s)", reason)
        return RerankResult(candidates=list(candidates), fallback_reason=reason)

    # NaN or non-numeric scores from any service sort as 0
    scores = [as_score(s) for s in scores]
    order = sorted(range(len(candidates)), key=lambda i: scores[i], reverse=True)
    return RerankResult(candidates=[candidates[i] for i in order])
