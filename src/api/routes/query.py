"""Query endpoint: retrieve, rerank and answer over lesson transcripts."""

from __future__ import annotations

from typing import Annotated

from anthropic import APIStatusError
from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_context
from src.api.models import QueryRequest, QueryResponse, SourceChunk, UnknownLessonsDetail
from src.context import AppContext
from src.errors import UnknownLessonsError
from src.retrieval.pipeline import ask

router = APIRouter()


@router.post("/api/query", response_model=QueryResponse)
def query(
    request: QueryRequest,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> QueryResponse:
    """Answer a question, optionally restricted to some lessons.

    Unknown lesson names are rejected with 422 and "did you mean"
    suggestions before any retrieval happens.
    """
    try:
        result = ask(ctx, request.question, top_k=request.top_k, lessons=request.lessons)
    except UnknownLessonsError as exc:
        detail = UnknownLessonsDetail(
            message=str(exc), unknown=exc.unknown, suggestions=exc.suggestions
        )
        raise HTTPException(status_code=422, detail=detail.model_dump()) from exc
    except APIStatusError as exc:
        # Claude API overloaded (529) or other upstream error: 503 keeps the
        # response JSON with CORS headers intact.
        raise HTTPException(status_code=503, detail=f"LLM unavailable: {exc.message}") from exc

    rerank = result.rerank
    return QueryResponse(
        answer=result.answer,
        sources=[SourceChunk.from_chunk(c) for c in result.sources],
        model=result.model,
        reranked=rerank is not None and rerank.refined,
        rerank_fallback_reason=rerank.fallback_reason if rerank else None,
    )
