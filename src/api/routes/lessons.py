"""Lesson listing endpoint."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from src.api.deps import get_context
from src.context import AppContext

router = APIRouter()


@router.get("/api/lessons", response_model=list[str])
def list_lessons(ctx: Annotated[AppContext, Depends(get_context)]) -> list[str]:
    """Names of all ingested lessons, sorted."""
    return ctx.gateway.list_lessons()
