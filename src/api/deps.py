"""FastAPI dependencies."""

from __future__ import annotations

from collections.abc import Iterator

from src.context import AppContext, create_context


def get_context() -> Iterator[AppContext]:
    """One context per request, closed when the response is done."""
    ctx = create_context()
    try:
        yield ctx
    finally:
        ctx.close()
