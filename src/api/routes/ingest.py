"""Ingest endpoint: (re)index a directory of .srt lesson transcripts."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from src.api.deps import get_context
from src.api.models import IngestRequest, IngestResponse
from src.context import AppContext
from src.ingestion.pipeline import ingest as run_ingest

router = APIRouter()


@router.post("/api/ingest", response_model=IngestResponse)
def ingest(
    request: IngestRequest,
    ctx: Annotated[AppContext, Depends(get_context)],
) -> IngestResponse:
    """Ingest every ``.srt`` file in the directory, skipping unchanged lessons.

    Lessons are processed one at a time; a failing lesson is reported in
    ``failed`` and does not stop the others.
    """
    transcripts_dir = request.transcripts_dir or ctx.settings.transcripts_dir
    try:
        report = run_ingest(ctx, transcripts_dir, force=request.force)
    except NotADirectoryError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return IngestResponse(
        ingested=report.ingested,
        skipped=report.skipped,
        empty=report.empty,
        failed=report.failed,
        total_files=report.total_files,
    )
