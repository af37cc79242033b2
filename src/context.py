"""Explicit per-invocation context passed into every core operation."""

from __future__ import annotations

from dataclasses import dataclass, field

from src.config import Settings, get_settings
from src.inference import DefaultInferenceService, InferenceService
from src.ingestion.storage import IndexGateway, SupabaseIndexGateway, get_supabase_client
from src.pipeline_config import PipelineConfig


@dataclass
class AppContext:
    """Collaborators for one ingest run or one query.

    The caller builds the context once, passes it to ``ingest``/``ask``, and
    calls :meth:`close` when done.
    """

    gateway: IndexGateway
    inference: InferenceService
    settings: Settings
    config: PipelineConfig = field(default_factory=PipelineConfig)

    def close(self) -> None:
        for resource in (self.inference, self.gateway):
            closer = getattr(resource, "close", None)
            if callable(closer):
                closer()


def create_context(
    settings: Settings | None = None,
    config: PipelineConfig | None = None,
) -> AppContext:
    """Build the default context: Supabase index, OpenAI + Claude inference."""
    settings = settings or get_settings()
    client = get_supabase_client(settings.supabase_url, settings.supabase_key)
    gateway = SupabaseIndexGateway(client, settings.embedding_dimensions)
    return AppContext(
        gateway=gateway,
        inference=DefaultInferenceService(settings),
        settings=settings,
        config=config or PipelineConfig(),
    )
