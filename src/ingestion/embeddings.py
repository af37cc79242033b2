"""Embedding helpers using OpenAI text-embedding-3-small."""

from __future__ import annotations

from openai import OpenAI

from src.config import settings
from src.pipeline_config import EmbeddingMode

# OpenAI caps the number of inputs per embeddings request.
MAX_BATCH = 512


def embed_texts(
    texts: list[str],
    mode: EmbeddingMode = EmbeddingMode.DOCUMENT,
    model: str | None = None,
    dimensions: int | None = None,
    client: OpenAI | None = None,
) -> list[list[float]]:
    """Embed a list of texts using the OpenAI embeddings API.

    Args:
        texts: Strings to embed.
        mode: Document or query side. OpenAI embeddings are symmetric, so the
            mode does not change the request; it is kept so that callers stay
            provider-neutral.
        model: OpenAI embedding model name (defaults to settings).
        dimensions: Requested vector size (defaults to settings).
        client: Reusable client; one is created from settings if omitted.

    Returns:
        A list of embedding vectors (one per input text).
    """
    if not texts:
        return []

    client = client or OpenAI(api_key=settings.openai_api_key or None)
    model = model or settings.embedding_model
    dimensions = dimensions or settings.embedding_dimensions

    vectors: list[list[float]] = []
    for i in range(0, len(texts), MAX_BATCH):
        response = client.embeddings.create(
            input=texts[i : i + MAX_BATCH],
            model=model,
            dimensions=dimensions,
        )
        vectors.extend(item.embedding for item in response.data)
    return vectors


def embed_text(
    text: str,
    mode: EmbeddingMode = EmbeddingMode.QUERY,
    model: str | None = None,
    dimensions: int | None = None,
    client: OpenAI | None = None,
) -> list[float]:
    """Embed a single string."""
    return embed_texts([text], mode, model=model, dimensions=dimensions, client=client)[0]
