"""Inference capability: embeddings, relevance scoring and text generation."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from anthropic import Anthropic
from openai import OpenAI

from src.config import Settings
from src.ingestion.embeddings import embed_texts
from src.ingestion.models import Chunk
from src.pipeline_config import EmbeddingMode
from src.retrieval.generation import generate_answer, score_chunks


class InferenceService(Protocol):
    def embed(self, text: str, mode: EmbeddingMode) -> list[float]: ...

    def embed_many(self, texts: list[str], mode: EmbeddingMode) -> list[list[float]]: ...

    def score(self, question: str, chunks: Sequence[Chunk]) -> list[float]:
        """One relevance score (0-5) per chunk; raises on any failure."""
        ...

    def generate(self, prompt: str) -> str: ...


class DefaultInferenceService:
    """OpenAI embeddings plus Claude scoring/generation."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.openai = OpenAI(api_key=settings.openai_api_key or None)
        self.anthropic = Anthropic(api_key=settings.anthropic_api_key or None)

    def embed(self, text: str, mode: EmbeddingMode) -> list[float]:
        return self.embed_many([text], mode)[0]

    def embed_many(self, texts: list[str], mode: EmbeddingMode) -> list[list[float]]:
        return embed_texts(
            texts,
            mode,
            model=self.settings.embedding_model,
            dimensions=self.settings.embedding_dimensions,
            client=self.openai,
        )

    def score(self, question: str, chunks: Sequence[Chunk]) -> list[float]:
        return score_chunks(question, chunks, client=self.anthropic, model=self.settings.llm_model)

    def generate(self, prompt: str) -> str:
        return generate_answer(prompt, client=self.anthropic, model=self.settings.llm_model)

    def close(self) -> None:
        self.openai.close()
        self.anthropic.close()
