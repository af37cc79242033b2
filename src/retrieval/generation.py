"""Claude-powered relevance scoring and answer generation."""

from __future__ import annotations

import json
import re
from collections.abc import Sequence

from anthropic import Anthropic
from anthropic.types import TextBlock

from src.config import settings
from src.errors import ScoringError
from src.ingestion.models import Chunk

_JSON_ARRAY_RE = re.compile(r"\[[\s\S]*\]")


def format_excerpts(chunks: Sequence[Chunk]) -> str:
    """Number chunks as ``[n] Lesson: name (start - end)`` followed by the text."""
    return "\n\n".join(
        f"[{i + 1}] Lesson: {chunk.lesson} ({chunk.start_time} - {chunk.end_time})\n{chunk.text}"
        for i, chunk in enumerate(chunks)
    )


def build_answer_prompt(question: str, chunks: Sequence[Chunk]) -> str:
    """Prompt asking for an answer grounded only in the numbered excerpts."""
    return (
        "You are answering from transcript excerpts only.\n\n"
        f"Question:\n{question}\n\n"
        f"Context (use these and nothing else):\n{format_excerpts(chunks)}\n\n"
        "Answer requirements:\n"
        "- Be concise and specific.\n"
        "- Quote or paraphrase only from the context.\n"
        "- Always cite sources as [index] with lesson name and timestamp "
        "(e.g., [2] Lesson (hh:mm:ss-hh:mm:ss)).\n"
        "- If the answer is not in the context, say you don't know.\n"
    )


def build_scoring_prompt(question: str, chunks: Sequence[Chunk]) -> str:
    """Prompt asking for one 0-5 relevance score per chunk, as a JSON array."""
    return (
        "You are a ranking model. Score each chunk for relevance to the question.\n"
        "Return a JSON array of numbers (0 to 5) in the same order as the chunks.\n\n"
        f"Question:\n{question}\n\n"
        f"Chunks:\n{format_excerpts(chunks)}\n"
    )


def as_score(value: object) -> float:
    """Coerce one relevance score; anything not a finite number is 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        score = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    # NaN / inf count as unusable
    return score if score == score and abs(score) != float("inf") else 0.0


def parse_scores(text: str) -> list[float]:
    """Extract the JSON score array from a model reply.

    Elements that are not finite numbers count as ``0``.

    Raises:
        ScoringError: No array in the reply, invalid JSON, or not a list.
    """
    match = _JSON_ARRAY_RE.search(text)
    if match is None:
        raise ScoringError("No JSON array in scoring response")
    try:
        parsed = json.loads(match.group(0))
    except json.JSONDecodeError as exc:
        raise ScoringError(f"Invalid JSON in scoring response: {exc}") from exc
    if not isinstance(parsed, list):
        raise ScoringError(f"Expected a JSON array, got {type(parsed).__name__}")
    return [as_score(v) for v in parsed]


def complete(
    prompt: str,
    client: Anthropic | None = None,
    max_tokens: int = 1024,
    model: str | None = None,
) -> str:
    """Send a single-turn prompt to Claude and return the text reply."""
    client = client or Anthropic(api_key=settings.anthropic_api_key)
    response = client.messages.create(
        model=model or settings.llm_model,
        max_tokens=max_tokens,
        messages=[{"role": "user", "content": prompt}],
    )

    # Narrow the content block type; we always request plain text.
    block = response.content[0]
    if not isinstance(block, TextBlock):
        raise ValueError(f"Expected TextBlock from Claude, got {type(block).__name__}")
    return block.text


def score_chunks(
    question: str,
    chunks: Sequence[Chunk],
    client: Anthropic | None = None,
    model: str | None = None,
) -> list[float]:
    """Ask Claude for a relevance score per chunk."""
    prompt = build_scoring_prompt(question, chunks)
    return parse_scores(complete(prompt, client=client, model=model))


def generate_answer(prompt: str, client: Anthropic | None = None, model: str | None = None) -> str:
    """Generate the final answer text for an already-built prompt."""
    return complete(prompt, client=client, model=model).strip()
