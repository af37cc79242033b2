"""Cue text cleanup and consecutive-duplicate suppression."""

from __future__ import annotations

import re
from dataclasses import replace

from src.ingestion.models import SubtitleEntry

# [Music], [APPLAUSE], [inaudible] ...
_CUE_ANNOTATION_RE = re.compile(r"\[[^\]]*\]")
# ">> ", "> ", "JOHN: ", "Q: ", ">> JOHN: "
_SPEAKER_LABEL_RE = re.compile(r"^(?:>{1,2}\s*)?(?:[\w'.-]{1,20}:\s+)?")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Strip cue annotations and a leading speaker label, collapse whitespace."""
    text = _CUE_ANNOTATION_RE.sub(" ", text)
    text = _SPEAKER_LABEL_RE.sub("", text.strip())
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalize_entries(entries: list[SubtitleEntry]) -> list[SubtitleEntry]:
    """Clean every entry, drop empties and consecutive case-insensitive repeats.

    Only the immediately preceding *kept* entry is compared, so a phrase that
    comes back later in the lesson is kept.
    """
    kept: list[SubtitleEntry] = []
    previous: str | None = None
    for entry in entries:
        text = normalize_text(entry.text)
        if not text:
            continue
        folded = text.casefold()
        if folded == previous:
            continue
        kept.append(replace(entry, text=text))
        previous = folded
    return kept
