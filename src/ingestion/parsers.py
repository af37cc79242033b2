"""SubRip (.srt) transcript parser."""

from __future__ import annotations

import re
from pathlib import Path

from src.ingestion.models import SubtitleEntry

# Blocks are separated by a blank line; tolerate stray spaces/tabs on it.
_BLOCK_SEPARATOR_RE = re.compile(r"\r?\n[ \t]*\r?\n")
_LINE_RE = re.compile(r"\r?\n")

TIMECODE_RE = re.compile(
    r"(?P<start>\d{2}:\d{2}:\d{2}[,.]\d{3})\s*-->\s*(?P<end>\d{2}:\d{2}:\d{2}[,.]\d{3})"
)


def parse_timestamp(ts: str) -> float:
    """Convert an SRT timestamp (``HH:MM:SS,mmm``) to seconds."""
    hours, minutes, seconds = ts.strip().replace(",", ".").split(":")
    return int(hours) * 3600 + int(minutes) * 60 + float(seconds)


def display_timestamp(ts: str) -> str:
    """Drop the millisecond part for display: ``00:01:02,345`` -> ``00:01:02``."""
    return ts.strip().replace(",", ".").split(".")[0]


def _parse_block(block: str) -> SubtitleEntry | None:
    lines = [line.strip() for line in _LINE_RE.split(block)]
    lines = [line for line in lines if line]
    if len(lines) < 2:
        return None

    # Timecode is on the first line, or on the second after a sequence number.
    time_line_idx = 0 if TIMECODE_RE.search(lines[0]) else 1
    match = TIMECODE_RE.search(lines[time_line_idx])
    if match is None:
        return None

    text = " ".join(lines[time_line_idx + 1 :]).strip()
    if not text:
        return None

    start_seconds = parse_timestamp(match.group("start"))
    end_seconds = parse_timestamp(match.group("end"))
    start_raw = match.group("start")
    end_raw = match.group("end")
    if end_seconds < start_seconds:
        end_seconds = start_seconds
        end_raw = start_raw

    return SubtitleEntry(
        start_time=display_timestamp(start_raw),
        end_time=display_timestamp(end_raw),
        start_seconds=start_seconds,
        end_seconds=end_seconds,
        text=text,
    )


def parse_srt(content: str) -> list[SubtitleEntry]:
    """Parse SubRip content into timed entries, in file order.

    Parsing is best-effort per block: a block without a timecode, with fewer
    than two lines, or without any text is skipped silently.
    """
    content = content.lstrip("\ufeff")
    entries: list[SubtitleEntry] = []
    for block in _BLOCK_SEPARATOR_RE.split(content):
        entry = _parse_block(block)
        if entry is not None:
            entries.append(entry)
    return entries


def parse_srt_file(path: str | Path) -> list[SubtitleEntry]:
    """Read and parse an ``.srt`` file.

    Raises:
        OSError: If the file cannot be read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    content = Path(path).read_text(encoding="utf-8-sig")
    return parse_srt(content)
