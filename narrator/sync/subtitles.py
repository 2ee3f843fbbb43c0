"""
Subtitle Module

Renders resolved timeline entries as SRT subtitle text.
Output depends only on the millisecond offsets, never on wall-clock
time or locale, so the same entries always give the same bytes.
"""

from pathlib import Path
from typing import Iterable, List

from narrator.sync.timeline import TimelineEntry
from narrator.utils import logger


def format_timestamp(ms: int) -> str:
    """Format a millisecond offset as HH:MM:SS,mmm."""
    ms = int(ms)
    if ms < 0:
        raise ValueError(f"Timestamp cannot be negative: {ms}")
    hours = ms // 3600000
    minutes = (ms % 3600000) // 60000
    seconds = (ms % 60000) // 1000
    millis = ms % 1000
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def format_block(sequence: int, entry: TimelineEntry) -> str:
    """Render one SRT block, including its trailing blank line."""
    return (
        f"{sequence}\n"
        f"{format_timestamp(entry.begin_ms)} --> {format_timestamp(entry.end_ms)}\n"
        f"{entry.text}\n"
        "\n"
    )


def emit_srt(entries: Iterable[TimelineEntry]) -> str:
    """
    Convert timeline entries to an SRT document.

    Entries are emitted in line index order with 1-based sequence numbers.
    """
    ordered: List[TimelineEntry] = sorted(entries, key=lambda entry: entry.index)
    return "".join(
        format_block(sequence, entry)
        for sequence, entry in enumerate(ordered, 1)
    )


def write_srt(entries: Iterable[TimelineEntry], output_path: Path) -> Path:
    """Write timeline entries to an SRT file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    srt = emit_srt(entries)
    # newline="" keeps the bytes identical across platforms
    with open(output_path, "w", encoding="utf-8", newline="") as f:
        f.write(srt)

    logger.success(f"Saved subtitles: {output_path}")
    return output_path
