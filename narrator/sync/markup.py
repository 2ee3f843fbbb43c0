"""
Markup Module

Wraps script lines in speech-synthesis markup for the renderer.
The renderer splits speech on sentence punctuation, so every line
must end with a recognised terminator.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List
from xml.sax.saxutils import escape

from narrator.sync.errors import MissingTerminalPunctuation
from narrator.sync.timeline import part_key
from narrator.utils import logger

ROOT_TAG = "speak"

# ASCII and CJK sentence terminators
TERMINAL_PUNCTUATION = frozenset({".", "!", "?", "。", "！", "？", "…"})


def has_terminal_punctuation(text: str) -> bool:
    stripped = text.rstrip()
    return bool(stripped) and stripped[-1] in TERMINAL_PUNCTUATION


def wrap(text: str) -> str:
    """Wrap text in the root markup tag."""
    return f"<{ROOT_TAG}>{escape(text)}</{ROOT_TAG}>"


@dataclass
class MarkupPart:
    """Markup for one script line."""

    part_id: str
    markup: str

    def to_dict(self) -> Dict[str, Any]:
        return {"partId": self.part_id, "markup": self.markup}


@dataclass
class MarkupDocument:
    """Markup for a whole script: one part per line plus the joined document."""

    parts: List[MarkupPart] = field(default_factory=list)
    document: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "parts": [part.to_dict() for part in self.parts],
            "document": self.document,
        }

    def save(self, output_path: Path) -> Path:
        """Save the markup document to a JSON file."""
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)

        logger.success(f"Saved markup: {output_path}")
        return output_path


def build_markup(lines: Iterable[str]) -> MarkupDocument:
    """
    Build the markup document for a script.

    Args:
        lines: Script lines in playback order

    Returns:
        MarkupDocument with one part per line

    Raises:
        MissingTerminalPunctuation: A line does not end with a terminator
    """
    texts = [line.strip() for line in lines]
    for text in texts:
        if not has_terminal_punctuation(text):
            raise MissingTerminalPunctuation(text)

    parts = [
        MarkupPart(part_id=part_key(index), markup=wrap(text))
        for index, text in enumerate(texts)
    ]
    return MarkupDocument(parts=parts, document=wrap("\n".join(texts)))
