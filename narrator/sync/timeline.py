"""
Timeline Module

Resolves begin/end offsets for each narrated line, either from a
precomputed timing table or from an estimated speech duration.
Supports JSON export of the resolved timeline.
"""

import json
import math
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from narrator.sync.errors import MissingTimingEntry
from narrator.utils import logger

DEFAULT_SPEECH_RATE = 5.0  # characters per second


@dataclass(frozen=True)
class TimelineEntry:
    """Resolved timing for one narrated line, in milliseconds."""

    index: int
    text: str
    begin_ms: int
    end_ms: int

    def __post_init__(self):
        if self.end_ms < self.begin_ms:
            raise ValueError(
                f"Line {self.index} ends before it begins ({self.begin_ms} > {self.end_ms})"
            )

    @property
    def duration_ms(self) -> int:
        return self.end_ms - self.begin_ms

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON export."""
        return {
            "index": self.index,
            "text": self.text,
            "begin": self.begin_ms,
            "end": self.end_ms,
        }


def part_key(index: int) -> str:
    """Timing table key for a line index."""
    return f"part{index}"


@dataclass
class TimingTable:
    """Authoritative sprite timings keyed by part<index>."""

    sprites: Dict[str, Tuple[int, int]]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimingTable":
        """Build a table from a parsed timing file."""
        if not isinstance(data, dict) or not isinstance(data.get("sprite"), dict):
            raise ValueError("Timing table must be an object with a 'sprite' mapping")

        sprites: Dict[str, Tuple[int, int]] = {}
        for key, value in data["sprite"].items():
            if (
                not isinstance(value, (list, tuple))
                or len(value) != 2
                or not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value)
            ):
                raise ValueError(f"Timing entry {key} must be a [begin, end] pair")
            begin, end = int(value[0]), int(value[1])
            if end < begin:
                raise ValueError(f"Timing entry {key} ends before it begins")
            sprites[key] = (begin, end)
        return cls(sprites=sprites)

    @classmethod
    def load(cls, path: Path) -> "TimingTable":
        """Load a timing table from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise ValueError(f"Timing file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        table = cls.from_dict(data)
        logger.info(f"Loaded {len(table.sprites)} sprite timings from {path}")
        return table

    def get(self, index: int) -> Optional[Tuple[int, int]]:
        return self.sprites.get(part_key(index))

    def __contains__(self, index: int) -> bool:
        return part_key(index) in self.sprites

    def __len__(self) -> int:
        return len(self.sprites)


class AuthoritativeTimeline:
    """Timeline source backed by a timing table."""

    authoritative = True

    def __init__(self, table: TimingTable):
        self.table = table

    def resolve(self, index: int, text: str) -> TimelineEntry:
        """
        Look up the timing for a line.

        Raises:
            MissingTimingEntry: The table has no part<index> entry
        """
        timing = self.table.get(index)
        if timing is None:
            raise MissingTimingEntry(index)
        begin_ms, end_ms = timing
        return TimelineEntry(index=index, text=text, begin_ms=begin_ms, end_ms=end_ms)

    def validate(self, count: int) -> None:
        """Check that the first count lines all have timings."""
        for index in range(count):
            if index not in self.table:
                raise MissingTimingEntry(index)

    def begin(self) -> None:
        """Offsets are absolute, nothing to reset."""


class EstimatedTimeline:
    """
    Timeline source that estimates speech duration from text length.

    The estimate is only a pacing placeholder: duration is the character
    count divided by a fixed speech rate, and does not reflect the real
    spoken length of the line.
    """

    authoritative = False

    def __init__(
        self,
        speech_rate: float = DEFAULT_SPEECH_RATE,
        clock: Callable[[], float] = time.monotonic,
    ):
        if speech_rate <= 0:
            raise ValueError("speech_rate must be positive")
        self.speech_rate = speech_rate
        self._clock = clock
        self._session_start = clock()
        self._last_begin_ms = 0

    def begin(self) -> None:
        """Start the session clock at the current time."""
        self._session_start = self._clock()
        self._last_begin_ms = 0

    def estimate_ms(self, text: str) -> int:
        """Estimated spoken duration of a line in milliseconds."""
        return math.floor(len(text.strip()) * 1000 / self.speech_rate)

    def resolve(self, index: int, text: str) -> TimelineEntry:
        elapsed_ms = math.floor((self._clock() - self._session_start) * 1000)
        begin_ms = max(elapsed_ms, self._last_begin_ms)
        self._last_begin_ms = begin_ms
        return TimelineEntry(
            index=index,
            text=text,
            begin_ms=begin_ms,
            end_ms=begin_ms + self.estimate_ms(text),
        )

    def validate(self, count: int) -> None:
        """Every line can be estimated."""


TimelineSource = Union[AuthoritativeTimeline, EstimatedTimeline]


def create_timeline(
    timing_file: Optional[Path] = None,
    speech_rate: float = DEFAULT_SPEECH_RATE,
    clock: Callable[[], float] = time.monotonic,
) -> TimelineSource:
    """
    Choose the timeline strategy for a session.

    Args:
        timing_file: Timing table path; authoritative mode when it exists
        speech_rate: Characters per second for estimated mode
        clock: Monotonic clock in seconds, for estimated mode

    Returns:
        AuthoritativeTimeline or EstimatedTimeline
    """
    if timing_file is not None and Path(timing_file).exists():
        return AuthoritativeTimeline(TimingTable.load(timing_file))

    if timing_file is not None:
        logger.warning(f"Timing file {timing_file} not found, estimating durations")
    return EstimatedTimeline(speech_rate=speech_rate, clock=clock)


def _parse_ms(value: Any, field: str) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid {field}: {value!r}") from exc


def load_sentence_timeline(path: Path) -> List[TimelineEntry]:
    """
    Load a sentence-timing file as timeline entries.

    The file holds a 'sentences' list of {text, begin_time, end_time},
    with times as millisecond numeric strings.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return sentences_to_entries(data)


def sentences_to_entries(data: Dict[str, Any]) -> List[TimelineEntry]:
    """Convert parsed sentence-timing data to timeline entries."""
    if not isinstance(data, dict) or not isinstance(data.get("sentences"), list):
        raise ValueError("Sentence timing must be an object with a 'sentences' list")

    entries = []
    for sentence in data["sentences"]:
        if not isinstance(sentence, dict):
            raise ValueError(f"Sentence entry must be an object, got {sentence!r}")
        text = str(sentence.get("text", "")).strip()
        if not text:
            continue
        entries.append(TimelineEntry(
            index=len(entries),
            text=text,
            begin_ms=_parse_ms(sentence.get("begin_time"), "begin_time"),
            end_ms=_parse_ms(sentence.get("end_time"), "end_time"),
        ))
    return entries


def save_timeline(entries: List[TimelineEntry], output_path: Path) -> Path:
    """Save resolved timeline entries to a JSON file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "version": "1.0",
        "entries": [entry.to_dict() for entry in entries],
    }
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.success(f"Saved timeline: {output_path}")
    return output_path
