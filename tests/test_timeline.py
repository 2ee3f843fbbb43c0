"""Tests for timeline sources and timing files."""

import json
from pathlib import Path

import pytest

from narrator.sync.errors import MissingTimingEntry
from narrator.sync.timeline import (
    AuthoritativeTimeline,
    EstimatedTimeline,
    TimelineEntry,
    TimingTable,
    create_timeline,
    load_sentence_timeline,
    save_timeline,
    sentences_to_entries,
)


class FakeClock:
    def __init__(self, start: float = 100.0) -> None:
        self._value = start

    def advance(self, seconds: float) -> None:
        self._value += seconds

    def __call__(self) -> float:
        return self._value


def test_timeline_entry_rejects_end_before_begin() -> None:
    with pytest.raises(ValueError):
        TimelineEntry(index=0, text="Hello.", begin_ms=10, end_ms=5)


def test_authoritative_resolve_uses_table() -> None:
    table = TimingTable.from_dict({"sprite": {"part0": [0, 1500], "part1": [1500, 4000]}})
    timeline = AuthoritativeTimeline(table)

    entry = timeline.resolve(1, "World.")

    assert entry == TimelineEntry(index=1, text="World.", begin_ms=1500, end_ms=4000)
    assert entry.duration_ms == 2500


def test_authoritative_missing_entry_fails() -> None:
    timeline = AuthoritativeTimeline(TimingTable.from_dict({"sprite": {"part0": [0, 10]}}))

    with pytest.raises(MissingTimingEntry) as excinfo:
        timeline.resolve(1, "Missing.")
    assert excinfo.value.key == "part1"


def test_validate_reports_first_gap() -> None:
    table = TimingTable.from_dict({"sprite": {"part0": [0, 10], "part2": [20, 30]}})

    with pytest.raises(MissingTimingEntry) as excinfo:
        AuthoritativeTimeline(table).validate(3)
    assert excinfo.value.index == 1


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"sprite": []},
        {"sprite": {"part0": [0]}},
        {"sprite": {"part0": ["a", "b"]}},
        {"sprite": {"part0": [10, 5]}},
    ],
)
def test_timing_table_rejects_malformed_data(data) -> None:
    with pytest.raises(ValueError):
        TimingTable.from_dict(data)


def test_estimated_duration_follows_speech_rate() -> None:
    clock = FakeClock()
    timeline = EstimatedTimeline(speech_rate=5.0, clock=clock)

    entry = timeline.resolve(0, "x" * 50)

    assert entry.begin_ms == 0
    assert entry.duration_ms == 10000


def test_estimated_begin_is_offset_from_session_start() -> None:
    clock = FakeClock()
    timeline = EstimatedTimeline(speech_rate=5.0, clock=clock)
    clock.advance(3.0)
    timeline.begin()

    clock.advance(1.25)
    first = timeline.resolve(0, "Hello.")
    clock.advance(2.0)
    second = timeline.resolve(1, "World.")

    assert (first.begin_ms, first.end_ms) == (1250, 2450)
    assert (second.begin_ms, second.end_ms) == (3250, 4450)


def test_estimated_begin_never_decreases() -> None:
    clock = FakeClock()
    timeline = EstimatedTimeline(speech_rate=5.0, clock=clock)
    clock.advance(1.0)
    first = timeline.resolve(0, "One.")
    clock.advance(-0.5)
    second = timeline.resolve(1, "Two.")

    assert second.begin_ms == first.begin_ms


def test_estimated_rate_must_be_positive() -> None:
    with pytest.raises(ValueError):
        EstimatedTimeline(speech_rate=0)


def test_create_timeline_picks_mode(timing_file: Path, tmp_path: Path) -> None:
    assert isinstance(create_timeline(timing_file), AuthoritativeTimeline)
    assert isinstance(create_timeline(tmp_path / "missing.json"), EstimatedTimeline)
    assert isinstance(create_timeline(None, speech_rate=3.0), EstimatedTimeline)


def test_sentence_timing_file_is_parsed(tmp_path: Path) -> None:
    path = tmp_path / "sentences.json"
    path.write_text(
        json.dumps(
            {
                "sentences": [
                    {"text": "我们先写个例子。", "begin_time": "0", "end_time": "1820"},
                    {"text": "  ", "begin_time": "1820", "end_time": "1900"},
                    {"text": "Done.", "begin_time": "1900.6", "end_time": "2500"},
                ]
            },
            ensure_ascii=False,
        ),
        encoding="utf-8",
    )

    entries = load_sentence_timeline(path)

    assert entries == [
        TimelineEntry(index=0, text="我们先写个例子。", begin_ms=0, end_ms=1820),
        TimelineEntry(index=1, text="Done.", begin_ms=1900, end_ms=2500),
    ]


def test_sentence_timing_rejects_bad_times() -> None:
    with pytest.raises(ValueError):
        sentences_to_entries({"sentences": [{"text": "A.", "begin_time": "x", "end_time": "1"}]})
    with pytest.raises(ValueError):
        sentences_to_entries({"lines": []})
    with pytest.raises(ValueError):
        sentences_to_entries({"sentences": ["A."]})


def test_save_timeline_writes_entries(tmp_path: Path) -> None:
    entries = [TimelineEntry(index=0, text="Hello.", begin_ms=0, end_ms=1500)]

    path = save_timeline(entries, tmp_path / "nested" / "timeline.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["entries"] == [{"index": 0, "text": "Hello.", "begin": 0, "end": 1500}]
