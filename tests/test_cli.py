"""Tests for the command line interface."""

import json
from pathlib import Path

from click.testing import CliRunner

from narrator.main import cli, read_script


def test_read_script_skips_blank_lines(tmp_path: Path) -> None:
    script = tmp_path / "lesson.txt"
    script.write_text("  Hello.\n\n   \nWorld.  \n", encoding="utf-8")

    assert read_script(script) == ["Hello.", "World."]


def test_srt_command(tmp_path: Path) -> None:
    sentences = tmp_path / "sentences.json"
    sentences.write_text(
        json.dumps({"sentences": [
            {"text": "Hello.", "begin_time": 0, "end_time": 1500},
            {"text": "World.", "begin_time": 1500, "end_time": 4000},
        ]}),
        encoding="utf-8",
    )

    result = CliRunner().invoke(cli, ["srt", str(sentences)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "sentences.srt").read_text(encoding="utf-8") == (
        "1\n00:00:00,000 --> 00:00:01,500\nHello.\n\n"
        "2\n00:00:01,500 --> 00:00:04,000\nWorld.\n\n"
    )


def test_srt_command_rejects_bad_file(tmp_path: Path) -> None:
    sentences = tmp_path / "sentences.json"
    sentences.write_text(json.dumps({"lines": []}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["srt", str(sentences)])

    assert result.exit_code == 1


def test_markup_command(tmp_path: Path) -> None:
    script = tmp_path / "lesson.txt"
    script.write_text("Hello.\nWorld!\n", encoding="utf-8")
    output = tmp_path / "out.json"

    result = CliRunner().invoke(cli, ["markup", str(script), "-o", str(output)])

    assert result.exit_code == 0, result.output
    data = json.loads(output.read_text(encoding="utf-8"))
    assert [part["partId"] for part in data["parts"]] == ["part0", "part1"]


def test_markup_command_fails_on_missing_punctuation(tmp_path: Path) -> None:
    script = tmp_path / "lesson.txt"
    script.write_text("Hello.\nno ending here\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["markup", str(script)])

    assert result.exit_code == 1
    assert not (tmp_path / "lesson.json").exists()


def test_play_command_with_estimated_timing(tmp_path: Path) -> None:
    script = tmp_path / "lesson.txt"
    script.write_text("Hello.\nWorld.\n", encoding="utf-8")
    output = tmp_path / "out"

    result = CliRunner().invoke(cli, ["play", str(script), "--rate", "1000", "-o", str(output)])

    assert result.exit_code == 0, result.output
    srt = (output / "speak.srt").read_text(encoding="utf-8")
    assert srt.startswith("1\n00:00:0")
    assert "\nWorld.\n\n" in srt
    timeline = json.loads((output / "timeline.json").read_text(encoding="utf-8"))
    assert [entry["text"] for entry in timeline["entries"]] == ["Hello.", "World."]


def test_play_command_fails_fast_on_missing_timing(tmp_path: Path) -> None:
    script = tmp_path / "lesson.txt"
    script.write_text("Hello.\nWorld.\n", encoding="utf-8")
    timing = tmp_path / "timing.json"
    timing.write_text(json.dumps({"sprite": {"part0": [0, 10]}}), encoding="utf-8")
    output = tmp_path / "out"

    result = CliRunner().invoke(
        cli, ["play", str(script), "--timing", str(timing), "-o", str(output)]
    )

    assert result.exit_code == 1
    assert not (output / "speak.srt").exists()


def test_play_command_rejects_empty_script(tmp_path: Path) -> None:
    script = tmp_path / "empty.txt"
    script.write_text("\n\n", encoding="utf-8")

    result = CliRunner().invoke(cli, ["play", str(script)])

    assert result.exit_code == 1


def test_info_command() -> None:
    result = CliRunner().invoke(cli, ["info"])

    assert result.exit_code == 0
    assert "Speech rate" in result.output


def test_serve_renderer_rejects_bad_timing_table(tmp_path: Path) -> None:
    timing = tmp_path / "timing.json"
    timing.write_text(json.dumps({"sprite": {"part0": [10, 5]}}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["serve-renderer", "--timing", str(timing)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)


def test_srt_command_rejects_non_object_sentence(tmp_path: Path) -> None:
    sentences = tmp_path / "sentences.json"
    sentences.write_text(json.dumps({"sentences": ["Hello."]}), encoding="utf-8")

    result = CliRunner().invoke(cli, ["srt", str(sentences)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
