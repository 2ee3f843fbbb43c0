import json
from pathlib import Path

import pytest

from narrator.sync.errors import MissingTerminalPunctuation
from narrator.sync.markup import build_markup, has_terminal_punctuation


@pytest.mark.parametrize(
    "text",
    ["Hello.", "Really?", "Wow!", "遍历字符串的属性。", "真的吗？", "好！", "And then…", "Trailing space.  "],
)
def test_recognised_terminators(text: str) -> None:
    assert has_terminal_punctuation(text)


@pytest.mark.parametrize("text", ["No terminator", "a, b, c", "", "   "])
def test_missing_terminators(text: str) -> None:
    assert not has_terminal_punctuation(text)


def test_build_markup_wraps_each_line() -> None:
    document = build_markup(["Hello.", "a < b & c."])

    assert [part.to_dict() for part in document.parts] == [
        {"partId": "part0", "markup": "<speak>Hello.</speak>"},
        {"partId": "part1", "markup": "<speak>a &lt; b &amp; c.</speak>"},
    ]
    assert document.document == "<speak>Hello.\na &lt; b &amp; c.</speak>"


def test_build_markup_names_offending_line() -> None:
    with pytest.raises(MissingTerminalPunctuation) as excinfo:
        build_markup(["Fine.", "输出的是字典的key, a, b, c"])

    assert excinfo.value.text == "输出的是字典的key, a, b, c"
    assert "输出的是字典的key, a, b, c" in str(excinfo.value)


def test_markup_document_save(tmp_path: Path) -> None:
    path = build_markup(["你好。"]).save(tmp_path / "speak.json")

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data == {
        "parts": [{"partId": "part0", "markup": "<speak>你好。</speak>"}],
        "document": "<speak>你好。</speak>",
    }
    assert "你好" in path.read_text(encoding="utf-8")
