"""Pytest configuration and shared fixtures."""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from narrator.utils.config import SyncSettings


class FakeWebSocket:
    """In-memory stand-in for a websocket client connection."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.closed = False
        self._frames: asyncio.Queue = asyncio.Queue()

    def feed(self, frame: Optional[str]) -> None:
        """Queue an inbound frame; None ends the stream."""
        self._frames.put_nowait(frame)

    async def send(self, data: str) -> None:
        self.sent.append(json.loads(data))

    async def close(self) -> None:
        self.closed = True
        self.feed(None)

    def __aiter__(self) -> "FakeWebSocket":
        return self

    async def __anext__(self) -> str:
        frame = await self._frames.get()
        if frame is None:
            raise StopAsyncIteration
        return frame


@pytest.fixture
def settings(tmp_path: Path) -> SyncSettings:
    """Session settings writing into a temporary directory."""
    return SyncSettings(output_dir=tmp_path / "output", speech_rate=500.0)


@pytest.fixture
def timing_file(tmp_path: Path) -> Path:
    """Timing table for two lines."""
    path = tmp_path / "timing.json"
    path.write_text(
        json.dumps({"sprite": {"part0": [0, 1500], "part1": [1500, 4000]}}),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def websocket() -> FakeWebSocket:
    """Fake websocket with an empty inbound queue."""
    return FakeWebSocket()
