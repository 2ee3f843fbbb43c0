"""
Loopback Renderer

A local stand-in for the audio renderer. Answers every playSprite
request with a spriteEnd frame once the sprite's duration has passed.
Used for dry runs and integration tests; it plays no audio.
"""

import asyncio
import json
from typing import List, Optional, Set

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosed

from narrator.sync.connection import END_METHOD, PLAY_METHOD
from narrator.sync.timeline import TimingTable
from narrator.utils import logger


class LoopbackRenderer:
    """WebSocket server that acknowledges sprites after their duration."""

    def __init__(
        self,
        timing_table: Optional[TimingTable] = None,
        host: str = "127.0.0.1",
        port: int = 0,
        time_scale: float = 1.0,
    ):
        """
        Initialize the loopback renderer.

        Args:
            timing_table: Sprite timings; sprites without one end immediately
            host: Interface to bind
            port: Port to bind, 0 for any free port
            time_scale: Multiplier applied to every sprite duration
        """
        self.timing_table = timing_table
        self.host = host
        self.port = port
        self.time_scale = time_scale
        self.played: List[str] = []
        self._server: Optional[Server] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def endpoint(self) -> str:
        return f"ws://{self.host}:{self.port}"

    async def start(self) -> str:
        """Start serving and return the endpoint URL."""
        self._server = await serve(self._handle, self.host, self.port)
        self.port = self._server.sockets[0].getsockname()[1]
        logger.info(f"Loopback renderer listening on {self.endpoint}")
        return self.endpoint

    async def stop(self) -> None:
        """Stop the server and drop any pending acknowledgements."""
        for task in list(self._tasks):
            task.cancel()
        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        await self._server.serve_forever()

    async def __aenter__(self) -> "LoopbackRenderer":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()

    def duration(self, sprite_id: str) -> float:
        """Playback duration of a sprite in seconds."""
        if self.timing_table is None or not sprite_id.isdigit():
            return 0.0
        timing = self.timing_table.get(int(sprite_id))
        if timing is None:
            return 0.0
        begin, end = timing
        return (end - begin) / 1000 * self.time_scale

    async def _handle(self, websocket: ServerConnection) -> None:
        try:
            async for frame in websocket:
                try:
                    message = json.loads(frame)
                except ValueError:
                    logger.warning(f"Loopback renderer got malformed frame: {frame!r}")
                    continue
                if not isinstance(message, dict) or message.get("method") != PLAY_METHOD:
                    continue
                sprite_id = str((message.get("params") or {}).get("spriteId"))
                self.played.append(sprite_id)
                task = asyncio.create_task(self._acknowledge(websocket, sprite_id))
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
        except ConnectionClosed:
            logger.debug("Loopback client disconnected")

    async def _acknowledge(self, websocket: ServerConnection, sprite_id: str) -> None:
        await asyncio.sleep(self.duration(sprite_id))
        try:
            await websocket.send(json.dumps({"method": END_METHOD, "params": {"spriteId": sprite_id}}))
        except ConnectionClosed:
            logger.debug(f"Client gone before sprite {sprite_id} ended")
