"""
Renderer Connection Module

Owns the WebSocket control channel to the remote audio renderer:
connects with a bounded timeout, sends play requests, dispatches
completion frames and reports when the channel closes.
"""

import asyncio
import json
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from websockets.asyncio.client import ClientConnection, connect
from websockets.exceptions import ConnectionClosed as WebSocketClosed
from websockets.exceptions import ConnectionClosedError
from websockets.exceptions import InvalidHandshake, InvalidURI

from narrator.sync.errors import ChannelClosed, ConnectError, ConnectTimeout
from narrator.sync.sprite_tracker import SpriteTracker
from narrator.utils import logger

PLAY_METHOD = "playSprite"
END_METHOD = "spriteEnd"

DEFAULT_TIMEOUT = 30.0


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"
    FAILED = "failed"


class AudioConnection:
    """
    A single control channel to one audio renderer.

    Use AudioConnection.connect() to create one. Inbound spriteEnd frames
    are forwarded to the tracker; close listeners run once when the
    channel goes away, whichever side closed it.
    """

    def __init__(self, websocket: ClientConnection, tracker: SpriteTracker, endpoint: str = ""):
        self._websocket = websocket
        self._tracker = tracker
        self.endpoint = endpoint
        self.state = ConnectionState.OPEN
        self._close_listeners: List[Callable[[], None]] = []
        self._reader = asyncio.create_task(self._read_frames())

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        tracker: SpriteTracker,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> "AudioConnection":
        """
        Open a connection to the renderer.

        Args:
            endpoint: WebSocket URL of the renderer
            tracker: Tracker that receives completion notifications
            timeout: Seconds to wait for the channel to open

        Returns:
            An open AudioConnection

        Raises:
            ConnectTimeout: The channel did not open within timeout
            ConnectError: The transport failed or closed before opening
        """
        logger.debug(f"Connecting to renderer at {endpoint}")
        try:
            websocket = await asyncio.wait_for(
                connect(endpoint, open_timeout=None),
                timeout=timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ConnectTimeout(endpoint, timeout) from exc
        except (OSError, InvalidURI, InvalidHandshake, WebSocketClosed) as exc:
            raise ConnectError(endpoint, exc) from exc

        logger.info(f"Connected to renderer: {endpoint}")
        return cls(websocket, tracker, endpoint)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def add_close_listener(self, listener: Callable[[], None]) -> None:
        """Register a callback for when the channel closes."""
        if self.state in (ConnectionState.CLOSED, ConnectionState.FAILED):
            listener()
            return
        self._close_listeners.append(listener)

    async def send(self, message: Dict[str, Any]) -> None:
        """
        Send a JSON message to the renderer.

        Raises:
            ChannelClosed: The channel is not open
        """
        if not self.is_open:
            raise ChannelClosed(f"Cannot send on {self.state.value} connection to {self.endpoint}")
        try:
            await self._websocket.send(json.dumps(message))
        except WebSocketClosed as exc:
            raise ChannelClosed(f"Connection to {self.endpoint} closed during send") from exc

    async def play_sprite(self, sprite_id: str) -> None:
        """Ask the renderer to play a sprite."""
        await self.send({"method": PLAY_METHOD, "params": {"spriteId": sprite_id}})

    async def close(self) -> None:
        """Close the channel and wait until it reports closed."""
        if self.state is ConnectionState.OPEN:
            self.state = ConnectionState.CLOSING
            await self._websocket.close()
        await self._reader

    async def _read_frames(self) -> None:
        failed = False
        try:
            # Iteration stops cleanly on a normal close
            async for frame in self._websocket:
                self._dispatch(frame)
        except ConnectionClosedError as exc:
            failed = True
            logger.warning(f"Renderer connection lost: {exc}")
        finally:
            self.state = ConnectionState.FAILED if failed else ConnectionState.CLOSED
            logger.info(f"Renderer connection {self.state.value}: {self.endpoint}")
            listeners, self._close_listeners = self._close_listeners, []
            for listener in listeners:
                listener()

    def _dispatch(self, frame: Any) -> None:
        try:
            message = json.loads(frame)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed frame from renderer: {frame!r}")
            return

        if not isinstance(message, dict):
            logger.warning(f"Ignoring non-object frame from renderer: {frame!r}")
            return

        method = message.get("method")
        if method != END_METHOD:
            logger.warning(f"Ignoring unknown renderer method: {method!r}")
            return

        params = message.get("params") or {}
        sprite_id = params.get("spriteId") if isinstance(params, dict) else None
        if not isinstance(sprite_id, str):
            logger.warning(f"Ignoring {END_METHOD} without spriteId: {frame!r}")
            return

        logger.debug(f"Sprite {sprite_id} ended")
        self._tracker.mark_ended(sprite_id)
