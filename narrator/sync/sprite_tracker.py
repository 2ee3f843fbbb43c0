"""
Sprite Tracker Module

Tracks the playback state of each audio sprite and lets callers wait
for a sprite to finish.
"""

import asyncio
from enum import Enum
from typing import Callable, Dict, List

from narrator.sync.errors import ConnectionClosed
from narrator.utils import logger


class SpriteState(str, Enum):
    """Lifecycle of a single sprite."""

    UNKNOWN = "unknown"
    PLAYING = "playing"
    ENDED = "ended"


class SpriteTracker:
    """
    Map sprite ids to their playback state.

    States only move forward (unknown -> playing -> ended). Each call to
    await_ended gets its own future, keyed by sprite id, so waiters are
    released exactly once and never leak past their sprite.
    """

    def __init__(self) -> None:
        self._states: Dict[str, SpriteState] = {}
        self._waiters: Dict[str, List[asyncio.Future]] = {}
        self._listeners: List[Callable[[str], None]] = []
        self._aborted = False

    def status(self, sprite_id: str) -> SpriteState:
        """Return the current state of a sprite without blocking."""
        return self._states.get(sprite_id, SpriteState.UNKNOWN)

    def mark_playing(self, sprite_id: str) -> None:
        """
        Record that a play request for a sprite has been issued.

        This only means the request was queued; the renderer may not have
        started playback yet.
        """
        current = self.status(sprite_id)
        if current is not SpriteState.UNKNOWN:
            logger.debug(f"Sprite {sprite_id} already {current.value}, not marking playing")
            return
        self._states[sprite_id] = SpriteState.PLAYING

    def mark_ended(self, sprite_id: str) -> None:
        """
        Record that a sprite finished playing.

        Repeated calls are no-ops. Unknown ids are accepted, since the
        notification may come from a local estimator rather than the renderer.
        """
        if self.status(sprite_id) is SpriteState.ENDED:
            return
        self._states[sprite_id] = SpriteState.ENDED

        for waiter in self._waiters.pop(sprite_id, []):
            if not waiter.done():
                waiter.set_result(None)

        for listener in list(self._listeners):
            listener(sprite_id)

    def add_listener(self, listener: Callable[[str], None]) -> Callable[[], None]:
        """
        Subscribe to every completion event.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def await_ended(self, sprite_id: str) -> None:
        """
        Wait until a sprite has ended.

        Returns immediately if it already has. Raises ConnectionClosed if the
        tracker is aborted first, or was aborted before the call.
        """
        if self.status(sprite_id) is SpriteState.ENDED:
            return
        if self._aborted:
            raise ConnectionClosed(sprite_id)

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(sprite_id, []).append(waiter)
        try:
            await waiter
        finally:
            pending = self._waiters.get(sprite_id)
            if pending and waiter in pending:
                pending.remove(waiter)
                if not pending:
                    del self._waiters[sprite_id]

    def abort(self) -> None:
        """Fail every pending and future wait with ConnectionClosed."""
        self._aborted = True
        waiters, self._waiters = self._waiters, {}
        for sprite_id, futures in waiters.items():
            for waiter in futures:
                if not waiter.done():
                    waiter.set_exception(ConnectionClosed(sprite_id))

    @property
    def aborted(self) -> bool:
        return self._aborted

    def pending(self) -> List[str]:
        """Return ids of sprites that are still playing."""
        return [
            sprite_id
            for sprite_id, state in self._states.items()
            if state is SpriteState.PLAYING
        ]
