"""
Script Player Module

Plays scripted lines as audio sprites and lets automation code wait for
each line to finish before moving on. Lines are played through a
connected renderer, or paced by local timers when there is none.
"""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional

from narrator.sync.connection import AudioConnection
from narrator.sync.errors import ChannelClosed
from narrator.sync.markup import MarkupDocument, build_markup
from narrator.sync.sprite_tracker import SpriteState, SpriteTracker
from narrator.sync.subtitles import emit_srt, write_srt
from narrator.sync.timeline import TimelineEntry, TimelineSource, create_timeline, save_timeline
from narrator.utils import logger
from narrator.utils.config import SyncSettings


class ScriptPlayer:
    """
    Narrate script lines and track when each one ends.

    Sprite ids are 0-based sequence numbers as strings; id "n" is the
    n-th line played and maps to part<n> in the timing table.
    """

    def __init__(
        self,
        settings: SyncSettings,
        timeline: TimelineSource,
        tracker: Optional[SpriteTracker] = None,
        connection: Optional[AudioConnection] = None,
    ):
        """
        Initialize the script player.

        Args:
            settings: Session settings (output paths, rates)
            timeline: Source of begin/end offsets per line
            tracker: Sprite tracker shared with the connection
            connection: Open renderer connection, or None to pace lines locally
        """
        self.settings = settings
        self.timeline = timeline
        self.tracker = tracker or SpriteTracker()
        self.connection = connection
        self._entries: List[TimelineEntry] = []
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._closed = False

        if connection is not None:
            connection.add_close_listener(self.tracker.abort)

    @classmethod
    async def open(cls, settings: SyncSettings) -> "ScriptPlayer":
        """
        Start a session from settings.

        Loads the timing table when one exists and connects to the renderer
        when an endpoint is configured.
        """
        timeline = create_timeline(settings.timing_file, settings.speech_rate)
        tracker = SpriteTracker()
        connection = None
        if settings.endpoint:
            connection = await AudioConnection.connect(
                settings.endpoint,
                tracker,
                timeout=settings.connect_timeout,
            )
        mode = "authoritative" if timeline.authoritative else "estimated"
        playback = settings.endpoint or "local timers"
        logger.info(f"Script player ready ({mode} timing, playback via {playback})")
        return cls(settings, timeline, tracker=tracker, connection=connection)

    async def __aenter__(self) -> "ScriptPlayer":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    @property
    def entries(self) -> List[TimelineEntry]:
        """Timeline entries for every line played so far."""
        return list(self._entries)

    def begin(self) -> None:
        """Mark the start of the narrated session."""
        self.timeline.begin()

    def status(self, sprite_id: str) -> SpriteState:
        return self.tracker.status(sprite_id)

    async def play_script(self, text: str) -> str:
        """
        Start narrating a line.

        Returns as soon as the line is queued; use wait_for_sprite to
        wait for it to finish.

        Args:
            text: The line to narrate

        Returns:
            Sprite id of the line
        """
        if self._closed:
            raise ChannelClosed("Script player is closed")
        sprite_id = str(len(self._entries))
        entry = self.timeline.resolve(len(self._entries), text)

        # a line that could not be sent is never recorded
        if self.connection is not None:
            await self.connection.play_sprite(sprite_id)

        self._entries.append(entry)
        self.tracker.mark_playing(sprite_id)
        logger.line(text, entry.begin_ms)

        if self.connection is None:
            loop = asyncio.get_running_loop()
            self._timers[sprite_id] = loop.call_later(
                entry.duration_ms / 1000,
                self._timer_ended,
                sprite_id,
            )
        return sprite_id

    def _timer_ended(self, sprite_id: str) -> None:
        self._timers.pop(sprite_id, None)
        self.tracker.mark_ended(sprite_id)

    async def wait_for_sprite(self, sprite_id: str) -> None:
        """
        Wait until a sprite has finished playing.

        Raises:
            ConnectionClosed: The session closed before the sprite ended
        """
        await self.tracker.await_ended(sprite_id)

    def subtitles(self) -> str:
        """Render the played lines as SRT text."""
        return emit_srt(self._entries)

    def flush(self, output_dir: Optional[Path] = None) -> Path:
        """
        Write subtitles and the timeline for the lines played so far.

        Safe to call repeatedly; each call regenerates the files.

        Returns:
            Path to the subtitle file
        """
        output_dir = Path(output_dir or self.settings.output_dir)
        save_timeline(self._entries, output_dir / self.settings.timeline_name)
        return write_srt(self._entries, output_dir / self.settings.subtitle_name)

    def markup(self) -> MarkupDocument:
        """Build speech markup for the lines played so far."""
        return build_markup(entry.text for entry in self._entries)

    def export_markup(self, output_path: Optional[Path] = None) -> Path:
        return self.markup().save(output_path or self.settings.markup_path)

    async def close(self) -> None:
        """Stop pending timers, close the connection and release waiters."""
        if self._closed:
            return
        self._closed = True

        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

        if self.connection is not None:
            await self.connection.close()
        self.tracker.abort()

        pending = self.tracker.pending()
        if pending:
            logger.warning(f"Closed with {len(pending)} sprite(s) still playing: {', '.join(pending)}")

