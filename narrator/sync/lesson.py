"""
Lesson Module

Drives a narrated lesson: each scripted line is spoken while the UI
driver performs its edits, and the next line only starts once the
previous one has finished.
"""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Iterable, List, Protocol, Sequence, Tuple

from narrator.sync.script_player import ScriptPlayer
from narrator.sync.sprite_tracker import SpriteState

Action = Callable[["UIDriver"], Awaitable[None]]


class UIDriver(Protocol):
    """Editor automation used between narrated lines."""

    async def dispatch_action(self, name: str) -> None:
        """Dispatch a keybinding or command, e.g. 'cmd+d'."""
        ...

    async def type_text(self, text: str) -> None:
        ...

    async def insert_line(self) -> None:
        ...

    async def wait_for_editor_focus(self, file: str, line: int) -> None:
        ...


class Lesson:
    """
    Pair narrated lines with driver actions.

    Started sprite ids are kept on a stack: start() pushes, end() pops the
    most recent one and waits for it.
    """

    def __init__(self, player: ScriptPlayer, driver: UIDriver):
        self.player = player
        self.driver = driver
        self._sprites: List[str] = []

    async def start(self, text: str) -> str:
        """Begin narrating a line without waiting for it."""
        sprite_id = await self.player.play_script(text)
        self._sprites.append(sprite_id)
        return sprite_id

    async def end(self) -> None:
        """Wait for the most recently started line to finish."""
        if not self._sprites:
            return
        sprite_id = self._sprites.pop()
        if self.player.status(sprite_id) is not SpriteState.ENDED:
            await self.player.wait_for_sprite(sprite_id)

    @asynccontextmanager
    async def line(self, text: str) -> AsyncIterator[str]:
        """
        Narrate a line around a block of driver calls.

        Example:
            async with lesson.line("Loop over the array."):
                await driver.insert_line()
                await driver.type_text("for (const x of xs)")
        """
        sprite_id = await self.start(text)
        try:
            yield sprite_id
        except BaseException:
            # keep start/end paired for the next line
            if sprite_id in self._sprites:
                self._sprites.remove(sprite_id)
            raise
        await self.end()

    async def run(self, steps: Iterable[Tuple[str, Sequence[Action]]]) -> List[str]:
        """
        Run a sequence of (text, actions) steps.

        Returns:
            Sprite ids in playback order
        """
        played = []
        for text, actions in steps:
            async with self.line(text) as sprite_id:
                for action in actions:
                    await action(self.driver)
            played.append(sprite_id)
        return played
