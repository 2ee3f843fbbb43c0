#!/usr/bin/env python3
"""
Narration Sync System - Main CLI

Plays scripted lines through an audio renderer (or a local estimator),
waits for each line to finish, and writes matching subtitles.

Features:
- WebSocket connection to a remote sprite renderer
- Authoritative timing from a precomputed timing table
- Estimated pacing when no timing table exists
- SRT subtitles and speech markup export
- Local loopback renderer for dry runs
"""

import asyncio
import dataclasses
import sys
from pathlib import Path
from typing import List, Optional

import click

from narrator.sync.errors import SyncError
from narrator.sync.loopback import LoopbackRenderer
from narrator.sync.markup import build_markup
from narrator.sync.script_player import ScriptPlayer
from narrator.sync.subtitles import write_srt
from narrator.sync.timeline import TimingTable, load_sentence_timeline
from narrator.utils import logger
from narrator.utils.config import SyncSettings, config


def read_script(path: Path) -> List[str]:
    """Read non-blank script lines from a text file."""
    text = Path(path).read_text(encoding="utf-8")
    return [line.strip() for line in text.splitlines() if line.strip()]


async def narrate(settings: SyncSettings, lines: List[str]) -> Path:
    """Play every line in order, waiting for each, then flush subtitles."""
    player = await ScriptPlayer.open(settings)
    async with player:
        player.timeline.validate(len(lines))
        player.begin()
        for i, line in enumerate(lines, 1):
            logger.step(line, i, len(lines))
            sprite_id = await player.play_script(line)
            await player.wait_for_sprite(sprite_id)
        return player.flush()


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """
    Narration Sync System

    Narrate scripted lines and keep subtitles in step with playback.
    """
    pass


@cli.command()
@click.argument("script_file", type=click.Path(exists=True))
@click.option("-e", "--endpoint", default=None, help="Renderer WebSocket URL (default: estimate locally)")
@click.option("--timing", type=click.Path(), default=None, help="Timing table JSON file")
@click.option("-r", "--rate", type=float, default=None, help=f"Speech rate in chars/sec (default: {config.speech_rate})")
@click.option("--timeout", type=float, default=None, help="Connection timeout in seconds")
@click.option("-o", "--output", type=click.Path(), default=None, help="Output directory")
def play(
    script_file: str,
    endpoint: Optional[str],
    timing: Optional[str],
    rate: Optional[float],
    timeout: Optional[float],
    output: Optional[str],
):
    """
    Narrate a script file line by line.

    Each line is played and awaited before the next one starts.
    Subtitles and the timeline are written when the script finishes.
    """
    script_path = Path(script_file)
    logger.header(f"Narrating: {script_path.name}")

    settings = config.sync_settings()
    overrides = {
        "endpoint": endpoint,
        "timing_file": Path(timing) if timing else None,
        "speech_rate": rate,
        "connect_timeout": timeout,
        "output_dir": Path(output) if output else None,
    }
    settings = dataclasses.replace(
        settings,
        **{key: value for key, value in overrides.items() if value is not None},
    )

    lines = read_script(script_path)
    if not lines:
        logger.error("Script has no lines")
        sys.exit(1)

    try:
        srt_path = asyncio.run(narrate(settings, lines))
    except (SyncError, ValueError) as e:
        logger.error(str(e))
        sys.exit(1)

    logger.success(f"Narrated {len(lines)} lines, subtitles at: {srt_path}")


@cli.command()
@click.argument("sentences_file", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), help="Output SRT path (default: next to input)")
def srt(sentences_file: str, output: Optional[str]):
    """
    Convert a sentence-timing file to SRT subtitles.
    """
    input_path = Path(sentences_file)
    try:
        entries = load_sentence_timeline(input_path)
    except ValueError as e:
        logger.error(f"Invalid sentence timing: {e}")
        sys.exit(1)

    output_path = Path(output) if output else input_path.with_suffix(".srt")
    write_srt(entries, output_path)
    logger.info(f"Subtitles: {len(entries)} blocks")


@cli.command()
@click.argument("script_file", type=click.Path(exists=True))
@click.option("-o", "--output", type=click.Path(), help="Output JSON path (default: next to input)")
def markup(script_file: str, output: Optional[str]):
    """
    Validate a script and write its speech markup.

    Every line must end with sentence punctuation.
    """
    script_path = Path(script_file)
    try:
        document = build_markup(read_script(script_path))
    except SyncError as e:
        logger.error(str(e))
        sys.exit(1)

    output_path = Path(output) if output else script_path.with_suffix(".json")
    document.save(output_path)
    logger.info(f"Markup: {len(document.parts)} parts")


@cli.command("serve-renderer")
@click.option("--timing", type=click.Path(exists=True), default=None, help="Timing table JSON file")
@click.option("--host", default=None, help="Interface to bind")
@click.option("-p", "--port", type=int, default=None, help="Port to listen on")
@click.option("--time-scale", type=float, default=None, help="Multiplier for sprite durations")
def serve_renderer(
    timing: Optional[str],
    host: Optional[str],
    port: Optional[int],
    time_scale: Optional[float],
):
    """
    Run a loopback renderer for dry runs.

    Acknowledges each sprite after its timing-table duration.
    """
    try:
        timing_table = TimingTable.load(Path(timing)) if timing else None
    except ValueError as e:
        logger.error(f"Invalid timing table: {e}")
        sys.exit(1)

    renderer = LoopbackRenderer(
        timing_table=timing_table,
        host=host or config.get("renderer", "host", default="127.0.0.1"),
        port=port if port is not None else config.get("renderer", "port", default=8765),
        time_scale=time_scale if time_scale is not None else config.get("renderer", "time_scale", default=1.0),
    )
    logger.console.print("Press Ctrl+C to stop")
    try:
        asyncio.run(renderer.serve_forever())
    except KeyboardInterrupt:
        logger.info("Renderer stopped.")


@cli.command()
def info():
    """
    Show effective configuration.
    """
    logger.header("Narration Sync System")
    settings = config.sync_settings()

    logger.console.print("[bold]Paths:[/bold]")
    logger.console.print(f"  Project root: {config.project_root}")
    logger.console.print(f"  Output:       {settings.output_dir}")
    logger.console.print(f"  Timing file:  {settings.timing_file or '-'}")

    logger.console.print("\n[bold]Playback:[/bold]")
    logger.console.print(f"  Endpoint:     {settings.endpoint or 'local estimator'}")
    logger.console.print(f"  Timeout:      {settings.connect_timeout}s")
    logger.console.print(f"  Speech rate:  {settings.speech_rate} chars/sec")


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
