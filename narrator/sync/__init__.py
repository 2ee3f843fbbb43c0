"""
Sync Module

Keeps narrated audio in step with scripted editor actions.
Plays each line as an audio sprite, tracks when it ends, and turns the
resulting timeline into subtitles.
"""

from narrator.sync.connection import AudioConnection, ConnectionState
from narrator.sync.errors import (
    ChannelClosed,
    ConnectError,
    ConnectionClosed,
    ConnectTimeout,
    MissingTerminalPunctuation,
    MissingTimingEntry,
    SyncError,
)
from narrator.sync.lesson import Lesson, UIDriver
from narrator.sync.markup import MarkupDocument, build_markup
from narrator.sync.script_player import ScriptPlayer
from narrator.sync.sprite_tracker import SpriteState, SpriteTracker
from narrator.sync.subtitles import emit_srt, format_timestamp, write_srt
from narrator.sync.timeline import (
    AuthoritativeTimeline,
    EstimatedTimeline,
    TimelineEntry,
    TimingTable,
    create_timeline,
    load_sentence_timeline,
)

__all__ = [
    "AudioConnection",
    "ConnectionState",
    "SyncError",
    "ConnectTimeout",
    "ConnectError",
    "ChannelClosed",
    "ConnectionClosed",
    "MissingTimingEntry",
    "MissingTerminalPunctuation",
    "Lesson",
    "UIDriver",
    "MarkupDocument",
    "build_markup",
    "ScriptPlayer",
    "SpriteState",
    "SpriteTracker",
    "emit_srt",
    "format_timestamp",
    "write_srt",
    "AuthoritativeTimeline",
    "EstimatedTimeline",
    "TimelineEntry",
    "TimingTable",
    "create_timeline",
    "load_sentence_timeline",
]
