"""
Configuration loader for the narration sync system.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


@dataclass(frozen=True)
class SyncSettings:
    """Explicit settings handed to a script player session."""

    endpoint: Optional[str] = None
    connect_timeout: float = 30.0
    speech_rate: float = 5.0
    timing_file: Optional[Path] = None
    output_dir: Path = Path("output")
    subtitle_name: str = "speak.srt"
    timeline_name: str = "timeline.json"
    markup_name: str = "speak.json"

    @property
    def subtitle_path(self) -> Path:
        return Path(self.output_dir) / self.subtitle_name

    @property
    def timeline_path(self) -> Path:
        return Path(self.output_dir) / self.timeline_name

    @property
    def markup_path(self) -> Path:
        return Path(self.output_dir) / self.markup_name


class Config:
    """Configuration manager for narration sessions."""

    _instance: Optional["Config"] = None
    _config: Dict[str, Any] = {}

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self) -> None:
        if not self._config:
            self._load_config()

    def _get_project_root(self) -> Path:
        """Get the project root directory."""
        # Navigate up from narrator/utils to project root
        current = Path(__file__).resolve()
        return current.parent.parent.parent

    def _get_config_path(self) -> Path:
        override = os.environ.get("NARRATOR_CONFIG")
        if override:
            return Path(override)
        return self._get_project_root() / "config" / "settings.yaml"

    def _load_config(self) -> None:
        """Load configuration from YAML file."""
        config_path = self._get_config_path()

        if config_path.exists():
            with open(config_path, "r", encoding="utf-8") as f:
                self._config = yaml.safe_load(f) or self._get_defaults()
        else:
            # Use defaults if config doesn't exist
            self._config = self._get_defaults()

    def reload(self) -> None:
        """Re-read the configuration file."""
        self._config = {}
        self._load_config()

    def _get_defaults(self) -> Dict[str, Any]:
        """Return default configuration."""
        return {
            "sync": {
                "endpoint": None,
                "connect_timeout": 30.0,
                "speech_rate": 5.0,
                "timing_file": None,
                "subtitle_name": "speak.srt",
                "timeline_name": "timeline.json",
                "markup_name": "speak.json",
            },
            "renderer": {
                "host": "127.0.0.1",
                "port": 8765,
                "time_scale": 1.0,
            },
            "paths": {
                "output": "output",
            },
        }

    def get(self, *keys: str, default: Any = None) -> Any:
        """
        Get a configuration value using dot notation.

        Example:
            config.get("sync", "speech_rate") -> 5.0
        """
        value = self._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
            else:
                return default
            if value is None:
                return default
        return value

    def get_path(self, key: str) -> Path:
        """Get a path configuration as absolute Path."""
        relative_path = self.get("paths", key, default=key)
        return self._get_project_root() / relative_path

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._get_project_root()

    @property
    def endpoint(self) -> Optional[str]:
        """Get the renderer endpoint, None for estimated playback."""
        return self.get("sync", "endpoint")

    @property
    def connect_timeout(self) -> float:
        """Get the connection timeout in seconds."""
        return float(self.get("sync", "connect_timeout", default=30.0))

    @property
    def speech_rate(self) -> float:
        """Get the estimated speech rate in characters per second."""
        return float(self.get("sync", "speech_rate", default=5.0))

    @property
    def timing_file(self) -> Optional[Path]:
        """Get the authoritative timing table path, if configured."""
        value = self.get("sync", "timing_file")
        if not value:
            return None
        path = Path(value)
        return path if path.is_absolute() else self._get_project_root() / path

    def sync_settings(self) -> SyncSettings:
        """Build explicit session settings from this configuration."""
        return SyncSettings(
            endpoint=self.endpoint,
            connect_timeout=self.connect_timeout,
            speech_rate=self.speech_rate,
            timing_file=self.timing_file,
            output_dir=self.get_path("output"),
            subtitle_name=self.get("sync", "subtitle_name", default="speak.srt"),
            timeline_name=self.get("sync", "timeline_name", default="timeline.json"),
            markup_name=self.get("sync", "markup_name", default="speak.json"),
        )


# Singleton instance
config = Config()
