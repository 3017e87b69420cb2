"""Configuration models for asciiloop."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class WatchConfig(BaseModel):
    """Configuration for the watched frame-data file."""

    frame_file: str = "output.data"
    debounce_ms: int = Field(default=50, ge=0)


class PlaybackConfig(BaseModel):
    """Configuration for the animation loop."""

    interval_ms: int = Field(default=83, gt=0)
    background: str = "#333333"


class DisplayConfig(BaseModel):
    """Configuration for where frames are shown."""

    markup: Literal["html", "console"] = "console"
    html_path: str | None = None


class AsciiloopConfig(BaseModel):
    """Main configuration for asciiloop."""

    watch: WatchConfig = Field(default_factory=WatchConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    display: DisplayConfig = Field(default_factory=DisplayConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> AsciiloopConfig:
        """Load configuration from file or return defaults."""
        if path is None:
            path = CONFIG_FILE

        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        return cls.model_validate(data)

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = CONFIG_FILE

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self.model_dump(exclude_none=True), f, indent=2)


# Default config directory
ASCIILOOP_DIR = Path(".asciiloop")
CONFIG_FILE = ASCIILOOP_DIR / "config.json"
