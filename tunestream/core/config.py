"""Configuration management using Pydantic and YAML."""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field

from tunestream.core.constants import (
    DEFAULT_VOLUME,
    POSITION_POLL_INTERVAL_MS,
    PRELOAD_THRESHOLD_SECONDS,
    RESOLVER_ENDPOINT,
    RESOLVER_TIMEOUT_SECONDS,
)


class AudioConfig(BaseModel):
    """Audio configuration."""

    default_volume: int = Field(ge=0, le=100, default=DEFAULT_VOLUME)


class ResolverConfig(BaseModel):
    """Audio-resolution service configuration."""

    base_url: str = "http://localhost:3000"
    endpoint: str = RESOLVER_ENDPOINT
    timeout: float = Field(gt=0, default=RESOLVER_TIMEOUT_SECONDS)


class PlaybackConfig(BaseModel):
    """Playback controller configuration."""

    preload_enabled: bool = True
    preload_threshold: float = Field(gt=0, default=PRELOAD_THRESHOLD_SECONDS)
    position_poll_interval_ms: int = Field(ge=10, default=POSITION_POLL_INTERVAL_MS)


class UIConfig(BaseModel):
    """UI configuration."""

    window_title: str = "Tunestream"
    window_width: int = Field(ge=480, default=720)
    window_height: int = Field(ge=320, default=560)


class ShortcutsConfig(BaseModel):
    """Keyboard shortcuts configuration."""

    play_pause: str = "Space"
    next_track: str = "Ctrl+Right"
    previous_track: str = "Ctrl+Left"
    toggle_shuffle: str = "Ctrl+H"
    volume_up: str = "Ctrl+Up"
    volume_down: str = "Ctrl+Down"
    mute: str = "M"
    quit: str = "Ctrl+Q"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str | None = "tunestream.log"
    # Third-party loggers held at WARNING or above
    quiet_loggers: list[str] = Field(default_factory=lambda: ["httpx", "httpcore", "qasync"])


class TunestreamConfig(BaseModel):
    """Main application configuration."""

    audio: AudioConfig = Field(default_factory=AudioConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    playback: PlaybackConfig = Field(default_factory=PlaybackConfig)
    ui: UIConfig = Field(default_factory=UIConfig)
    shortcuts: ShortcutsConfig = Field(default_factory=ShortcutsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path | None = None) -> TunestreamConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default location.

    Returns:
        TunestreamConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config file is invalid
    """
    if config_path is None:
        # Try multiple locations
        possible_paths = [
            Path(__file__).parent.parent.parent / "config" / "config.yaml",
            Path.home() / ".config" / "tunestream" / "config.yaml",
            Path.home() / ".tunestream" / "config.yaml",
        ]

        for path in possible_paths:
            if path.exists():
                config_path = path
                break
        else:
            # Use default from package
            config_path = possible_paths[0]

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    return TunestreamConfig(**data)
