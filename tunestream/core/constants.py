"""Shared constants for the Tunestream application."""


class StatusColors:
    """Centralized status message colors (hex)."""

    SUCCESS = "#00FF00"
    ERROR = "#FF0000"


# Playback constants
PRELOAD_THRESHOLD_SECONDS = 5.0
"""Elapsed playback time after which the next track is preloaded."""

POSITION_POLL_INTERVAL_MS = 100
"""Interval between transport position polls."""

DEFAULT_VOLUME = 80
"""Initial transport volume (0-100)."""

# Resolver constants
RESOLVER_ENDPOINT = "/api/spotify/download"
"""Path of the audio-resolution endpoint."""

RESOLVER_TIMEOUT_SECONDS = 60.0
"""Timeout for a single resolution request."""

AUDIO_FILE_SUFFIX = ".mp3"
"""Suffix given to buffers handed to VLC (the service returns audio/mpeg)."""
