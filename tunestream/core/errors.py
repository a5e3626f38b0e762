"""Playback error taxonomy.

Only genuine failures are exceptions. Empty playlists and concurrent
transitions are guard clauses that return a ``TransitionResult`` instead.
"""


class PlaybackError(Exception):
    """Base class for failures reported to the user."""


class ResolutionFailure(PlaybackError):
    """Audio for a track could not be obtained. The user may retry."""

    def __init__(self, reference: str, reason: str = "resolution failed") -> None:
        super().__init__(f"Could not load track {reference}: {reason}")
        self.reference = reference
        self.reason = reason


class TransportFailure(PlaybackError):
    """The audio device refused the resolved buffer."""
