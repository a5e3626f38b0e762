"""Value types shared by the playback controller."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class Track:
    """Immutable track value.

    Identity is ``reference``: two tracks with the same reference compare
    equal and hash the same, whatever their display metadata.
    """

    reference: str
    title: str = field(default="", compare=False)
    artist: str = field(default="", compare=False)
    cover_url: str | None = field(default=None, compare=False)
    duration_label: str | None = field(default=None, compare=False)

    def display_name(self) -> str:
        """Return "Artist - Title", falling back to the reference."""
        if self.artist and self.title:
            return f"{self.artist} - {self.title}"
        return self.title or self.reference


@dataclass(frozen=True)
class Playlist:
    """Ordered, finite sequence of tracks tagged with its source.

    ``source_tag`` (e.g. ``"search:<query>"`` or ``"recommendations"``)
    identifies the queue itself, independently of the position inside it.
    """

    tracks: tuple[Track, ...] = ()
    source_tag: str = ""

    def __post_init__(self) -> None:
        if not isinstance(self.tracks, tuple):
            object.__setattr__(self, "tracks", tuple(self.tracks))

    def __len__(self) -> int:
        return len(self.tracks)

    def __getitem__(self, index: int) -> Track:
        return self.tracks[index]

    def __iter__(self) -> Iterator[Track]:
        return iter(self.tracks)

    def __bool__(self) -> bool:
        return bool(self.tracks)

    def index_of(self, reference: str) -> int:
        """Return the first index holding ``reference``, or -1."""
        for i, track in enumerate(self.tracks):
            if track.reference == reference:
                return i
        return -1


class ShuffleMode(Enum):
    """Shuffle policies, cycled by the shuffle button."""

    OFF = "off"
    NO_REPEAT = "no_repeat"
    REPEAT_SHUFFLE = "repeat_shuffle"

    def following(self) -> ShuffleMode:
        """Return the mode the shuffle button switches to."""
        cycle = {
            ShuffleMode.OFF: ShuffleMode.NO_REPEAT,
            ShuffleMode.NO_REPEAT: ShuffleMode.REPEAT_SHUFFLE,
            ShuffleMode.REPEAT_SHUFFLE: ShuffleMode.OFF,
        }
        return cycle[self]


class ResolvePurpose(Enum):
    """Why audio is being requested from the resolution service."""

    PLAYBACK = "player"
    DOWNLOAD = "download"


class TransitionResult(Enum):
    """Outcome of a transition request (next, prev, selection, end-of-track)."""

    PLAYED = "played"
    PLAYED_FROM_PRELOAD = "played_from_preload"
    IGNORED_BUSY = "ignored_busy"  # another transition is in flight
    IGNORED_EMPTY = "ignored_empty"  # no playlist context to navigate
    DISCARDED = "discarded"  # session reset while resolving


@dataclass(frozen=True)
class PreloadedTrack:
    """Single preload cache entry: audio fetched ahead of need."""

    for_reference: str
    buffer: bytes = field(repr=False)


@dataclass(frozen=True)
class DownloadLink:
    """Result of a download-purpose resolution."""

    url: str
    filename: str | None = None
    short_id: str | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only view of the session handed to the UI layer."""

    current_track: Track | None
    current_index: int
    playlist: Playlist
    shuffle_mode: ShuffleMode
    played_count: int
    is_playing: bool
    is_loading: bool
    is_preloading: bool
    has_preload: bool
    current_seconds: float
    total_seconds: float
    is_muted: bool = False

    @property
    def progress(self) -> float:
        """Progress ratio 0.0-1.0."""
        if self.total_seconds <= 0:
            return 0.0
        return max(0.0, min(1.0, self.current_seconds / self.total_seconds))
