"""Load playlists from YAML files.

Stands in for the search/recommendation sources: they all hand the
controller an ordered list of tracks plus a source tag.

Expected format::

    source_tag: recommendations
    tracks:
      - reference: https://open.spotify.com/track/...
        title: Song
        artist: Artist
        cover_url: https://...
        duration: "3:45"
"""

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from tunestream.core.models import Playlist, Track


class TrackEntry(BaseModel):
    """A single track in a playlist file."""

    reference: str = Field(min_length=1)
    title: str = ""
    artist: str = ""
    cover_url: str | None = None
    duration: str | None = None


class PlaylistFile(BaseModel):
    """Playlist file contents."""

    source_tag: str | None = None
    tracks: list[TrackEntry] = []


def load_playlist(path: Path, source_tag: str | None = None) -> Playlist:
    """Load a playlist from a YAML file.

    Args:
        path: Playlist file
        source_tag: Overrides the tag stored in the file; defaults to
            ``"file:<name>"`` when the file has none

    Returns:
        Playlist instance

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a valid playlist
    """
    if not path.exists():
        raise FileNotFoundError(f"Playlist file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f) or {}

    try:
        parsed = PlaylistFile.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid playlist file {path}: {e}") from e

    tracks = tuple(
        Track(
            reference=entry.reference,
            title=entry.title,
            artist=entry.artist,
            cover_url=entry.cover_url,
            duration_label=entry.duration,
        )
        for entry in parsed.tracks
    )
    tag = source_tag or parsed.source_tag or f"file:{path.stem}"
    return Playlist(tracks, tag)
