"""Protocol definitions for the controller's external collaborators.

Using Protocol (structural subtyping) lets the session accept the real
VLC/HTTP implementations and lightweight test doubles alike, without
coupling the core to Qt or to a network client.
"""

from typing import Protocol, runtime_checkable

from tunestream.core.models import DownloadLink, ResolvePurpose

# ============================================================================
# Track Resolver
# ============================================================================


@runtime_checkable
class TrackResolverProtocol(Protocol):
    """Asynchronously turns a track reference into playable audio.

    Implementations raise ``ResolutionFailure`` on any failure.
    """

    async def resolve(
        self, reference: str, purpose: ResolvePurpose = ResolvePurpose.PLAYBACK
    ) -> bytes: ...


@runtime_checkable
class DownloadResolverProtocol(Protocol):
    """Resolver able to hand out a download link for a track."""

    async def request_download(self, reference: str) -> DownloadLink: ...


# ============================================================================
# Transport Surface
# ============================================================================


@runtime_checkable
class TransportProtocol(Protocol):
    """Audio rendering device driven by the session.

    Events (time progress, end of media, load error) flow back through
    the playback controller, never into the session directly.
    """

    def load(self, audio: bytes) -> bool: ...
    def play(self) -> None: ...
    def pause(self) -> None: ...
    def resume(self) -> None: ...
    def stop(self) -> None: ...
    def seek(self, fraction: float) -> None: ...
    def set_volume(self, volume: int) -> None: ...
    def is_playing(self) -> bool: ...
