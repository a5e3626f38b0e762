"""Tests that implementations and test doubles satisfy the boundary protocols."""

from tests.mocks.fakes import FakeResolver, FakeTransport
from tunestream.core.audio_player import AudioPlayer
from tunestream.core.protocols import (
    DownloadResolverProtocol,
    TrackResolverProtocol,
    TransportProtocol,
)
from tunestream.core.resolver import HttpTrackResolver


class TestProtocols:
    """Structural conformance checks."""

    def test_http_resolver(self) -> None:
        """Test the HTTP resolver serves playback and downloads."""
        resolver = HttpTrackResolver()
        assert isinstance(resolver, TrackResolverProtocol)
        assert isinstance(resolver, DownloadResolverProtocol)

    def test_audio_player(self, qapp) -> None:  # type: ignore
        """Test the VLC player is a transport."""
        player = AudioPlayer()
        try:
            assert isinstance(player, TransportProtocol)
        finally:
            player.unload()

    def test_fakes(self) -> None:
        """Test the doubles match the real boundaries."""
        assert isinstance(FakeResolver(), TrackResolverProtocol)
        assert isinstance(FakeResolver(), DownloadResolverProtocol)
        assert isinstance(FakeTransport(), TransportProtocol)

    def test_transport_is_not_a_resolver(self) -> None:
        """Test the protocols are distinct."""
        assert not isinstance(FakeTransport(), TrackResolverProtocol)
