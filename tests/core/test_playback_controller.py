"""Tests for the playback controller (Qt transport <-> async session)."""

import asyncio
import random

import pytest

from tests.mocks.fakes import make_playlist, run
from tunestream.core.audio_player import AudioPlayer
from tunestream.core.event_bus import Events
from tunestream.core.models import ShuffleMode, TransitionResult
from tunestream.core.playback_controller import PlaybackController
from tunestream.core.preload import PreloadScheduler
from tunestream.core.session import PlaybackSession


@pytest.fixture
def player(qapp):  # type: ignore
    """Provide an audio player backed by the VLC mock."""
    audio_player = AudioPlayer()
    yield audio_player
    audio_player.unload()


@pytest.fixture
def messages(event_bus):  # type: ignore
    """Collect status messages."""
    collected: list[str] = []
    event_bus.subscribe(
        Events.STATUS_MESSAGE, lambda message, color=None: collected.append(message)
    )
    return collected


def make_controller(resolver, player, event_bus) -> PlaybackController:  # type: ignore
    session = PlaybackSession(resolver, player, event_bus, random.Random(3))
    scheduler = PreloadScheduler(session, resolver, event_bus=event_bus)
    return PlaybackController(session, scheduler, player, event_bus, poll_interval_ms=50)


class TestCommands:
    """User commands scheduled as tasks."""

    def test_request_play(self, resolver, player, event_bus) -> None:  # type: ignore
        """A selection plays and reports its result."""
        finished: list[str] = []

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            controller.transition_finished.connect(finished.append)
            playlist = make_playlist(3)

            result = await controller.request_play(playlist[1], 1, playlist)
            await controller.wait_idle()
            assert result is TransitionResult.PLAYED
            assert controller.session.current_index == 1
            assert player.is_playing()

        run(scenario())
        assert finished == [TransitionResult.PLAYED.value]

    def test_next_and_prev(self, resolver, player, event_bus) -> None:  # type: ignore
        """Navigation goes through the session."""

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)

            await controller.request_next()
            assert controller.session.current_index == 1
            await controller.request_prev()
            assert controller.session.current_index == 0

        run(scenario())

    def test_failure_becomes_status_message(self, resolver, player, event_bus, messages) -> None:  # type: ignore
        """A resolution failure is shown, not raised into the event loop."""
        resolver.failing.add("track-0")

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            controller.request_play(playlist[0], 0, playlist)
            await controller.wait_idle()

        run(scenario())
        assert messages == ["Could not load track track-0: service unavailable"]

    def test_play_button_retries_failed_track(self, resolver, player, event_bus) -> None:  # type: ignore
        """Play after a failure resolves the current track again."""
        resolver.failing.add("track-0")

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            controller.request_play(playlist[0], 0, playlist)
            await controller.wait_idle()

            resolver.failing.clear()
            retry = controller.toggle_play_pause()
            assert retry is not None
            assert await retry is TransitionResult.PLAYED
            assert player.is_playing()

        run(scenario())
        assert resolver.calls == ["track-0", "track-0"]

    def test_play_pause_toggles_loaded_track(self, resolver, player, event_bus) -> None:  # type: ignore
        """With audio loaded the button pauses and resumes."""

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)

            assert controller.toggle_play_pause() is None
            assert not player.is_playing()
            assert controller.toggle_play_pause() is None
            assert player.is_playing()

        run(scenario())

    def test_toggle_shuffle_volume_and_seek(self, resolver, player, event_bus) -> None:  # type: ignore
        """Synchronous commands pass straight through."""

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)

            assert controller.toggle_shuffle() is ShuffleMode.NO_REPEAT
            controller.set_volume(35)
            controller.seek(0.5)
            assert player.get_volume() == 35
            assert player.get_position() == 0.5

        run(scenario())

    def test_toggle_mute(self, resolver, player, event_bus) -> None:  # type: ignore
        """Mute silences the player and unmute restores the volume."""
        controller = make_controller(resolver, player, event_bus)
        controller.set_volume(35)

        assert controller.toggle_mute()
        assert player.get_volume() == 0
        assert not controller.toggle_mute()
        assert player.get_volume() == 35

    def test_shutdown_cancels_pending(self, manual_resolver, player, event_bus) -> None:  # type: ignore
        """Shutdown cancels in-flight transitions and releases the guard."""

        async def scenario() -> None:
            controller = make_controller(manual_resolver, player, event_bus)
            playlist = make_playlist(3)
            task = controller.request_play(playlist[0], 0, playlist)
            await asyncio.sleep(0)

            controller.shutdown()
            await asyncio.wait([task])
            assert task.cancelled()
            assert not controller.session.is_transitioning

        run(scenario())


class TestTransportEvents:
    """Reactions to the audio player's signals."""

    def test_track_finished_advances(self, resolver, player, event_bus) -> None:  # type: ignore
        """End of media plays the next track."""

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)

            player.track_finished.emit()
            await controller.wait_idle()
            assert controller.session.current_index == 1

        run(scenario())

    def test_end_of_media_stops_polling(self, resolver, player, event_bus) -> None:  # type: ignore
        """VLC's end event stops the position timer until the next track plays."""

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)
            assert controller._position_timer.isActive()

            player._player.reach_end()
            assert not controller._position_timer.isActive()

            await controller.wait_idle()
            assert controller.session.current_index == 1
            assert controller._position_timer.isActive()

        run(scenario())

    def test_load_error_stops_session(self, resolver, player, event_bus, messages) -> None:  # type: ignore
        """A decode error is reported and stops playback."""

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)

            player.load_error.emit()
            assert not controller.session.is_playing

        run(scenario())
        assert messages == ["The audio device could not play this track"]

    def test_position_timer_follows_state(self, resolver, player, event_bus) -> None:  # type: ignore
        """Polling runs only while playing; stopping resets the position display."""
        positions: list[tuple[float, float]] = []
        event_bus.subscribe(
            Events.POSITION_UPDATE, lambda current, total: positions.append((current, total))
        )
        controller = make_controller(resolver, player, event_bus)

        player.play()
        assert controller._position_timer.isActive()
        player.pause()
        assert not controller._position_timer.isActive()
        player.play()
        player.stop()
        assert not controller._position_timer.isActive()
        assert positions == [(0.0, 0.0)]


class TestPositionPolling:
    """Time progress feeding the session and the preload scheduler."""

    def test_poll_triggers_preload(self, resolver, player, event_bus) -> None:  # type: ignore
        """Crossing the threshold while polling preloads the next track."""
        positions: list[tuple[float, float]] = []
        event_bus.subscribe(
            Events.POSITION_UPDATE, lambda current, total: positions.append((current, total))
        )

        async def scenario() -> None:
            controller = make_controller(resolver, player, event_bus)
            playlist = make_playlist(3)
            await controller.request_play(playlist[0], 0, playlist)

            player._player.advance_to(6_000, length_ms=240_000)
            controller._poll_position()

            snapshot = controller.session.snapshot()
            assert snapshot.current_seconds == 6.0
            assert snapshot.total_seconds == 240.0
            assert snapshot.is_preloading

            assert await controller._scheduler.task is True
            assert controller.session.preload.for_reference == "track-1"

        run(scenario())
        assert positions[-1] == (6.0, 240.0)

    def test_poll_ignored_when_not_playing(self, resolver, player, event_bus) -> None:  # type: ignore
        """Nothing is reported while the transport is idle."""
        positions: list[object] = []
        event_bus.subscribe(Events.POSITION_UPDATE, lambda **data: positions.append(data))
        controller = make_controller(resolver, player, event_bus)

        controller._poll_position()
        assert positions == []
