"""Playback controller: bridges the Qt transport and the async session.

Keeps the Qt-specific plumbing out of the session so that it stays a
plain asyncio object. This controller owns:
- Position polling (QTimer), feeding the session and the preload scheduler
- Transport events (end of media, decode error)
- Scheduling user commands as asyncio tasks and reporting their failures
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Sequence
from typing import TYPE_CHECKING, Any

from PySide6.QtCore import QObject, QTimer, Signal

from tunestream.core.constants import POSITION_POLL_INTERVAL_MS, StatusColors
from tunestream.core.errors import PlaybackError
from tunestream.core.event_bus import Events
from tunestream.core.models import Playlist, ShuffleMode, Track, TransitionResult

if TYPE_CHECKING:
    from tunestream.core.audio_player import AudioPlayer
    from tunestream.core.event_bus import EventBus
    from tunestream.core.preload import PreloadScheduler
    from tunestream.core.session import PlaybackSession

logger = logging.getLogger(__name__)


class PlaybackController(QObject):
    """Orchestrates transport events, position polling and command dispatch.

    Commands return the asyncio task running them so callers (and tests)
    can await completion; failures never escape the task, they are logged
    and surfaced as ``STATUS_MESSAGE`` events.

    Signals:
        transition_finished(str): Emitted with the TransitionResult value
            when a scheduled transition completes without error.
    """

    transition_finished = Signal(str)

    def __init__(
        self,
        session: PlaybackSession,
        scheduler: PreloadScheduler,
        player: AudioPlayer,
        event_bus: EventBus,
        poll_interval_ms: int = POSITION_POLL_INTERVAL_MS,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)
        self._session = session
        self._scheduler = scheduler
        self._player = player
        self._event_bus = event_bus
        self._tasks: set[asyncio.Future[Any]] = set()

        # Position polling timer
        self._position_timer = QTimer(self)
        self._position_timer.setInterval(poll_interval_ms)
        self._position_timer.timeout.connect(self._poll_position)

        # React to transport events
        self._player.state_changed.connect(self._on_state_changed)
        self._player.track_finished.connect(self._on_track_finished)
        self._player.load_error.connect(self._on_load_error)

    @property
    def session(self) -> PlaybackSession:
        return self._session

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def request_play(
        self,
        track: Track,
        index: int = -1,
        playlist: Playlist | Sequence[Track] | None = None,
        from_source: str | None = None,
    ) -> asyncio.Future[Any]:
        """Play a manually selected track."""
        return self._schedule(
            self._session.play_track(track, index, playlist, from_source), "play"
        )

    def request_next(self) -> asyncio.Future[Any]:
        """Skip to the next track."""
        return self._schedule(self._session.next(), "next")

    def request_prev(self) -> asyncio.Future[Any]:
        """Go back to the previous track."""
        return self._schedule(self._session.prev(), "prev")

    def toggle_play_pause(self) -> asyncio.Future[Any] | None:
        """Pause/resume, or retry the current track if its audio never loaded."""
        if self._session.toggle_play():
            return None
        snapshot = self._session.snapshot()
        if snapshot.current_track is not None and not snapshot.is_loading:
            return self._schedule(self._session.retry(), "retry")
        return None

    def toggle_shuffle(self) -> ShuffleMode:
        """Cycle the shuffle mode."""
        return self._session.toggle_shuffle_mode()

    def seek(self, fraction: float) -> None:
        """Seek to a position ratio 0.0-1.0."""
        self._session.seek(fraction)

    def set_volume(self, volume: int) -> None:
        """Set volume (0-100)."""
        self._session.set_volume(volume)

    def toggle_mute(self) -> bool:
        """Mute or unmute; returns True if now muted."""
        return self._session.toggle_mute()

    async def wait_idle(self) -> None:
        """Wait until every scheduled command has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def shutdown(self) -> None:
        """Stop polling and cancel pending work."""
        self._position_timer.stop()
        self._scheduler.cancel()
        for task in list(self._tasks):
            task.cancel()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _schedule(self, coro: Coroutine[Any, Any, Any], action: str) -> asyncio.Future[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_task_done(t, action))
        return task

    def _on_task_done(self, task: asyncio.Future[Any], action: str) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if isinstance(error, PlaybackError):
            self._event_bus.emit(
                Events.STATUS_MESSAGE, message=str(error), color=StatusColors.ERROR
            )
        elif error is not None:
            logger.error("[Playback] %s failed unexpectedly", action, exc_info=error)
            self._event_bus.emit(
                Events.STATUS_MESSAGE, message=f"Playback error: {error}", color=StatusColors.ERROR
            )
        else:
            result: TransitionResult = task.result()
            logger.debug("[Playback] %s -> %s", action, result.value)
            self.transition_finished.emit(result.value)

    def _on_state_changed(self, state: str) -> None:
        """Manage position timer based on player state."""
        if state == "playing":
            self._position_timer.start()
        elif state == "paused":
            self._position_timer.stop()
        elif state == "stopped":
            self._position_timer.stop()
            self._event_bus.emit(Events.POSITION_UPDATE, current=0.0, total=0.0)

    def _on_track_finished(self) -> None:
        """End of media: advance through the same guard as the next button."""
        self._schedule(self._session.on_track_ended(), "track ended")

    def _on_load_error(self) -> None:
        self._position_timer.stop()
        self._session.on_load_error()
        self._event_bus.emit(
            Events.STATUS_MESSAGE,
            message="The audio device could not play this track",
            color=StatusColors.ERROR,
        )

    def _poll_position(self) -> None:
        """Feed time progress to the session and the preload scheduler."""
        if not self._player.is_playing():
            return
        current = self._player.get_time_seconds()
        total = self._player.get_length_seconds()
        self._session.update_progress(current, total)
        self._scheduler.on_time_progress(current, total)
        self._event_bus.emit(Events.POSITION_UPDATE, current=current, total=total)
