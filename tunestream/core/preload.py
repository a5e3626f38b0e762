"""Preload scheduler: speculatively fetches the next track's audio.

Driven by the transport's time-progress ticks. Once per leg, when playback
first passes the threshold, it asks the shuffle policy (read-only) which
track comes next and resolves it in the background. The result is offered
to the session, which keeps it only if the context has not moved on.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from tunestream.core.constants import PRELOAD_THRESHOLD_SECONDS
from tunestream.core.errors import ResolutionFailure
from tunestream.core.event_bus import Events
from tunestream.core.models import PreloadedTrack, ResolvePurpose, Track

if TYPE_CHECKING:
    from tunestream.core.event_bus import EventBus
    from tunestream.core.protocols import TrackResolverProtocol
    from tunestream.core.session import PlaybackSession, PreloadContext

logger = logging.getLogger(__name__)


class PreloadScheduler:
    """Fills the session's single-slot preload cache ahead of need.

    Attempts are tracked per leg independently of success, so a failed or
    discarded preload is never retried within the same leg.
    """

    def __init__(
        self,
        session: PlaybackSession,
        resolver: TrackResolverProtocol,
        threshold: float = PRELOAD_THRESHOLD_SECONDS,
        enabled: bool = True,
        event_bus: EventBus | None = None,
    ) -> None:
        self._session = session
        self._resolver = resolver
        self._threshold = threshold
        self._enabled = enabled
        self._event_bus = event_bus
        self._attempted_leg: int | None = None
        self._task: asyncio.Task[bool] | None = None

    @property
    def task(self) -> asyncio.Task[bool] | None:
        """Most recently launched preload task, if any."""
        return self._task

    def on_time_progress(
        self, current_seconds: float, total_seconds: float = 0.0
    ) -> asyncio.Task[bool] | None:
        """Handle a time-progress tick; maybe launch a preload.

        Must be called from within the running event loop.

        Returns:
            The launched task, or None if no preload was started
        """
        session = self._session
        if not self._enabled or current_seconds < self._threshold:
            return None
        if session.preload is not None or session.preload_in_flight:
            return None
        if session.is_transitioning or not session.has_playlist_context:
            return None
        if self._attempted_leg == session.leg:
            return None

        self._attempted_leg = session.leg
        target = session.preview_next_index()
        if target is None:
            return None
        track = session.playlist[target]
        current = session.current_track
        if current is not None and current.reference == track.reference:
            # Nothing to fetch ahead: the next track is the current one
            return None

        context = session.preload_context()
        session.set_preload_in_flight(True)
        logger.info("[Preload] Fetching %s (index %d) ahead of need", track.reference, target)
        if self._event_bus is not None:
            self._event_bus.emit(Events.PRELOAD_STARTED, reference=track.reference)
        self._task = asyncio.get_running_loop().create_task(self._preload(track, context))
        return self._task

    async def _preload(self, track: Track, context: PreloadContext) -> bool:
        try:
            buffer = await self._resolver.resolve(track.reference, ResolvePurpose.PLAYBACK)
        except ResolutionFailure as e:
            logger.warning("[Preload] %s", e)
            return False
        finally:
            self._session.set_preload_in_flight(False)

        stored = self._session.accept_preload(PreloadedTrack(track.reference, buffer), context)
        if stored:
            logger.debug("[Preload] Cached %s", track.reference)
        return stored

    def cancel(self) -> None:
        """Cancel an in-flight preload (application shutdown)."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
