"""Playback session: the stateful core of the streaming playlist controller.

The session is the single mutable aggregate for everything the controller
tracks: which playlist and index are active, the shuffle policy and its
traversal state, the one-slot preload cache and the transition guard.
The UI never mutates it directly; it reads ``snapshot()`` and issues
commands. Async callbacks always read through the object, so they observe
the state as it is when they resume, not when they were scheduled.

Suspension points are the resolver call and nothing else: every field
mutation between them is atomic with respect to the event loop. The
``transitioning`` flag is therefore checked and set without awaiting, and
released by a context manager on every exit path.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from tunestream.core.errors import PlaybackError, ResolutionFailure, TransportFailure
from tunestream.core.event_bus import Events
from tunestream.core.models import (
    Playlist,
    PreloadedTrack,
    ResolvePurpose,
    SessionSnapshot,
    ShuffleMode,
    Track,
    TransitionResult,
)
from tunestream.core.shuffle import generate_shuffle_order, next_index, prev_index

if TYPE_CHECKING:
    from tunestream.core.event_bus import EventBus
    from tunestream.core.protocols import TrackResolverProtocol, TransportProtocol

logger = logging.getLogger(__name__)

PreloadContext = tuple[int, int, ShuffleMode, Playlist]


class PlaybackSession:
    """Owns playback state and orchestrates shuffle policy, resolver and transport.

    One session lives for the whole application; a brand-new playlist
    context resets it rather than replacing it.
    """

    def __init__(
        self,
        resolver: TrackResolverProtocol,
        transport: TransportProtocol,
        event_bus: EventBus | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._resolver = resolver
        self._transport = transport
        self._event_bus = event_bus
        self._rng = rng or random.Random()

        self._playlist = Playlist()
        self._current_index = -1
        self._current_track: Track | None = None
        self._shuffle_mode = ShuffleMode.OFF
        self._played: set[int] = set()
        self._shuffle_order: list[int] = []
        self._preload: PreloadedTrack | None = None
        self._preload_in_flight = False
        self._transitioning = False

        # Bumped whenever a new track becomes current (or on reset); lets
        # async work detect that the session moved on while it was suspended.
        self._leg = 0
        self._audio_loaded = False
        # Loaded audio played to its end; resuming has to restart it
        self._media_ended = False
        self._is_playing = False
        self._current_seconds = 0.0
        self._total_seconds = 0.0
        self._volume = 100
        self._muted = False

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def playlist(self) -> Playlist:
        return self._playlist

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def current_track(self) -> Track | None:
        return self._current_track

    @property
    def shuffle_mode(self) -> ShuffleMode:
        return self._shuffle_mode

    @property
    def played_indices(self) -> frozenset[int]:
        return frozenset(self._played)

    @property
    def shuffle_order(self) -> tuple[int, ...]:
        return tuple(self._shuffle_order)

    @property
    def preload(self) -> PreloadedTrack | None:
        return self._preload

    @property
    def preload_in_flight(self) -> bool:
        return self._preload_in_flight

    @property
    def is_transitioning(self) -> bool:
        return self._transitioning

    @property
    def is_playing(self) -> bool:
        return self._is_playing

    @property
    def leg(self) -> int:
        return self._leg

    @property
    def volume(self) -> int:
        """Volume chosen by the user, kept while muted."""
        return self._volume

    @property
    def is_muted(self) -> bool:
        return self._muted

    @property
    def has_playlist_context(self) -> bool:
        return bool(self._playlist) and self._current_index >= 0

    def snapshot(self) -> SessionSnapshot:
        """Return an immutable view of the session for display."""
        return SessionSnapshot(
            current_track=self._current_track,
            current_index=self._current_index,
            playlist=self._playlist,
            shuffle_mode=self._shuffle_mode,
            played_count=len(self._played),
            is_playing=self._is_playing,
            is_loading=self._transitioning,
            is_preloading=self._preload_in_flight,
            has_preload=self._preload is not None,
            current_seconds=self._current_seconds,
            total_seconds=self._total_seconds,
            is_muted=self._muted,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    async def play_track(
        self,
        track: Track,
        index: int = -1,
        playlist: Playlist | Sequence[Track] | None = None,
        from_source: str | None = None,
    ) -> TransitionResult:
        """Play a manually selected track.

        Args:
            track: Track to play (shown as current immediately)
            index: Its index in the playlist, or -1 for an ad-hoc track
            playlist: New queue to activate; a plain sequence of tracks is
                wrapped into a Playlist tagged ``from_source``
            from_source: Source tag for the supplied queue (overrides the
                tag of a supplied Playlist)

        Returns:
            How the transition ended

        Raises:
            ValueError: If ``index`` is outside the playlist
            PlaybackError: If the audio could not be resolved or played
        """
        new_playlist = self._coerce_playlist(playlist, from_source)
        queue = new_playlist if new_playlist else self._playlist
        if index != -1 and not 0 <= index < len(queue):
            raise ValueError(f"Track index {index} out of range for {len(queue)} tracks")

        if self._transitioning:
            logger.debug(
                "[Playback] Selection of %s dropped: transition in flight", track.reference
            )
            return TransitionResult.IGNORED_BUSY

        with self._transition():
            # A manual choice never reuses a speculative preload
            self._preload = None

            if new_playlist and new_playlist != self._playlist:
                self._activate_playlist(new_playlist, index)
            elif index >= 0 and self._shuffle_mode is ShuffleMode.NO_REPEAT:
                self._played.add(index)

            leg = self._enter_leg(track, index)
            return await self._play_leg(track, leg, None)

    async def next(self) -> TransitionResult:
        """Advance according to the shuffle policy.

        Concurrent calls are dropped silently; an empty or absent playlist
        context is a no-op; an exhausted NoRepeat cycle restarts.
        """
        if self._transitioning:
            logger.debug("[Playback] next() dropped: transition in flight")
            return TransitionResult.IGNORED_BUSY
        if not self.has_playlist_context:
            return TransitionResult.IGNORED_EMPTY

        with self._transition():
            target = self.preview_next_index()
            if target is None:
                target = self._restart_cycle()
            elif self._shuffle_mode is ShuffleMode.NO_REPEAT:
                self._played.add(target)
            return await self._advance_to(target)

    async def prev(self) -> TransitionResult:
        """Go back to the track played immediately before."""
        if self._transitioning:
            logger.debug("[Playback] prev() dropped: transition in flight")
            return TransitionResult.IGNORED_BUSY
        if not self.has_playlist_context:
            return TransitionResult.IGNORED_EMPTY

        with self._transition():
            order = self._shuffle_order if self._shuffle_mode is not ShuffleMode.OFF else ()
            target = prev_index(len(self._playlist), self._current_index, order)
            if target is None:
                return TransitionResult.IGNORED_EMPTY
            if self._shuffle_mode is ShuffleMode.NO_REPEAT:
                self._played.add(target)
            return await self._advance_to(target)

    async def on_track_ended(self) -> TransitionResult:
        """Handle the transport's end-of-media event.

        Shares the ``next()`` guard, so an end event racing a user click
        produces a single transition.
        """
        if not self._transitioning:
            self._is_playing = False
            if self._audio_loaded and not self.has_playlist_context:
                # Nothing follows an ad-hoc track; play restarts it
                self._media_ended = True
                self._emit(Events.PLAYBACK_STATE_CHANGED, playing=False)
        return await self.next()

    async def retry(self) -> TransitionResult:
        """Resolve the current track again after a failure."""
        if self._current_track is None:
            return TransitionResult.IGNORED_EMPTY
        return await self.play_track(self._current_track, self._current_index)

    def toggle_shuffle_mode(self) -> ShuffleMode:
        """Cycle Off -> NoRepeat -> RepeatShuffle -> Off.

        Returns:
            The newly active mode
        """
        mode = self._shuffle_mode.following()
        self._shuffle_mode = mode
        # The anticipated "next" track depends on the policy
        self._preload = None

        if mode is ShuffleMode.OFF:
            self._played.clear()
            self._shuffle_order = []
        else:
            if mode is ShuffleMode.NO_REPEAT and self._current_index >= 0:
                self._played = {self._current_index}
            else:
                self._played.clear()
            self._shuffle_order = (
                generate_shuffle_order(len(self._playlist), self._current_index, self._rng)
                if self.has_playlist_context
                else []
            )

        logger.info("[Playback] Shuffle mode: %s", mode.value)
        self._emit(Events.SHUFFLE_MODE_CHANGED, mode=mode)
        return mode

    def reset(self) -> None:
        """Return to idle, dropping the playlist context.

        A transition still resolving when this runs discards its result.
        """
        self._leg += 1
        self._playlist = Playlist()
        self._current_index = -1
        self._current_track = None
        self._played.clear()
        self._shuffle_order = []
        self._preload = None
        self._audio_loaded = False
        self._media_ended = False
        self._is_playing = False
        self._current_seconds = 0.0
        self._total_seconds = 0.0
        self._transport.stop()
        logger.info("[Playback] Session reset")
        self._emit(Events.SESSION_RESET)

    def preview_next_index(self) -> int | None:
        """Return the index ``next()`` would target, without mutating anything."""
        if not self.has_playlist_context:
            return None
        return next_index(
            len(self._playlist),
            self._current_index,
            self._shuffle_mode,
            self._played,
            self._shuffle_order,
            self._rng,
        )

    # ------------------------------------------------------------------
    # Transport passthrough
    # ------------------------------------------------------------------

    def toggle_play(self) -> bool:
        """Pause or resume the loaded track.

        Returns:
            False if there is no loaded audio to toggle
        """
        if self._is_playing:
            return self.pause()
        return self.resume()

    def pause(self) -> bool:
        """Pause the loaded track; False if nothing is playing."""
        if not self._audio_loaded or self._transitioning or not self._is_playing:
            return False
        self._transport.pause()
        self._is_playing = False
        self._emit(Events.PLAYBACK_STATE_CHANGED, playing=False)
        return True

    def resume(self) -> bool:
        """Resume the loaded track, restarting it if it played to its end.

        Returns:
            False if there is nothing to resume
        """
        if not self._audio_loaded or self._transitioning or self._is_playing:
            return False
        if self._media_ended:
            self._media_ended = False
            self._current_seconds = 0.0
            self._transport.play()
        else:
            self._transport.resume()
        self._is_playing = True
        self._emit(Events.PLAYBACK_STATE_CHANGED, playing=True)
        return True

    def seek(self, fraction: float) -> None:
        """Seek to a position ratio 0.0-1.0 of the current track."""
        if self._audio_loaded:
            self._transport.seek(max(0.0, min(1.0, fraction)))

    def set_volume(self, volume: int) -> None:
        """Set the volume (0-100); while muted it applies on unmute."""
        self._volume = max(0, min(100, volume))
        if not self._muted:
            self._transport.set_volume(self._volume)

    def toggle_mute(self) -> bool:
        """Silence the transport or restore the volume it had before.

        Returns:
            True if the session is now muted
        """
        self._muted = not self._muted
        self._transport.set_volume(0 if self._muted else self._volume)
        logger.debug("[Playback] Muted: %s", self._muted)
        self._emit(Events.MUTE_CHANGED, muted=self._muted)
        return self._muted

    def update_progress(self, current_seconds: float, total_seconds: float) -> None:
        """Record time progress reported by the transport."""
        self._current_seconds = max(0.0, current_seconds)
        self._total_seconds = max(0.0, total_seconds)

    def on_load_error(self) -> None:
        """Handle the transport failing to decode the loaded buffer."""
        self._audio_loaded = False
        self._media_ended = False
        self._is_playing = False
        error = TransportFailure("The audio device could not play this track")
        logger.error("[Playback] Transport load error for %s", self._reference_or_none())
        self._emit(Events.PLAYBACK_FAILED, track=self._current_track, error=error)

    # ------------------------------------------------------------------
    # Preload cache (written by the preload scheduler only)
    # ------------------------------------------------------------------

    def preload_context(self) -> PreloadContext:
        """Return a token identifying the context a preload is computed for."""
        return (self._leg, self._current_index, self._shuffle_mode, self._playlist)

    def set_preload_in_flight(self, in_flight: bool) -> None:
        self._preload_in_flight = in_flight

    def accept_preload(self, entry: PreloadedTrack, context: PreloadContext) -> bool:
        """Store a preload result if its context is still current.

        The single cache slot is replaced, never appended to.

        Returns:
            True if the entry was cached, False if it was discarded as stale
        """
        if context != self.preload_context():
            logger.debug("[Preload] Discarding stale preload for %s", entry.for_reference)
            return False
        if self._current_track is not None and entry.for_reference == self._current_track.reference:
            return False
        self._preload = entry
        self._emit(Events.PRELOAD_READY, reference=entry.for_reference)
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @contextmanager
    def _transition(self) -> Iterator[None]:
        """Hold the transition guard; released on every exit path."""
        self._transitioning = True
        try:
            yield
        finally:
            self._transitioning = False
            self._emit(Events.TRANSITION_FINISHED)

    def _coerce_playlist(
        self, playlist: Playlist | Sequence[Track] | None, source_tag: str | None
    ) -> Playlist | None:
        if playlist is None:
            return None
        if isinstance(playlist, Playlist):
            if source_tag is not None and source_tag != playlist.source_tag:
                return Playlist(playlist.tracks, source_tag)
            return playlist
        return Playlist(tuple(playlist), source_tag or "")

    def _activate_playlist(self, playlist: Playlist, index: int) -> None:
        """Switch to a different queue, restarting traversal state."""
        self._playlist = playlist
        if self._shuffle_mode is ShuffleMode.NO_REPEAT and index >= 0:
            self._played = {index}
        else:
            self._played.clear()
        if self._shuffle_mode is not ShuffleMode.OFF:
            self._shuffle_order = generate_shuffle_order(len(playlist), index, self._rng)
        logger.debug(
            "[Playback] Activated playlist %r (%d tracks)", playlist.source_tag, len(playlist)
        )

    def _restart_cycle(self) -> int:
        """Start a new NoRepeat cycle once every index has been consumed."""
        self._played.clear()
        length = len(self._playlist)
        if self._shuffle_order:
            candidates = [i for i in range(length) if i != self._current_index] or [0]
            start = self._rng.choice(candidates)
            self._shuffle_order = generate_shuffle_order(length, start, self._rng)
            target = self._shuffle_order[0]
        else:
            target = 0
        self._played.add(target)
        logger.info("[Playback] Shuffle cycle complete, restarting at %d", target)
        self._emit(Events.CYCLE_RESTARTED, start_index=target)
        return target

    async def _advance_to(self, target: int) -> TransitionResult:
        track = self._playlist[target]
        cached = self._take_preload(track.reference)
        leg = self._enter_leg(track, target)
        return await self._play_leg(track, leg, cached)

    def _take_preload(self, reference: str) -> PreloadedTrack | None:
        """Drain the cache, returning the entry only if it is for ``reference``."""
        cached, self._preload = self._preload, None
        if cached is not None and cached.for_reference != reference:
            logger.debug("[Preload] Dropping unused preload for %s", cached.for_reference)
            return None
        return cached

    def _enter_leg(self, track: Track, index: int) -> int:
        """Make ``track`` current (optimistically, before audio arrives)."""
        self._leg += 1
        self._current_track = track
        self._current_index = index
        self._audio_loaded = False
        self._media_ended = False
        self._is_playing = False
        self._current_seconds = 0.0
        self._total_seconds = 0.0
        self._emit(Events.TRACK_CHANGED, track=track, index=index)
        return self._leg

    async def _play_leg(
        self, track: Track, leg: int, cached: PreloadedTrack | None
    ) -> TransitionResult:
        """Resolve (unless preloaded) and start playback of ``track``."""
        if cached is not None:
            buffer = cached.buffer
            logger.debug("[Playback] Using preloaded audio for %s", track.reference)
        else:
            try:
                buffer = await self._resolver.resolve(track.reference, ResolvePurpose.PLAYBACK)
            except ResolutionFailure as e:
                if leg != self._leg:
                    return TransitionResult.DISCARDED
                self._report_failure(track, e)
                raise

        if leg != self._leg:
            logger.info("[Playback] Session moved on while loading %s; discarding", track.reference)
            return TransitionResult.DISCARDED

        if not self._transport.load(buffer):
            error = TransportFailure(f"Could not load audio for {track.reference}")
            self._report_failure(track, error)
            raise error
        self._audio_loaded = True
        self._transport.play()
        self._is_playing = True

        logger.info("[Playback] Playing %s (index %d)", track.display_name(), self._current_index)
        self._emit(Events.PLAYBACK_STARTED, track=track, from_preload=cached is not None)
        if cached is not None:
            return TransitionResult.PLAYED_FROM_PRELOAD
        return TransitionResult.PLAYED

    def _report_failure(self, track: Track, error: PlaybackError) -> None:
        self._is_playing = False
        logger.warning("[Playback] %s", error)
        self._emit(Events.PLAYBACK_FAILED, track=track, error=error)

    def _reference_or_none(self) -> str | None:
        return self._current_track.reference if self._current_track else None

    def _emit(self, event: str, **data: Any) -> None:
        if self._event_bus is not None:
            self._event_bus.emit(event, **data)
