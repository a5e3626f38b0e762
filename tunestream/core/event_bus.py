"""Event bus carrying session notifications to the UI."""

import logging
from collections import defaultdict
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

Handler = Callable[..., None]


class EventBus:
    """Synchronous pub/sub keyed by event name.

    Handlers run in subscription order on the emitting thread. A handler
    that raises is logged and skipped; the emitter never sees the error.
    """

    def __init__(self) -> None:
        self._handlers: defaultdict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, event: str, callback: Handler) -> Callable[[], bool]:
        """Subscribe ``callback`` to ``event``.

        Subscribing the same callback twice is a no-op.

        Returns:
            A function that undoes this subscription
        """
        handlers = self._handlers[event]
        if callback not in handlers:
            handlers.append(callback)
            logger.debug("Subscribed %s to %s", getattr(callback, "__qualname__", callback), event)
        return lambda: self.unsubscribe(event, callback)

    def unsubscribe(self, event: str, callback: Handler) -> bool:
        """Unsubscribe from event.

        Returns:
            True if unsubscribed, False if not found
        """
        handlers = self._handlers.get(event)
        if not handlers or callback not in handlers:
            return False
        handlers.remove(callback)
        if not handlers:
            del self._handlers[event]
        return True

    def has_subscribers(self, event: str) -> bool:
        return bool(self._handlers.get(event))

    def clear(self, event: str | None = None) -> None:
        """Drop the subscribers of one event, or of every event."""
        if event is None:
            self._handlers.clear()
        else:
            self._handlers.pop(event, None)

    def emit(self, event: str, **data: Any) -> int:
        """Emit event to a snapshot of its current subscribers.

        Subscriptions changed by a handler take effect from the next emission.

        Returns:
            Number of handlers that completed without raising
        """
        handlers = list(self._handlers.get(event, ()))
        if not handlers:
            return 0

        logger.debug("Emitting %s to %d handler(s)", event, len(handlers))
        completed = 0
        for callback in handlers:
            try:
                callback(**data)
            except Exception:
                logger.exception("Error in %s handler", event)
            else:
                completed += 1
        return completed


class Events:
    """Standard event names.

    Each event is documented with its expected kwargs.

    Session Events:
        TRACK_CHANGED: A transition selected a new current track
            kwargs: track (Track), index (int) - -1 outside any playlist
        PLAYBACK_STARTED: Audio handed to the transport and playing
            kwargs: track (Track), from_preload (bool)
        PLAYBACK_FAILED: Resolution or transport failure
            kwargs: track (Track | None), error (PlaybackError)
        PLAYBACK_STATE_CHANGED: Play/pause toggled
            kwargs: playing (bool)
        SHUFFLE_MODE_CHANGED: Shuffle button cycled
            kwargs: mode (ShuffleMode)
        MUTE_CHANGED: Mute toggled, the chosen volume is kept
            kwargs: muted (bool)
        CYCLE_RESTARTED: NoRepeat cycle exhausted and restarted
            kwargs: start_index (int)
        SESSION_RESET: Session returned to idle
            kwargs: None
        TRANSITION_FINISHED: Transition guard released, whatever the outcome
            kwargs: None

    Preload Events:
        PRELOAD_STARTED: Speculative fetch launched
            kwargs: reference (str)
        PRELOAD_READY: Preload cache filled
            kwargs: reference (str)

    UI Events:
        POSITION_UPDATE: Playback position changed
            kwargs: current (float), total (float) - seconds
        STATUS_MESSAGE: Display status message (toast)
            kwargs: message (str)
                    color (str, optional) - Hex color code (e.g., "#00FF00")
    """

    # Session events
    TRACK_CHANGED = "track_changed"  # kwargs: track, index
    PLAYBACK_STARTED = "playback_started"  # kwargs: track, from_preload
    PLAYBACK_FAILED = "playback_failed"  # kwargs: track, error
    PLAYBACK_STATE_CHANGED = "playback_state_changed"  # kwargs: playing
    SHUFFLE_MODE_CHANGED = "shuffle_mode_changed"  # kwargs: mode
    MUTE_CHANGED = "mute_changed"  # kwargs: muted
    CYCLE_RESTARTED = "cycle_restarted"  # kwargs: start_index
    SESSION_RESET = "session_reset"  # kwargs: None
    TRANSITION_FINISHED = "transition_finished"  # kwargs: None

    # Preload events
    PRELOAD_STARTED = "preload_started"  # kwargs: reference
    PRELOAD_READY = "preload_ready"  # kwargs: reference

    # UI events
    POSITION_UPDATE = "position_update"  # kwargs: current, total
    STATUS_MESSAGE = "status_message"  # kwargs: message (str), color (str, optional)
