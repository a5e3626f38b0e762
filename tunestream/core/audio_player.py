"""python-vlc transport for resolved audio buffers."""

import shutil
import tempfile
from enum import Enum
from pathlib import Path
from typing import Any

import vlc
from PySide6.QtCore import QObject, Signal

from tunestream.core.constants import AUDIO_FILE_SUFFIX


class PlayerState(Enum):
    """Audio player states."""

    PLAYING = "playing"
    PAUSED = "paused"
    STOPPED = "stopped"


def _ms_to_seconds(ms: int | None) -> float:
    # libvlc reports -1 while the media is not parsed yet
    return ms / 1000.0 if ms is not None and ms > 0 else 0.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class AudioPlayer(QObject):
    """Plays in-memory audio buffers through a libvlc media player.

    VLC opens media by location, so every buffer is spooled to a file in
    a private temporary directory. Only the file of the current buffer is
    kept on disk.

    End-of-media and decode errors arrive on a VLC thread. They are handed
    to the player's own thread through a queued signal, where the state
    changes to stopped before ``track_finished`` or ``load_error`` fires.
    """

    state_changed = Signal(str)  # PlayerState.value
    position_changed = Signal(float)  # 0.0 to 1.0
    volume_changed = Signal(int)  # 0 to 100
    track_finished = Signal()
    load_error = Signal()
    _media_stopped = Signal(str)  # "end" or "error", emitted from the VLC thread

    def __init__(self) -> None:
        super().__init__()
        self._instance = vlc.Instance()
        self._player = self._instance.media_player_new()
        self._spool_dir = Path(tempfile.mkdtemp(prefix="tunestream-"))
        self._spooled = 0
        self._current_file: Path | None = None
        self._state = PlayerState.STOPPED
        self._media_stopped.connect(self._on_media_stopped)

        events = self._player.event_manager()
        events.event_attach(vlc.EventType.MediaPlayerEndReached, self._on_end_reached)
        events.event_attach(vlc.EventType.MediaPlayerEncounteredError, self._on_encountered_error)

    @property
    def state(self) -> PlayerState:
        return self._state

    @property
    def current_file(self) -> Path | None:
        """Spool file of the loaded buffer, None when nothing is loaded."""
        return self._current_file

    def load(self, audio: bytes) -> bool:
        """Hand a buffer to VLC, replacing whatever was loaded.

        Args:
            audio: Encoded audio (mp3) bytes

        Returns:
            False if the buffer is empty or VLC refused it
        """
        if not audio:
            return False

        self._spooled += 1
        spool_file = self._spool_dir / f"track-{self._spooled}{AUDIO_FILE_SUFFIX}"
        try:
            self._spool_dir.mkdir(parents=True, exist_ok=True)
            spool_file.write_bytes(audio)
            self._player.set_media(self._instance.media_new(str(spool_file)))
        except Exception:
            spool_file.unlink(missing_ok=True)
            return False

        previous, self._current_file = self._current_file, spool_file
        if previous is not None:
            previous.unlink(missing_ok=True)
        return True

    def play(self) -> None:
        self._player.play()
        self._set_state(PlayerState.PLAYING)

    def pause(self) -> None:
        self._player.set_pause(1)
        self._set_state(PlayerState.PAUSED)

    def resume(self) -> None:
        self._player.set_pause(0)
        self._set_state(PlayerState.PLAYING)

    def stop(self) -> None:
        self._player.stop()
        self._set_state(PlayerState.STOPPED)

    def is_playing(self) -> bool:
        return self._player.is_playing() == 1

    def set_volume(self, volume: int) -> None:
        """Set volume, clamped to 0-100."""
        volume = int(_clamp(volume, 0, 100))
        self._player.audio_set_volume(volume)
        self.volume_changed.emit(volume)

    def get_volume(self) -> int:
        volume = self._player.audio_get_volume()
        return int(volume) if volume is not None else 0

    def seek(self, fraction: float) -> None:
        """Jump to a fraction of the track (0.0 = start, 1.0 = end)."""
        fraction = _clamp(fraction, 0.0, 1.0)
        self._player.set_position(fraction)
        self.position_changed.emit(fraction)

    def get_position(self) -> float:
        position = self._player.get_position()
        return float(position) if position is not None else 0.0

    def get_time_seconds(self) -> float:
        return _ms_to_seconds(self._player.get_time())

    def get_length_seconds(self) -> float:
        """Length of the loaded media in seconds, 0.0 while unknown."""
        return _ms_to_seconds(self._player.get_length())

    def unload(self) -> None:
        """Stop, release the media and delete every spool file."""
        self._player.stop()
        self._player.set_media(None)
        self._current_file = None
        self._state = PlayerState.STOPPED
        shutil.rmtree(self._spool_dir, ignore_errors=True)

    def _set_state(self, state: PlayerState) -> None:
        self._state = state
        self.state_changed.emit(state.value)

    def _on_end_reached(self, event: Any) -> None:
        self._media_stopped.emit("end")

    def _on_encountered_error(self, event: Any) -> None:
        self._media_stopped.emit("error")

    def _on_media_stopped(self, reason: str) -> None:
        self._set_state(PlayerState.STOPPED)
        if reason == "error":
            self.load_error.emit()
        else:
            self.track_finished.emit()
