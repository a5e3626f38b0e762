"""Player control widgets."""

from PySide6.QtCore import Qt, Signal
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QSlider, QVBoxLayout, QWidget

from tunestream.core.models import SessionSnapshot, ShuffleMode
from tunestream.ui.components.seek_slider import SeekSlider

SHUFFLE_LABELS = {
    ShuffleMode.OFF: ("🔀", "Shuffle: Off"),
    ShuffleMode.NO_REPEAT: ("🔀1", "Shuffle: No Repeat (each track once per cycle)"),
    ShuffleMode.REPEAT_SHUFFLE: ("🔀∞", "Shuffle: With Repeat"),
}


def format_time(seconds: float) -> str:
    """Format seconds as m:ss."""
    if seconds <= 0:
        return "0:00"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


class PlayerControls(QWidget):
    """Playback control widgets.

    Purely presentational: emits user intents and renders session
    snapshots, never touching the session itself.
    """

    play_pause_clicked = Signal()
    next_clicked = Signal()
    prev_clicked = Signal()
    shuffle_clicked = Signal()
    download_clicked = Signal()
    mute_clicked = Signal()
    seek_requested = Signal(float)
    volume_changed = Signal(int)

    def __init__(self, parent=None):  # type: ignore
        """Initialize player controls.

        Args:
            parent: Parent widget
        """
        super().__init__(parent)
        self._is_playing = False
        self._init_ui()

    def _init_ui(self) -> None:
        """Initialize UI components."""
        layout = QVBoxLayout()

        self.now_playing_label = QLabel("Nothing playing")
        layout.addWidget(self.now_playing_label)

        # Position row
        position_row = QHBoxLayout()
        self.elapsed_label = QLabel("0:00")
        self.position_slider = SeekSlider()
        self.position_slider.seek_requested.connect(self.seek_requested.emit)
        self.total_label = QLabel("0:00")
        position_row.addWidget(self.elapsed_label)
        position_row.addWidget(self.position_slider, stretch=1)
        position_row.addWidget(self.total_label)
        layout.addLayout(position_row)

        # Buttons row
        buttons = QHBoxLayout()
        self.shuffle_btn = QPushButton()
        self.prev_btn = QPushButton("⏮")
        self.play_btn = QPushButton("▶")
        self.next_btn = QPushButton("⏭")
        self.download_btn = QPushButton("⬇")
        self.download_btn.setToolTip("Download")

        self.shuffle_btn.clicked.connect(self.shuffle_clicked.emit)
        self.prev_btn.clicked.connect(self.prev_clicked.emit)
        self.play_btn.clicked.connect(self.play_pause_clicked.emit)
        self.next_btn.clicked.connect(self.next_clicked.emit)
        self.download_btn.clicked.connect(self.download_clicked.emit)

        for button in (
            self.shuffle_btn,
            self.prev_btn,
            self.play_btn,
            self.next_btn,
            self.download_btn,
        ):
            buttons.addWidget(button)
        buttons.addStretch()

        self.shuffle_status_label = QLabel("")
        buttons.addWidget(self.shuffle_status_label)

        self.mute_btn = QPushButton()
        self.mute_btn.clicked.connect(self.mute_clicked.emit)
        buttons.addWidget(self.mute_btn)

        # Volume slider
        buttons.addWidget(QLabel("Volume:"))
        self.volume_slider = QSlider(Qt.Orientation.Horizontal)
        self.volume_slider.setRange(0, 100)  # @hardcoded-ok: VLC volume range
        self.volume_slider.setMaximumWidth(150)  # @hardcoded-ok: standard slider width
        self.volume_slider.valueChanged.connect(self.volume_changed.emit)
        buttons.addWidget(self.volume_slider)
        layout.addLayout(buttons)

        self.setLayout(layout)
        self.set_shuffle_mode(ShuffleMode.OFF)
        self.set_muted(False)

    def set_playing_state(self, playing: bool) -> None:
        """Update play button icon based on playback state.

        Args:
            playing: True if currently playing, False otherwise
        """
        self._is_playing = playing
        if playing:
            self.play_btn.setText("⏸")
            self.play_btn.setToolTip("Pause")
        else:
            self.play_btn.setText("▶")
            self.play_btn.setToolTip("Play")

    def set_muted(self, muted: bool) -> None:
        self.mute_btn.setText("🔇" if muted else "🔊")
        self.mute_btn.setToolTip("Unmute" if muted else "Mute")

    def set_shuffle_mode(self, mode: ShuffleMode) -> None:
        """Update shuffle button text and tooltip."""
        text, tooltip = SHUFFLE_LABELS[mode]
        self.shuffle_btn.setText(text)
        self.shuffle_btn.setToolTip(tooltip)

    def set_position(self, current: float, total: float) -> None:
        """Update position slider and time labels (seconds)."""
        self.elapsed_label.setText(format_time(current))
        self.total_label.setText(format_time(total))
        self.position_slider.set_ratio(current / total if total > 0 else 0.0)

    def set_volume(self, volume: int) -> None:
        """Update volume slider (0-100).

        Args:
            volume: Volume level (0 to 100)
        """
        self.volume_slider.blockSignals(True)
        self.volume_slider.setValue(volume)
        self.volume_slider.blockSignals(False)

    def show_snapshot(self, snapshot: SessionSnapshot) -> None:
        """Render a session snapshot."""
        track = snapshot.current_track
        if track is None:
            self.now_playing_label.setText("Nothing playing")
        elif snapshot.is_loading:
            self.now_playing_label.setText(f"Loading {track.display_name()}…")
        else:
            self.now_playing_label.setText(track.display_name())

        self.set_playing_state(snapshot.is_playing)
        self.set_shuffle_mode(snapshot.shuffle_mode)
        self.set_muted(snapshot.is_muted)
        if snapshot.shuffle_mode is ShuffleMode.NO_REPEAT and snapshot.playlist:
            self.shuffle_status_label.setText(
                f"{snapshot.played_count} / {len(snapshot.playlist)} played"
            )
        else:
            self.shuffle_status_label.setText("")
        self.download_btn.setEnabled(track is not None)
        self.set_position(snapshot.current_seconds, snapshot.total_seconds)
