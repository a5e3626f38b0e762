"""Main application window."""

import asyncio
import logging
from typing import Any

from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices
from PySide6.QtWidgets import QListWidget, QListWidgetItem, QMainWindow, QVBoxLayout, QWidget

from tunestream.core.audio_player import AudioPlayer
from tunestream.core.config import TunestreamConfig
from tunestream.core.constants import StatusColors
from tunestream.core.errors import ResolutionFailure
from tunestream.core.event_bus import EventBus, Events
from tunestream.core.models import Playlist
from tunestream.core.playback_controller import PlaybackController
from tunestream.core.preload import PreloadScheduler
from tunestream.core.protocols import DownloadResolverProtocol
from tunestream.core.resolver import HttpTrackResolver
from tunestream.core.session import PlaybackSession
from tunestream.core.shortcut_manager import ShortcutManager
from tunestream.ui.components.player_controls import PlayerControls

logger = logging.getLogger(__name__)

STATUS_TIMEOUT_MS = 5000


class MainWindow(QMainWindow):
    """Main application window: a track list above the transport controls."""

    def __init__(self, config: TunestreamConfig, resolver: Any = None):
        """Initialize main window.

        Args:
            config: Application configuration
            resolver: Track resolver (HTTP resolver from config if None)
        """
        super().__init__()
        self.config = config
        self.playlist = Playlist()
        self._download_tasks: set[asyncio.Future[None]] = set()

        # Playback stack
        self.player = AudioPlayer()
        self.event_bus = EventBus()
        self.resolver = resolver or HttpTrackResolver(config.resolver)
        self.session = PlaybackSession(self.resolver, self.player, self.event_bus)
        self.scheduler = PreloadScheduler(
            self.session,
            self.resolver,
            threshold=config.playback.preload_threshold,
            enabled=config.playback.preload_enabled,
            event_bus=self.event_bus,
        )
        self.controller = PlaybackController(
            self.session,
            self.scheduler,
            self.player,
            self.event_bus,
            poll_interval_ms=config.playback.position_poll_interval_ms,
            parent=self,
        )

        # Subscribe to events
        for event in (
            Events.TRACK_CHANGED,
            Events.PLAYBACK_STARTED,
            Events.PLAYBACK_FAILED,
            Events.PLAYBACK_STATE_CHANGED,
            Events.SHUFFLE_MODE_CHANGED,
            Events.MUTE_CHANGED,
            Events.CYCLE_RESTARTED,
            Events.SESSION_RESET,
            Events.TRANSITION_FINISHED,
        ):
            self.event_bus.subscribe(event, self._refresh)
        self.event_bus.subscribe(Events.TRACK_CHANGED, self._on_track_changed)
        self.event_bus.subscribe(Events.POSITION_UPDATE, self._on_position_update)
        self.event_bus.subscribe(Events.STATUS_MESSAGE, self._on_status_message)
        self.event_bus.subscribe(Events.PRELOAD_READY, self._on_preload_ready)

        self._init_ui()
        self._connect_signals()
        self._register_shortcuts()

    def _init_ui(self) -> None:
        """Initialize UI."""
        self.setWindowTitle(self.config.ui.window_title)
        self.resize(self.config.ui.window_width, self.config.ui.window_height)

        central = QWidget()
        layout = QVBoxLayout()

        self.track_list = QListWidget()
        layout.addWidget(self.track_list, stretch=1)

        self.controls = PlayerControls()
        layout.addWidget(self.controls, stretch=0)

        # Set initial volume
        self.controls.set_volume(self.config.audio.default_volume)
        self.session.set_volume(self.config.audio.default_volume)

        central.setLayout(layout)
        self.setCentralWidget(central)

    def _connect_signals(self) -> None:
        """Connect signals between components."""
        self.track_list.itemActivated.connect(self._on_item_activated)

        self.controls.play_pause_clicked.connect(self.controller.toggle_play_pause)
        self.controls.next_clicked.connect(self.controller.request_next)
        self.controls.prev_clicked.connect(self.controller.request_prev)
        self.controls.shuffle_clicked.connect(self.controller.toggle_shuffle)
        self.controls.download_clicked.connect(self._download_current)
        self.controls.seek_requested.connect(self.controller.seek)
        self.controls.volume_changed.connect(self.controller.set_volume)
        self.controls.mute_clicked.connect(self.controller.toggle_mute)

        self.player.volume_changed.connect(self.controls.set_volume)

    def _register_shortcuts(self) -> None:
        """Register default keyboard shortcuts."""
        self.shortcut_manager = ShortcutManager(self)
        self.shortcut_manager.bind(
            self.config.shortcuts,
            {
                "play_pause": self.controller.toggle_play_pause,
                "next_track": self.controller.request_next,
                "previous_track": self.controller.request_prev,
                "toggle_shuffle": self.controller.toggle_shuffle,
                "volume_up": lambda: self._step_volume(10),
                "volume_down": lambda: self._step_volume(-10),
                "mute": self.controller.toggle_mute,
                "quit": self.close,
            },
        )

    def load_playlist(self, playlist: Playlist) -> None:
        """Show a playlist; it becomes active when one of its tracks is played."""
        self.playlist = playlist
        self.track_list.clear()
        for track in playlist:
            label = track.display_name()
            if track.duration_label:
                label = f"{label}  ({track.duration_label})"
            self.track_list.addItem(QListWidgetItem(label))
        logger.info("Loaded playlist %r with %d tracks", playlist.source_tag, len(playlist))

    def _on_item_activated(self, item: QListWidgetItem) -> None:
        index = self.track_list.row(item)
        if 0 <= index < len(self.playlist):
            self.controller.request_play(self.playlist[index], index, self.playlist)

    def _step_volume(self, delta: int) -> None:
        self.controller.set_volume(self.session.volume + delta)

    def _download_current(self) -> None:
        track = self.session.current_track
        if track is None:
            return
        if not isinstance(self.resolver, DownloadResolverProtocol):
            self._on_status_message(message="Downloads are not available", color=StatusColors.ERROR)
            return
        task = asyncio.ensure_future(self._download(track.reference))
        self._download_tasks.add(task)
        task.add_done_callback(self._on_download_done)

    async def _download(self, reference: str) -> None:
        try:
            link = await self.resolver.request_download(reference)
        except ResolutionFailure as e:
            self._on_status_message(message=str(e), color=StatusColors.ERROR)
            return
        QDesktopServices.openUrl(QUrl(link.url))
        self._on_status_message(
            message=f"Downloading {link.filename or reference}", color=StatusColors.SUCCESS
        )

    def _on_download_done(self, task: asyncio.Future[None]) -> None:
        self._download_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Download request failed", exc_info=error)
            self._on_status_message(message=f"Download error: {error}", color=StatusColors.ERROR)

    async def aclose(self) -> None:
        """Release the resolver's connections; run once the window has closed."""
        for task in list(self._download_tasks):
            task.cancel()
        if isinstance(self.resolver, HttpTrackResolver):
            await self.resolver.aclose()

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _refresh(self, **_: Any) -> None:
        self.controls.show_snapshot(self.session.snapshot())

    def _on_track_changed(self, track: Any, index: int) -> None:
        if self.session.playlist == self.playlist and 0 <= index < self.track_list.count():
            self.track_list.setCurrentRow(index)

    def _on_position_update(self, current: float, total: float) -> None:
        self.controls.set_position(current, total)

    def _on_preload_ready(self, reference: str) -> None:
        self.statusBar().showMessage("Next track ready", STATUS_TIMEOUT_MS)

    def _on_status_message(self, message: str, color: str | None = None) -> None:
        if color:
            self.statusBar().setStyleSheet(f"color: {color};")
        else:
            self.statusBar().setStyleSheet("")
        self.statusBar().showMessage(message, STATUS_TIMEOUT_MS)

    def closeEvent(self, event: Any) -> None:  # noqa: N802
        """Stop playback and release resources."""
        self.controller.shutdown()
        self.player.unload()
        super().closeEvent(event)
