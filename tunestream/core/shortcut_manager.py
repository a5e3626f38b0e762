"""Keyboard shortcuts bound from the shortcuts configuration."""

import logging
from collections.abc import Callable, Mapping

from PySide6.QtCore import QObject, Qt
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import QWidget

from tunestream.core.config import ShortcutsConfig

logger = logging.getLogger(__name__)

# Holding one of these keys must not fire a burst of transitions
NON_REPEATING_ACTIONS = frozenset(
    {"play_pause", "next_track", "previous_track", "toggle_shuffle", "mute"}
)


class ShortcutManager(QObject):
    """Window-wide shortcuts keyed by action name (e.g. ``"next_track"``)."""

    def __init__(self, parent: QWidget):
        """Initialize shortcut manager.

        Args:
            parent: Window the shortcuts are active in
        """
        super().__init__(parent)
        self._parent_widget = parent
        self._shortcuts: dict[str, QShortcut] = {}

    def bind(self, config: ShortcutsConfig, actions: Mapping[str, Callable[[], object]]) -> None:
        """Bind every action to the key sequence configured for it.

        Args:
            config: Key sequence per action name
            actions: Callback per action name
        """
        keys = config.model_dump()
        for action, callback in actions.items():
            key_sequence = keys.get(action)
            if not key_sequence:
                logger.warning("No shortcut configured for %s", action)
                continue
            self.register(action, key_sequence, callback)

    def register(
        self, action: str, key_sequence: str, callback: Callable[[], object]
    ) -> QShortcut:
        """Bind one action, replacing any previous binding for it.

        Raises:
            ValueError: If ``key_sequence`` is empty
        """
        sequence = QKeySequence(key_sequence)
        if sequence.isEmpty():
            raise ValueError(f"Invalid key sequence for {action}: {key_sequence!r}")

        self.unregister(action)
        for other, shortcut in self._shortcuts.items():
            if shortcut.key() == sequence:
                logger.warning(
                    "Shortcut %s for %s is also bound to %s", key_sequence, action, other
                )

        shortcut = QShortcut(sequence, self._parent_widget)
        shortcut.setContext(Qt.ShortcutContext.WindowShortcut)
        shortcut.setAutoRepeat(action not in NON_REPEATING_ACTIONS)
        shortcut.activated.connect(callback)
        self._shortcuts[action] = shortcut
        logger.debug("Bound %s to %s", action, key_sequence)
        return shortcut

    def unregister(self, action: str) -> bool:
        """Remove the binding for ``action``; False if it had none."""
        shortcut = self._shortcuts.pop(action, None)
        if shortcut is None:
            return False
        shortcut.setEnabled(False)
        shortcut.deleteLater()
        return True

    def key_for(self, action: str) -> str | None:
        """Return the bound key sequence in portable text form."""
        shortcut = self._shortcuts.get(action)
        return shortcut.key().toString() if shortcut is not None else None

    def actions(self) -> list[str]:
        return list(self._shortcuts)

    def clear(self) -> None:
        for action in list(self._shortcuts):
            self.unregister(action)
