"""Tests for keyboard shortcut management."""

import pytest
from PySide6.QtWidgets import QWidget

from tunestream.core.config import ShortcutsConfig
from tunestream.core.shortcut_manager import ShortcutManager


@pytest.fixture
def manager(qapp):  # type: ignore
    """Provide a shortcut manager on a throwaway widget."""
    widget = QWidget()
    yield ShortcutManager(widget)
    widget.deleteLater()


class TestShortcutManager:
    """Test ShortcutManager."""

    def test_register_and_activate(self, manager) -> None:  # type: ignore
        """Test a registered shortcut invokes its callback."""
        calls = []

        shortcut = manager.register("next_track", "Ctrl+Right", lambda: calls.append("next"))
        shortcut.activated.emit()

        assert manager.key_for("next_track") == "Ctrl+Right"
        assert calls == ["next"]

    def test_transitions_do_not_auto_repeat(self, manager) -> None:  # type: ignore
        """Test held transition keys fire once, volume keys repeat."""
        assert not manager.register("next_track", "Ctrl+Right", lambda: None).autoRepeat()
        assert not manager.register("mute", "M", lambda: None).autoRepeat()
        assert manager.register("volume_up", "Ctrl+Up", lambda: None).autoRepeat()

    def test_bind_from_config(self, manager) -> None:  # type: ignore
        """Test actions are bound to their configured keys."""
        manager.bind(
            ShortcutsConfig(toggle_shuffle="Ctrl+S"),
            {"toggle_shuffle": lambda: None, "play_pause": lambda: None},
        )

        assert manager.key_for("toggle_shuffle") == "Ctrl+S"
        assert manager.key_for("play_pause") == "Space"
        assert sorted(manager.actions()) == ["play_pause", "toggle_shuffle"]

    def test_bind_skips_unconfigured_action(self, manager) -> None:  # type: ignore
        """Test an action without a configured key is left unbound."""
        manager.bind(ShortcutsConfig(), {"equalizer": lambda: None})
        assert manager.actions() == []

    def test_empty_sequence_rejected(self, manager) -> None:  # type: ignore
        """Test an empty key sequence is a configuration error."""
        with pytest.raises(ValueError):
            manager.register("quit", "", lambda: None)

    def test_rebinding_replaces(self, manager) -> None:  # type: ignore
        """Test registering an action twice keeps only the latest binding."""
        first = manager.register("play_pause", "Space", lambda: None)
        manager.register("play_pause", "Ctrl+P", lambda: None)

        assert manager.key_for("play_pause") == "Ctrl+P"
        assert not first.isEnabled()

    def test_unregister_and_clear(self, manager) -> None:  # type: ignore
        """Test removing shortcuts."""
        manager.register("toggle_shuffle", "Ctrl+H", lambda: None)
        manager.register("quit", "Ctrl+Q", lambda: None)

        assert manager.unregister("toggle_shuffle")
        assert not manager.unregister("toggle_shuffle")
        assert manager.key_for("toggle_shuffle") is None

        manager.clear()
        assert manager.actions() == []
