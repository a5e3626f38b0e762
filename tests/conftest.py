"""Pytest configuration and fixtures."""

import os
import random
import sys

import pytest

# Run Qt headless when no display is available
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


def pytest_configure(config):
    """Mock VLC module before any test imports tunestream's audio player."""
    if "vlc" not in sys.modules:
        from tests.mocks.mock_vlc import mock_vlc_module

        sys.modules["vlc"] = mock_vlc_module()


@pytest.fixture(scope="session")
def qapp():
    """Create QApplication instance for tests."""
    from PySide6.QtWidgets import QApplication

    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    yield app


@pytest.fixture
def test_config():
    """Provide test configuration."""
    from tunestream.core.config import LoggingConfig, PlaybackConfig, TunestreamConfig, UIConfig

    return TunestreamConfig(
        playback=PlaybackConfig(preload_threshold=5.0, position_poll_interval_ms=50),
        ui=UIConfig(window_title="Test Tunestream", window_width=640, window_height=480),
        logging=LoggingConfig(level="DEBUG", file="test.log"),
    )


@pytest.fixture
def resolver():
    """Provide an auto-completing fake resolver."""
    from tests.mocks.fakes import FakeResolver

    return FakeResolver()


@pytest.fixture
def manual_resolver():
    """Provide a fake resolver whose calls the test settles by hand."""
    from tests.mocks.fakes import FakeResolver

    return FakeResolver(auto=False)


@pytest.fixture
def transport():
    """Provide an in-memory transport."""
    from tests.mocks.fakes import FakeTransport

    return FakeTransport()


@pytest.fixture
def event_bus():
    """Provide an event bus."""
    from tunestream.core.event_bus import EventBus

    return EventBus()


@pytest.fixture
def rng():
    """Provide a seeded random source."""
    return random.Random(1234)
