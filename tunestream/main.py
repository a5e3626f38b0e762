"""Main entry point for Tunestream application."""

import argparse
import asyncio
import sys
from pathlib import Path

import qasync
from PySide6.QtWidgets import QApplication

from tunestream.core.config import load_config
from tunestream.ui.main_window import MainWindow
from tunestream.utils.logger import setup_logging
from tunestream.utils.playlist_loader import load_playlist


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Streaming playlist player")
    parser.add_argument("playlist", nargs="?", type=Path, help="Playlist YAML file")
    parser.add_argument("--config", type=Path, default=None, help="Config YAML file")
    return parser.parse_args(argv)


def main() -> None:
    """Application entry point."""
    args = parse_args()
    try:
        # Load configuration
        config = load_config(args.config)

        # Setup logging
        setup_logging(config.logging)

        # Create Qt application with an asyncio-compatible event loop
        app = QApplication(sys.argv)
        app.setApplicationName(config.ui.window_title)
        loop = qasync.QEventLoop(app)
        asyncio.set_event_loop(loop)

        window = MainWindow(config)
        if args.playlist is not None:
            window.load_playlist(load_playlist(args.playlist))
        window.show()

        # Run event loop
        with loop:
            loop.run_forever()
            loop.run_until_complete(window.aclose())

    except FileNotFoundError as e:
        print(f"Error: {e}")
        print("Please ensure config/config.yaml exists.")
        sys.exit(1)
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
