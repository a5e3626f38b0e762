"""Logging utilities."""

import logging
from pathlib import Path

from tunestream.core.config import LoggingConfig

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _build_handlers(log_file: str | None) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))
    return handlers


def setup_logging(config: LoggingConfig) -> None:
    """Setup application logging.

    Console output always; a log file only when ``config.file`` is set.
    Loggers named in ``config.quiet_loggers`` only report warnings, so
    per-request client chatter stays out of the log.

    Args:
        config: Logging configuration
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=_build_handlers(config.file))

    for name in config.quiet_loggers:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
