"""Log file and console wiring for the replypilot CLI.

Handlers hang off the ``replypilot`` package logger rather than the root
logger, so library users keep control of their own logging. Records still
propagate to the root logger.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

__all__ = ["LOG_FILE_NAME", "PACKAGE_LOGGER", "default_log_dir", "setup_logging", "get_log_path"]

LOG_FILE_NAME = "replypilot.log"
PACKAGE_LOGGER = "replypilot"
_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_HTTP_LOGGERS = ("httpx", "httpcore", "openai")
_active_log_path: Path | None = None


def default_log_dir() -> Path:
    override = os.environ.get("REPLYPILOT_LOG_DIR")
    return Path(override).expanduser() if override else Path.home() / ".replypilot" / "logs"


def setup_logging(*, debug: bool = False, log_dir: Path | str | None = None, console: bool = True) -> Path:
    """Send package records to a rotating file and, optionally, to stderr.

    The file gets INFO and above, or everything with ``debug``. stderr only
    shows warnings unless ``debug`` is set, so command output on stdout stays
    clean. Calling this again replaces the previous handlers.
    """

    global _active_log_path
    directory = Path(log_dir).expanduser() if log_dir else default_log_dir()
    directory.mkdir(parents=True, exist_ok=True)
    log_path = directory / LOG_FILE_NAME
    level = logging.DEBUG if debug else logging.INFO
    formatter = logging.Formatter(_FORMAT)

    logger = logging.getLogger(PACKAGE_LOGGER)
    _drop_handlers(logger)
    file_handler = RotatingFileHandler(log_path, maxBytes=512_000, backupCount=2, encoding="utf-8")
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)
    if console:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.DEBUG if debug else logging.WARNING)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)
    logger.setLevel(level)

    # SDK and transport loggers stay at WARNING.
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _active_log_path = log_path
    return log_path


def get_log_path() -> Path | None:
    return _active_log_path


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
