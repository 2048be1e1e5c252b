"""Logging setup for the bridge process.

Two audiences read the output. The operator watches stdout, where the
``[Component]`` prefix already names the source, so the console format is
short. The rotating log file keeps the full logger name and date for later
diagnosis.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Optional, Union

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(message)s"
CONSOLE_DATEFMT = "%H:%M:%S"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"

DEFAULT_MAX_BYTES = 500 * 1024
DEFAULT_BACKUP_COUNT = 2

# serial_asyncio and asyncio log every port hiccup at DEBUG/INFO
QUIET_LOGGERS = ("asyncio", "serial", "serial_asyncio")

_OWNED_ATTR = "_gps_bridge_handler"


def coerce_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        name = level.upper()
        if not isinstance(getattr(logging, name, None), int):
            raise ValueError(f"Unknown log level '{level}'")
        return getattr(logging, name)
    return int(level)


def operator_mirror_level(*, headless: bool) -> int:
    """Level at which operator log entries are copied into the Python log.

    With the interactive console the entries are already printed by the
    console itself, so they are mirrored at DEBUG to avoid doubled lines.
    Headless runs have no other operator view and mirror at INFO.
    """
    return logging.INFO if headless else logging.DEBUG


def _own(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _OWNED_ATTR, True)
    return handler


def _remove_owned_handlers(root: logging.Logger) -> None:
    for handler in list(root.handlers):
        if getattr(handler, _OWNED_ATTR, False):
            root.removeHandler(handler)
            with contextlib.suppress(Exception):
                handler.close()


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
    max_bytes: int = DEFAULT_MAX_BYTES,
    backup_count: int = DEFAULT_BACKUP_COUNT,
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Install the bridge's console and file handlers on the root logger.

    Calling it again replaces the handlers from the previous call and leaves
    handlers installed by anyone else alone.

    Args:
        level: Desired logging level (int or name such as "info").
        console: Whether to emit logs to stdout.
        log_file: Optional path for a rotating file handler.
        max_bytes: Max bytes before rotating the log file.
        backup_count: Number of rotated log files to keep.
        quiet_loggers: Third-party logger names raised to WARNING.
    """
    numeric_level = coerce_level(level)
    root = logging.getLogger()
    _remove_owned_handlers(root)

    if console:
        stream_handler = _own(logging.StreamHandler(sys.stdout))
        stream_handler.setLevel(numeric_level)
        stream_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, CONSOLE_DATEFMT))
        root.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = _own(
            RotatingFileHandler(
                log_path,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, FILE_DATEFMT))
        root.addHandler(file_handler)

    if not root.handlers:
        # No output requested; keep the last-resort stderr handler quiet.
        root.addHandler(_own(logging.NullHandler()))

    root.setLevel(numeric_level)

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(max(logging.WARNING, numeric_level))


__all__ = [
    "CONSOLE_FORMAT",
    "FILE_FORMAT",
    "QUIET_LOGGERS",
    "coerce_level",
    "configure_logging",
    "operator_mirror_level",
]
