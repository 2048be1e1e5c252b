"""Observer helpers shared by the Bluetooth and location services."""

from __future__ import annotations

from typing import Any

from .logging_utils import LoggerLike, ensure_structured_logger


def notify(listener: Any, method: str, *args: Any, logger: LoggerLike = None) -> None:
    """Call ``listener.method(*args)`` if both exist; listener errors are logged.

    Services report to listeners from their read loops, so a faulty
    listener must not take the loop down with it.
    """
    if listener is None:
        return
    callback = getattr(listener, method, None)
    if callback is None:
        return
    try:
        callback(*args)
    except Exception:
        ensure_structured_logger(logger, fallback_name="listeners").exception(
            "Listener %s.%s failed", type(listener).__name__, method
        )


__all__ = ["notify"]
