"""In-memory operator log with text export."""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import aiofiles

from ..core.logging_utils import get_module_logger

logger = get_module_logger("OperatorLog")

TIME_FORMAT = "%H:%M:%S"


@dataclass(frozen=True, slots=True)
class LogEntry:
    message: str
    timestamp: dt.datetime = field(default_factory=dt.datetime.now)

    @property
    def line(self) -> str:
        return f"[{self.timestamp.strftime(TIME_FORMAT)}] {self.message}"

    def __str__(self) -> str:
        return self.line


class OperatorLog:
    """Timestamped messages shown to the operator.

    Each entry can also be mirrored to the Python logger at ``mirror_level``
    so the operator view and the log file tell the same story.
    """

    def __init__(
        self,
        *,
        mirror_level: Optional[int] = logging.INFO,
        on_entry: Optional[Callable[[LogEntry], None]] = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self._entries: List[LogEntry] = []
        self._mirror_level = mirror_level
        self._on_entry = on_entry
        self._clock = clock

    def set_entry_callback(self, callback: Optional[Callable[[LogEntry], None]]) -> None:
        self._on_entry = callback

    def add(self, message: str) -> LogEntry:
        entry = LogEntry(message, self._clock())
        self._entries.append(entry)
        if self._mirror_level is not None:
            logger.log(self._mirror_level, "%s", message)
        if self._on_entry is not None:
            try:
                self._on_entry(entry)
            except Exception:
                logger.exception("Log entry callback failed")
        return entry

    @property
    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    @property
    def line_count(self) -> int:
        return len(self._entries)

    def lines(self) -> List[str]:
        return [entry.line for entry in self._entries]

    def clear(self) -> None:
        self._entries.clear()
        self.add("Logs cleared")

    async def export(self, path: Path) -> int:
        """Write every line to ``path``; returns the number of lines written."""
        lines = self.lines()
        path = Path(path)
        if path.parent and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write("".join(f"{line}\n" for line in lines))
        logger.info("Exported %d log lines to %s", len(lines), path)
        return len(lines)


__all__ = ["LogEntry", "OperatorLog", "TIME_FORMAT"]
