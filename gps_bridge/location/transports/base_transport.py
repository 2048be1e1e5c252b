"""Base class for line-oriented GPS receiver transports."""

from abc import ABC, abstractmethod
from typing import Optional


class BaseLineTransport(ABC):
    """Read-only transport that yields one NMEA sentence per read.

    ``connect`` reports failure by returning False and recording
    ``last_error`` rather than raising.
    """

    def __init__(self):
        self._connected = False
        self._last_error: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def last_error(self) -> Optional[str]:
        return self._last_error

    @abstractmethod
    async def connect(self) -> bool:
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        ...

    @abstractmethod
    async def read_line(self, timeout: float = 1.0) -> Optional[str]:
        """Return the next line without its terminator, or None on timeout."""
        ...

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
        return False
