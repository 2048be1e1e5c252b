"""
Base Transport

Abstract base class for the byte-stream link to a serial Bluetooth peer.
"""

from abc import ABC, abstractmethod


class BaseTransport(ABC):
    """
    Abstract base class for peer transports.

    Unlike the line-oriented GPS transports, this link carries raw text with
    no framing, so reads return whatever bytes arrived. ``connect``,
    ``write`` and ``read`` raise ``OSError`` on failure; the session manager
    turns those into error events.
    """

    def __init__(self):
        self._connected = False

    @property
    def is_connected(self) -> bool:
        """Check if the transport is connected."""
        return self._connected

    @abstractmethod
    async def connect(self) -> None:
        """Open the link to the peer."""
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the link. Must be safe to call more than once."""
        ...

    @abstractmethod
    async def write(self, data: bytes) -> None:
        """Write all of ``data`` to the peer."""
        ...

    @abstractmethod
    async def read(self, size: int) -> bytes:
        """
        Read up to ``size`` bytes.

        Returns:
            The bytes read; an empty result means the peer closed the stream
        """
        ...

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()
        return False
