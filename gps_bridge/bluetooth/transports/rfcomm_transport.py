"""
RFCOMM Transport

Bluetooth Classic RFCOMM socket transport for SPP peripherals such as the
HC-05/HC-06. Uses a non-blocking BlueZ socket driven by the event loop, so
cancelling a pending read is immediate and closing the socket never leaves
a worker thread blocked in ``recv``.
"""

import asyncio
import contextlib
import errno
import socket
from typing import Callable, Optional
import logging

from .base_transport import BaseTransport
from ..constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_RFCOMM_CHANNEL
from ...errors import AdapterUnavailable

logger = logging.getLogger(__name__)

# AF_BLUETOOTH only exists on Linux builds of CPython with BlueZ headers.
BLUETOOTH_AVAILABLE = hasattr(socket, "AF_BLUETOOTH") and hasattr(socket, "BTPROTO_RFCOMM")

SocketFactory = Callable[[], socket.socket]


def _default_socket_factory() -> socket.socket:
    return socket.socket(socket.AF_BLUETOOTH, socket.SOCK_STREAM, socket.BTPROTO_RFCOMM)


class RfcommTransport(BaseTransport):
    """
    RFCOMM transport for serial Bluetooth peripherals.

    Example:
        transport = RfcommTransport("98:D3:31:FB:48:F6")
        async with transport:
            await transport.write(b"37.0,-122.0")
            reply = await transport.read(1024)
    """

    def __init__(
        self,
        address: str,
        channel: int = DEFAULT_RFCOMM_CHANNEL,
        connect_timeout: Optional[float] = DEFAULT_CONNECT_TIMEOUT,
        socket_factory: Optional[SocketFactory] = None,
    ):
        """
        Initialize the RFCOMM transport.

        Args:
            address: Peer hardware address (e.g., '98:D3:31:FB:48:F6')
            channel: RFCOMM channel of the SPP service
            connect_timeout: Seconds to wait for connect, or None for no limit
            socket_factory: Override for creating the socket (tests)
        """
        super().__init__()
        self.address = address
        self.channel = channel
        self.connect_timeout = connect_timeout
        self._socket_factory = socket_factory
        self._sock: Optional[socket.socket] = None

    @property
    def is_connected(self) -> bool:
        """Check if the socket is open and connected."""
        return self._connected and self._sock is not None

    async def connect(self) -> None:
        """
        Open the RFCOMM connection.

        Raises:
            AdapterUnavailable: The platform has no Bluetooth socket support
            OSError: Socket-level failure (refused, host down, timeout, ...)
        """
        if self.is_connected:
            logger.debug("Already connected to %s", self.address)
            return

        if self._socket_factory is None and not BLUETOOTH_AVAILABLE:
            raise AdapterUnavailable("Bluetooth not supported on this device")

        factory = self._socket_factory or _default_socket_factory
        sock = factory()
        sock.setblocking(False)
        loop = asyncio.get_running_loop()

        try:
            connect = loop.sock_connect(sock, (self.address, self.channel))
            if self.connect_timeout:
                await asyncio.wait_for(connect, timeout=self.connect_timeout)
            else:
                await connect
        except asyncio.TimeoutError:
            self._close_socket(sock)
            raise TimeoutError(errno.ETIMEDOUT, "Connection timed out") from None
        except BaseException:
            self._close_socket(sock)
            raise

        self._sock = sock
        self._connected = True
        logger.info("Connected to %s on RFCOMM channel %d", self.address, self.channel)

    async def disconnect(self) -> None:
        """Close the RFCOMM connection, ignoring close errors."""
        sock = self._sock
        self._sock = None
        self._connected = False
        if sock is None:
            return
        self._close_socket(sock)
        logger.info("Disconnected from %s", self.address)

    async def write(self, data: bytes) -> None:
        """
        Write all of ``data`` to the peer.

        Sockets have no user-space buffer to flush; ``sock_sendall`` returns
        once the kernel has accepted every byte.
        """
        sock = self._require_socket()
        await asyncio.get_running_loop().sock_sendall(sock, data)
        logger.debug("Wrote to %s: %r", self.address, data)

    async def read(self, size: int) -> bytes:
        """Read up to ``size`` bytes; empty bytes means end of stream."""
        sock = self._require_socket()
        return await asyncio.get_running_loop().sock_recv(sock, size)

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise ConnectionError(errno.ENOTCONN, f"Not connected to {self.address}")
        return self._sock

    @staticmethod
    def _close_socket(sock: socket.socket) -> None:
        # shutdown() wakes any reader still waiting on the descriptor
        with contextlib.suppress(OSError):
            sock.shutdown(socket.SHUT_RDWR)
        with contextlib.suppress(OSError):
            sock.close()
