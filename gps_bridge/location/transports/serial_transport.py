"""Serial UART transport for NMEA GPS receivers.

Uses serial_asyncio so sentences are read without blocking the event loop
that also drives the Bluetooth session.
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Optional
import logging

import serial
import serial_asyncio

from .base_transport import BaseLineTransport
from ..constants import DEFAULT_BAUD_RATE, DEFAULT_GPS_PORT

logger = logging.getLogger(__name__)


class SerialNMEATransport(BaseLineTransport):
    """Serial transport for GPS receivers.

    Example:
        transport = SerialNMEATransport("/dev/serial0", 9600)
        async with transport:
            line = await transport.read_line()
    """

    def __init__(self, port: str = DEFAULT_GPS_PORT, baudrate: int = DEFAULT_BAUD_RATE):
        """Initialize the serial transport.

        Args:
            port: Serial port path (e.g., '/dev/serial0' or '/dev/ttyACM0')
            baudrate: Serial baudrate (9600 for most receivers)
        """
        super().__init__()
        self.port = port
        self.baudrate = baudrate

        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None

    @property
    def is_connected(self) -> bool:
        return self._connected and self._reader is not None

    async def connect(self) -> bool:
        """Open the serial port.

        Returns:
            True if the port was opened
        """
        if self.is_connected:
            logger.debug("Already connected to %s", self.port)
            return True

        try:
            self._reader, self._writer = await serial_asyncio.open_serial_connection(
                url=self.port,
                baudrate=self.baudrate,
            )
        except asyncio.CancelledError:
            raise
        except PermissionError as exc:
            self._last_error = f"Location permission denied: {exc}"
            logger.warning("Permission denied opening %s: %s", self.port, exc)
            self._connected = False
            return False
        except (serial.SerialException, OSError, ValueError) as exc:
            self._last_error = str(exc)
            logger.warning(
                "Failed to open GPS receiver on %s at %d baud: %s",
                self.port, self.baudrate, exc,
            )
            self._connected = False
            return False

        self._connected = True
        self._last_error = None
        logger.info("Connected to GPS on %s at %d baud", self.port, self.baudrate)
        return True

    async def disconnect(self) -> None:
        """Close the serial port."""
        writer = self._writer
        self._writer = None
        self._reader = None
        self._connected = False
        if writer is None:
            return

        with contextlib.suppress(Exception):
            writer.close()
        try:
            await asyncio.wait_for(writer.wait_closed(), timeout=1.0)
        except asyncio.TimeoutError:
            logger.debug("Timeout waiting for serial close on %s", self.port)
        except Exception as exc:
            logger.debug("Error closing serial on %s: %s", self.port, exc)

        logger.info("Disconnected from GPS on %s", self.port)

    async def read_line(self, timeout: float = 1.0) -> Optional[str]:
        """Read one sentence.

        Returns:
            The decoded, stripped line, or None on timeout, error or EOF.
            A read error or EOF also marks the transport disconnected.
        """
        if not self.is_connected or self._reader is None:
            return None

        try:
            line = await asyncio.wait_for(self._reader.readline(), timeout=timeout)
        except asyncio.TimeoutError:
            return None
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._last_error = str(exc) or type(exc).__name__
            logger.warning("Read error on %s: %s", self.port, exc)
            self._connected = False
            return None

        if not line:
            logger.warning("Serial stream ended on %s (EOF)", self.port)
            self._last_error = "Stream ended (EOF)"
            self._connected = False
            return None

        decoded = line.decode("ascii", errors="ignore").strip()
        return decoded or None
