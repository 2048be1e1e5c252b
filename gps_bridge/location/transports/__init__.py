"""GPS receiver transports."""

from .base_transport import BaseLineTransport
from .serial_transport import SerialNMEATransport

__all__ = ["BaseLineTransport", "SerialNMEATransport"]
