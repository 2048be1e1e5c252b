"""Peer transport implementations."""

from .base_transport import BaseTransport
from .rfcomm_transport import BLUETOOTH_AVAILABLE, RfcommTransport

__all__ = ["BLUETOOTH_AVAILABLE", "BaseTransport", "RfcommTransport"]
