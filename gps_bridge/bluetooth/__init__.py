"""Bluetooth Serial Port Profile session management."""

from .constants import (
    DEFAULT_DEVICE_NAMES,
    DEFAULT_FALLBACK_ADDRESS,
    DEFAULT_RFCOMM_CHANNEL,
    SPP_UUID,
)
from .discovery import BlueZDirectory, PairedDevice, resolve_target
from .session import BluetoothSession, BluetoothSessionListener, SessionState
from .session_manager import BluetoothSessionManager, classify_connect_error
from .transports import BaseTransport, RfcommTransport

__all__ = [
    "DEFAULT_DEVICE_NAMES",
    "DEFAULT_FALLBACK_ADDRESS",
    "DEFAULT_RFCOMM_CHANNEL",
    "SPP_UUID",
    "BaseTransport",
    "BluetoothSession",
    "BluetoothSessionListener",
    "BluetoothSessionManager",
    "BlueZDirectory",
    "PairedDevice",
    "RfcommTransport",
    "SessionState",
    "classify_connect_error",
    "resolve_target",
]
