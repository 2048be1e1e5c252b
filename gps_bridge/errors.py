"""Error taxonomy for the bridge.

These exceptions are raised inside the Bluetooth and location layers and
caught at their public boundary, where they are handed to listeners as
error events. None of them is allowed to escape to the operator.
"""

from __future__ import annotations

import enum
from typing import Optional


class BridgeError(Exception):
    """Base class for every bridge failure; ``str(err)`` is operator-facing."""

    default_message = "Bridge error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class AdapterUnavailable(BridgeError):
    default_message = "Bluetooth is not enabled"


class PermissionDenied(BridgeError):
    default_message = "Bluetooth permission denied. Please grant Bluetooth permissions."


class DeviceNotFound(BridgeError):
    default_message = "HC-06 device not found. Please ensure it's paired and nearby."


class ConnectionFailureReason(enum.Enum):
    SERVICE_DISCOVERY = "service_discovery"
    PEER_BUSY = "peer_busy"
    REFUSED = "refused"
    TIMEOUT = "timeout"
    OTHER = "other"


_REASON_MESSAGES = {
    ConnectionFailureReason.SERVICE_DISCOVERY:
        "Device not found or not responding. Check if HC-06 is powered on and nearby.",
    ConnectionFailureReason.PEER_BUSY:
        "Connection failed. Device may be connected to another device.",
    ConnectionFailureReason.REFUSED:
        "Connection refused. Check if the device is in pairing mode.",
    ConnectionFailureReason.TIMEOUT:
        "Connection timed out. Check if HC-06 is powered on and nearby.",
}


class ConnectionFailed(BridgeError):
    """Socket-level connect failure, classified by likely cause."""

    def __init__(
        self,
        reason: ConnectionFailureReason = ConnectionFailureReason.OTHER,
        detail: Optional[str] = None,
    ) -> None:
        self.reason = reason
        self.detail = detail
        message = _REASON_MESSAGES.get(reason) or f"Connection failed: {detail or 'unknown error'}"
        super().__init__(message)


class NotConnected(BridgeError):
    default_message = "Not connected to HC-06"


class ConnectionLost(BridgeError):
    default_message = "Connection lost"


class SendFailed(BridgeError):
    default_message = "Error sending data"


class LocationUnavailable(BridgeError):
    default_message = "Location not available"


__all__ = [
    "AdapterUnavailable",
    "BridgeError",
    "ConnectionFailed",
    "ConnectionFailureReason",
    "ConnectionLost",
    "DeviceNotFound",
    "LocationUnavailable",
    "NotConnected",
    "PermissionDenied",
    "SendFailed",
]
