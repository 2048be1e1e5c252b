"""Session state for the single Bluetooth link."""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass, field
from typing import Optional, Protocol

from ..errors import BridgeError
from .discovery import PairedDevice
from .transports import BaseTransport


class SessionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(slots=True)
class BluetoothSession:
    """An open link: created on connect, discarded on teardown."""

    transport: BaseTransport
    peer: PairedDevice
    reader_task: Optional[asyncio.Task] = field(default=None, repr=False)

    @property
    def display_name(self) -> str:
        return self.peer.display_name


class BluetoothSessionListener(Protocol):
    """Receives session events on the event loop thread."""

    def on_connection_state_changed(self, connected: bool, device_name: Optional[str] = None) -> None:
        ...

    def on_data_sent(self, data: str) -> None:
        ...

    def on_data_received(self, data: str) -> None:
        ...

    def on_error(self, error: BridgeError) -> None:
        ...


__all__ = ["BluetoothSession", "BluetoothSessionListener", "SessionState"]
