"""Ties the Bluetooth session and the location source together.

The coordinator listens to both services, turns their events into operator
log lines, and owns the optional auto-send loop that pushes the current
location to the peripheral at a fixed interval.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from ..bluetooth import BluetoothSessionManager
from ..core.logging_utils import get_module_logger
from ..errors import BridgeError, LocationUnavailable
from ..location import LocationSample, LocationSource
from .operator_log import OperatorLog
from .repeating_task import RepeatingTask

logger = get_module_logger("Coordinator")

DEFAULT_SEND_INTERVAL_MS = 5000
TEST_MESSAGE = "Test message from GPS Bluetooth App"


def parse_interval_ms(text: Optional[str]) -> int:
    """Operator interval text (whole seconds) to milliseconds.

    Blank, unparseable and non-positive values give the 5 second default.

    >>> parse_interval_ms("3")
    3000
    >>> parse_interval_ms("")
    5000
    """
    if text is None:
        return DEFAULT_SEND_INTERVAL_MS
    try:
        seconds = int(str(text).strip())
    except ValueError:
        return DEFAULT_SEND_INTERVAL_MS
    if seconds <= 0:
        return DEFAULT_SEND_INTERVAL_MS
    return seconds * 1000


def encode_location(sample: LocationSample) -> str:
    return f"{sample.latitude!r},{sample.longitude!r}"


def describe_location(sample: LocationSample) -> str:
    text = f"Location: {sample.latitude}, {sample.longitude}"
    if sample.accuracy_m is not None:
        text += f" (±{int(sample.accuracy_m)}m)"
    return text


@dataclass(frozen=True, slots=True)
class BridgeStatus:
    bluetooth_connected: bool
    device_name: Optional[str]
    location_available: bool
    auto_send_enabled: bool
    auto_send_interval_ms: int

    @property
    def can_send_location(self) -> bool:
        return self.bluetooth_connected and self.location_available

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["can_send_location"] = self.can_send_location
        return data


class BridgeCoordinator:
    """Operator-facing controller for the GPS to Bluetooth bridge."""

    def __init__(
        self,
        bluetooth: BluetoothSessionManager,
        location: LocationSource,
        *,
        operator_log: Optional[OperatorLog] = None,
        auto_send_interval_ms: int = DEFAULT_SEND_INTERVAL_MS,
    ) -> None:
        self.bluetooth = bluetooth
        self.location = location
        self.log = operator_log or OperatorLog()
        self.auto_send_interval_ms = auto_send_interval_ms

        self._auto_send: Optional[RepeatingTask] = None
        bluetooth.set_listener(self)
        location.set_listener(self)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> bool:
        self.log.add("Starting location updates...")
        try:
            return await self.location.start_updates()
        except Exception as exc:
            logger.exception("Location start failed")
            self.log.add(f"Location start error: {exc}")
            return False

    async def shutdown(self) -> None:
        await self.disable_auto_send()
        try:
            await self.bluetooth.disconnect()
        except Exception as exc:
            logger.exception("Disconnect during shutdown failed")
            self.log.add(f"Disconnect error: {exc}")
        try:
            await self.location.stop_updates()
        except Exception as exc:
            logger.exception("Stopping location updates failed")
            self.log.add(f"Location stop error: {exc}")
        logger.info("Coordinator shut down")

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        self.log.add("Connecting to Bluetooth device...")
        try:
            return await self.bluetooth.connect()
        except Exception as exc:
            logger.exception("Connect failed")
            self.log.add(f"Connect error: {exc}")
            return False

    async def disconnect(self) -> None:
        self.log.add("Disconnecting Bluetooth...")
        try:
            await self.bluetooth.disconnect()
        except Exception as exc:
            logger.exception("Disconnect failed")
            self.log.add(f"Disconnect error: {exc}")

    async def send_current_location(self) -> bool:
        try:
            sample = self.location.get_current_location()
            if sample is None:
                self.log.add("Location not available")
                return False
            payload = encode_location(sample)
            if await self.bluetooth.send(payload):
                self.log.add(f"Sent: {payload}")
                return True
            self.log.add("Failed to send location data")
            return False
        except Exception as exc:
            logger.exception("Send location failed")
            self.log.add(f"Send location error: {exc}")
            return False

    async def send_test_message(self) -> bool:
        return await self.send_text(TEST_MESSAGE, label="Test message")

    async def send_text(self, text: str, *, label: Optional[str] = None) -> bool:
        try:
            if await self.bluetooth.send(text):
                self.log.add(f"Sent: {label or text}")
                return True
            self.log.add(f"Failed to send {label.lower() if label else 'data'}")
            return False
        except Exception as exc:
            logger.exception("Send failed")
            self.log.add(f"Send error: {exc}")
            return False

    def request_location_update(self) -> bool:
        try:
            return self.location.request_single_update()
        except Exception as exc:
            logger.exception("Location request failed")
            self.log.add(f"Location request error: {exc}")
            return False

    # ------------------------------------------------------------------
    # Auto-send
    # ------------------------------------------------------------------

    @property
    def auto_send_enabled(self) -> bool:
        return self._auto_send is not None and self._auto_send.is_running

    async def enable_auto_send(self, interval_text: Optional[str] = None) -> None:
        """Start sending the current location repeatedly; the first send is immediate."""
        if interval_text is not None:
            self.auto_send_interval_ms = parse_interval_ms(interval_text)
        await self.disable_auto_send(quiet=True)
        try:
            self._auto_send = RepeatingTask(
                self.send_current_location,
                self.auto_send_interval_ms / 1000,
                name="auto-send",
            )
            self._auto_send.start()
        except Exception as exc:
            logger.exception("Auto-send start failed")
            self.log.add(f"Auto-send start error: {exc}")
            return
        self.log.add(f"Auto-send started (every {self.auto_send_interval_ms // 1000} seconds)")

    async def disable_auto_send(self, *, quiet: bool = False) -> None:
        task, self._auto_send = self._auto_send, None
        if task is None:
            return
        try:
            await task.stop()
        except Exception as exc:
            logger.exception("Auto-send stop failed")
            self.log.add(f"Auto-send stop error: {exc}")
            return
        if not quiet:
            self.log.add("Auto-send stopped")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def status(self) -> BridgeStatus:
        return BridgeStatus(
            bluetooth_connected=self.bluetooth.is_connected,
            device_name=self.bluetooth.connected_device_name,
            location_available=self.location.get_current_location() is not None,
            auto_send_enabled=self.auto_send_enabled,
            auto_send_interval_ms=self.auto_send_interval_ms,
        )

    # ------------------------------------------------------------------
    # Bluetooth listener
    # ------------------------------------------------------------------

    def on_connection_state_changed(self, connected: bool, device_name: Optional[str] = None) -> None:
        if connected:
            self.log.add(f"Bluetooth device connected: {device_name or 'Unknown'}")
        else:
            self.log.add("Bluetooth device disconnected")

    def on_data_sent(self, data: str) -> None:
        logger.debug("Peer accepted %d characters", len(data))

    def on_data_received(self, data: str) -> None:
        self.log.add(f"Received: {data}")

    def on_error(self, error: BridgeError) -> None:
        self.log.add(f"Bluetooth Error: {error}")

    # ------------------------------------------------------------------
    # Location listener
    # ------------------------------------------------------------------

    def on_location_changed(self, sample: LocationSample) -> None:
        self.log.add(describe_location(sample))

    def on_location_error(self, error: LocationUnavailable) -> None:
        self.log.add(f"Location Error: {error}")


__all__ = [
    "BridgeCoordinator",
    "BridgeStatus",
    "DEFAULT_SEND_INTERVAL_MS",
    "TEST_MESSAGE",
    "describe_location",
    "encode_location",
    "parse_interval_ms",
]
