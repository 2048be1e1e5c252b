"""Bluetooth session manager.

Owns the one link to the serial peripheral: resolves the peer, connects,
runs the background reader, sends raw text, and reports everything that
happens to a single listener. Public operations never raise; failures are
delivered as ``on_error`` events carrying a :class:`BridgeError`.
"""

from __future__ import annotations

import asyncio
import errno
from typing import Callable, Optional, Sequence

from ..core.asyncio_utils import cancel_and_wait, create_logged_task
from ..core.listeners import notify
from ..core.logging_utils import get_module_logger
from ..errors import (
    AdapterUnavailable,
    BridgeError,
    ConnectionFailed,
    ConnectionFailureReason,
    ConnectionLost,
    NotConnected,
    PermissionDenied,
    SendFailed,
)
from .constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DEVICE_NAMES,
    DEFAULT_FALLBACK_ADDRESS,
    DEFAULT_RFCOMM_CHANNEL,
    READ_BUFFER_SIZE,
    SPP_UUID,
    TEXT_ENCODING,
)
from .discovery import BlueZDirectory, PairedDevice, resolve_target
from .session import BluetoothSession, BluetoothSessionListener, SessionState
from .transports import BLUETOOTH_AVAILABLE, BaseTransport, RfcommTransport

logger = get_module_logger("Bluetooth")

TransportFactory = Callable[[str, int], BaseTransport]

_SERVICE_DISCOVERY_ERRNOS = {errno.EHOSTDOWN, errno.EHOSTUNREACH, errno.ENETUNREACH, errno.ENOENT}
_PEER_BUSY_ERRNOS = {errno.EBUSY, errno.ECONNRESET, errno.EALREADY, errno.EISCONN, errno.EAGAIN}


def classify_connect_error(exc: OSError) -> ConnectionFailureReason:
    """Map a socket error from connect() to the likely cause."""
    if isinstance(exc, TimeoutError) or exc.errno == errno.ETIMEDOUT:
        return ConnectionFailureReason.TIMEOUT
    if isinstance(exc, ConnectionRefusedError) or exc.errno == errno.ECONNREFUSED:
        return ConnectionFailureReason.REFUSED
    if exc.errno in _SERVICE_DISCOVERY_ERRNOS:
        return ConnectionFailureReason.SERVICE_DISCOVERY
    if exc.errno in _PEER_BUSY_ERRNOS:
        return ConnectionFailureReason.PEER_BUSY

    text = str(exc).lower()
    if "service discovery failed" in text:
        return ConnectionFailureReason.SERVICE_DISCOVERY
    if "read failed" in text:
        return ConnectionFailureReason.PEER_BUSY
    if "connection refused" in text:
        return ConnectionFailureReason.REFUSED
    return ConnectionFailureReason.OTHER


class BluetoothSessionManager:
    """Single-peer RFCOMM session manager.

    Example:
        manager = BluetoothSessionManager(device_names=["HC-06"])
        manager.set_listener(coordinator)
        if await manager.connect():
            await manager.send("37.0,-122.0")
        await manager.disconnect()
    """

    def __init__(
        self,
        *,
        device_names: Sequence[str] = DEFAULT_DEVICE_NAMES,
        fallback_address: Optional[str] = DEFAULT_FALLBACK_ADDRESS,
        channel: int = DEFAULT_RFCOMM_CHANNEL,
        connect_timeout: Optional[float] = DEFAULT_CONNECT_TIMEOUT,
        service_lookup: bool = True,
        directory: Optional[BlueZDirectory] = None,
        transport_factory: Optional[TransportFactory] = None,
        listener: Optional[BluetoothSessionListener] = None,
    ) -> None:
        self.device_names = tuple(device_names)
        self.fallback_address = fallback_address
        self.channel = channel
        self.connect_timeout = connect_timeout
        self.service_lookup = service_lookup

        self._directory = directory or BlueZDirectory()
        self._transport_factory = transport_factory or self._default_transport
        self._listener = listener

        self._session: Optional[BluetoothSession] = None
        self._state = SessionState.DISCONNECTED

    def _default_transport(self, address: str, channel: int) -> BaseTransport:
        return RfcommTransport(address, channel, connect_timeout=self.connect_timeout)

    def set_listener(self, listener: Optional[BluetoothSessionListener]) -> None:
        self._listener = listener

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        session = self._session
        return (
            self._state is SessionState.CONNECTED
            and session is not None
            and session.transport.is_connected
        )

    @property
    def connected_device_name(self) -> Optional[str]:
        return self._session.display_name if self._session else None

    @staticmethod
    def is_bluetooth_available() -> bool:
        return BLUETOOTH_AVAILABLE

    async def list_paired_devices(self) -> list[PairedDevice]:
        try:
            return await self._directory.list_paired()
        except BridgeError as exc:
            logger.error("Cannot list paired devices: %s", exc)
        except Exception:
            logger.exception("Unexpected error listing paired devices")
        return []

    # ------------------------------------------------------------------
    # Connect / disconnect
    # ------------------------------------------------------------------

    async def connect(self) -> bool:
        """Resolve the peer and open a new session.

        Returns:
            True once connected; False after reporting the failure
        """
        try:
            await self._ensure_adapter_ready()
            target = resolve_target(
                await self._directory.list_paired(),
                self.device_names,
                self.fallback_address,
            )
        except BridgeError as exc:
            self._emit_error(exc)
            return False
        except Exception as exc:
            logger.exception("Unexpected error resolving peer")
            self._emit_error(BridgeError(f"Unexpected error: {exc}"))
            return False

        if self._session is not None:
            logger.info("Closing existing session with %s", self._session.display_name)
            await self.disconnect()

        logger.info("Attempting to connect to: %s", target)
        self._state = SessionState.CONNECTING

        try:
            channel = await self._resolve_channel(target.address)
        except ConnectionFailed as exc:
            logger.error("Service lookup on %s failed: %s", target.address, exc.detail)
            self._emit_error(exc)
            await self.disconnect()
            return False
        except BridgeError as exc:
            self._state = SessionState.DISCONNECTED
            self._emit_error(exc)
            return False
        except Exception as exc:
            logger.exception("Unexpected error during service lookup")
            self._emit_error(BridgeError(f"Unexpected error: {exc}"))
            await self.disconnect()
            return False

        transport = self._transport_factory(target.address, channel)

        try:
            await transport.connect()
        except PermissionError as exc:
            logger.error("Bluetooth permission denied: %s", exc)
            await self._discard_transport(transport)
            self._state = SessionState.DISCONNECTED
            self._emit_error(PermissionDenied())
            return False
        except BridgeError as exc:
            await self._discard_transport(transport)
            self._state = SessionState.DISCONNECTED
            self._emit_error(exc)
            return False
        except OSError as exc:
            logger.error("Connection to %s failed: %s", target.address, exc)
            await self._discard_transport(transport)
            self._emit_error(ConnectionFailed(classify_connect_error(exc), str(exc)))
            await self.disconnect()
            return False
        except Exception as exc:
            logger.exception("Unexpected error during connection")
            await self._discard_transport(transport)
            self._emit_error(BridgeError(f"Unexpected error: {exc}"))
            await self.disconnect()
            return False

        session = BluetoothSession(transport=transport, peer=target)
        self._session = session
        self._state = SessionState.CONNECTED
        session.reader_task = create_logged_task(
            self._read_loop(session),
            logger=logger,
            context=f"bt-reader:{target.address}",
        )

        logger.info("Successfully connected to: %s", session.display_name)
        self._notify("on_connection_state_changed", True, session.display_name)
        return True

    async def disconnect(self) -> None:
        """Tear down the session, if any, and report the disconnected state.

        Safe in every state; the state-changed event fires on every call.
        """
        session, self._session = self._session, None
        self._state = SessionState.DISCONNECTED

        if session is not None:
            try:
                await cancel_and_wait(session.reader_task)
                await session.transport.disconnect()
            except Exception as exc:
                logger.warning("Error closing connection: %s", exc)

        logger.debug("Disconnected from Bluetooth device")
        self._notify("on_connection_state_changed", False, None)

    async def _resolve_channel(self, address: str) -> int:
        """SPP channel from the peer's service record, else the configured one."""
        if not self.service_lookup:
            return self.channel
        channel = await self._directory.find_service_channel(address, SPP_UUID)
        if channel is None:
            return self.channel
        if channel != self.channel:
            logger.info("%s advertises SPP on channel %d", address, channel)
        return channel

    async def _ensure_adapter_ready(self) -> None:
        try:
            powered = await self._directory.adapter_powered()
        except BridgeError:
            raise
        except Exception as exc:
            logger.debug("Could not read adapter state: %s", exc)
            return
        if powered is False:
            raise AdapterUnavailable()

    @staticmethod
    async def _discard_transport(transport: BaseTransport) -> None:
        try:
            await transport.disconnect()
        except Exception as exc:
            logger.debug("Error closing failed transport: %s", exc)

    # ------------------------------------------------------------------
    # Send / receive
    # ------------------------------------------------------------------

    async def send(self, payload: str) -> bool:
        """Write ``payload`` as raw text; no terminator is appended."""
        session = self._session
        if session is None or self._state is not SessionState.CONNECTED:
            self._emit_error(NotConnected())
            return False

        try:
            await session.transport.write(payload.encode(TEXT_ENCODING))
        except Exception as exc:
            logger.error("Error sending data: %s", exc)
            self._emit_error(SendFailed(f"Error sending data: {exc}"))
            if self._session is session:
                await self.disconnect()
            return False

        logger.debug("Data sent: %s", payload)
        self._notify("on_data_sent", payload)
        return True

    async def _read_loop(self, session: BluetoothSession) -> None:
        """Forward incoming text until cancelled or the link fails."""
        logger.debug("Reader started for %s", session.display_name)
        lost: Optional[ConnectionLost] = None

        while self._session is session:
            try:
                chunk = await session.transport.read(READ_BUFFER_SIZE)
            except asyncio.CancelledError:
                logger.debug("Reader cancelled for %s", session.display_name)
                raise
            except Exception as exc:
                logger.error("Error reading data: %s", exc)
                lost = ConnectionLost(f"Connection lost: {exc}")
                break

            if not chunk:
                lost = ConnectionLost("Connection lost: stream closed by peer")
                break

            text = chunk.decode(TEXT_ENCODING, errors="replace").strip()
            if text:
                logger.debug("Data received: %s", text)
                self._notify("on_data_received", text)

        if lost is not None and self._session is session:
            self._emit_error(lost)
            await self.disconnect()

    # ------------------------------------------------------------------
    # Listener plumbing
    # ------------------------------------------------------------------

    def _emit_error(self, error: BridgeError) -> None:
        logger.warning("%s", error)
        self._notify("on_error", error)

    def _notify(self, method: str, *args) -> None:
        notify(self._listener, method, *args, logger=logger)


__all__ = ["BluetoothSessionManager", "classify_connect_error"]
