"""Paired-device lookup, peer resolution and service lookup.

BlueZ keeps the bonded-device list, so no radio scan is needed: the list
comes from ``bluetoothctl`` and the peer is picked from it by name, falling
back to a configured hardware address. The RFCOMM channel then comes from
the peer's SPP service record.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..core.logging_utils import get_module_logger
from ..errors import ConnectionFailed, ConnectionFailureReason, DeviceNotFound, PermissionDenied
from .constants import BLUETOOTHCTL, MAC_ADDRESS_PATTERN, SDPTOOL, SPP_UUID

logger = get_module_logger("Bluetooth.Discovery")

_CHANNEL_PATTERN = re.compile(r"^\s*Channel:\s*(\d+)", re.MULTILINE)


@dataclass(frozen=True, slots=True)
class PairedDevice:
    """A bonded peer as reported by the host stack."""

    address: str
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.address

    def __str__(self) -> str:
        return f"{self.name or 'Unknown'} ({self.address})"


def is_valid_address(address: Optional[str]) -> bool:
    return bool(address) and MAC_ADDRESS_PATTERN.match(address) is not None


def parse_bluetoothctl_devices(output: str) -> list[PairedDevice]:
    """Parse ``Device <MAC> <name>`` lines from bluetoothctl output."""
    devices: list[PairedDevice] = []
    for line in output.splitlines():
        parts = line.strip().split(" ", 2)
        if len(parts) < 2 or parts[0] != "Device":
            continue
        address = parts[1].upper()
        if not is_valid_address(address):
            continue
        name = parts[2].strip() if len(parts) > 2 else ""
        # bluetoothctl prints the dashed address as the name of unnamed devices
        if not name or name.replace("-", ":").upper() == address:
            name = None
        devices.append(PairedDevice(address=address, name=name))
    return devices


def matches_device_name(name: Optional[str], candidates: Iterable[str]) -> bool:
    if not name:
        return False
    upper = name.upper()
    return any(candidate and candidate.upper() in upper for candidate in candidates)


def resolve_target(
    paired: Sequence[PairedDevice],
    device_names: Sequence[str],
    fallback_address: Optional[str],
) -> PairedDevice:
    """Pick the peer to connect to.

    The first paired device whose name contains one of ``device_names``
    (case-insensitive), or whose address is the fallback address, wins.
    Otherwise the fallback address is used on its own.

    Raises:
        DeviceNotFound: no paired match and no usable fallback address
    """
    fallback = fallback_address.upper() if fallback_address else None

    for device in paired:
        if matches_device_name(device.name, device_names) or device.address == fallback:
            logger.debug("Found paired device: %s", device)
            return device

    if fallback is None:
        raise DeviceNotFound()
    if not is_valid_address(fallback):
        raise DeviceNotFound(f"Invalid MAC address: {fallback_address}")

    logger.debug("Using configured fallback address: %s", fallback)
    return PairedDevice(address=fallback)


def parse_sdp_channel(output: str) -> Optional[int]:
    """Return the RFCOMM channel from the first service record in ``output``."""
    match = _CHANNEL_PATTERN.search(output)
    return int(match.group(1)) if match else None


class BlueZDirectory:
    """Queries the BlueZ host stack: adapter state, bonded devices, SDP records.

    ``bluetoothctl`` answers the first two; ``sdptool`` asks the peer for its
    service record.
    """

    def __init__(
        self,
        executable: str = BLUETOOTHCTL,
        timeout: float = 5.0,
        *,
        sdptool: str = SDPTOOL,
        sdp_timeout: float = 10.0,
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.sdptool = sdptool
        self.sdp_timeout = sdp_timeout

    async def _run(self, *args: str, executable: Optional[str] = None, timeout: Optional[float] = None) -> tuple[int, str]:
        program = executable or self.executable
        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except PermissionError as exc:
            raise PermissionDenied() from exc

        try:
            stdout, _ = await asyncio.wait_for(process.communicate(), timeout=timeout or self.timeout)
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            logger.warning("%s %s timed out", program, " ".join(args))
            return -1, ""
        return process.returncode, stdout.decode("utf-8", errors="replace")

    async def list_paired(self) -> list[PairedDevice]:
        """Return bonded devices; empty when bluetoothctl is not installed.

        Raises:
            PermissionDenied: the host refused to run bluetoothctl
        """
        try:
            code, output = await self._run("devices", "Paired")
            if code != 0 or "Invalid command" in output:
                # BlueZ before 5.65 only knows the older spelling
                code, output = await self._run("paired-devices")
        except FileNotFoundError:
            logger.warning("%s not found; paired-device lookup disabled", self.executable)
            return []

        devices = parse_bluetoothctl_devices(output)
        logger.debug("Paired devices: %s", ", ".join(str(d) for d in devices) or "none")
        return devices

    async def adapter_powered(self) -> Optional[bool]:
        """Return the adapter power state, or None when it cannot be read."""
        try:
            code, output = await self._run("show")
        except FileNotFoundError:
            return None
        if code != 0:
            return None
        for line in output.splitlines():
            key, _, value = line.strip().partition(":")
            if key == "Powered":
                return value.strip().lower() == "yes"
        return None

    async def find_service_channel(self, address: str, uuid: str = SPP_UUID) -> Optional[int]:
        """Look up the RFCOMM channel of service ``uuid`` on ``address``.

        Returns:
            The advertised channel, or None when sdptool is not installed

        Raises:
            ConnectionFailed: SERVICE_DISCOVERY when the peer does not answer
                or has no record for ``uuid``
            PermissionDenied: the host refused to run sdptool
        """
        try:
            code, output = await self._run(
                "search", "--bdaddr", address, uuid,
                executable=self.sdptool,
                timeout=self.sdp_timeout,
            )
        except FileNotFoundError:
            logger.warning("%s not found; using the configured RFCOMM channel", self.sdptool)
            return None

        if code != 0 or "Failed to connect to SDP server" in output:
            detail = output.strip().splitlines()[-1] if output.strip() else "no answer"
            raise ConnectionFailed(
                ConnectionFailureReason.SERVICE_DISCOVERY,
                f"Service discovery failed: {detail}",
            )

        channel = parse_sdp_channel(output)
        if channel is None:
            raise ConnectionFailed(
                ConnectionFailureReason.SERVICE_DISCOVERY,
                f"Service discovery failed: no {uuid} record on {address}",
            )
        logger.debug("SDP: %s serves %s on channel %d", address, uuid, channel)
        return channel


__all__ = [
    "BlueZDirectory",
    "PairedDevice",
    "is_valid_address",
    "matches_device_name",
    "parse_bluetoothctl_devices",
    "parse_sdp_channel",
    "resolve_target",
]
