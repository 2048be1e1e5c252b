"""Location source backed by an NMEA GPS receiver.

Receivers usually emit a burst of sentences every second. The source
parses all of them but hands a :class:`LocationSample` to its listener only
at the requested cadence, keeping exactly one sample as the current
location.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from ..core.asyncio_utils import cancel_and_wait, create_logged_task
from ..core.listeners import notify
from ..core.logging_utils import get_module_logger
from ..errors import LocationUnavailable
from .constants import (
    ERROR_BACKOFF,
    FASTEST_LOCATION_UPDATE_INTERVAL,
    LOCATION_UPDATE_INTERVAL,
    MAX_LOCATION_UPDATE_DELAY,
    READ_TIMEOUT,
    READ_YIELD,
)
from .parsers import NMEAParser
from .transports import BaseLineTransport
from .types import GPSFix, LocationSample

logger = get_module_logger("Location")


@dataclass(frozen=True, slots=True)
class LocationRequest:
    """Update cadence in seconds.

    ``interval`` spaces regular deliveries, ``fastest_interval`` bounds
    on-demand refreshes, and ``max_delay`` is how long updates may go
    missing before the location is reported unavailable.
    """

    interval: float = LOCATION_UPDATE_INTERVAL
    fastest_interval: float = FASTEST_LOCATION_UPDATE_INTERVAL
    max_delay: float = MAX_LOCATION_UPDATE_DELAY


class LocationListener(Protocol):
    def on_location_changed(self, sample: LocationSample) -> None:
        ...

    def on_location_error(self, error: LocationUnavailable) -> None:
        ...


class LocationSource:
    """Periodic location updates from a GPS receiver transport."""

    def __init__(
        self,
        transport: BaseLineTransport,
        *,
        request: LocationRequest = LocationRequest(),
        listener: Optional[LocationListener] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.transport = transport
        self.request = request
        self._listener = listener
        self._clock = clock

        self._parser = NMEAParser(on_fix_update=self._on_fix_update)
        self._current: Optional[LocationSample] = None
        self._running = False
        self._read_task: Optional[asyncio.Task] = None

        self._last_delivery: Optional[float] = None
        self._last_fix_seen = 0.0
        self._outage_reported = False

    def set_listener(self, listener: Optional[LocationListener]) -> None:
        self._listener = listener

    @property
    def is_requesting_updates(self) -> bool:
        return self._running

    @property
    def fix(self) -> GPSFix:
        return self._parser.fix

    def get_current_location(self) -> Optional[LocationSample]:
        return self._current

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start_updates(self) -> bool:
        """Open the receiver and begin delivering updates.

        Returns:
            True if updates are running (including when already started)
        """
        if self._running:
            return True

        try:
            opened = await self.transport.connect()
        except Exception as exc:
            logger.exception("Error starting location updates")
            self._report(LocationUnavailable(f"Error starting location updates: {exc}"))
            return False

        if not opened:
            detail = self.transport.last_error or "receiver unavailable"
            self._report(LocationUnavailable(f"Error starting location updates: {detail}"))
            return False

        self._running = True
        self._last_delivery = None
        self._last_fix_seen = self._clock()
        self._outage_reported = False
        self._read_task = create_logged_task(self._read_loop(), logger=logger, context="gps-reader")
        logger.info("Started location updates")
        return True

    async def stop_updates(self) -> None:
        """Stop delivering updates and close the receiver."""
        if not self._running and self._read_task is None:
            return
        self._running = False
        task, self._read_task = self._read_task, None
        await cancel_and_wait(task)
        await self.transport.disconnect()
        logger.info("Stopped location updates")

    def request_single_update(self) -> bool:
        """Deliver the receiver's current position now.

        A delivery newer than the fastest interval is considered current
        and is not repeated.
        """
        fix = self._parser.fix
        if not fix.has_position():
            self._report(LocationUnavailable("Unable to get current location"))
            return False

        now = self._clock()
        if self._last_delivery is None or now - self._last_delivery >= self.request.fastest_interval:
            self._deliver(fix.to_sample(), now)
        return True

    # ------------------------------------------------------------------
    # Read loop
    # ------------------------------------------------------------------

    async def _read_loop(self) -> None:
        logger.debug("GPS read loop started")
        while self._running:
            try:
                line = await self.transport.read_line(timeout=READ_TIMEOUT)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                logger.error("Error in GPS read loop: %s", exc)
                await asyncio.sleep(ERROR_BACKOFF)
                continue

            if line and line.startswith("$"):
                self._parser.parse_sentence(line)

            if not self.transport.is_connected:
                detail = self.transport.last_error or "receiver disconnected"
                self._report(LocationUnavailable(f"Location not available: {detail}"))
                self._running = False
                self._read_task = None
                await self.transport.disconnect()
                break

            self._check_availability()
            await asyncio.sleep(READ_YIELD)
        logger.debug("GPS read loop ended")

    def _on_fix_update(self, fix: GPSFix, update: Dict[str, Any]) -> None:
        if not fix.has_position():
            return
        now = self._clock()
        self._last_fix_seen = now
        self._outage_reported = False
        if self._last_delivery is None or now - self._last_delivery >= self.request.interval:
            self._deliver(fix.to_sample(), now)

    def _check_availability(self) -> None:
        if self._outage_reported:
            return
        if self._clock() - self._last_fix_seen >= self.request.max_delay:
            self._outage_reported = True
            self._report(LocationUnavailable())

    def _deliver(self, sample: LocationSample, now: float) -> None:
        self._current = sample
        self._last_delivery = now
        logger.debug("Location updated: %s, %s", sample.latitude, sample.longitude)
        notify(self._listener, "on_location_changed", sample, logger=logger)

    def _report(self, error: LocationUnavailable) -> None:
        logger.warning("%s", error)
        notify(self._listener, "on_location_error", error, logger=logger)


__all__ = ["LocationListener", "LocationRequest", "LocationSource"]
