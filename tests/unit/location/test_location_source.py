"""Unit tests for the location source."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import serial

from gps_bridge.errors import LocationUnavailable
from gps_bridge.location import LocationRequest, LocationSource, SerialNMEATransport
from tests.infrastructure.mocks.bridge_mocks import (
    GGA_MUNICH,
    RMC_MUNICH,
    RMC_VOID,
    FakeClock,
    MockLineTransport,
    RecordingListener,
    wait_until,
)


OPEN = "gps_bridge.location.transports.serial_transport.serial_asyncio.open_serial_connection"


class CountingSerialTransport(SerialNMEATransport):
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reads = 0

    async def read_line(self, timeout: float = 1.0):
        self.reads += 1
        return await super().read_line(timeout)


def make_source(sentences=(), **transport_kwargs):
    transport = MockLineTransport(sentences, **transport_kwargs)
    listener = RecordingListener()
    clock = FakeClock()
    source = LocationSource(transport, listener=listener, clock=clock)
    return source, transport, listener, clock


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_start_delivers_first_fix(self):
        source, transport, listener, _ = make_source([GGA_MUNICH])

        assert await source.start_updates() is True
        await wait_until(lambda: listener.of("location"))

        sample = source.get_current_location()
        assert sample.latitude == pytest.approx(48.1173, rel=1e-4)
        assert sample.longitude == pytest.approx(11.5167, rel=1e-4)
        assert sample.accuracy_m == pytest.approx(4.5)
        assert source.is_requesting_updates
        await source.stop_updates()

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self):
        source, transport, _, _ = make_source()

        assert await source.start_updates()
        assert await source.start_updates()

        await source.stop_updates()
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self):
        source, transport, _, _ = make_source()
        await source.start_updates()

        await source.stop_updates()
        await source.stop_updates()

        assert not source.is_requesting_updates
        assert transport.disconnect_calls == 1

    @pytest.mark.asyncio
    async def test_stop_without_start(self):
        source, transport, _, _ = make_source()

        await source.stop_updates()

        assert transport.disconnect_calls == 0

    @pytest.mark.asyncio
    async def test_start_failure_is_reported(self):
        source, _, listener, _ = make_source(connect_ok=False)

        assert await source.start_updates() is False

        errors = listener.of("location_error")
        assert len(errors) == 1
        assert isinstance(errors[0][1], LocationUnavailable)
        assert str(errors[0][1]).startswith("Error starting location updates: Location permission denied")
        assert not source.is_requesting_updates

    @pytest.mark.asyncio
    async def test_receiver_eof_stops_updates(self):
        source, transport, listener, _ = make_source([GGA_MUNICH], eof_at_end=True)

        await source.start_updates()
        await wait_until(lambda: not source.is_requesting_updates)

        assert str(listener.of("location_error")[-1][1]) == "Location not available: Stream ended (EOF)"
        assert transport.disconnect_calls == 1
        assert source.get_current_location() is not None

    @pytest.mark.asyncio
    async def test_serial_read_error_stops_updates(self):
        reader = asyncio.StreamReader()
        reader.set_exception(serial.SerialException("device disconnected"))
        writer = MagicMock()
        writer.wait_closed = AsyncMock()
        transport = CountingSerialTransport("/dev/ttyUSB0")
        listener = RecordingListener()
        source = LocationSource(transport, listener=listener, clock=FakeClock())

        with patch(OPEN, AsyncMock(return_value=(reader, writer))):
            assert await source.start_updates() is True
        await wait_until(lambda: not source.is_requesting_updates)
        await asyncio.sleep(0.05)

        assert transport.reads == 1
        assert str(listener.of("location_error")[-1][1]) == "Location not available: device disconnected"
        writer.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_idle_receiver_does_not_spin(self):
        source, transport, _, _ = make_source()
        reads = 0

        async def instant_read(timeout=1.0):
            nonlocal reads
            reads += 1
            return None

        transport.read_line = instant_read
        await source.start_updates()
        await asyncio.sleep(0.1)
        await source.stop_updates()

        assert 0 < reads < 50


class TestCadence:

    @pytest.mark.asyncio
    async def test_updates_are_spaced_by_interval(self):
        source, transport, listener, clock = make_source([GGA_MUNICH])
        await source.start_updates()
        await wait_until(lambda: transport.drained)

        clock.advance(1.0)
        transport.push(RMC_MUNICH)
        await wait_until(lambda: transport.drained)
        assert len(listener.of("location")) == 1

        clock.advance(4.0)
        transport.push(GGA_MUNICH)
        await wait_until(lambda: transport.drained)
        assert len(listener.of("location")) == 2

        await source.stop_updates()

    @pytest.mark.asyncio
    async def test_fixes_without_position_are_not_delivered(self):
        source, transport, listener, _ = make_source([RMC_VOID])
        await source.start_updates()
        await wait_until(lambda: transport.drained)

        assert listener.of("location") == []
        assert source.get_current_location() is None
        await source.stop_updates()

    @pytest.mark.asyncio
    async def test_outage_reported_once(self):
        source, transport, listener, clock = make_source()
        await source.start_updates()

        clock.advance(10.0)
        await wait_until(lambda: listener.of("location_error"))
        clock.advance(30.0)
        await asyncio.sleep(0.05)

        errors = listener.of("location_error")
        assert len(errors) == 1
        assert str(errors[0][1]) == "Location not available"
        await source.stop_updates()

    @pytest.mark.asyncio
    async def test_outage_rearms_after_fix(self):
        source, transport, listener, clock = make_source()
        await source.start_updates()

        clock.advance(10.0)
        await wait_until(lambda: len(listener.of("location_error")) == 1)

        transport.push(GGA_MUNICH)
        await wait_until(lambda: transport.drained)
        clock.advance(10.0)
        await wait_until(lambda: len(listener.of("location_error")) == 2)

        await source.stop_updates()

    def test_default_request(self):
        request = LocationRequest()

        assert request.interval == 5.0
        assert request.fastest_interval == 2.0
        assert request.max_delay == 10.0


class TestSingleUpdate:

    @pytest.mark.asyncio
    async def test_without_fix(self):
        source, _, listener, _ = make_source()

        assert source.request_single_update() is False

        assert str(listener.of("location_error")[0][1]) == "Unable to get current location"

    @pytest.mark.asyncio
    async def test_respects_fastest_interval(self):
        source, transport, listener, clock = make_source([GGA_MUNICH])
        await source.start_updates()
        await wait_until(lambda: listener.of("location"))

        clock.advance(1.0)
        assert source.request_single_update() is True
        assert len(listener.of("location")) == 1

        clock.advance(1.0)
        assert source.request_single_update() is True
        assert len(listener.of("location")) == 2

        await source.stop_updates()
