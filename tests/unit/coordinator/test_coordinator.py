"""Unit tests for the bridge coordinator."""

import asyncio

import pytest

from gps_bridge.coordinator import (
    TEST_MESSAGE,
    BridgeStatus,
    encode_location,
    parse_interval_ms,
)
from gps_bridge.coordinator.coordinator import describe_location
from gps_bridge.errors import LocationUnavailable, NotConnected
from gps_bridge.location import LocationSample
from tests.infrastructure.mocks.bridge_mocks import GGA_MUNICH, build_test_bridge, wait_until


def messages(coordinator) -> list[str]:
    return [entry.message for entry in coordinator.log.entries]


class TestIntervalParsing:

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("3", 3000),
            ("", 5000),
            ("   ", 5000),
            (" 7 ", 7000),
            ("abc", 5000),
            ("2.5", 5000),
            ("0", 5000),
            ("-4", 5000),
            (None, 5000),
        ],
    )
    def test_parse_interval_ms(self, text, expected):
        assert parse_interval_ms(text) == expected


class TestLocationEncoding:

    def test_encode_location(self):
        assert encode_location(LocationSample(37.0, -122.0)) == "37.0,-122.0"

    def test_encode_keeps_full_precision(self):
        assert encode_location(LocationSample(37.774929, -122.419416)) == "37.774929,-122.419416"

    def test_describe_location(self):
        assert describe_location(LocationSample(37.0, -122.0, accuracy_m=4.7)) == "Location: 37.0, -122.0 (±4m)"
        assert describe_location(LocationSample(37.0, -122.0)) == "Location: 37.0, -122.0"


class TestSending:

    @pytest.mark.asyncio
    async def test_send_location_without_fix(self, hc06_device):
        coordinator, factory, _, _ = build_test_bridge([hc06_device])
        await coordinator.connect()

        assert await coordinator.send_current_location() is False

        assert "Location not available" in messages(coordinator)
        assert factory.last.written == []
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_send_location(self, hc06_device):
        coordinator, factory, _, _ = build_test_bridge([hc06_device], [GGA_MUNICH])
        await coordinator.start()
        await wait_until(lambda: coordinator.location.get_current_location() is not None)
        await coordinator.connect()

        assert await coordinator.send_current_location() is True

        payload = encode_location(coordinator.location.get_current_location())
        assert factory.last.written == [payload.encode()]
        assert f"Sent: {payload}" in messages(coordinator)
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_send_location_while_disconnected(self):
        coordinator, _, _, _ = build_test_bridge([], [GGA_MUNICH])
        await coordinator.start()
        await wait_until(lambda: coordinator.location.get_current_location() is not None)

        assert await coordinator.send_current_location() is False

        log = messages(coordinator)
        assert f"Bluetooth Error: {NotConnected()}" in log
        assert log[-1] == "Failed to send location data"
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_send_test_message(self, hc06_device):
        coordinator, factory, _, _ = build_test_bridge([hc06_device])
        await coordinator.connect()

        assert await coordinator.send_test_message() is True

        assert factory.last.written == [TEST_MESSAGE.encode()]
        assert messages(coordinator)[-1] == "Sent: Test message"
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_send_test_message_disconnected(self):
        coordinator, _, _, _ = build_test_bridge()

        assert await coordinator.send_test_message() is False

        assert messages(coordinator)[-1] == "Failed to send test message"

    @pytest.mark.asyncio
    async def test_unexpected_fault_is_logged(self, hc06_device):
        coordinator, _, _, _ = build_test_bridge([hc06_device])

        async def broken(payload):
            raise RuntimeError("boom")

        coordinator.bluetooth.send = broken

        assert await coordinator.send_text("hello") is False
        assert messages(coordinator)[-1] == "Send error: boom"


class TestAutoSend:

    @pytest.mark.asyncio
    async def test_first_send_is_immediate(self, hc06_device):
        coordinator, factory, _, _ = build_test_bridge([hc06_device], [GGA_MUNICH])
        await coordinator.start()
        await wait_until(lambda: coordinator.location.get_current_location() is not None)
        await coordinator.connect()

        await coordinator.enable_auto_send("3")
        await wait_until(lambda: factory.last.written)

        assert coordinator.auto_send_enabled
        assert coordinator.auto_send_interval_ms == 3000
        assert "Auto-send started (every 3 seconds)" in messages(coordinator)
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_blank_interval_uses_default(self):
        coordinator, _, _, _ = build_test_bridge()

        await coordinator.enable_auto_send("")

        assert coordinator.auto_send_interval_ms == 5000
        await coordinator.disable_auto_send()

    @pytest.mark.asyncio
    async def test_disable_stops_sending(self, hc06_device):
        coordinator, factory, _, _ = build_test_bridge([hc06_device], [GGA_MUNICH])
        await coordinator.start()
        await wait_until(lambda: coordinator.location.get_current_location() is not None)
        await coordinator.connect()
        await coordinator.enable_auto_send("1")
        await wait_until(lambda: factory.last.written)

        await coordinator.disable_auto_send()
        sent = len(factory.last.written)
        await asyncio.sleep(0.05)

        assert not coordinator.auto_send_enabled
        assert len(factory.last.written) == sent
        assert messages(coordinator)[-1] == "Auto-send stopped"
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_reenable_replaces_task(self):
        coordinator, _, _, _ = build_test_bridge()

        await coordinator.enable_auto_send("5")
        await coordinator.enable_auto_send("2")

        assert coordinator.auto_send_interval_ms == 2000
        assert "Auto-send stopped" not in messages(coordinator)
        await coordinator.disable_auto_send()

    @pytest.mark.asyncio
    async def test_disable_when_not_enabled(self):
        coordinator, _, _, _ = build_test_bridge()

        await coordinator.disable_auto_send()

        assert "Auto-send stopped" not in messages(coordinator)


class TestEventsAndStatus:

    @pytest.mark.asyncio
    async def test_connection_events_are_logged(self, hc06_device):
        coordinator, _, _, _ = build_test_bridge([hc06_device])

        await coordinator.connect()
        await coordinator.disconnect()

        log = messages(coordinator)
        assert "Bluetooth device connected: HC-06 Module" in log
        assert log[-1] == "Bluetooth device disconnected"

    @pytest.mark.asyncio
    async def test_received_data_is_logged(self, hc06_device):
        coordinator, factory, _, _ = build_test_bridge([hc06_device])
        await coordinator.connect()

        factory.last.feed(b"OK\n")
        await wait_until(lambda: "Received: OK" in messages(coordinator))

        await coordinator.shutdown()

    def test_location_events_are_logged(self):
        coordinator, _, _, _ = build_test_bridge()

        coordinator.on_location_changed(LocationSample(37.0, -122.0, accuracy_m=12.0))
        coordinator.on_location_error(LocationUnavailable())

        assert messages(coordinator) == [
            "Location: 37.0, -122.0 (±12m)",
            "Location Error: Location not available",
        ]

    @pytest.mark.asyncio
    async def test_status(self, hc06_device):
        coordinator, _, _, _ = build_test_bridge([hc06_device], [GGA_MUNICH])

        assert coordinator.status() == BridgeStatus(
            bluetooth_connected=False,
            device_name=None,
            location_available=False,
            auto_send_enabled=False,
            auto_send_interval_ms=5000,
        )

        await coordinator.start()
        await wait_until(lambda: coordinator.location.get_current_location() is not None)
        await coordinator.connect()

        status = coordinator.status()
        assert status.bluetooth_connected
        assert status.device_name == "HC-06 Module"
        assert status.can_send_location
        assert status.to_dict()["can_send_location"] is True
        await coordinator.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown(self, hc06_device):
        coordinator, factory, line_transport, _ = build_test_bridge([hc06_device])
        await coordinator.start()
        await coordinator.connect()
        await coordinator.enable_auto_send("5")

        await coordinator.shutdown()

        assert not coordinator.auto_send_enabled
        assert not coordinator.bluetooth.is_connected
        assert not coordinator.location.is_requesting_updates
        assert factory.last.disconnect_calls == 1
        assert line_transport.disconnect_calls == 1
