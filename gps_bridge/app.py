"""Command-line entry point: wires config, logging and services together."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
from pathlib import Path
from typing import Optional, Sequence

from .bluetooth import BluetoothSessionManager, BlueZDirectory
from .cli.common import (
    add_common_cli_arguments,
    install_exception_handlers,
    install_signal_handlers,
    log_shutdown,
    log_startup,
    positive_float,
    positive_int,
)
from .config import DEFAULT_CONFIG_PATH, BridgeConfig
from .coordinator import BridgeCoordinator, OperatorConsole, OperatorLog, parse_interval_ms
from .core.asyncio_utils import cancel_and_wait, create_logged_task
from .core.logging_config import configure_logging, operator_mirror_level
from .core.logging_utils import get_module_logger
from .location import LocationSource, SerialNMEATransport

APP_NAME = "GPS Bluetooth Bridge"

logger = get_module_logger("App")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gps-bridge",
        description=f"{APP_NAME} - forward GPS positions to an HC-06 over Bluetooth SPP",
    )
    add_common_cli_arguments(parser)

    parser.add_argument(
        "--gps-port",
        dest="gps_port",
        type=str,
        default=None,
        help="Serial device path for the GPS receiver",
    )
    parser.add_argument(
        "--gps-baud",
        dest="gps_baud",
        type=positive_int,
        default=None,
        help="Baud rate for the GPS receiver",
    )
    parser.add_argument(
        "--device-name",
        dest="device_names",
        action="append",
        default=None,
        help="Paired device name to look for (repeatable, case-insensitive substring)",
    )
    parser.add_argument(
        "--fallback-address",
        dest="fallback_address",
        type=str,
        default=None,
        help="MAC address to use when no paired device name matches",
    )
    parser.add_argument(
        "--channel",
        dest="channel",
        type=positive_int,
        default=None,
        help="RFCOMM channel of the serial port service",
    )
    parser.add_argument(
        "--no-service-lookup",
        dest="service_lookup",
        action="store_false",
        default=None,
        help="Skip the SPP service record lookup and use --channel directly",
    )
    parser.add_argument(
        "--connect-timeout",
        dest="connect_timeout",
        type=positive_float,
        default=None,
        help="Seconds to wait for the RFCOMM connection",
    )
    parser.add_argument(
        "--interval",
        dest="interval",
        type=positive_int,
        default=None,
        help="Auto-send interval in seconds",
    )
    parser.add_argument(
        "--auto-send",
        dest="auto_send",
        action="store_true",
        default=None,
        help="Connect and start auto-send on startup",
    )
    parser.add_argument(
        "--headless",
        dest="headless",
        action="store_true",
        default=False,
        help="Run without the stdin console until SIGINT/SIGTERM",
    )
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


def build_coordinator(config: BridgeConfig, *, operator_log: Optional[OperatorLog] = None) -> BridgeCoordinator:
    bluetooth = BluetoothSessionManager(
        device_names=config.device_names,
        fallback_address=config.fallback,
        channel=config.rfcomm_channel,
        connect_timeout=config.connect_timeout,
        service_lookup=config.service_lookup,
        directory=BlueZDirectory(),
    )
    location = LocationSource(SerialNMEATransport(config.gps_port, config.gps_baud_rate))
    return BridgeCoordinator(
        bluetooth,
        location,
        operator_log=operator_log,
        auto_send_interval_ms=parse_interval_ms(str(config.auto_send_interval)),
    )


def make_operator_log(*, headless: bool) -> OperatorLog:
    return OperatorLog(mirror_level=operator_mirror_level(headless=headless))


async def run_bridge(config: BridgeConfig, *, headless: bool = False) -> int:
    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()
    install_exception_handlers(logger, loop)
    install_signal_handlers(shutdown_event, loop)

    coordinator = build_coordinator(config, operator_log=make_operator_log(headless=headless))

    if not coordinator.bluetooth.is_bluetooth_available():
        coordinator.log.add("Bluetooth not supported on this system")

    await coordinator.start()
    if config.auto_send:
        await coordinator.connect()
        await coordinator.enable_auto_send()

    console_task: Optional[asyncio.Task] = None
    if not headless:
        console = OperatorConsole(coordinator)
        console_task = create_logged_task(console.run(), logger=logger, context="operator-console")

    shutdown_wait = asyncio.ensure_future(shutdown_event.wait())
    try:
        waiters = [shutdown_wait] + ([console_task] if console_task else [])
        await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
        if shutdown_event.is_set():
            logger.info("Shutdown requested by signal")
    finally:
        await cancel_and_wait(console_task)
        shutdown_wait.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await shutdown_wait
        await coordinator.shutdown()

    return 0


async def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    config_path: Path = args.config or DEFAULT_CONFIG_PATH
    config = BridgeConfig.from_file(config_path, args)

    configure_logging(
        config.log_level,
        console=config.console_output,
        log_file=config.log_path,
    )
    log_startup(
        logger,
        APP_NAME,
        config_file=config_path,
        gps_port=f"{config.gps_port} @ {config.gps_baud_rate}",
        device_names=", ".join(config.device_names),
        fallback_address=config.fallback or "(none)",
    )

    try:
        return await run_bridge(config, headless=args.headless)
    except Exception as e:
        logger.error("Fatal error: %s", e, exc_info=True)
        return 1
    finally:
        log_shutdown(logger, APP_NAME)


__all__ = ["APP_NAME", "build_coordinator", "build_parser", "main", "make_operator_log", "parse_args", "run_bridge"]
