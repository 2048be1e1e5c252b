"""Coordinator, auto-send loop and operator console."""

from .console import OperatorConsole
from .coordinator import (
    DEFAULT_SEND_INTERVAL_MS,
    TEST_MESSAGE,
    BridgeCoordinator,
    BridgeStatus,
    encode_location,
    parse_interval_ms,
)
from .operator_log import LogEntry, OperatorLog
from .repeating_task import RepeatingTask

__all__ = [
    "DEFAULT_SEND_INTERVAL_MS",
    "TEST_MESSAGE",
    "BridgeCoordinator",
    "BridgeStatus",
    "LogEntry",
    "OperatorConsole",
    "OperatorLog",
    "RepeatingTask",
    "encode_location",
    "parse_interval_ms",
]
