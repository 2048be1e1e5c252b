"""Typed configuration for the bridge."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from .bluetooth.constants import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_DEVICE_NAMES,
    DEFAULT_FALLBACK_ADDRESS,
    DEFAULT_RFCOMM_CHANNEL,
)
from .core.config_loader import ConfigLoader
from .location.constants import DEFAULT_BAUD_RATE, DEFAULT_GPS_PORT

DEFAULT_CONFIG_PATH = Path("config.txt")


@dataclass(slots=True)
class BridgeConfig:
    """Typed configuration for the bridge."""

    # Logging
    log_level: str = "info"
    console_output: bool = True
    log_file: str = ""

    # GPS receiver
    gps_port: str = DEFAULT_GPS_PORT
    gps_baud_rate: int = DEFAULT_BAUD_RATE

    # Bluetooth peer
    device_names: tuple = DEFAULT_DEVICE_NAMES
    fallback_address: str = DEFAULT_FALLBACK_ADDRESS
    rfcomm_channel: int = DEFAULT_RFCOMM_CHANNEL
    service_lookup: bool = True
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    # Auto-send
    auto_send: bool = False
    auto_send_interval: int = 5

    @classmethod
    def from_file(cls, config_path: Path = DEFAULT_CONFIG_PATH, args: Any = None) -> "BridgeConfig":
        """Load ``config_path`` on top of the defaults, then apply CLI overrides."""
        defaults = asdict(cls())
        values = ConfigLoader.load(Path(config_path), defaults=defaults, strict=True)
        config = cls(**values)

        if args is not None:
            config = config._apply_args_override(args)

        return config

    def _apply_args_override(self, args: Any) -> "BridgeConfig":
        values = asdict(self)

        arg_mappings = {
            "log_level": "log_level",
            "console_output": "console_output",
            "log_file": "log_file",
            "gps_port": "gps_port",
            "gps_baud": "gps_baud_rate",
            "device_names": "device_names",
            "fallback_address": "fallback_address",
            "channel": "rfcomm_channel",
            "service_lookup": "service_lookup",
            "connect_timeout": "connect_timeout",
            "interval": "auto_send_interval",
            "auto_send": "auto_send",
        }

        for arg_name, config_key in arg_mappings.items():
            if hasattr(args, arg_name):
                val = getattr(args, arg_name)
                if val is not None:
                    values[config_key] = val

        if isinstance(values["device_names"], list):
            values["device_names"] = tuple(values["device_names"])
        if isinstance(values["log_file"], Path):
            values["log_file"] = str(values["log_file"])

        return BridgeConfig(**values)

    @property
    def log_path(self) -> Optional[Path]:
        return Path(self.log_file).expanduser() if self.log_file else None

    @property
    def fallback(self) -> Optional[str]:
        return self.fallback_address or None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


__all__ = ["BridgeConfig", "DEFAULT_CONFIG_PATH"]
