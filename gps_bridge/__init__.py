"""Forward GPS positions to an HC-06 serial module over Bluetooth SPP."""

import asyncio
import sys
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("gps-bridge")
except PackageNotFoundError:
    __version__ = "0.0.0"


def run() -> None:
    """Console script entry point."""
    from .app import main

    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        sys.exit(130)


__all__ = ["__version__", "run"]
