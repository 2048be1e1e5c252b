"""Shared command-line helpers."""

from .common import (
    LOG_LEVELS,
    add_common_cli_arguments,
    install_exception_handlers,
    install_signal_handlers,
    positive_float,
    positive_int,
)

__all__ = [
    "LOG_LEVELS",
    "add_common_cli_arguments",
    "install_exception_handlers",
    "install_signal_handlers",
    "positive_float",
    "positive_int",
]
