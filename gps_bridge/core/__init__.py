"""Shared infrastructure: logging, configuration and asyncio helpers."""

from .asyncio_utils import add_task_exception_logger, create_logged_task
from .config_loader import ConfigLoader
from .logging_config import configure_logging
from .logging_utils import StructuredLogger, get_module_logger

__all__ = [
    "ConfigLoader",
    "StructuredLogger",
    "add_task_exception_logger",
    "configure_logging",
    "create_logged_task",
    "get_module_logger",
]
