"""Unit tests for logging helpers."""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from gps_bridge.core.logging_config import (
    CONSOLE_FORMAT,
    coerce_level,
    configure_logging,
    operator_mirror_level,
)
from gps_bridge.core.logging_utils import (
    StructuredLogger,
    ensure_structured_logger,
    get_module_logger,
)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


class TestStructuredLogger:

    def test_module_logger_is_namespaced(self):
        logger = get_module_logger("Bluetooth")

        assert logger.name == "gps_bridge.Bluetooth"
        assert logger.component == "Bluetooth"

    def test_prefixes_component(self, caplog):
        logger = get_module_logger("Bluetooth")

        with caplog.at_level(logging.INFO, logger="gps_bridge"):
            logger.info("Connected to %s", "HC-06")

        assert caplog.records[-1].getMessage() == "[Bluetooth] Connected to HC-06"

    def test_bad_format_args_do_not_raise(self, caplog):
        logger = get_module_logger("Location")

        with caplog.at_level(logging.INFO, logger="gps_bridge"):
            logger.info("value %d", "not-a-number")

        assert "args=not-a-number" in caplog.records[-1].getMessage()

    def test_child_logger(self):
        child = get_module_logger("Bluetooth").getChild("Reader")

        assert child.name == "gps_bridge.Bluetooth.Reader"
        assert child.component == "Bluetooth.Reader"

    def test_ensure_structured_logger(self):
        plain = logging.getLogger("gps_bridge.test")

        assert isinstance(ensure_structured_logger(plain), StructuredLogger)
        assert ensure_structured_logger(None, fallback_name="x").name == "gps_bridge.x"


class TestConfigureLogging:

    def test_coerce_level(self):
        assert coerce_level("debug") == logging.DEBUG
        assert coerce_level(logging.WARNING) == logging.WARNING
        with pytest.raises(ValueError):
            coerce_level("loud")

    def test_file_handler(self, tmp_path, restore_root_logger):
        log_file = tmp_path / "logs" / "bridge.log"

        configure_logging("info", console=False, log_file=log_file)
        get_module_logger("App").info("hello file")
        for handler in restore_root_logger.handlers:
            handler.flush()

        text = log_file.read_text(encoding="utf-8")
        assert "| INFO     | gps_bridge.App | [App] hello file" in text

    def test_console_uses_short_format(self, restore_root_logger):
        configure_logging("debug", console=True)

        consoles = [
            h for h in restore_root_logger.handlers
            if isinstance(h, logging.StreamHandler) and h.formatter is not None
            and h.formatter._fmt == CONSOLE_FORMAT
        ]
        assert len(consoles) == 1
        assert consoles[0].level == logging.DEBUG

    def test_reconfigure_replaces_only_own_handlers(self, tmp_path, restore_root_logger):
        foreign = logging.NullHandler()
        restore_root_logger.addHandler(foreign)

        configure_logging("info", console=True)
        configure_logging("info", console=False, log_file=tmp_path / "bridge.log")

        handlers = restore_root_logger.handlers
        assert foreign in handlers
        assert sum(isinstance(h, RotatingFileHandler) for h in handlers) == 1
        assert not any(
            h.formatter is not None and h.formatter._fmt == CONSOLE_FORMAT for h in handlers
        )

    def test_quiet_loggers(self, restore_root_logger):
        configure_logging("debug", console=False, quiet_loggers=("gps_bridge.tests.noisy",))

        assert logging.getLogger("gps_bridge.tests.noisy").level == logging.WARNING


class TestOperatorMirrorLevel:

    def test_console_session_mirrors_at_debug(self):
        assert operator_mirror_level(headless=False) == logging.DEBUG

    def test_headless_mirrors_at_info(self):
        assert operator_mirror_level(headless=True) == logging.INFO
