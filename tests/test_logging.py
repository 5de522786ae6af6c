"""
Tests for logging setup.
"""

import logging

import pytest
from rich.logging import RichHandler

from hookfetch.utils.logging import _parse_level, get_logger, setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def reset_hookfetch_logger():
    logger = logging.getLogger("hookfetch")
    saved_handlers, saved_level = list(logger.handlers), logger.level
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    for handler in saved_handlers:
        logger.addHandler(handler)
    logger.setLevel(saved_level)


class TestParseLevel:
    @pytest.mark.parametrize(
        "value,expected",
        [("debug", logging.DEBUG), ("WARNING", logging.WARNING), (logging.ERROR, logging.ERROR), ("verbose", logging.INFO)],
    )
    def test_parse(self, value, expected):
        assert _parse_level(value) == expected


class TestSetupLogging:
    def test_rich_console_by_default(self):
        logger = setup_logging("DEBUG")
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RichHandler) for h in logger.handlers)

    def test_plain_console(self):
        logger = setup_logging(use_rich=False)
        assert [type(h) for h in logger.handlers] == [logging.StreamHandler]

    def test_repeated_setup_replaces_handlers(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "client.log"
        setup_logging("INFO", log_file=log_file, console_enabled=False)
        get_logger("hookfetch.client").info("hello from the client")
        for handler in logging.getLogger("hookfetch").handlers:
            handler.flush()
        assert "hello from the client" in log_file.read_text()

    def test_from_config_relative_file(self, tmp_path):
        config = {"logging": {"level": "WARNING", "file": "client.log", "console_enabled": False}}
        logger = setup_logging_from_config(config, project_dir=tmp_path)
        assert logger.level == logging.WARNING
        assert [h.baseFilename for h in logger.handlers] == [str(tmp_path / "client.log")]


class TestGetLogger:
    def test_child_of_package_logger(self):
        logger = get_logger("hookfetch.retry.interceptor")
        assert logger.name == "hookfetch.retry.interceptor"
        assert logging.getLogger("hookfetch").handlers
