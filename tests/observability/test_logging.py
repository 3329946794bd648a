"""Tests for structured logging configuration."""

import logging

import structlog

from flysession.core.config import Config
from flysession.observability.logging import configure_logging, configure_logging_from_config, get_logger


class TestConfigureLogging:
    def teardown_method(self):
        logging.getLogger("flysession").setLevel(logging.NOTSET)
        structlog.reset_defaults()

    def test_root_level(self):
        configure_logging(level="WARNING")
        assert logging.getLogger().level == logging.WARNING

    def test_session_level_only_touches_flysession_loggers(self):
        configure_logging(level="WARNING", session_level="DEBUG")
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("flysession").level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        configure_logging(level="chatty")
        assert logging.getLogger().level == logging.INFO

    def test_from_config(self):
        config = Config({"flysession": {"logging": {"level": "ERROR", "format": "json", "session_level": "DEBUG"}}})
        props = configure_logging_from_config(config)
        assert props.format == "json"
        assert logging.getLogger().level == logging.ERROR
        assert logging.getLogger("flysession").level == logging.DEBUG

    def test_get_logger_is_usable(self):
        configure_logging(level="DEBUG", json_output=True)
        logger = get_logger("flysession.test")
        logger.info("session_event", name="app")
