"""
Unit tests for shared/logging_utils.py
"""

import logging

import pytest

from shared.logging_utils import LOG_FORMAT, configure_logging


@pytest.fixture
def root_logger():
    """Restore root logger handlers and level after each test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestConfigureLogging:
    """Tests for configure_logging()"""

    def test_single_handler_across_calls(self, root_logger, monkeypatch):
        monkeypatch.delenv('LOG_LEVEL', raising=False)
        first = configure_logging()
        second = configure_logging()

        assert first is second
        assert root_logger.handlers.count(first) == 1
        assert first.formatter._fmt == LOG_FORMAT

    def test_log_level_from_environment(self, root_logger, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'debug')
        configure_logging()

        assert root_logger.level == logging.DEBUG

    def test_explicit_level_wins(self, root_logger, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')
        configure_logging('warning')

        assert root_logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, root_logger, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'chatty')
        configure_logging()

        assert root_logger.level == logging.INFO

    def test_http_library_logs_quieted(self, root_logger, monkeypatch):
        monkeypatch.setenv('LOG_LEVEL', 'DEBUG')
        configure_logging()

        assert logging.getLogger('urllib3').level == logging.WARNING
