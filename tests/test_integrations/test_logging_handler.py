"""Tests for the logging integration (integrations/logging.py)."""

import logging

import pytest
from unittest.mock import MagicMock

from snagwire.integrations import SnagwireHandler
from snagwire.integrations.logging import severity_for_level
from snagwire.models import Severity
from snagwire.pipeline.builder import LOG_EVENT_TAB


@pytest.fixture
def app_logger(client):
    logger = logging.getLogger("myapp.web")
    handler = SnagwireHandler(client, excluded_loggers=["myapp.web.noisy"])
    logger.addHandler(handler)
    logger.propagate = False
    yield logger
    logger.removeHandler(handler)
    logger.propagate = True


def log_exception(logger, level, message="Test exception"):
    try:
        raise RuntimeError("test")
    except RuntimeError:
        logger.log(level, message, exc_info=True)


class TestSeverityForLevel:
    @pytest.mark.parametrize("level,severity", [
        (logging.CRITICAL, Severity.ERROR),
        (logging.ERROR, Severity.ERROR),
        (logging.WARNING, Severity.WARNING),
        (logging.INFO, Severity.INFO),
        (logging.DEBUG, Severity.INFO),
    ])
    def test_mapping(self, level, severity):
        assert severity_for_level(level) is severity


class TestSnagwireHandler:
    def test_warning_reported(self, app_logger, delivered_events):
        log_exception(app_logger, logging.WARNING)

        events = delivered_events()
        assert len(events) == 1
        assert events[0]["severity"] == "warning"
        assert events[0]["exceptions"][0]["errorClass"] == "RuntimeError"

    def test_log_event_tab(self, app_logger, delivered_events):
        log_exception(app_logger, logging.ERROR, message="Order %s failed")

        event = delivered_events()[0]
        assert event["severity"] == "error"
        assert event["metaData"][LOG_EVENT_TAB] == {
            "Message": "Order %s failed",
            "Logger name": "myapp.web",
        }

    def test_record_without_exception_ignored(self, app_logger, delivered_events):
        app_logger.error("no exception here")
        assert delivered_events() == []

    def test_excluded_logger_ignored(self, app_logger, delivered_events):
        log_exception(logging.getLogger("myapp.web.noisy.child"), logging.ERROR)
        assert delivered_events() == []

    def test_own_loggers_ignored(self, client):
        client.capture = MagicMock()
        handler = SnagwireHandler(client)
        record = logging.LogRecord(
            "snagwire.delivery.worker", logging.WARNING, __file__, 1, "boom", None,
            (RuntimeError, RuntimeError("boom"), None),
        )

        handler.emit(record)

        client.capture.assert_not_called()

    def test_handler_errors_routed_to_handle_error(self, client):
        client.capture = MagicMock(side_effect=RuntimeError("broken"))
        handler = SnagwireHandler(client)
        handler.handleError = MagicMock()
        record = logging.LogRecord(
            "myapp", logging.ERROR, __file__, 1, "boom", None,
            (RuntimeError, RuntimeError("boom"), None),
        )

        handler.emit(record)

        handler.handleError.assert_called_once_with(record)
