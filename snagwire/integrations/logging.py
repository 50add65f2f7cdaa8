"""
Logging Integration

A ``logging.Handler`` that reports log records carrying an exception.

Usage:
    handler = SnagwireHandler(client, level=logging.WARNING)
    logging.getLogger().addHandler(handler)

    logger.warning("Payment failed", exc_info=True)   # reported, severity "warning"
"""

import logging
from typing import Iterable

from ..client import Client
from ..models import RawCapture, Severity
from ..pipeline.gate import matches_prefix

# The notifier's own loggers are never reported
ALWAYS_EXCLUDED = ("snagwire",)


def severity_for_level(levelno: int) -> Severity:
    """Map a logging level to an event severity."""
    if levelno >= logging.ERROR:
        return Severity.ERROR
    if levelno >= logging.WARNING:
        return Severity.WARNING
    return Severity.INFO


class SnagwireHandler(logging.Handler):
    """Forwards records with ``exc_info`` to a Client."""

    def __init__(
        self,
        client: Client,
        level: int = logging.NOTSET,
        excluded_loggers: Iterable[str] = (),
    ):
        """
        Args:
            client: Client used to report
            level: Minimum record level
            excluded_loggers: Logger names (and their children) to ignore
        """
        super().__init__(level=level)
        self.client = client
        self.excluded_loggers = tuple(excluded_loggers) + ALWAYS_EXCLUDED

    def is_excluded(self, record: logging.LogRecord) -> bool:
        return matches_prefix(record.name, self.excluded_loggers)

    def emit(self, record: logging.LogRecord) -> None:
        if not record.exc_info or record.exc_info[1] is None:
            return
        if self.is_excluded(record):
            return

        try:
            raw = RawCapture.from_exception(
                record.exc_info[1],
                severity=severity_for_level(record.levelno),
                origin={
                    "message": record.getMessage(),
                    "logger": record.name,
                },
                send_threads=self.client.config.send_threads,
            )
            self.client.capture(raw)
        except Exception:
            self.handleError(record)
