"""Logging setup and the telemetry sink contract."""

from __future__ import annotations

import logging
from typing import Protocol

from rich.logging import RichHandler

_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class Telemetry(Protocol):
    """Reports operational events such as decisions and action outcomes."""

    def emit(self, event_name: str, payload: dict) -> None:
        """Publish telemetry event to the configured sink."""


class LoggingTelemetry:
    """Telemetry sink that writes events to a standard logger."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("mc_autonomy.telemetry")

    def emit(self, event_name: str, payload: dict) -> None:
        self._logger.info(event_name, extra=payload)


class StructuredFormatter(logging.Formatter):
    """Appends ``extra={...}`` fields to the event name as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        fields = {key: value for key, value in vars(record).items() if key not in _RESERVED}
        if not fields:
            return base
        rendered = " ".join(f"{key}={value}" for key, value in fields.items())
        return f"{base} {rendered}"


def configure_logging(level: str = "INFO") -> None:
    """Route all loggers through a rich console handler."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(StructuredFormatter("%(name)s | %(message)s"))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)
