"""Logging helpers for invocation correlation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kv_modules.telemetry.tracing import get_current_command, get_current_trace_id

if TYPE_CHECKING:
    from collections.abc import Iterable

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(command)s trace=%(trace_id)s] %(message)s"


class InvocationContextFilter(logging.Filter):
    """Attach the executing command and trace identifier to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject command and trace_id into the log record."""
        record.command = get_current_command() or "-"
        record.trace_id = get_current_trace_id() or "-"
        return True


def install_invocation_log_filter(loggers: Iterable[logging.Logger] | None = None) -> None:
    """Install invocation context filters on the given loggers.

    Args:
        loggers: Optional iterable of loggers to attach the filter to. Defaults to root logger.
    """
    targets = list(loggers) if loggers is not None else [logging.getLogger()]
    for logger in targets:
        if any(isinstance(flt, InvocationContextFilter) for flt in logger.filters):
            continue
        logger.addFilter(InvocationContextFilter())


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with invocation context on every record."""
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(InvocationContextFilter())
    root = logging.getLogger()
    root.setLevel(level.upper())
    if not any(isinstance(flt, InvocationContextFilter) for h in root.handlers for flt in h.filters):
        root.addHandler(handler)
