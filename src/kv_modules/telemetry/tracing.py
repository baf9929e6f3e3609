"""OpenTelemetry spans around command invocations."""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace as otel_trace
from opentelemetry.trace import Status, StatusCode, format_trace_id

if TYPE_CHECKING:
    from collections.abc import Iterator

    from opentelemetry.trace import Span

logger = logging.getLogger(__name__)

TRACER_NAME = "kv_modules.invoker"

_current_command: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "kv_modules_current_command", default=None
)


def get_current_trace_id() -> str | None:
    """Get the current OpenTelemetry trace ID if available."""
    span = otel_trace.get_current_span()
    if span is None:
        return None
    ctx = span.get_span_context()
    if ctx.trace_id == 0:
        return None
    return format_trace_id(ctx.trace_id)


def get_current_command() -> str | None:
    """Return the name of the command executing in this context."""
    return _current_command.get()


def build_invocation_attributes(
    *,
    command: str,
    database: int,
    protocol: int,
    module: str = "",
    read_keys: int | None = None,
    write_keys: int | None = None,
) -> dict[str, Any]:
    """Build span attributes for an invocation."""
    attributes: dict[str, Any] = {
        "kv.command": command,
        "kv.database": database,
        "kv.protocol": protocol,
    }
    if module:
        attributes["kv.module"] = module
    if read_keys is not None:
        attributes["kv.read_keys"] = read_keys
    if write_keys is not None:
        attributes["kv.write_keys"] = write_keys
    return attributes


@contextmanager
def invocation_span(command: str, attributes: dict[str, Any] | None = None) -> Iterator[Span]:
    """Open a span for one invocation and mark it failed if the block raises."""
    tracer = otel_trace.get_tracer(TRACER_NAME)
    token = _current_command.set(command)
    try:
        with tracer.start_as_current_span(
            f"command {command}",
            attributes=attributes or {},
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            try:
                yield span
            except Exception as e:
                span.set_status(Status(StatusCode.ERROR, str(e)))
                span.record_exception(e)
                raise
            span.set_status(Status(StatusCode.OK))
    finally:
        _current_command.reset(token)
