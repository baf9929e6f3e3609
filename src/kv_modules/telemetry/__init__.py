"""Tracing and log correlation for command invocations."""

from kv_modules.telemetry.logging_utils import (
    InvocationContextFilter,
    configure_logging,
    install_invocation_log_filter,
)
from kv_modules.telemetry.tracing import (
    build_invocation_attributes,
    get_current_command,
    get_current_trace_id,
    invocation_span,
)

__all__ = [
    "InvocationContextFilter",
    "build_invocation_attributes",
    "configure_logging",
    "get_current_command",
    "get_current_trace_id",
    "install_invocation_log_filter",
    "invocation_span",
]
