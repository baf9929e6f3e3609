"""Module command surface."""

from kv_modules.extensions.api import ModuleAPI
from kv_modules.extensions.invoker import classify_invocation, invoke, run_handler
from kv_modules.extensions.models import (
    CommandDescriptor,
    CommandFailure,
    CommandImplementation,
    FunctionCommand,
    InvocationContext,
    InvocationResult,
    ProtocolVersion,
)
from kv_modules.extensions.registry import CommandRegistry
from kv_modules.extensions.runtime import ModuleFactory, ModuleRuntime

__all__ = [
    "CommandDescriptor",
    "CommandFailure",
    "CommandImplementation",
    "CommandRegistry",
    "FunctionCommand",
    "InvocationContext",
    "InvocationResult",
    "ModuleAPI",
    "ModuleFactory",
    "ModuleRuntime",
    "ProtocolVersion",
    "classify_invocation",
    "invoke",
    "run_handler",
]
