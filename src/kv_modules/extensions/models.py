"""Module command models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from kv_modules.bridge import StoreBridge
    from kv_modules.keys import KeyClassification
    from kv_modules.marshal import Value


class ProtocolVersion(IntEnum):
    """Client protocol in effect for an invocation."""

    RESP2 = 2
    RESP3 = 3


@dataclass(frozen=True)
class InvocationContext:
    """Read-only facts about the client executing a command."""

    protocol: ProtocolVersion = ProtocolVersion.RESP2
    database: int = 0

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "protocol", ProtocolVersion(self.protocol))
        except ValueError as exc:
            message = f"protocol must be 2 or 3, got {self.protocol!r}"
            raise ValueError(message) from exc
        if isinstance(self.database, bool) or not isinstance(self.database, int):
            message = "database must be an integer"
            raise TypeError(message)
        if self.database < 0:
            message = f"database must be non-negative, got {self.database}"
            raise ValueError(message)

    def to_dict(self) -> dict[str, int]:
        """Return the context in the ``{protocol, database}`` shape handlers expect."""
        return {"protocol": int(self.protocol), "database": self.database}


class CommandImplementation(Protocol):
    """Key classification and execution logic for one command."""

    def classify(self, tokens: Sequence[str], module_args: Sequence[str]) -> Any:
        """Return the keys an invocation reads and writes."""
        ...

    def handle(
        self,
        context: InvocationContext,
        tokens: Sequence[str],
        bridge: StoreBridge,
        module_args: Sequence[str],
    ) -> Any:
        """Execute the command and return its response."""
        ...


@dataclass(frozen=True)
class FunctionCommand:
    """Command implementation built from a classifier and a handler function."""

    classifier: Callable[[Sequence[str], Sequence[str]], Any]
    handler: Callable[[InvocationContext, Sequence[str], StoreBridge, Sequence[str]], Any]

    def classify(self, tokens: Sequence[str], module_args: Sequence[str]) -> Any:
        """Delegate to the classifier function."""
        return self.classifier(tokens, module_args)

    def handle(
        self,
        context: InvocationContext,
        tokens: Sequence[str],
        bridge: StoreBridge,
        module_args: Sequence[str],
    ) -> Any:
        """Delegate to the handler function."""
        return self.handler(context, tokens, bridge, module_args)


@dataclass(frozen=True)
class CommandDescriptor:
    """Command registered by a module, immutable for the module's lifetime."""

    name: str
    implementation: CommandImplementation
    categories: frozenset[str] = frozenset()
    description: str = ""
    replicate: bool = False
    module_args: tuple[str, ...] = ()
    module: str = ""

    def __post_init__(self) -> None:
        name = self.name.strip() if isinstance(self.name, str) else ""
        if not name or any(ch.isspace() for ch in name):
            msg = f"Command name must be a single non-empty token, got {self.name!r}"
            raise ValueError(msg)
        object.__setattr__(self, "name", name)
        if isinstance(self.categories, str):
            msg = "categories must be a collection of strings"
            raise TypeError(msg)
        object.__setattr__(self, "categories", frozenset(str(item) for item in self.categories))
        object.__setattr__(self, "module_args", tuple(str(arg) for arg in self.module_args))
        object.__setattr__(self, "replicate", bool(self.replicate))

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return self.name.lower()

    def to_dict(self) -> dict[str, Any]:
        """Describe the command without its implementation."""
        return {
            "name": self.name,
            "categories": sorted(self.categories),
            "description": self.description,
            "replicate": self.replicate,
            "module_args": list(self.module_args),
            "module": self.module,
        }


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of a successful invocation."""

    response: Any
    classification: KeyClassification
    writes: dict[str, Value] = field(default_factory=dict)
    replicated: bool = False


@dataclass(frozen=True)
class CommandFailure:
    """Captured command failure."""

    module: str
    command: str
    error_type: str
    message: str
