"""Module API for registering commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from kv_modules.extensions.models import CommandDescriptor, FunctionCommand

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from kv_modules.extensions.models import CommandImplementation
    from kv_modules.extensions.registry import CommandRegistry


class ModuleAPI:
    """API passed to a module factory at load time."""

    def __init__(self, name: str, registry: CommandRegistry, args: Sequence[str] = ()) -> None:
        self._name = name
        self._registry = registry
        self._args = tuple(str(arg) for arg in args)
        self.commands: dict[str, CommandDescriptor] = {}

    @property
    def name(self) -> str:
        """Name the module was loaded under."""
        return self._name

    @property
    def args(self) -> tuple[str, ...]:
        """Load-time args, passed unchanged to every invocation."""
        return self._args

    def register_command(
        self,
        name: str,
        implementation: CommandImplementation | None = None,
        *,
        classify: Callable[[Sequence[str], Sequence[str]], Any] | None = None,
        handle: Callable[..., Any] | None = None,
        categories: Iterable[str] = (),
        description: str = "",
        replicate: bool = False,
    ) -> CommandDescriptor:
        """Register a command from an implementation or a classify/handle pair."""
        if implementation is None:
            if classify is None or handle is None:
                msg = "register_command needs an implementation or both classify and handle"
                raise ValueError(msg)
            implementation = FunctionCommand(classifier=classify, handler=handle)
        elif classify is not None or handle is not None:
            msg = "Pass either an implementation or classify/handle, not both"
            raise ValueError(msg)

        descriptor = CommandDescriptor(
            name=name,
            implementation=implementation,
            categories=categories,  # type: ignore[arg-type]
            description=description,
            replicate=replicate,
            module_args=self._args,
            module=self._name,
        )
        self._registry.register(descriptor)
        self.commands[descriptor.key] = descriptor
        return descriptor
