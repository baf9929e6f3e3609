"""Case-insensitive lookup table of module commands."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from kv_modules.utils import normalize_command_name

if TYPE_CHECKING:
    from kv_modules.extensions.models import CommandDescriptor


class CommandRegistry:
    """Registry mapping command names to their descriptors."""

    def __init__(self) -> None:
        self._commands: dict[str, CommandDescriptor] = {}
        self._lock = threading.RLock()

    def register(self, descriptor: CommandDescriptor) -> None:
        """Register a command; names are unique regardless of case."""
        with self._lock:
            existing = self._commands.get(descriptor.key)
            if existing is not None:
                message = (
                    f"Command already registered: {descriptor.name} "
                    f"(by module '{existing.module}')"
                )
                raise ValueError(message)
            self._commands[descriptor.key] = descriptor

    def get(self, name: str) -> CommandDescriptor | None:
        """Get a registered command by name, ignoring case."""
        with self._lock:
            return self._commands.get(normalize_command_name(name))

    def remove_module(self, module: str) -> list[str]:
        """Drop every command registered by ``module`` and return their names."""
        with self._lock:
            removed = [d.name for d in self._commands.values() if d.module == module]
            for name in removed:
                del self._commands[normalize_command_name(name)]
            return removed

    def descriptors(self) -> list[CommandDescriptor]:
        """Return every registered descriptor."""
        with self._lock:
            return list(self._commands.values())

    def modules(self) -> list[str]:
        """Return the names of modules with registered commands."""
        with self._lock:
            return sorted({d.module for d in self._commands.values()})

    def list(self) -> list[dict[str, Any]]:
        """List registered commands."""
        with self._lock:
            return [descriptor.to_dict() for descriptor in self._commands.values()]

    def by_category(self, category: str) -> list[str]:
        """Return the names of commands tagged with ``category``."""
        with self._lock:
            return [d.name for d in self._commands.values() if category in d.categories]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._commands)
