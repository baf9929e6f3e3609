"""Module runtime for loading modules and executing their commands."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from kv_modules.config.manifest import load_module_manifest, resolve_factory
from kv_modules.config.settings import Settings, load_settings
from kv_modules.errors import ClassificationError, CommandError, UnknownCommandError
from kv_modules.extensions.api import ModuleAPI
from kv_modules.extensions.invoker import classify_invocation, run_handler
from kv_modules.extensions.models import CommandFailure, InvocationContext
from kv_modules.extensions.registry import CommandRegistry
from kv_modules.locks import KeyLockManager
from kv_modules.replication import InMemoryReplicationLog
from kv_modules.store import MemoryStore
from kv_modules.telemetry.logging_utils import configure_logging

if TYPE_CHECKING:
    import threading
    from pathlib import Path

    from kv_modules.extensions.models import CommandDescriptor, InvocationResult
    from kv_modules.replication import ReplicationLog
    from kv_modules.store import Store

ModuleFactory = Callable[[ModuleAPI], None]

logger = logging.getLogger(__name__)


class ModuleRuntime:
    """Loads modules and runs their commands against a store."""

    def __init__(
        self,
        store: Store | None = None,
        *,
        settings: Settings | None = None,
        replication_log: ReplicationLog | None = None,
        locks: KeyLockManager | None = None,
    ) -> None:
        self._settings = settings or load_settings()
        self._store = store if store is not None else MemoryStore(self._settings.database_count)
        self._replication_log = replication_log
        self._locks = locks or KeyLockManager()
        self._registry = CommandRegistry()
        self._errors: list[CommandFailure] = []

    @classmethod
    def from_env(cls, store: Store | None = None) -> ModuleRuntime:
        """Build a runtime from ``KV_MODULES_*`` settings.

        Configures root logging at the configured level, keeps replicated
        commands in an in-memory log and loads the manifest when one is set.
        """
        settings = load_settings()
        configure_logging(settings.log_level)
        runtime = cls(store, settings=settings, replication_log=InMemoryReplicationLog())
        if settings.manifest_path:
            runtime.load_manifest()
        logger.info(
            "Module runtime ready: databases=%d, modules=%s",
            settings.database_count,
            runtime.registry.modules(),
        )
        return runtime

    @property
    def settings(self) -> Settings:
        """Settings the runtime was built with."""
        return self._settings

    @property
    def store(self) -> Store:
        """Store commands read and write."""
        return self._store

    @property
    def errors(self) -> list[CommandFailure]:
        """Return collected command failures."""
        return list(self._errors)

    @property
    def commands(self) -> dict[str, CommandDescriptor]:
        """Return registered commands keyed by lower-cased name."""
        return {descriptor.key: descriptor for descriptor in self._registry.descriptors()}

    @property
    def registry(self) -> CommandRegistry:
        """Command lookup table."""
        return self._registry

    def load_module(self, name: str, factory: ModuleFactory, args: Sequence[str] = ()) -> list[str]:
        """Load one module and return the names of the commands it registered.

        A factory that fails leaves none of its commands registered.
        """
        if name in self._registry.modules():
            msg = f"Module already loaded: {name}"
            raise ValueError(msg)
        api = ModuleAPI(name=name, registry=self._registry, args=args)
        try:
            factory(api)
        except Exception:
            self._registry.remove_module(name)
            raise
        names = [descriptor.name for descriptor in api.commands.values()]
        logger.info("Loaded module '%s' with commands %s", name, names)
        return names

    def load_modules(
        self,
        factories: Iterable[tuple[str, ModuleFactory] | tuple[str, ModuleFactory, Sequence[str]]],
    ) -> None:
        """Load modules from ``(name, factory)`` or ``(name, factory, args)`` tuples."""
        for entry in factories:
            name, factory, *rest = entry
            self.load_module(name, factory, rest[0] if rest else ())

    def load_manifest(self, path: str | Path | None = None) -> list[str]:
        """Load every enabled module of a TOML manifest and return their names."""
        manifest = path or self._settings.manifest_path
        if manifest is None:
            msg = "No module manifest given and KV_MODULES_MANIFEST is not set"
            raise ValueError(msg)
        loaded: list[str] = []
        for spec in load_module_manifest(manifest):
            self.load_module(spec.name, resolve_factory(spec.factory), spec.args)
            loaded.append(spec.name)
        return loaded

    def unload_module(self, name: str) -> list[str]:
        """Unregister every command of a module and return their names."""
        removed = self._registry.remove_module(name)
        if removed:
            logger.info("Unloaded module '%s' (%s)", name, ", ".join(removed))
        return removed

    def context(self, database: int = 0, protocol: int | None = None) -> InvocationContext:
        """Build an invocation context using the configured default protocol."""
        return InvocationContext(
            protocol=protocol if protocol is not None else self._settings.default_protocol,
            database=database,
        )

    def execute(
        self,
        tokens: Sequence[str],
        context: InvocationContext | None = None,
        *,
        cancel_event: threading.Event | None = None,
    ) -> InvocationResult:
        """Execute one command invocation.

        The command is classified first; its declared keys are locked for the
        rest of the invocation. Failures are recorded in ``errors`` and
        re-raised.
        """
        context = context or self.context()
        tokens = tuple(str(token) for token in tokens)
        if not tokens:
            msg = "empty command"
            raise ClassificationError(msg)
        descriptor = self._registry.get(tokens[0])
        if descriptor is None:
            msg = f"unknown command '{tokens[0]}'"
            error = UnknownCommandError(msg)
            self._record("", tokens[0], error)
            raise error
        if context.database >= self._settings.database_count:
            msg = f"DB index is out of range: {context.database}"
            error = ClassificationError(msg)
            self._record(descriptor.module, descriptor.name, error)
            raise error

        replication_log = self._replication_log if self._settings.replication_enabled else None
        try:
            classification = classify_invocation(descriptor, tokens)
            with self._locks.acquire(
                classification, context.database, timeout=self._settings.lock_timeout
            ):
                return run_handler(
                    descriptor,
                    context,
                    tokens,
                    self._store,
                    classification,
                    replication_log=replication_log,
                    cancel_event=cancel_event,
                )
        except CommandError as exc:
            self._record(descriptor.module, descriptor.name, exc)
            raise

    def _record(self, module: str, command: str, error: CommandError) -> None:
        logger.warning("Command %s failed: %s", command, error.message)
        self._errors.append(
            CommandFailure(
                module=module,
                command=command,
                error_type=type(error).__name__,
                message=error.message,
            )
        )
