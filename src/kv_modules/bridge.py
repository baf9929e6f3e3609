"""Scope-checked store access handed to command handlers."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import TYPE_CHECKING, Any

from kv_modules.errors import InvocationCancelledError, KeyAccessError
from kv_modules.marshal import Value, detach, to_value
from kv_modules.values import Nil

if TYPE_CHECKING:
    import threading

    from kv_modules.keys import KeyClassification
    from kv_modules.store import Store

logger = logging.getLogger(__name__)


def _key_list(keys: Iterable[str] | str) -> list[str]:
    if isinstance(keys, str):
        return [keys]
    return list(keys)


class WriteSet:
    """Writes buffered by one invocation until it commits.

    Values are marshalled and detached when staged; a later write to the same
    key replaces the earlier one.
    """

    def __init__(self) -> None:
        self._writes: dict[str, Value] = {}

    def stage(self, writes: Mapping[str, Any]) -> None:
        """Buffer a batch of writes; nothing is staged if any value is invalid."""
        prepared = {key: detach(to_value(value)) for key, value in writes.items()}
        self._writes.update(prepared)

    def get(self, key: str) -> Value | None:
        """Return the buffered value for ``key``, or None if it was not written."""
        value = self._writes.get(key)
        return detach(value) if value is not None else None

    def as_dict(self) -> dict[str, Value]:
        """Return a detached copy of the buffered writes."""
        return {key: detach(value) for key, value in self._writes.items()}

    def commit(
        self, store: Store, database: int, cancel_event: threading.Event | None = None
    ) -> dict[str, Value]:
        """Apply the buffered writes to ``store`` in a single step.

        Nothing is applied once ``cancel_event`` is set.
        """
        if cancel_event is not None and cancel_event.is_set():
            message = "invocation cancelled"
            raise InvocationCancelledError(message)
        writes = self.as_dict()
        if writes:
            store.apply(database, writes)
        return writes

    def discard(self) -> None:
        """Drop everything buffered so far."""
        self._writes.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._writes

    def __iter__(self) -> Iterator[str]:
        return iter(self._writes)

    def __len__(self) -> int:
        return len(self._writes)


class StoreBridge:
    """The only path by which a handler reads or writes the store.

    Built fresh for each invocation from its key classification. Reads are
    limited to declared read or write keys, writes to declared write keys.
    Reads see the committed store overlaid with this invocation's own
    buffered writes.
    """

    def __init__(
        self,
        store: Store,
        database: int,
        classification: KeyClassification,
        *,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self._store = store
        self._database = database
        self._readable = classification.readable
        self._writable = classification.writable
        self._cancel_event = cancel_event
        self._closed = False
        self.writes = WriteSet()

    @property
    def database(self) -> int:
        """Database the invocation runs against."""
        return self._database

    @property
    def closed(self) -> bool:
        """Whether the owning invocation has ended."""
        return self._closed

    def close(self) -> None:
        """Invalidate the bridge once its invocation ends."""
        self._closed = True

    def key_exists(self, keys: Iterable[str] | str) -> dict[str, bool]:
        """Report whether each key currently holds a value."""
        names = _key_list(keys)
        self._check(names, self._readable, "read")
        result = self._store.exists(self._database, names)
        for name in names:
            staged = self.writes.get(name)
            if staged is not None:
                result[name] = not isinstance(staged, Nil)
        return {name: bool(result.get(name, False)) for name in names}

    def get_values(self, keys: Iterable[str] | str) -> dict[str, Value]:
        """Return the value of each key, ``NIL`` for absent keys."""
        names = _key_list(keys)
        self._check(names, self._readable, "read")
        result = self._store.get(self._database, names)
        for name in names:
            staged = self.writes.get(name)
            if staged is not None:
                result[name] = staged
        return {name: result[name] for name in names}

    def set_values(self, writes: Mapping[str, Any]) -> None:
        """Buffer writes; they reach the store only if the handler succeeds."""
        if not isinstance(writes, Mapping):
            message = f"set_values expects a mapping of key to value, got {type(writes).__name__}"
            raise TypeError(message)
        self._check(list(writes), self._writable, "write")
        self.writes.stage(writes)
        logger.debug("Buffered %d write(s)", len(writes))

    def _check(self, keys: list[str], allowed: frozenset[str], access: str) -> None:
        if self._closed:
            message = "store bridge used after its invocation ended"
            raise KeyAccessError(message)
        if self._cancel_event is not None and self._cancel_event.is_set():
            message = "invocation cancelled"
            raise InvocationCancelledError(message)
        undeclared = [key for key in keys if key not in allowed]
        if undeclared:
            joined = ", ".join(repr(key) for key in undeclared)
            message = f"{access} access to undeclared key(s): {joined}"
            raise KeyAccessError(message)
