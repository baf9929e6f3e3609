"""Host store interface and an in-memory multi-database implementation."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Mapping
from typing import Protocol

from kv_modules.marshal import Value, detach, to_value
from kv_modules.values import NIL, Nil

logger = logging.getLogger(__name__)


class Store(Protocol):
    """Operations the bridge needs from the host store."""

    def exists(self, database: int, keys: Iterable[str]) -> dict[str, bool]:
        """Report whether each key holds a value."""
        ...

    def get(self, database: int, keys: Iterable[str]) -> dict[str, Value]:
        """Return the value of each key, ``NIL`` when absent."""
        ...

    def apply(self, database: int, writes: Mapping[str, Value]) -> None:
        """Apply a batch of writes in one atomic step."""
        ...


class MemoryStore:
    """Dictionary-backed store with numbered logical databases.

    Writing ``NIL`` to a key deletes it. Hash values are copied on the way in
    and on the way out so no caller shares an instance with the store.
    """

    def __init__(self, database_count: int = 16) -> None:
        if database_count <= 0:
            message = "database_count must be positive"
            raise ValueError(message)
        self._databases: list[dict[str, Value]] = [{} for _ in range(database_count)]
        self._lock = threading.RLock()

    @property
    def database_count(self) -> int:
        """Number of logical databases."""
        return len(self._databases)

    def _database(self, database: int) -> dict[str, Value]:
        if not 0 <= database < len(self._databases):
            message = f"DB index is out of range: {database}"
            raise ValueError(message)
        return self._databases[database]

    def exists(self, database: int, keys: Iterable[str]) -> dict[str, bool]:
        """Report whether each key holds a value."""
        with self._lock:
            data = self._database(database)
            return {key: key in data for key in keys}

    def get(self, database: int, keys: Iterable[str]) -> dict[str, Value]:
        """Return a detached copy of each key's value, ``NIL`` when absent."""
        with self._lock:
            data = self._database(database)
            return {key: detach(data.get(key, NIL)) for key in keys}

    def apply(self, database: int, writes: Mapping[str, Value]) -> None:
        """Apply every write or none of them."""
        prepared = {key: detach(to_value(value)) for key, value in writes.items()}
        with self._lock:
            data = self._database(database)
            for key, value in prepared.items():
                if isinstance(value, Nil):
                    data.pop(key, None)
                else:
                    data[key] = value
        logger.debug("Applied %d write(s) to database %d", len(prepared), database)

    def keys(self, database: int = 0) -> list[str]:
        """Return the keys currently held by a database."""
        with self._lock:
            return list(self._database(database))

    def flush(self, database: int | None = None) -> None:
        """Remove every key from one database, or from all of them."""
        with self._lock:
            targets = self._databases if database is None else [self._database(database)]
            for data in targets:
                data.clear()
