"""Replication log interface fed by replicated commands."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from kv_modules.marshal import detach, to_native
from kv_modules.utils import utc_timestamp

if TYPE_CHECKING:
    from kv_modules.marshal import Value


@dataclass(frozen=True)
class ReplicationEntry:
    """One committed invocation to be applied on every replica."""

    database: int
    command: tuple[str, ...]
    writes: dict[str, Value]
    timestamp: str = field(default_factory=utc_timestamp)

    def __post_init__(self) -> None:
        object.__setattr__(self, "command", tuple(self.command))
        object.__setattr__(
            self, "writes", {key: detach(value) for key, value in self.writes.items()}
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize the entry to JSON-compatible data."""
        return {
            "database": self.database,
            "command": list(self.command),
            "writes": {key: _jsonable(to_native(value)) for key, value in self.writes.items()},
            "timestamp": self.timestamp,
        }


def _jsonable(value: Any) -> Any:
    if isinstance(value, set):
        return sorted(value, key=str)
    if isinstance(value, list):
        return [list(item) for item in value]
    return value


class ReplicationLog(Protocol):
    """Consensus log that replicated invocations are appended to."""

    def append(self, entry: ReplicationEntry) -> None:
        """Append a committed invocation."""
        ...


class InMemoryReplicationLog:
    """Replication log that keeps entries in process memory."""

    def __init__(self) -> None:
        self._entries: list[ReplicationEntry] = []
        self._lock = threading.Lock()

    def append(self, entry: ReplicationEntry) -> None:
        """Append a committed invocation."""
        with self._lock:
            self._entries.append(entry)

    @property
    def entries(self) -> list[ReplicationEntry]:
        """Return a copy of the appended entries in order."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
