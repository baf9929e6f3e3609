"""Key lock table serializing invocations with conflicting key sets."""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from contextlib import contextmanager
from typing import TYPE_CHECKING

from kv_modules.errors import LockTimeoutError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from kv_modules.keys import KeyClassification

logger = logging.getLogger(__name__)

LockKey = tuple[int, str]


class KeyLockManager:
    """Shared/exclusive locks over ``(database, key)`` pairs.

    Read-only keys are taken shared and write keys exclusive. All locks of an
    invocation are granted together or not at all.
    """

    def __init__(self) -> None:
        self._condition = threading.Condition()
        self._readers: Counter[LockKey] = Counter()
        self._writers: set[LockKey] = set()

    def _available(self, reads: set[LockKey], writes: set[LockKey]) -> bool:
        if any(key in self._writers for key in reads):
            return False
        return not any(key in self._writers or self._readers[key] for key in writes)

    @contextmanager
    def acquire(
        self,
        classification: KeyClassification,
        database: int = 0,
        timeout: float | None = None,
    ) -> Iterator[None]:
        """Hold the locks for ``classification`` for the duration of the block.

        Raises:
            LockTimeoutError: If the locks are not granted within ``timeout`` seconds.
        """
        reads = {(database, key) for key in classification.read_only}
        writes = {(database, key) for key in classification.writable}
        deadline = None if timeout is None else time.monotonic() + timeout

        with self._condition:
            while not self._available(reads, writes):
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    logger.debug("Lock wait expired: reads=%s writes=%s", reads, writes)
                    message = f"timed out waiting for key locks in database {database}"
                    raise LockTimeoutError(message)
                self._condition.wait(remaining)
            self._readers.update(reads)
            self._writers.update(writes)

        try:
            yield
        finally:
            with self._condition:
                self._readers.subtract(reads)
                for key in reads:
                    if self._readers[key] <= 0:
                        del self._readers[key]
                self._writers.difference_update(writes)
                self._condition.notify_all()

    def held(self) -> dict[str, list[LockKey]]:
        """Return the currently held locks, for diagnostics."""
        with self._condition:
            return {"shared": sorted(self._readers), "exclusive": sorted(self._writers)}
