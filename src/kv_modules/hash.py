"""Hash (string-keyed mapping) value type."""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from kv_modules.errors import WrongTypeError
from kv_modules.values import NIL, Nil, Number, String, format_number

if TYPE_CHECKING:
    from kv_modules.marshal import Value


def _field_names(fields: Iterable[str] | str) -> list[str]:
    if isinstance(fields, str):
        return [fields]
    names = list(fields)
    for name in names:
        if not isinstance(name, str):
            message = f"Hash field names must be strings, got {type(name).__name__}"
            raise TypeError(message)
    return names


def _field_value(value: Any) -> String:
    if isinstance(value, String):
        return value
    if isinstance(value, str):
        return String(value)
    if isinstance(value, Number):
        return String(str(value))
    if isinstance(value, int | float) and not isinstance(value, bool):
        return String(format_number(float(value)))
    message = f"Hash field values must be strings or numbers, got {type(value).__name__}"
    raise TypeError(message)


def _coerce_fields(fields: Mapping[str, Any]) -> dict[str, String]:
    if not isinstance(fields, Mapping):
        message = f"Hash fields must be a mapping, got {type(fields).__name__}"
        raise TypeError(message)
    coerced: dict[str, String] = {}
    for name, value in fields.items():
        if not isinstance(name, str):
            message = f"Hash field names must be strings, got {type(name).__name__}"
            raise TypeError(message)
        coerced[name] = _field_value(value)
    return coerced


class Hash:
    """Mapping of unique field names to string values.

    Every operation holds the instance lock for its whole duration, so no
    caller observes a partially applied mutation. Inputs are validated before
    anything is written; a rejected call leaves the hash unchanged.
    """

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self._lock = threading.RLock()
        self._fields: dict[str, String] = _coerce_fields(fields) if fields else {}

    def set(self, fields: Mapping[str, Any]) -> int:
        """Upsert every field and return the number of fields given."""
        coerced = _coerce_fields(fields)
        with self._lock:
            self._fields.update(coerced)
        return len(coerced)

    def setnx(self, fields: Mapping[str, Any]) -> int:
        """Insert only absent fields and return how many were inserted."""
        coerced = _coerce_fields(fields)
        inserted = 0
        with self._lock:
            for name, value in coerced.items():
                if name in self._fields:
                    continue
                self._fields[name] = value
                inserted += 1
        return inserted

    def get(self, fields: Iterable[str] | str) -> dict[str, Value]:
        """Return the stored value for each field, ``NIL`` when absent."""
        names = _field_names(fields)
        with self._lock:
            return {name: self._fields.get(name, NIL) for name in names}

    def length(self) -> int:
        """Return the number of fields."""
        with self._lock:
            return len(self._fields)

    def delete(self, fields: Iterable[str] | str) -> int:
        """Remove the given fields and return how many existed."""
        names = _field_names(fields)
        removed = 0
        with self._lock:
            for name in names:
                if self._fields.pop(name, None) is not None:
                    removed += 1
        return removed

    def all(self) -> dict[str, Value]:
        """Return a snapshot of every field."""
        with self._lock:
            return dict(self._fields)

    def exists(self, fields: Iterable[str] | str) -> dict[str, bool]:
        """Report whether each field is present."""
        names = _field_names(fields)
        with self._lock:
            return {name: name in self._fields for name in names}

    def copy(self) -> Hash:
        """Return an independent hash with the same fields."""
        clone = Hash()
        clone._fields = self.all()  # noqa: SLF001
        return clone

    def to_dict(self) -> dict[str, str]:
        """Return the fields as plain strings."""
        return {name: value.value for name, value in self.all().items()}

    def __len__(self) -> int:
        return self.length()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._fields

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Hash):
            return NotImplemented
        return self.all() == other.all()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Hash({self.to_dict()!r})"


def create_hash(fields: Mapping[str, Any] | None = None) -> Hash:
    """Create a handler-local hash, optionally seeded with fields."""
    return Hash(fields)


def as_hash(value: Value, key: str) -> Hash | None:
    """Return ``value`` as a hash, ``None`` for an absent key.

    Raises:
        WrongTypeError: If the key holds a value of another type.
    """
    if isinstance(value, Nil):
        return None
    if isinstance(value, Hash):
        return value
    message = f"WRONGTYPE key '{key}' does not hold a hash"
    raise WrongTypeError(message)
