"""Conversion between native Python values and tagged store values."""

from __future__ import annotations

from collections.abc import Mapping, Set
from typing import Any

from kv_modules.hash import Hash
from kv_modules.values import NIL, Nil, Number, SetValue, SortedSetValue, String

Value = Number | String | Nil | Hash | SetValue | SortedSetValue

VALUE_TYPES = (Number, String, Nil, Hash, SetValue, SortedSetValue)


def is_value(value: Any) -> bool:
    """Return True when ``value`` already carries a value tag."""
    return isinstance(value, VALUE_TYPES)


def to_value(raw: Any) -> Value:
    """Marshal a native Python value into a tagged value.

    Raises:
        TypeError: If the value has no tagged representation.
    """
    if is_value(raw):
        return raw
    if raw is None:
        return NIL
    if isinstance(raw, bool):
        message = "bool has no store representation; use a Number or String"
        raise TypeError(message)
    if isinstance(raw, int | float):
        return Number(raw)
    if isinstance(raw, str):
        return String(raw)
    if isinstance(raw, Mapping):
        return Hash(raw)
    if isinstance(raw, Set):
        return SetValue(frozenset(to_value(member) for member in raw))
    message = f"Unsupported value type: {type(raw).__name__}"
    raise TypeError(message)


def to_native(value: Value) -> Any:
    """Unmarshal a tagged value into plain Python data."""
    if isinstance(value, Number):
        return value.value
    if isinstance(value, String):
        return value.value
    if isinstance(value, Nil):
        return None
    if isinstance(value, Hash):
        return value.to_dict()
    if isinstance(value, SetValue):
        return {to_native(member) for member in value.members}
    if isinstance(value, SortedSetValue):
        return [(to_native(member), score) for member, score in value.entries]
    message = f"Unrecognized value tag: {type(value).__name__}"
    raise TypeError(message)


def detach(value: Value) -> Value:
    """Return a value that shares no mutable state with ``value``."""
    if isinstance(value, Hash):
        return value.copy()
    return value
