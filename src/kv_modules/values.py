"""Scalar and collection variants of values crossing the module boundary."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any


def format_number(value: float) -> str:
    """Render a number the way the store prints it (``1`` not ``1.0``)."""
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value.is_integer() and abs(value) < 1e17:
        return str(int(value))
    return repr(value)


@dataclass(frozen=True)
class Number:
    """64-bit floating point value."""

    value: float

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int | float):
            message = f"Number requires an int or float, got {type(self.value).__name__}"
            raise TypeError(message)
        object.__setattr__(self, "value", float(self.value))

    def __str__(self) -> str:
        return format_number(self.value)


@dataclass(frozen=True)
class String:
    """String value."""

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str):
            message = f"String requires a str, got {type(self.value).__name__}"
            raise TypeError(message)

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Nil:
    """Absent value."""

    def __bool__(self) -> bool:
        return False


NIL = Nil()

Scalar = Number | String | Nil


def _require_scalar(value: Any, label: str) -> None:
    if not isinstance(value, Number | String | Nil):
        message = f"{label} members must be Number, String or Nil, got {type(value).__name__}"
        raise TypeError(message)


@dataclass(frozen=True)
class SetValue:
    """Unordered set of scalar values."""

    members: frozenset[Scalar] = frozenset()

    def __post_init__(self) -> None:
        members = frozenset(self.members)
        for member in members:
            _require_scalar(member, "SetValue")
        object.__setattr__(self, "members", members)

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class SortedSetValue:
    """Scalar members paired with scores, kept ordered by score then member."""

    entries: tuple[tuple[Scalar, float], ...] = ()

    def __post_init__(self) -> None:
        scores: dict[Scalar, float] = {}
        for member, score in self.entries:
            _require_scalar(member, "SortedSetValue")
            scores[member] = float(score)
        ordered = sorted(scores.items(), key=lambda item: (item[1], str(item[0])))
        object.__setattr__(self, "entries", tuple(ordered))

    def __len__(self) -> int:
        return len(self.entries)
