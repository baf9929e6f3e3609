"""Declared key classification for command invocations."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from kv_modules.errors import ClassificationError
from kv_modules.utils import dedupe

Classifier = Callable[[Sequence[str], Sequence[str]], Any]

_READ_NAMES = ("readKeys", "read_keys")
_WRITE_NAMES = ("writeKeys", "write_keys")


def _normalize_keys(keys: Iterable[str] | None, label: str) -> tuple[str, ...]:
    if keys is None:
        return ()
    if isinstance(keys, str):
        message = f"{label} must be a sequence of keys, not a single string"
        raise TypeError(message)
    normalized = list(keys)
    for key in normalized:
        if not isinstance(key, str):
            message = f"{label} entries must be strings, got {type(key).__name__}"
            raise TypeError(message)
    return tuple(dedupe(normalized))


@dataclass(frozen=True)
class KeyClassification:
    """Keys an invocation may read and write, fixed before it runs."""

    read_keys: tuple[str, ...] = ()
    write_keys: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "read_keys", _normalize_keys(self.read_keys, "read_keys"))
        object.__setattr__(self, "write_keys", _normalize_keys(self.write_keys, "write_keys"))

    @property
    def readable(self) -> frozenset[str]:
        """Keys the handler may read."""
        return frozenset(self.read_keys) | frozenset(self.write_keys)

    @property
    def writable(self) -> frozenset[str]:
        """Keys the handler may write."""
        return frozenset(self.write_keys)

    @property
    def read_only(self) -> frozenset[str]:
        """Keys declared for reading but not writing."""
        return frozenset(self.read_keys) - frozenset(self.write_keys)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> KeyClassification:
        """Build a classification from ``readKeys``/``writeKeys`` style mappings."""
        read_keys = next((data[name] for name in _READ_NAMES if name in data), None)
        write_keys = next((data[name] for name in _WRITE_NAMES if name in data), None)
        return cls(read_keys=read_keys, write_keys=write_keys)

    def to_dict(self) -> dict[str, list[str]]:
        """Serialize in the ``readKeys``/``writeKeys`` wire shape."""
        return {"readKeys": list(self.read_keys), "writeKeys": list(self.write_keys)}


def require_arity(tokens: Sequence[str], expected: int, *, at_least: bool = False) -> None:
    """Fail unless ``tokens`` carries ``expected`` arguments after the command name.

    Raises:
        ClassificationError: If the argument count does not match.
    """
    count = len(tokens) - 1
    if count == expected or (at_least and count >= expected):
        return
    qualifier = "at least " if at_least else ""
    message = f"wrong number of args, expected {qualifier}{expected}."
    raise ClassificationError(message)


def classify(
    classifier: Classifier, tokens: Sequence[str], module_args: Sequence[str]
) -> KeyClassification:
    """Run a classifier and normalize its result.

    Any failure, including a malformed result, is reported as a
    ``ClassificationError`` carrying the original message.
    """
    try:
        result = classifier(tuple(tokens), tuple(module_args))
    except ClassificationError:
        raise
    except Exception as exc:
        raise ClassificationError(str(exc)) from exc

    if isinstance(result, KeyClassification):
        return result
    if isinstance(result, Mapping):
        try:
            return KeyClassification.from_mapping(result)
        except TypeError as exc:
            raise ClassificationError(str(exc)) from exc
    message = f"classifier returned {type(result).__name__}, expected read/write key sets"
    raise ClassificationError(message)
