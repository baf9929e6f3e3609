"""RESP2/RESP3 encoding of handler responses."""

from __future__ import annotations

import re
from collections.abc import Mapping, Set
from dataclasses import dataclass
from typing import Any

from kv_modules.hash import Hash
from kv_modules.values import Nil, Number, SetValue, SortedSetValue, String, format_number

CRLF = b"\r\n"
_ERROR_CODE = re.compile(r"^[A-Z][A-Z_]+ ")


@dataclass(frozen=True)
class SimpleString:
    """Status reply such as ``+OK``."""

    value: str


OK = SimpleString("OK")


def _bulk(text: str) -> bytes:
    data = text.encode("utf-8")
    return b"$" + str(len(data)).encode() + CRLF + data + CRLF


def _null(protocol: int) -> bytes:
    return b"_\r\n" if protocol >= 3 else b"$-1\r\n"


def _double(value: float, protocol: int) -> bytes:
    text = format_number(value)
    if protocol >= 3:
        return b"," + text.encode() + CRLF
    return _bulk(text)


def _aggregate(prefix: bytes, items: list[bytes], count: int | None = None) -> bytes:
    size = len(items) if count is None else count
    return prefix + str(size).encode() + CRLF + b"".join(items)


def _encode_map(pairs: list[tuple[Any, Any]], protocol: int) -> bytes:
    items: list[bytes] = []
    for field, value in pairs:
        items.append(encode_response(field, protocol))
        items.append(encode_response(value, protocol))
    if protocol >= 3:
        return _aggregate(b"%", items, count=len(pairs))
    return _aggregate(b"*", items)


def _encode_set(members: list[Any], protocol: int) -> bytes:
    items = [encode_response(member, protocol) for member in members]
    return _aggregate(b"~" if protocol >= 3 else b"*", items)


def encode_error(message: str) -> bytes:
    """Encode an error reply, adding the generic ``ERR`` code when none is present."""
    text = " ".join(message.splitlines()) or "unknown error"
    if not _ERROR_CODE.match(text):
        text = f"ERR {text}"
    return b"-" + text.encode("utf-8") + CRLF


def encode_response(value: Any, protocol: int = 2) -> bytes:
    """Encode a handler response for a client speaking ``protocol``.

    Raises:
        TypeError: If the response has no wire representation.
    """
    if isinstance(value, bytes):
        return value
    if value is None or isinstance(value, Nil):
        return _null(protocol)
    if isinstance(value, SimpleString):
        return b"+" + value.value.encode("utf-8") + CRLF
    if isinstance(value, bool):
        if protocol >= 3:
            return b"#t\r\n" if value else b"#f\r\n"
        return b":1\r\n" if value else b":0\r\n"
    if isinstance(value, int):
        return b":" + str(value).encode() + CRLF
    if isinstance(value, float):
        return _double(value, protocol)
    if isinstance(value, Number):
        return _double(value.value, protocol)
    if isinstance(value, str):
        return _bulk(value)
    if isinstance(value, String):
        return _bulk(value.value)
    if isinstance(value, Hash):
        return _encode_map(list(value.all().items()), protocol)
    if isinstance(value, Mapping):
        return _encode_map(list(value.items()), protocol)
    if isinstance(value, SetValue):
        return _encode_set(sorted(value.members, key=str), protocol)
    if isinstance(value, Set):
        return _encode_set(sorted(value, key=str), protocol)
    if isinstance(value, SortedSetValue):
        if protocol >= 3:
            pairs = [_aggregate(b"*", [encode_response(m, 3), _double(s, 3)]) for m, s in value.entries]
            return _aggregate(b"*", pairs)
        flat: list[bytes] = []
        for member, score in value.entries:
            flat.append(encode_response(member, protocol))
            flat.append(_double(score, protocol))
        return _aggregate(b"*", flat)
    if isinstance(value, list | tuple):
        return _aggregate(b"*", [encode_response(item, protocol) for item in value])
    if isinstance(value, Exception):
        return encode_error(str(value))
    message = f"Cannot encode response of type {type(value).__name__}"
    raise TypeError(message)
