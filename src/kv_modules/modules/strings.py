"""Plain value commands: ``SET``, ``GET`` and ``MGET``."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Any

from kv_modules.errors import WrongTypeError
from kv_modules.keys import KeyClassification, require_arity
from kv_modules.resp import OK
from kv_modules.values import NIL, Nil, Number, String

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kv_modules.bridge import StoreBridge
    from kv_modules.extensions.api import ModuleAPI
    from kv_modules.extensions.models import InvocationContext
    from kv_modules.marshal import Value


def adapt_type(raw: str) -> Number | String:
    """Store numeric strings as numbers and everything else as strings."""
    try:
        number = float(raw)
    except ValueError:
        return String(raw)
    if math.isnan(number):
        return String(raw)
    return Number(number)


def _plain(value: Value, key: str) -> Value:
    if isinstance(value, Number | String | Nil):
        return value
    message = f"WRONGTYPE key '{key}' does not hold a plain value"
    raise WrongTypeError(message)


def classify_set(tokens: Sequence[str], module_args: Sequence[str]) -> KeyClassification:
    require_arity(tokens, 2)
    return KeyClassification(write_keys=(tokens[1],))


def handle_set(
    context: InvocationContext, tokens: Sequence[str], bridge: StoreBridge, module_args: Sequence[str]
) -> Any:
    bridge.set_values({tokens[1]: adapt_type(tokens[2])})
    return OK


def classify_get(tokens: Sequence[str], module_args: Sequence[str]) -> KeyClassification:
    require_arity(tokens, 1)
    return KeyClassification(read_keys=(tokens[1],))


def handle_get(
    context: InvocationContext, tokens: Sequence[str], bridge: StoreBridge, module_args: Sequence[str]
) -> Any:
    key = tokens[1]
    return _plain(bridge.get_values([key])[key], key)


def classify_mget(tokens: Sequence[str], module_args: Sequence[str]) -> KeyClassification:
    require_arity(tokens, 1, at_least=True)
    return KeyClassification(read_keys=tuple(tokens[1:]))


def handle_mget(
    context: InvocationContext, tokens: Sequence[str], bridge: StoreBridge, module_args: Sequence[str]
) -> Any:
    keys = list(tokens[1:])
    values = bridge.get_values(keys)
    return [value if isinstance(value, Number | String) else NIL for value in (values[k] for k in keys)]


def register(api: ModuleAPI) -> None:
    """Register the plain value commands."""
    api.register_command(
        "SET",
        classify=classify_set,
        handle=handle_set,
        categories=["string", "write", "slow"],
        description="(SET key value) Set the value of a key.",
        replicate=True,
    )
    api.register_command(
        "GET",
        classify=classify_get,
        handle=handle_get,
        categories=["string", "read", "fast"],
        description="(GET key) Get the value of a key.",
    )
    api.register_command(
        "MGET",
        classify=classify_mget,
        handle=handle_mget,
        categories=["string", "read", "fast"],
        description="(MGET key [key ...]) Get the values of several keys.",
    )
