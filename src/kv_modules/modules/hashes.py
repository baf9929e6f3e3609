"""Hash commands (``HSET`` family) built on the store bridge."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kv_modules.errors import ClassificationError
from kv_modules.hash import Hash, as_hash
from kv_modules.keys import KeyClassification, require_arity
from kv_modules.values import NIL

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from kv_modules.bridge import StoreBridge
    from kv_modules.extensions.api import ModuleAPI
    from kv_modules.extensions.models import InvocationContext


@dataclass(frozen=True)
class HashCommand:
    """Single-key hash command with a fixed or minimum arity."""

    arity: int
    handler: Callable[[str, Sequence[str], StoreBridge], Any]
    write: bool = False
    at_least: bool = False
    pairs: bool = False

    def classify(self, tokens: Sequence[str], module_args: Sequence[str]) -> KeyClassification:
        """Declare the single hash key as read or written."""
        require_arity(tokens, self.arity, at_least=self.at_least)
        if self.pairs and len(tokens[2:]) % 2:
            message = "wrong number of args, expected field value pairs."
            raise ClassificationError(message)
        key = tokens[1]
        if self.write:
            return KeyClassification(write_keys=(key,))
        return KeyClassification(read_keys=(key,))

    def handle(
        self,
        context: InvocationContext,
        tokens: Sequence[str],
        bridge: StoreBridge,
        module_args: Sequence[str],
    ) -> Any:
        """Run the command against the key named by the first argument."""
        return self.handler(tokens[1], tokens[2:], bridge)


def _load(bridge: StoreBridge, key: str) -> Hash | None:
    return as_hash(bridge.get_values([key])[key], key)


def _hset(key: str, args: Sequence[str], bridge: StoreBridge) -> int:
    current = _load(bridge, key) or Hash()
    count = current.set(dict(zip(args[0::2], args[1::2], strict=True)))
    bridge.set_values({key: current})
    return count


def _hsetnx(key: str, args: Sequence[str], bridge: StoreBridge) -> int:
    current = _load(bridge, key) or Hash()
    inserted = current.setnx({args[0]: args[1]})
    if inserted:
        bridge.set_values({key: current})
    return inserted


def _hget(key: str, args: Sequence[str], bridge: StoreBridge) -> Any:
    current = _load(bridge, key)
    if current is None:
        return NIL
    return current.get([args[0]])[args[0]]


def _hmget(key: str, args: Sequence[str], bridge: StoreBridge) -> list[Any]:
    current = _load(bridge, key)
    if current is None:
        return [NIL for _ in args]
    values = current.get(args)
    return [values[field] for field in args]


def _hlen(key: str, args: Sequence[str], bridge: StoreBridge) -> int:
    current = _load(bridge, key)
    return 0 if current is None else current.length()


def _hdel(key: str, args: Sequence[str], bridge: StoreBridge) -> int:
    current = _load(bridge, key)
    if current is None:
        return 0
    removed = current.delete(args)
    if removed:
        # An empty hash is never stored; the key goes away with its last field.
        bridge.set_values({key: current if current.length() else NIL})
    return removed


def _hgetall(key: str, args: Sequence[str], bridge: StoreBridge) -> dict[str, Any]:
    current = _load(bridge, key)
    return {} if current is None else current.all()


def _hexists(key: str, args: Sequence[str], bridge: StoreBridge) -> int:
    current = _load(bridge, key)
    if current is None:
        return 0
    return int(current.exists([args[0]])[args[0]])


COMMANDS: dict[str, tuple[HashCommand, str]] = {
    "HSET": (
        HashCommand(3, _hset, write=True, at_least=True, pairs=True),
        "(HSET key field value [field value ...]) Set fields of a hash, overwriting existing ones.",
    ),
    "HSETNX": (
        HashCommand(3, _hsetnx, write=True),
        "(HSETNX key field value) Set a hash field only if it does not exist.",
    ),
    "HGET": (HashCommand(2, _hget), "(HGET key field) Get the value of a hash field."),
    "HMGET": (
        HashCommand(2, _hmget, at_least=True),
        "(HMGET key field [field ...]) Get the values of several hash fields.",
    ),
    "HLEN": (HashCommand(1, _hlen), "(HLEN key) Get the number of fields in a hash."),
    "HDEL": (
        HashCommand(2, _hdel, write=True, at_least=True),
        "(HDEL key field [field ...]) Delete hash fields, returning how many existed.",
    ),
    "HGETALL": (HashCommand(1, _hgetall), "(HGETALL key) Get every field and value of a hash."),
    "HEXISTS": (
        HashCommand(2, _hexists),
        "(HEXISTS key field) Report whether a hash field exists.",
    ),
}


def register(api: ModuleAPI) -> None:
    """Register the hash commands."""
    for name, (command, description) in COMMANDS.items():
        categories = ["hash", "write" if command.write else "read", "fast"]
        api.register_command(
            name,
            command,
            categories=categories,
            description=description,
            replicate=command.write,
        )
