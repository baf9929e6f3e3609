"""``PY.HASH``: a walkthrough of handler-local hashes written back through the bridge."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kv_modules.hash import create_hash
from kv_modules.keys import KeyClassification, require_arity
from kv_modules.resp import OK

if TYPE_CHECKING:
    from collections.abc import Sequence

    from kv_modules.bridge import StoreBridge
    from kv_modules.extensions.api import ModuleAPI
    from kv_modules.extensions.models import InvocationContext

logger = logging.getLogger(__name__)

COMMAND = "PY.HASH"
CATEGORIES = ("hash", "write", "fast")
DESCRIPTION = f"({COMMAND} key1 key2) Example of working with hashes in module commands."


def classify(tokens: Sequence[str], module_args: Sequence[str]) -> KeyClassification:
    """Both arguments are keys the command overwrites."""
    require_arity(tokens, 2)
    return KeyClassification(write_keys=(tokens[1], tokens[2]))


def handle(
    context: InvocationContext,
    tokens: Sequence[str],
    bridge: StoreBridge,
    module_args: Sequence[str],
) -> Any:
    """Exercise every hash operation, then store two hashes."""
    key1, key2 = tokens[1], tokens[2]

    hash1 = create_hash()
    logger.debug("HASH1 COUNT (SET): %d", hash1.set({"a": "1", "b": "2"}))
    logger.debug(
        "HASH1 COUNT (SETNX): %d",
        hash1.setnx({"b": "3", "c": "3", "d": "4", "e": "5"}),
    )
    for field, value in hash1.get(["a", "b", "c"]).items():
        logger.debug("HASH1 (GET): %s %s", field, value)
    logger.debug("HASH1 (LENGTH): %d", hash1.length())
    logger.debug("HASH1 COUNT (DELETE): %d", hash1.delete(["a", "b", "x", "y", "z"]))
    for field, value in hash1.all().items():
        logger.debug("HASH1 (ALL): %s %s", field, value)
    for field, exists in hash1.exists(["a", "b", "c", "d", "e"]).items():
        logger.debug("HASH1 (EXISTS): %s %s", field, exists)

    hash2 = create_hash({"a": "1", "b": "2", "c": "3"})

    bridge.set_values({key1: hash1, key2: hash2})
    return OK


def register(api: ModuleAPI) -> None:
    """Register ``PY.HASH``."""
    api.register_command(
        COMMAND,
        classify=classify,
        handle=handle,
        categories=CATEGORIES,
        description=DESCRIPTION,
        replicate=True,
    )
