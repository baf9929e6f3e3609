"""Classify, execute and commit a single command invocation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kv_modules.bridge import StoreBridge
from kv_modules.errors import CommandError, HandlerError
from kv_modules.extensions.models import InvocationResult
from kv_modules.keys import classify
from kv_modules.replication import ReplicationEntry
from kv_modules.telemetry.tracing import build_invocation_attributes, invocation_span

if TYPE_CHECKING:
    import threading
    from collections.abc import Sequence

    from kv_modules.extensions.models import CommandDescriptor, InvocationContext
    from kv_modules.keys import KeyClassification
    from kv_modules.replication import ReplicationLog
    from kv_modules.store import Store

logger = logging.getLogger(__name__)


def classify_invocation(descriptor: CommandDescriptor, tokens: Sequence[str]) -> KeyClassification:
    """Compute the declared keys of an invocation without touching the store."""
    classification = classify(descriptor.implementation.classify, tokens, descriptor.module_args)
    logger.debug(
        "Classified %s: read=%s write=%s",
        descriptor.name,
        classification.read_keys,
        classification.write_keys,
    )
    return classification


def run_handler(
    descriptor: CommandDescriptor,
    context: InvocationContext,
    tokens: Sequence[str],
    store: Store,
    classification: KeyClassification,
    *,
    replication_log: ReplicationLog | None = None,
    cancel_event: threading.Event | None = None,
) -> InvocationResult:
    """Run the handler of an already classified and locked invocation.

    Buffered writes are committed only when the handler returns and the
    invocation is not cancelled by the time of the commit. Replicated
    commands are appended to ``replication_log`` after the commit.
    """
    tokens = tuple(tokens)
    bridge = StoreBridge(store, context.database, classification, cancel_event=cancel_event)
    attributes = build_invocation_attributes(
        command=descriptor.name,
        database=context.database,
        protocol=int(context.protocol),
        module=descriptor.module,
        read_keys=len(classification.read_keys),
        write_keys=len(classification.write_keys),
    )
    with invocation_span(descriptor.name, attributes):
        try:
            response = descriptor.implementation.handle(
                context, tokens, bridge, descriptor.module_args
            )
            writes = bridge.writes.commit(store, context.database, cancel_event)
        except CommandError:
            bridge.writes.discard()
            raise
        except Exception as exc:
            bridge.writes.discard()
            raise HandlerError(str(exc)) from exc
        finally:
            bridge.close()

        replicated = False
        if descriptor.replicate and replication_log is not None:
            replication_log.append(
                ReplicationEntry(database=context.database, command=tokens, writes=writes)
            )
            replicated = True

    logger.debug(
        "Invoked %s: %d write(s), replicated=%s", descriptor.name, len(writes), replicated
    )
    return InvocationResult(
        response=response,
        classification=classification,
        writes=writes,
        replicated=replicated,
    )


def invoke(
    descriptor: CommandDescriptor,
    context: InvocationContext,
    tokens: Sequence[str],
    store: Store,
    *,
    replication_log: ReplicationLog | None = None,
    cancel_event: threading.Event | None = None,
) -> InvocationResult:
    """Classify and run one invocation end to end.

    Callers that need locking or access checks between the two steps use
    ``classify_invocation`` and ``run_handler`` directly.
    """
    classification = classify_invocation(descriptor, tokens)
    return run_handler(
        descriptor,
        context,
        tokens,
        store,
        classification,
        replication_log=replication_log,
        cancel_event=cancel_event,
    )
