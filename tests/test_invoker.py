from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest
from kv_modules import (
    NIL,
    ClassificationError,
    CommandDescriptor,
    Hash,
    HandlerError,
    InMemoryReplicationLog,
    InvocationCancelledError,
    InvocationContext,
    KeyAccessError,
    KeyClassification,
    MemoryStore,
    Number,
    String,
    invoke,
    require_arity,
)
from kv_modules.extensions import FunctionCommand


def _two_key_classifier(tokens, _args):
    require_arity(tokens, 2)
    return {"readKeys": [], "writeKeys": [tokens[1], tokens[2]]}


def _descriptor(handler, classifier=_two_key_classifier, *, replicate=True, args=()):
    return CommandDescriptor(
        name="TEST.CMD",
        implementation=FunctionCommand(classifier=classifier, handler=handler),
        categories=frozenset({"write"}),
        description="test command",
        replicate=replicate,
        module_args=args,
    )


def test_successful_invocation_commits_and_replicates(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    def handler(context, tokens, bridge, module_args):
        bridge.set_values({tokens[1]: Hash({"a": "1"}), tokens[2]: 5})
        return "done"

    result = invoke(
        _descriptor(handler),
        InvocationContext(protocol=3, database=1),
        ["TEST.CMD", "k1", "k2"],
        store,
        replication_log=replication_log,
    )

    assert result.response == "done"
    assert result.replicated is True
    assert store.get(1, ["k1", "k2"]) == {"k1": Hash({"a": "1"}), "k2": Number(5)}
    [entry] = replication_log.entries
    assert entry.database == 1
    assert entry.command == ("TEST.CMD", "k1", "k2")
    assert entry.writes == {"k1": Hash({"a": "1"}), "k2": Number(5)}


def test_handler_receives_context_tokens_and_module_args(store: MemoryStore) -> None:
    seen = {}

    def handler(context, tokens, bridge, module_args):
        seen["context"] = context.to_dict()
        seen["tokens"] = tokens
        seen["args"] = module_args

    invoke(
        _descriptor(handler, args=("x", "y")),
        InvocationContext(protocol=2, database=0),
        ["TEST.CMD", "a", "b"],
        store,
    )
    assert seen == {
        "context": {"protocol": 2, "database": 0},
        "tokens": ("TEST.CMD", "a", "b"),
        "args": ("x", "y"),
    }


def test_classification_failure_touches_nothing(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    store.apply(0, {"k1": String("before")})
    calls = []

    def handler(context, tokens, bridge, module_args):
        calls.append(tokens)

    with pytest.raises(ClassificationError, match="wrong number of args"):
        invoke(
            _descriptor(handler),
            InvocationContext(),
            ["TEST.CMD", "k1"],
            store,
            replication_log=replication_log,
        )
    assert calls == []
    assert store.get(0, ["k1"]) == {"k1": String("before")}
    assert len(replication_log) == 0


def test_failed_handler_discards_all_buffered_writes(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    def handler(context, tokens, bridge, module_args):
        bridge.set_values({"k1": "one"})
        bridge.set_values({"k2": "two"})
        raise RuntimeError("handler exploded")

    with pytest.raises(HandlerError, match="^handler exploded$") as excinfo:
        invoke(
            _descriptor(handler),
            InvocationContext(),
            ["TEST.CMD", "k1", "k2"],
            store,
            replication_log=replication_log,
        )
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert store.get(0, ["k1", "k2"]) == {"k1": NIL, "k2": NIL}
    assert len(replication_log) == 0


def test_write_to_undeclared_key_fails_invocation(store: MemoryStore) -> None:
    def handler(context, tokens, bridge, module_args):
        bridge.set_values({"k1": "a"})
        bridge.set_values({"k3": "c"})

    with pytest.raises(KeyAccessError):
        invoke(_descriptor(handler), InvocationContext(), ["TEST.CMD", "k1", "k2"], store)
    assert store.keys(0) == []


def test_non_replicated_command_produces_no_entry(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    def handler(context, tokens, bridge, module_args):
        bridge.set_values({"k1": "a"})

    result = invoke(
        _descriptor(handler, replicate=False),
        InvocationContext(),
        ["TEST.CMD", "k1", "k2"],
        store,
        replication_log=replication_log,
    )
    assert result.replicated is False
    assert result.writes == {"k1": String("a")}
    assert len(replication_log) == 0


def test_cancelled_invocation_does_not_commit(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    cancel = threading.Event()

    def handler(context, tokens, bridge, module_args):
        bridge.set_values({"k1": "a"})
        cancel.set()

    with pytest.raises(InvocationCancelledError):
        invoke(
            _descriptor(handler),
            InvocationContext(),
            ["TEST.CMD", "k1", "k2"],
            store,
            replication_log=replication_log,
            cancel_event=cancel,
        )
    assert store.keys(0) == []
    assert len(replication_log) == 0


def test_bridge_is_unusable_after_invocation(store: MemoryStore) -> None:
    leaked = []

    def handler(context, tokens, bridge, module_args):
        leaked.append(bridge)

    invoke(_descriptor(handler), InvocationContext(), ["TEST.CMD", "k1", "k2"], store)
    with pytest.raises(KeyAccessError):
        leaked[0].set_values({"k1": "late"})


def test_read_only_command_sees_store(store: MemoryStore) -> None:
    store.apply(0, {"r": String("v")})

    def classifier(tokens, _args):
        return KeyClassification(read_keys=(tokens[1],))

    def handler(context, tokens, bridge, module_args):
        return bridge.get_values([tokens[1]])[tokens[1]]

    result = invoke(
        _descriptor(handler, classifier, replicate=False),
        InvocationContext(),
        ["TEST.CMD", "r"],
        store,
    )
    assert result.response == String("v")
    assert result.writes == {}


@pytest.mark.parametrize(("protocol", "database"), [(1, 0), (3, -1)])
def test_invalid_context(protocol: int, database: int) -> None:
    with pytest.raises(ValueError):
        InvocationContext(protocol=protocol, database=database)


def test_replication_entry_is_appended_after_commit(store: MemoryStore) -> None:
    seen = []
    log = MagicMock()
    log.append.side_effect = lambda entry: seen.append(store.get(entry.database, ["k1"]))

    def handler(context, tokens, bridge, module_args):
        bridge.set_values({"k1": "v"})

    invoke(_descriptor(handler), InvocationContext(), ["TEST.CMD", "k1", "k2"], store, replication_log=log)

    log.append.assert_called_once()
    assert seen == [{"k1": String("v")}]


def test_replication_entry_does_not_share_values_with_result(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    def handler(context, tokens, bridge, module_args):
        bridge.set_values({tokens[1]: Hash({"a": "1"})})

    result = invoke(
        _descriptor(handler),
        InvocationContext(),
        ["TEST.CMD", "k1", "k2"],
        store,
        replication_log=replication_log,
    )
    result.writes["k1"].set({"a": "changed"})

    [entry] = replication_log.entries
    assert entry.writes["k1"] == Hash({"a": "1"})
    assert store.get(0, ["k1"])["k1"] == Hash({"a": "1"})


def test_cancel_observed_at_commit_discards_writes(
    store: MemoryStore, replication_log: InMemoryReplicationLog
) -> None:
    cancel = MagicMock()
    cancel.is_set.side_effect = [False, True]

    def handler(context, tokens, bridge, module_args):
        bridge.set_values({"k1": "a"})

    with pytest.raises(InvocationCancelledError):
        invoke(
            _descriptor(handler),
            InvocationContext(),
            ["TEST.CMD", "k1", "k2"],
            store,
            replication_log=replication_log,
            cancel_event=cancel,
        )
    assert cancel.is_set.call_count == 2
    assert store.keys(0) == []
    assert len(replication_log) == 0
