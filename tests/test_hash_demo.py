from __future__ import annotations

import logging

import pytest
from kv_modules import OK, ClassificationError, Hash, InMemoryReplicationLog, ModuleRuntime


def test_py_hash_stores_both_hashes(
    runtime: ModuleRuntime, replication_log: InMemoryReplicationLog
) -> None:
    result = runtime.execute(["PY.HASH", "key1", "key2"])

    assert result.response == OK
    assert runtime.store.get(0, ["key1", "key2"]) == {
        "key1": Hash({"c": "3", "d": "4", "e": "5"}),
        "key2": Hash({"a": "1", "b": "2", "c": "3"}),
    }
    [entry] = replication_log.entries
    assert entry.command == ("PY.HASH", "key1", "key2")


def test_py_hash_overwrites_existing_values(runtime: ModuleRuntime) -> None:
    runtime.execute(["SET", "key1", "old"])
    runtime.execute(["py.hash", "key1", "key2"])
    assert runtime.execute(["HLEN", "key1"]).response == 3


def test_py_hash_logs_each_operation(
    runtime: ModuleRuntime, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.DEBUG, logger="kv_modules.modules.hash_demo"):
        runtime.execute(["PY.HASH", "key1", "key2"])
    messages = [record.getMessage() for record in caplog.records if record.name.endswith("hash_demo")]
    assert "HASH1 COUNT (SET): 2" in messages
    assert "HASH1 COUNT (SETNX): 3" in messages
    assert "HASH1 COUNT (DELETE): 2" in messages
    assert "HASH1 (LENGTH): 5" in messages


def test_py_hash_requires_two_keys(runtime: ModuleRuntime) -> None:
    with pytest.raises(ClassificationError):
        runtime.execute(["PY.HASH", "key1"])
