from __future__ import annotations

import pytest
from kv_modules import InMemoryReplicationLog, MemoryStore, ModuleRuntime, Settings
from kv_modules.modules import BUILTIN_MODULES


@pytest.fixture(autouse=True)
def _set_required_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KV_MODULES_DATABASE_COUNT", "16")
    monkeypatch.setenv("KV_MODULES_LOCK_TIMEOUT", "1")
    monkeypatch.setenv("KV_MODULES_REPLICATION_ENABLED", "true")
    monkeypatch.setenv("KV_MODULES_DEFAULT_PROTOCOL", "2")
    monkeypatch.delenv("KV_MODULES_MANIFEST", raising=False)
    monkeypatch.delenv("KV_MODULES_LOG_LEVEL", raising=False)


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore(database_count=4)


@pytest.fixture
def replication_log() -> InMemoryReplicationLog:
    return InMemoryReplicationLog()


@pytest.fixture
def runtime(store: MemoryStore, replication_log: InMemoryReplicationLog) -> ModuleRuntime:
    runtime = ModuleRuntime(
        store,
        settings=Settings(database_count=4, lock_timeout=0.5),
        replication_log=replication_log,
    )
    runtime.load_modules(BUILTIN_MODULES)
    return runtime
