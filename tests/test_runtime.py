from __future__ import annotations

import threading
from unittest.mock import patch

import pytest
from kv_modules import (
    NIL,
    ClassificationError,
    InMemoryReplicationLog,
    InvocationContext,
    KeyClassification,
    LockTimeoutError,
    MemoryStore,
    ModuleRuntime,
    Settings,
    String,
    UnknownCommandError,
)
from kv_modules.extensions import ModuleAPI
from kv_modules.modules import strings


def _echo_module(api: ModuleAPI) -> None:
    def classify(tokens, module_args):
        return KeyClassification()

    def handle(context, tokens, bridge, module_args):
        return [*tokens[1:], *module_args]

    api.register_command("Echo.Args", classify=classify, handle=handle, categories=["read"])


def _runtime(**kwargs) -> ModuleRuntime:
    return ModuleRuntime(MemoryStore(4), settings=Settings(database_count=4, **kwargs))


def test_lookup_is_case_insensitive() -> None:
    runtime = _runtime()
    runtime.load_module("echo", _echo_module, ["m1"])
    assert runtime.execute(["echo.args", "x"]).response == ["x", "m1"]
    assert runtime.execute(["ECHO.ARGS"]).response == ["m1"]
    assert "echo.args" in runtime.commands


def test_module_args_are_fixed_at_load() -> None:
    runtime = _runtime()
    args = ["a"]
    runtime.load_module("echo", _echo_module, args)
    args.append("b")
    assert runtime.commands["echo.args"].module_args == ("a",)


def test_unknown_command_is_recorded() -> None:
    runtime = _runtime()
    with pytest.raises(UnknownCommandError, match="nope"):
        runtime.execute(["NOPE"])
    assert runtime.errors[0].error_type == "UnknownCommandError"


def test_empty_command_is_rejected() -> None:
    with pytest.raises(ClassificationError):
        _runtime().execute([])


def test_duplicate_command_names_conflict() -> None:
    runtime = _runtime()
    runtime.load_module("echo", _echo_module)
    with pytest.raises(ValueError, match="already registered"):
        runtime.load_module("echo2", _echo_module)
    assert runtime.registry.modules() == ["echo"]


def test_module_loaded_twice_is_rejected() -> None:
    runtime = _runtime()
    runtime.load_module("echo", _echo_module)
    with pytest.raises(ValueError, match="already loaded"):
        runtime.load_module("echo", _echo_module)


def test_failing_factory_registers_nothing() -> None:
    runtime = _runtime()

    def broken(api: ModuleAPI) -> None:
        _echo_module(api)
        raise RuntimeError("load failed")

    with pytest.raises(RuntimeError):
        runtime.load_module("broken", broken)
    assert runtime.commands == {}


def test_unload_module_removes_commands() -> None:
    runtime = _runtime()
    runtime.load_module("echo", _echo_module)
    assert runtime.unload_module("echo") == ["Echo.Args"]
    with pytest.raises(UnknownCommandError):
        runtime.execute(["ECHO.ARGS"])


def test_database_out_of_range() -> None:
    runtime = _runtime()
    runtime.load_module("echo", _echo_module)
    with pytest.raises(ClassificationError, match="out of range"):
        runtime.execute(["ECHO.ARGS"], InvocationContext(database=9))


def test_context_uses_default_protocol() -> None:
    runtime = _runtime(default_protocol=3)
    assert runtime.context(database=2).to_dict() == {"protocol": 3, "database": 2}


def test_replication_can_be_disabled() -> None:
    log = InMemoryReplicationLog()
    runtime = ModuleRuntime(
        MemoryStore(4),
        settings=Settings(database_count=4, replication_enabled=False),
        replication_log=log,
    )
    runtime.load_module("strings", strings.register)
    result = runtime.execute(["SET", "k", "v"])
    assert result.replicated is False
    assert len(log) == 0
    assert runtime.store.get(0, ["k"]) == {"k": String("v")}


def test_conflicting_invocation_times_out_while_locked() -> None:
    runtime = _runtime(lock_timeout=0.05)
    entered = threading.Event()
    release = threading.Event()

    def slow_module(api: ModuleAPI) -> None:
        def classify(tokens, module_args):
            return KeyClassification(write_keys=(tokens[1],))

        def handle(context, tokens, bridge, module_args):
            entered.set()
            release.wait(2)
            bridge.set_values({tokens[1]: "slow"})

        api.register_command("SLOW", classify=classify, handle=handle)

    runtime.load_module("slow", slow_module)
    runtime.load_module("strings", strings.register)

    thread = threading.Thread(target=runtime.execute, args=(["SLOW", "k"],))
    thread.start()
    try:
        assert entered.wait(2)
        with pytest.raises(LockTimeoutError):
            runtime.execute(["GET", "k"])
        assert runtime.execute(["GET", "other"]).response == NIL
    finally:
        release.set()
        thread.join()

    assert runtime.execute(["GET", "k"]).response == String("slow")


def test_load_manifest(tmp_path) -> None:
    manifest = tmp_path / "modules.toml"
    manifest.write_text(
        """
[modules.hashes]
factory = "kv_modules.modules.hashes:register"

[modules.strings]
factory = "kv_modules.modules.strings:register"
args = ["x", 1]

[modules.demo]
factory = "kv_modules.modules.hash_demo:register"
enabled = false
""",
        encoding="utf-8",
    )
    runtime = _runtime()
    assert runtime.load_manifest(manifest) == ["hashes", "strings"]
    assert "hset" in runtime.commands
    assert runtime.commands["set"].module_args == ("x", "1")
    assert "py.hash" not in runtime.commands


def test_load_manifest_requires_path() -> None:
    with pytest.raises(ValueError, match="manifest"):
        _runtime().load_manifest()


def test_settings_default_to_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KV_MODULES_DATABASE_COUNT", "2")
    runtime = ModuleRuntime()
    assert runtime.settings.database_count == 2
    assert runtime.store.database_count == 2


def test_from_env_configures_logging_at_configured_level(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("KV_MODULES_LOG_LEVEL", "debug")
    with patch("kv_modules.extensions.runtime.configure_logging") as configure:
        runtime = ModuleRuntime.from_env()
    configure.assert_called_once_with("DEBUG")
    assert runtime.commands == {}


def test_from_env_loads_manifest_and_replicates(
    monkeypatch: pytest.MonkeyPatch, tmp_path
) -> None:
    manifest = tmp_path / "modules.toml"
    manifest.write_text(
        '[modules.strings]\nfactory = "kv_modules.modules.strings:register"\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("KV_MODULES_MANIFEST", str(manifest))
    with patch("kv_modules.extensions.runtime.configure_logging"):
        runtime = ModuleRuntime.from_env()
    assert runtime.execute(["SET", "k", "1"]).replicated is True
