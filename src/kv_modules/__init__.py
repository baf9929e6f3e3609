from kv_modules.bridge import StoreBridge, WriteSet
from kv_modules.config import Settings, load_settings
from kv_modules.errors import (
    ClassificationError,
    CommandError,
    HandlerError,
    InvocationCancelledError,
    KeyAccessError,
    LockTimeoutError,
    UnknownCommandError,
    WrongTypeError,
)
from kv_modules.extensions import (
    CommandDescriptor,
    InvocationContext,
    InvocationResult,
    ModuleAPI,
    ModuleRuntime,
    ProtocolVersion,
    invoke,
)
from kv_modules.hash import Hash, as_hash, create_hash
from kv_modules.keys import KeyClassification, classify, require_arity
from kv_modules.locks import KeyLockManager
from kv_modules.marshal import Value, to_native, to_value
from kv_modules.replication import InMemoryReplicationLog, ReplicationEntry, ReplicationLog
from kv_modules.resp import OK, SimpleString, encode_error, encode_response
from kv_modules.store import MemoryStore, Store
from kv_modules.values import NIL, Nil, Number, SetValue, SortedSetValue, String

__all__ = [
    "NIL",
    "OK",
    "ClassificationError",
    "CommandDescriptor",
    "CommandError",
    "HandlerError",
    "Hash",
    "InMemoryReplicationLog",
    "InvocationCancelledError",
    "InvocationContext",
    "InvocationResult",
    "KeyAccessError",
    "KeyClassification",
    "KeyLockManager",
    "LockTimeoutError",
    "MemoryStore",
    "ModuleAPI",
    "ModuleRuntime",
    "Nil",
    "Number",
    "ProtocolVersion",
    "ReplicationEntry",
    "ReplicationLog",
    "SetValue",
    "Settings",
    "SimpleString",
    "SortedSetValue",
    "Store",
    "StoreBridge",
    "String",
    "UnknownCommandError",
    "Value",
    "WriteSet",
    "WrongTypeError",
    "as_hash",
    "classify",
    "create_hash",
    "encode_error",
    "encode_response",
    "invoke",
    "load_settings",
    "require_arity",
    "to_native",
    "to_value",
]
