"""Modules bundled with the host."""

from kv_modules.modules import hash_demo, hashes, strings

BUILTIN_MODULES = (
    ("strings", strings.register),
    ("hashes", hashes.register),
    ("hash_demo", hash_demo.register),
)

__all__ = ["BUILTIN_MODULES", "hash_demo", "hashes", "strings"]
