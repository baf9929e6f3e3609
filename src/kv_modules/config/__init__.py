from kv_modules.config.manifest import ModuleSpec, load_module_manifest, resolve_factory
from kv_modules.config.settings import Settings, load_settings

__all__ = [
    "ModuleSpec",
    "Settings",
    "load_module_manifest",
    "load_settings",
    "resolve_factory",
]
