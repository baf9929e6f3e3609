"""TOML manifest listing the modules to load and their load-time args."""

from __future__ import annotations

import importlib
import logging
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class ModuleSpec(BaseModel, frozen=True):
    """One module entry of a manifest."""

    name: str
    factory: str
    args: list[str] = Field(default_factory=list)
    enabled: bool = True

    @field_validator("factory")
    @classmethod
    def _check_factory(cls, value: str) -> str:
        module_path, sep, attribute = value.partition(":")
        if not sep or not module_path.strip() or not attribute.strip():
            msg = f"factory must look like 'package.module:callable', got {value!r}"
            raise ValueError(msg)
        return value

    @field_validator("args", mode="before")
    @classmethod
    def _stringify_args(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


def _load_toml_file(path: Path) -> dict[str, Any]:
    """Load TOML file, return empty dict if not found."""
    if not path.exists():
        return {}
    with path.open("rb") as file:
        return tomllib.load(file)


def load_module_manifest(path: str | Path) -> list[ModuleSpec]:
    """Load enabled module entries from a TOML manifest, in file order."""
    manifest_path = Path(path)
    data = _load_toml_file(manifest_path)
    if not data:
        logger.warning("Module manifest not found or empty: %s", manifest_path)
        return []

    specs: list[ModuleSpec] = []
    for name, config in data.get("modules", {}).items():
        if not isinstance(config, dict):
            msg = f"[modules.{name}] must be a table in {manifest_path}"
            raise ValueError(msg)
        spec = ModuleSpec(name=name, **config)
        if not spec.enabled:
            logger.info("Skipping disabled module '%s'", name)
            continue
        specs.append(spec)
    return specs


def resolve_factory(reference: str) -> Callable[..., Any]:
    """Import the module factory named by ``package.module:callable``."""
    module_path, _, attribute = reference.partition(":")
    module = importlib.import_module(module_path.strip())
    target: Any = module
    for part in attribute.strip().split("."):
        target = getattr(target, part)
    if not callable(target):
        msg = f"Module factory is not callable: {reference}"
        raise TypeError(msg)
    return target
