"""Pydantic models for host settings."""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

ENV_PREFIX = "KV_MODULES_"


class Settings(BaseModel, frozen=True):
    """Runtime configuration loaded from environment variables."""

    database_count: int = Field(default=16, gt=0)
    lock_timeout: float = Field(default=5.0, gt=0)
    replication_enabled: bool = True
    default_protocol: int = 2
    manifest_path: str | None = None
    log_level: str = "INFO"


def _env(name: str, default: str = "") -> str:
    return os.getenv(f"{ENV_PREFIX}{name}", default)


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    msg = f"{ENV_PREFIX}{name} must be a boolean, got {value!r}"
    raise ValueError(msg)


def _parse_number(name: str, value: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(value)
    except ValueError as exc:
        msg = f"{ENV_PREFIX}{name} must be a {kind.__name__}, got {value!r}"
        raise ValueError(msg) from exc


def load_settings() -> Settings:
    """Load settings from environment variables with defaults."""
    load_dotenv()

    default_protocol = int(_parse_number("DEFAULT_PROTOCOL", _env("DEFAULT_PROTOCOL", "2"), int))
    if default_protocol not in (2, 3):
        msg = f"{ENV_PREFIX}DEFAULT_PROTOCOL must be 2 or 3, got {default_protocol}"
        raise ValueError(msg)

    return Settings(
        database_count=int(_parse_number("DATABASE_COUNT", _env("DATABASE_COUNT", "16"), int)),
        lock_timeout=float(_parse_number("LOCK_TIMEOUT", _env("LOCK_TIMEOUT", "5"), float)),
        replication_enabled=_parse_bool(
            "REPLICATION_ENABLED", _env("REPLICATION_ENABLED", "true")
        ),
        default_protocol=default_protocol,
        manifest_path=_env("MANIFEST") or None,
        log_level=_env("LOG_LEVEL", "INFO").upper(),
    )
