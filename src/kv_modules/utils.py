"""Shared helpers for the module host."""

from __future__ import annotations

from datetime import UTC, datetime


def utc_timestamp() -> str:
    """Return the current UTC time in ISO format."""
    return datetime.now(UTC).isoformat()


def dedupe(values: list[str]) -> list[str]:
    """Return unique values in original order."""
    seen: set[str] = set()
    unique: list[str] = []
    for value in values:
        if value in seen:
            continue
        seen.add(value)
        unique.append(value)
    return unique


def normalize_command_name(name: str) -> str:
    """Return the case-insensitive lookup key for a command name."""
    return name.strip().lower()
