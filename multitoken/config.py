"""
Configuration for the multi-token ledger.

Handles loading configuration from environment variables and validation.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any

from .core import SYSTEM_OPERATOR

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_TRUTHY = ("1", "true", "yes", "on")


def _get_env_var(name: str, default: str | None = None) -> str | None:
    """Get environment variable with optional default."""
    return os.environ.get(name, default)


@dataclass(frozen=True)
class LedgerConfig:
    """Ledger configuration."""

    name: str = "main"
    # Shared metadata URI template, "{id}" is substituted by clients
    uri: str = ""
    # Operator recorded on mint/burn when none is given
    owner: str = SYSTEM_OPERATOR
    log_level: str = "INFO"
    # Attach a LoggingSink so every event is written to the log
    log_events: bool = False

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("name is required")
        if not self.owner or not self.owner.strip():
            raise ValueError("owner is required")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {self.log_level}")

    @classmethod
    def from_env(cls, **overrides: Any) -> LedgerConfig:
        """Load configuration from environment variables."""
        name = overrides.get("name") or _get_env_var("MULTITOKEN_NAME", default=cls.name)
        uri = overrides.get("uri")
        if uri is None:
            uri = _get_env_var("MULTITOKEN_URI", default=cls.uri)
        owner = overrides.get("owner") or _get_env_var("MULTITOKEN_OWNER", default=cls.owner)
        log_level = overrides.get("log_level") or _get_env_var(
            "MULTITOKEN_LOG_LEVEL", default=cls.log_level
        )

        log_events = overrides.get("log_events")
        if log_events is None:
            raw = _get_env_var("MULTITOKEN_LOG_EVENTS", default="")
            log_events = raw.strip().lower() in _TRUTHY

        return cls(
            name=name,  # type: ignore
            uri=uri,  # type: ignore
            owner=owner,  # type: ignore
            log_level=log_level.upper(),  # type: ignore
            log_events=bool(log_events),
        )

    def with_updates(self, **updates: Any) -> LedgerConfig:
        """Create a new LedgerConfig with updated values."""
        current = {f.name: getattr(self, f.name) for f in fields(self)}
        current.update(updates)
        return LedgerConfig(**current)
