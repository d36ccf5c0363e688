#!/usr/bin/env python
"""
Client-side settings schema and loader.

Merges defaults with TRACKTIDE_* environment variables and optional runtime
overrides. Poll intervals are clamped so the session watcher and the play
history refresh never go quieter than 30 seconds.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_POLL_SECONDS = 30.0

_ENV_KEYS = {
    "api_url": "TRACKTIDE_API_URL",
    "session_file": "TRACKTIDE_SESSION_FILE",
    "session_poll_seconds": "TRACKTIDE_SESSION_POLL_SECONDS",
    "auto_advance_delay": "TRACKTIDE_AUTO_ADVANCE_DELAY",
    "history_refresh_seconds": "TRACKTIDE_HISTORY_REFRESH_SECONDS",
    "request_timeout": "TRACKTIDE_REQUEST_TIMEOUT",
    "default_volume": "TRACKTIDE_DEFAULT_VOLUME",
}


def _default_session_file() -> str:
    return str(Path.home() / ".tracktide" / "session.json")


def _clamp_poll(value: object, default: float) -> float:
    try:
        seconds = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if seconds <= 0:
        return default
    return min(seconds, MAX_POLL_SECONDS)


class ClientSettings(BaseModel):
    """Settings for the client library (session, stores, playback)."""

    model_config = ConfigDict(extra="ignore")

    api_url: str = "http://localhost:3001/api"
    session_file: str = Field(default_factory=_default_session_file)
    session_poll_seconds: float = 5.0
    auto_advance_delay: float = 2.0
    history_refresh_seconds: float = 30.0
    request_timeout: float = 10.0
    default_volume: float = 0.5

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("session_file", mode="before")
    @classmethod
    def _default_session_path(cls, value: Optional[object]) -> str:
        if not value:
            return _default_session_file()
        return str(value)

    @field_validator("session_poll_seconds", mode="before")
    @classmethod
    def _clamp_session_poll(cls, value: object) -> float:
        return _clamp_poll(value, 5.0)

    @field_validator("history_refresh_seconds", mode="before")
    @classmethod
    def _clamp_history_refresh(cls, value: object) -> float:
        return _clamp_poll(value, 30.0)

    @field_validator("auto_advance_delay", mode="before")
    @classmethod
    def _non_negative_delay(cls, value: object) -> float:
        try:
            return max(0.0, float(value))  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 2.0

    @field_validator("request_timeout", mode="before")
    @classmethod
    def _positive_timeout(cls, value: object) -> float:
        try:
            timeout = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 10.0
        return timeout if timeout > 0 else 10.0

    @field_validator("default_volume", mode="before")
    @classmethod
    def _clamp_volume(cls, value: object) -> float:
        try:
            volume = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return 0.5
        return max(0.0, min(1.0, volume))


def load_client_settings(overrides: Optional[Dict[str, Any]] = None) -> ClientSettings:
    """Load settings from TRACKTIDE_* env vars with optional runtime overrides."""
    data: Dict[str, Any] = {}
    for field, env_name in _ENV_KEYS.items():
        value = os.getenv(env_name)
        if value is not None and value.strip() != "":
            data[field] = value.strip()
    if overrides:
        data.update(overrides)
    return ClientSettings.model_validate(data)


__all__ = ["ClientSettings", "load_client_settings", "MAX_POLL_SECONDS"]
