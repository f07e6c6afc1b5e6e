from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ASSISTANT_API_BASE_URL = "http://localhost:5000/api"
DEFAULT_ADMIN_SESSION_HEADER = "true"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _get_int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (got {value!r})")


@dataclass(frozen=True)
class Settings:
    port: int
    log_level: str
    assistant_api_base_url: str
    http_timeout_seconds: int
    status_timeout_seconds: int
    dev_mode: bool
    admin_session_header: str
    max_sessions: int


def load_settings() -> Settings:
    return Settings(
        port=_get_int_env("PORT", 8000),
        log_level=os.getenv("LOG_LEVEL", "info"),
        assistant_api_base_url=os.getenv(
            "ASSISTANT_API_BASE_URL", DEFAULT_ASSISTANT_API_BASE_URL
        ).rstrip("/"),
        http_timeout_seconds=_get_int_env("ASSISTANT_HTTP_TIMEOUT_SECONDS", 30),
        status_timeout_seconds=_get_int_env("ASSISTANT_STATUS_TIMEOUT_SECONDS", 5),
        dev_mode=_get_bool_env("ASSISTANT_DEV_MODE", False),
        admin_session_header=os.getenv(
            "ASSISTANT_ADMIN_SESSION_HEADER", DEFAULT_ADMIN_SESSION_HEADER
        ),
        max_sessions=_get_int_env("ASSISTANT_MAX_SESSIONS", 1000),
    )
