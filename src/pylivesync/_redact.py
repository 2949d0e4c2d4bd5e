"""Redaction of protocol frames before they reach the DEBUG log.

``connection_init`` payloads may carry credentials and ``next`` payloads
carry user text, so frame tracing goes through :func:`redact_for_log`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

REDACTED = "<redacted>"

# Compared after lower-casing and dropping "_" and "-".
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "secret",
        "token",
        "accesstoken",
        "refreshtoken",
        "apikey",
        "authorization",
        "cookie",
    }
)


def is_sensitive_key(key: object) -> bool:
    """Whether values stored under *key* must never be logged."""
    normalized = str(key).lower().replace("_", "").replace("-", "")
    return normalized in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 256, max_depth: int = 20) -> Any:
    """Return a log-safe copy of a decoded JSON frame.

    Values under sensitive keys become ``"<redacted>"``, strings longer
    than *max_string* are cut, and nesting deeper than *max_depth* is
    collapsed.
    """
    return _scrub(value, max_string, max_depth)


def _scrub(value: Any, max_string: int, depth_left: int) -> Any:
    if depth_left < 0:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED if is_sensitive_key(key) else _scrub(item, max_string, depth_left - 1)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [_scrub(item, max_string, depth_left - 1) for item in value]
    return repr(value)
