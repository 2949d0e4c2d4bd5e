"""Client configuration for pylivesync."""

from __future__ import annotations

import dataclasses
import os
from typing import Any
from urllib.parse import urlsplit

from pylivesync._constants import DEFAULT_ENDPOINT, VALID_ENDPOINT_SCHEMES
from pylivesync.exceptions import SyncConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_optional_float(name: str, value: str) -> float | None:
    """Parse a seconds value where ``""``, ``none`` or ``<= 0`` disable it."""
    text = value.strip().lower()
    if text in {"", "none", "off"}:
        return None
    try:
        parsed = float(text)
    except ValueError as exc:
        raise SyncConfigError(f"{name} must be a number of seconds, got {value!r}") from exc
    return parsed if parsed > 0 else None


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Client configuration.

    Parameters
    ----------
    endpoint : str
        WebSocket endpoint of the GraphQL peer (``ws://`` or ``wss://``).
        Resolved once per ``start()``; not re-resolved at runtime.
    connection_params : dict or None
        Payload sent with the ``connection_init`` frame.
    connect_timeout : float
        Seconds allowed for the WebSocket upgrade plus the
        ``connection_init`` / ``connection_ack`` handshake.
    command_timeout : float or None
        Seconds ``send_command`` waits for the peer's direct response.
        ``None`` waits until the response arrives or the client stops.
    heartbeat : float or None
        WebSocket-level ping interval handed to aiohttp. ``None`` disables it.
    frame_trace_enabled : bool
        Log every inbound/outbound frame (redacted) at DEBUG level.
    """

    endpoint: str = DEFAULT_ENDPOINT
    connection_params: dict[str, Any] | None = None
    connect_timeout: float = 10.0
    command_timeout: float | None = 30.0
    heartbeat: float | None = 30.0
    frame_trace_enabled: bool = False

    def __post_init__(self) -> None:
        scheme = urlsplit(self.endpoint).scheme.lower()
        if scheme not in VALID_ENDPOINT_SCHEMES:
            raise SyncConfigError(f"endpoint must use ws:// or wss://, got {self.endpoint!r}")
        if self.connect_timeout <= 0:
            raise SyncConfigError("connect_timeout must be positive")
        if self.command_timeout is not None and self.command_timeout <= 0:
            raise SyncConfigError("command_timeout must be positive or None")
        if self.heartbeat is not None and self.heartbeat <= 0:
            raise SyncConfigError("heartbeat must be positive or None")

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads ``LIVESYNC_ENDPOINT``, ``LIVESYNC_CONNECT_TIMEOUT``,
        ``LIVESYNC_COMMAND_TIMEOUT``, ``LIVESYNC_HEARTBEAT`` and
        ``LIVESYNC_FRAME_TRACE_ENABLED``. Explicit keyword arguments override
        environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SyncConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        endpoint_env = env.get("LIVESYNC_ENDPOINT")
        if endpoint_env is not None:
            config_kwargs["endpoint"] = endpoint_env.strip()

        connect_env = env.get("LIVESYNC_CONNECT_TIMEOUT")
        if connect_env is not None and "connect_timeout" not in overrides:
            try:
                config_kwargs["connect_timeout"] = float(connect_env)
            except ValueError as exc:
                raise SyncConfigError(f"LIVESYNC_CONNECT_TIMEOUT must be a number, got {connect_env!r}") from exc

        command_env = env.get("LIVESYNC_COMMAND_TIMEOUT")
        if command_env is not None and "command_timeout" not in overrides:
            config_kwargs["command_timeout"] = _env_optional_float("LIVESYNC_COMMAND_TIMEOUT", command_env)

        heartbeat_env = env.get("LIVESYNC_HEARTBEAT")
        if heartbeat_env is not None and "heartbeat" not in overrides:
            config_kwargs["heartbeat"] = _env_optional_float("LIVESYNC_HEARTBEAT", heartbeat_env)

        if "frame_trace_enabled" not in overrides:
            config_kwargs["frame_trace_enabled"] = _env_bool(
                env.get("LIVESYNC_FRAME_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
