from __future__ import annotations

import pytest

from pylivesync.config import SyncConfig
from pylivesync.exceptions import SyncConfigError


def test_defaults_target_local_graphql_endpoint() -> None:
    config = SyncConfig()
    assert config.endpoint == "ws://localhost:4000/graphql"
    assert config.command_timeout == 30.0


@pytest.mark.parametrize("endpoint", ["http://localhost/graphql", "localhost:4000"])
def test_non_websocket_endpoint_is_rejected(endpoint: str) -> None:
    with pytest.raises(SyncConfigError):
        SyncConfig(endpoint=endpoint)


def test_from_env_reads_livesync_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIVESYNC_ENDPOINT", "wss://example.com/graphql")
    monkeypatch.setenv("LIVESYNC_CONNECT_TIMEOUT", "2.5")
    monkeypatch.setenv("LIVESYNC_COMMAND_TIMEOUT", "none")
    monkeypatch.setenv("LIVESYNC_HEARTBEAT", "0")
    monkeypatch.setenv("LIVESYNC_FRAME_TRACE_ENABLED", "yes")

    config = SyncConfig.from_env()

    assert config.endpoint == "wss://example.com/graphql"
    assert config.connect_timeout == 2.5
    assert config.command_timeout is None
    assert config.heartbeat is None
    assert config.frame_trace_enabled is True


def test_from_env_overrides_win(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIVESYNC_COMMAND_TIMEOUT", "5")

    config = SyncConfig.from_env(command_timeout=1.0, endpoint="ws://peer/graphql")

    assert config.command_timeout == 1.0
    assert config.endpoint == "ws://peer/graphql"


def test_from_env_rejects_bad_numbers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LIVESYNC_COMMAND_TIMEOUT", "soon")

    with pytest.raises(SyncConfigError):
        SyncConfig.from_env()


@pytest.mark.parametrize("field_name", ["command_timeout", "heartbeat", "connect_timeout"])
@pytest.mark.parametrize("value", [0, -1.5])
def test_non_positive_timeouts_are_rejected(field_name: str, value: float) -> None:
    with pytest.raises(SyncConfigError, match=field_name):
        SyncConfig(**{field_name: value})


def test_disabled_timeouts_are_accepted() -> None:
    config = SyncConfig(command_timeout=None, heartbeat=None)
    assert config.command_timeout is None
    assert config.heartbeat is None
