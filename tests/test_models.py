from __future__ import annotations

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from pylivesync.models import Message, Settings, SystemStatus, parse_timestamp


def _message_payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "id": "m-1",
        "text": "hello",
        "createdAt": "2026-01-01T12:00:00.000Z",
        "author": "alice",
        "channel": "general",
        "important": True,
        "tags": ["news", "ops"],
    }
    payload.update(overrides)
    return payload


def test_message_maps_camel_case_fields() -> None:
    message = Message.model_validate(_message_payload())

    assert message.id == "m-1"
    assert message.created_at == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)
    assert message.important is True
    assert message.tags == ("news", "ops")


def test_message_is_frozen() -> None:
    message = Message.model_validate(_message_payload())

    with pytest.raises(ValidationError):
        message.text = "changed"  # type: ignore[misc]


def test_message_missing_id_is_rejected() -> None:
    payload = _message_payload()
    del payload["id"]

    with pytest.raises(ValidationError):
        Message.model_validate(payload)


def test_message_empty_id_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Message.model_validate(_message_payload(id=""))


def test_message_ignores_unknown_fields() -> None:
    message = Message.model_validate(_message_payload(__typename="Message"))
    assert message.text == "hello"


def test_status_accepts_integer_load_and_epoch_millis() -> None:
    status = SystemStatus.model_validate({"online": True, "load": 1, "updatedAt": 1767268800000})

    assert status.load == pytest.approx(1.0)
    assert status.updated_at == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


def test_settings_naive_iso_timestamp_is_utc() -> None:
    settings = Settings.model_validate({"theme": "dark", "lang": "ja", "updatedAt": "2026-01-01T12:00:00"})

    assert settings.updated_at.tzinfo is UTC
    assert settings.theme == "dark"


def test_settings_missing_updated_at_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings.model_validate({"theme": "dark", "lang": "ja"})


@pytest.mark.parametrize("value", [1767268800, "1767268800", 1767268800.0])
def test_parse_timestamp_epoch_seconds(value: object) -> None:
    assert parse_timestamp(value) == datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


@pytest.mark.parametrize("value", ["", "not-a-date", True])
def test_parse_timestamp_rejects_garbage(value: object) -> None:
    with pytest.raises(ValueError):
        parse_timestamp(value)
