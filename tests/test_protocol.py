from __future__ import annotations

import json

import pytest

from pylivesync._api._protocol import (
    MessageType,
    build_complete,
    build_connection_init,
    build_pong,
    parse_frame,
)
from pylivesync._api.operations import (
    build_send_message_request,
    build_subscription_request,
    command_error_from_frame,
    parse_send_message_result,
)
from pylivesync.exceptions import CommandError, PayloadDecodeError, SyncProtocolError
from pylivesync.state.events import Topic

_MESSAGE = {
    "id": "m-1",
    "text": "hello",
    "createdAt": "2026-01-01T12:00:00Z",
    "author": "server",
    "channel": "general",
    "important": False,
    "tags": ["echo"],
}


def test_parse_next_frame() -> None:
    frame = parse_frame('{"id":"1","type":"next","payload":{"data":{"x":1}}}')

    assert frame.type == MessageType.NEXT
    assert frame.id == "1"
    assert frame.payload == {"data": {"x": 1}}


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[1, 2]",
        '{"type":"bogus"}',
        '{"type":"next","payload":{}}',
    ],
)
def test_parse_frame_rejects_invalid_input(text: str) -> None:
    with pytest.raises(SyncProtocolError):
        parse_frame(text)


def test_encoding_omits_absent_fields() -> None:
    assert json.loads(build_pong().to_json()) == {"type": "pong"}
    assert json.loads(build_complete("7").to_json()) == {"type": "complete", "id": "7"}
    assert json.loads(build_connection_init({"client": "x"}).to_json()) == {
        "type": "connection_init",
        "payload": {"client": "x"},
    }


def test_subscription_request_carries_topic_document() -> None:
    frame = build_subscription_request("op-1", Topic.SYSTEM_STATUS_CHANGED)

    assert frame.type == MessageType.SUBSCRIBE
    assert frame.id == "op-1"
    assert frame.payload["operationName"] == "OnSystemStatusChanged"
    assert "systemStatusChanged" in frame.payload["query"]
    assert "variables" not in frame.payload


def test_send_message_request_carries_text_variable() -> None:
    frame = build_send_message_request("op-2", "hello")

    assert frame.payload["variables"] == {"text": "hello"}
    assert frame.payload["query"].strip().startswith("mutation SendMessage($text: String!)")
    assert "createdAt" in frame.payload["query"]


def test_parse_send_message_result_success() -> None:
    message = parse_send_message_result("op", {"data": {"sendMessage": _MESSAGE}})
    assert message.id == "m-1"
    assert message.tags == ("echo",)


def test_parse_send_message_result_graphql_errors() -> None:
    errors = [{"message": "text too long"}]

    with pytest.raises(CommandError, match="text too long") as exc_info:
        parse_send_message_result("op", {"data": None, "errors": errors})
    assert exc_info.value.errors == errors
    assert exc_info.value.operation_id == "op"


@pytest.mark.parametrize(
    "result",
    [
        None,
        {"data": None},
        {"data": {"sendMessage": None}},
        {"data": {"sendMessage": {"text": "no id"}}},
    ],
)
def test_parse_send_message_result_without_message(result: object) -> None:
    with pytest.raises(CommandError):
        parse_send_message_result("op", result)


def test_command_error_from_error_frame() -> None:
    error = command_error_from_frame("op", [{"message": "forbidden"}])

    assert isinstance(error, CommandError)
    assert "forbidden" in str(error)
    assert error.errors == [{"message": "forbidden"}]


def test_parse_send_message_result_malformed_message_chains_decode_error() -> None:
    broken = {**_MESSAGE, "createdAt": "not a timestamp"}

    with pytest.raises(CommandError, match="malformed message") as exc_info:
        parse_send_message_result("op", {"data": {"sendMessage": broken}})
    assert isinstance(exc_info.value.__cause__, PayloadDecodeError)
    assert "createdAt" in str(exc_info.value)
