"""``graphql-transport-ws`` frame model and codec.

Frames are JSON text messages of the shape
``{"type": ..., "id": ..., "payload": ...}``; ``id`` is present on
operation frames (``subscribe``, ``next``, ``error``, ``complete``) and
``payload`` is optional on the rest.
"""

from __future__ import annotations

import json
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from pylivesync.exceptions import SyncProtocolError


class MessageType(StrEnum):
    CONNECTION_INIT = "connection_init"
    CONNECTION_ACK = "connection_ack"
    PING = "ping"
    PONG = "pong"
    SUBSCRIBE = "subscribe"
    NEXT = "next"
    ERROR = "error"
    COMPLETE = "complete"


#: Frame types that answer or stream for a specific operation id.
OPERATION_TYPES: frozenset[MessageType] = frozenset(
    {MessageType.NEXT, MessageType.ERROR, MessageType.COMPLETE},
)


class ProtocolMessage(BaseModel):
    """One protocol frame."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: MessageType
    id: str | None = None
    payload: Any = None

    def to_dict(self) -> dict[str, Any]:
        frame: dict[str, Any] = {"type": self.type.value}
        if self.id is not None:
            frame["id"] = self.id
        if self.payload is not None:
            frame["payload"] = self.payload
        return frame

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


def parse_frame(text: str | bytes) -> ProtocolMessage:
    """Parse one inbound text frame."""
    try:
        decoded = json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise SyncProtocolError(f"Frame is not JSON: {str(text)[:64]}") from exc
    if not isinstance(decoded, dict):
        raise SyncProtocolError("Frame is not a JSON object")
    try:
        frame = ProtocolMessage.model_validate(decoded)
    except ValidationError as exc:
        raise SyncProtocolError(f"Invalid frame: {decoded.get('type')!r}") from exc
    if frame.type in OPERATION_TYPES and not frame.id:
        raise SyncProtocolError(f"{frame.type} frame without id")
    return frame


def build_connection_init(params: dict[str, Any] | None = None) -> ProtocolMessage:
    return ProtocolMessage(type=MessageType.CONNECTION_INIT, payload=params)


def build_pong(payload: Any = None) -> ProtocolMessage:
    return ProtocolMessage(type=MessageType.PONG, payload=payload)


def build_subscribe(
    operation_id: str,
    query: str,
    *,
    variables: dict[str, Any] | None = None,
    operation_name: str | None = None,
) -> ProtocolMessage:
    payload: dict[str, Any] = {"query": query}
    if variables is not None:
        payload["variables"] = variables
    if operation_name is not None:
        payload["operationName"] = operation_name
    return ProtocolMessage(type=MessageType.SUBSCRIBE, id=operation_id, payload=payload)


def build_complete(operation_id: str) -> ProtocolMessage:
    return ProtocolMessage(type=MessageType.COMPLETE, id=operation_id)
