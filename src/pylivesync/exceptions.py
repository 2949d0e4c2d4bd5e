"""Custom exception hierarchy for pylivesync."""

from __future__ import annotations

from typing import Any


class SyncError(Exception):
    """Base exception for all pylivesync errors."""


class SyncConfigError(SyncError):
    """Invalid or missing configuration."""


class SyncConnectionError(SyncError, ConnectionError):
    """The WebSocket channel could not be established or was lost."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str = "",
        close_code: int | None = None,
    ) -> None:
        self.endpoint = endpoint
        self.close_code = close_code
        super().__init__(message)


class SyncTransportError(SyncError):
    """A frame could not be written (channel not open or write failed)."""


class SyncProtocolError(SyncError):
    """An inbound frame is not a valid ``graphql-transport-ws`` message."""


class StartupError(SyncError):
    """``SyncClient.start()`` failed; the cause is chained."""


class DuplicateOperationError(SyncError):
    """An operation id is already registered.

    Indicates a programming or protocol error: ids are minted by the
    registry and must never collide while an operation is active.
    """

    def __init__(self, operation_id: str) -> None:
        self.operation_id = operation_id
        super().__init__(f"Operation id already registered: {operation_id}")


class CommandError(SyncError):
    """A command was rejected by the peer or abandoned before a response."""

    def __init__(
        self,
        message: str,
        *,
        operation_id: str = "",
        errors: list[dict[str, Any]] | None = None,
    ) -> None:
        self.operation_id = operation_id
        self.errors = errors or []
        super().__init__(message)


class ClientStoppedError(SyncError):
    """The client was stopped (or never started) while work was outstanding."""


class PayloadDecodeError(SyncError):
    """An inbound stream event does not match its topic's payload shape.

    Raised by the decode step and swallowed by the slice store, which logs
    and drops the event.
    """

    def __init__(self, message: str, *, topic: str = "") -> None:
        self.topic = topic
        super().__init__(message)
