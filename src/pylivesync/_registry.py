"""Operation registry: routes inbound frames to the operation they belong to.

Every active subscription and in-flight command owns one entry keyed by its
operation id. The transport's single dispatcher hands each frame to
:meth:`OperationRegistry.dispatch`; frames for unknown ids (late delivery
after an unsubscribe, duplicates after a command resolved) are dropped.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from pylivesync._api._protocol import ProtocolMessage
from pylivesync.exceptions import DuplicateOperationError

_logger = logging.getLogger(__name__)

FrameHandler = Callable[[ProtocolMessage], None]


class OperationKind(StrEnum):
    SUBSCRIPTION = "subscription"
    COMMAND = "command"


@dataclass(frozen=True, slots=True)
class RegisteredOperation:
    operation_id: str
    kind: OperationKind
    handler: FrameHandler


def _uuid_id() -> str:
    return str(uuid.uuid4())


class OperationRegistry:
    """Map of active operation ids to their frame handlers."""

    def __init__(self, *, id_factory: Callable[[], str] = _uuid_id) -> None:
        self._id_factory = id_factory
        self._operations: dict[str, RegisteredOperation] = {}

    def __len__(self) -> int:
        return len(self._operations)

    def __contains__(self, operation_id: object) -> bool:
        return operation_id in self._operations

    def next_id(self) -> str:
        """Mint an id that is not currently registered."""
        while True:
            candidate = self._id_factory()
            if candidate not in self._operations:
                return candidate

    def register(self, operation_id: str, kind: OperationKind, handler: FrameHandler) -> None:
        if operation_id in self._operations:
            raise DuplicateOperationError(operation_id)
        self._operations[operation_id] = RegisteredOperation(operation_id, kind, handler)
        _logger.debug("Registered %s operation id=%s", kind, operation_id)

    def unregister(self, operation_id: str) -> RegisteredOperation | None:
        """Remove an operation; unknown ids are ignored."""
        removed = self._operations.pop(operation_id, None)
        if removed is not None:
            _logger.debug("Unregistered %s operation id=%s", removed.kind, operation_id)
        return removed

    def operations(self, kind: OperationKind | None = None) -> list[RegisteredOperation]:
        return [op for op in self._operations.values() if kind is None or op.kind == kind]

    def dispatch(self, operation_id: str, frame: ProtocolMessage) -> bool:
        """Hand *frame* to the handler registered for *operation_id*.

        Returns ``False`` when no handler is registered; the frame is dropped.
        """
        operation = self._operations.get(operation_id)
        if operation is None:
            _logger.debug("Dropping %s frame for unknown operation id=%s", frame.type, operation_id)
            return False
        operation.handler(frame)
        return True
