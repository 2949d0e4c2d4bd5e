"""Pure merge functions, one per topic.

Each reducer folds one decoded value into the current slice and returns the
new slice. Reducers never mutate their inputs; returning the ``current``
object unchanged signals "no change".
"""

from __future__ import annotations

from pylivesync.models.message import Message
from pylivesync.models.settings import Settings
from pylivesync.models.status import SystemStatus


def reduce_messages(current: tuple[Message, ...], incoming: Message) -> tuple[Message, ...]:
    """Append *incoming* unless a message with the same id is already present.

    The peer may redeliver an event (at-least-once delivery), so a repeated
    id is discarded and the current slice is returned as-is.
    """
    if any(message.id == incoming.id for message in current):
        return current
    return (*current, incoming)


def reduce_status(current: SystemStatus | None, incoming: SystemStatus) -> SystemStatus:
    """Replace the status snapshot; the last arrival wins."""
    return incoming


def reduce_settings(current: Settings | None, incoming: Settings) -> Settings:
    """Replace the settings value; the last arrival wins."""
    return incoming
