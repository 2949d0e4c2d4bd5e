"""In-memory store for the three mirrored slices.

This is the only component allowed to fold inbound events into slices.
Each envelope goes through the decode step and then through the topic's
reducer; a decode failure drops the event without touching any slice.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pylivesync.exceptions import PayloadDecodeError
from pylivesync.ingestion.decode import decode_payload
from pylivesync.models.message import Message
from pylivesync.models.settings import Settings
from pylivesync.models.status import SystemStatus
from pylivesync.state.events import EventEnvelope, Topic
from pylivesync.state.reducers import reduce_messages, reduce_settings, reduce_status

_logger = logging.getLogger(__name__)

SliceListener = Callable[[Topic], None]


class SliceStore:
    """Holds the message, status and settings slices.

    ``None`` for status/settings means no event has been received yet.
    """

    def __init__(self) -> None:
        self._messages: tuple[Message, ...] = ()
        self._status: SystemStatus | None = None
        self._settings: Settings | None = None
        self._listeners: list[SliceListener] = []

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._messages

    @property
    def status(self) -> SystemStatus | None:
        return self._status

    @property
    def settings(self) -> Settings | None:
        return self._settings

    def find_message(self, message_id: str) -> Message | None:
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def add_listener(self, listener: SliceListener) -> Callable[[], None]:
        """Register a change listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def apply(self, envelope: EventEnvelope) -> bool:
        """Fold one envelope into its slice.

        Returns ``True`` when the slice changed. Malformed payloads are
        logged and dropped.
        """
        topic = envelope.topic
        try:
            value = decode_payload(topic, envelope.payload)
        except PayloadDecodeError as exc:
            _logger.warning("Dropping %s event (operation id=%s): %s", topic, envelope.operation_id, exc)
            return False

        changed = False
        if topic == Topic.MESSAGE_ADDED and isinstance(value, Message):
            merged = reduce_messages(self._messages, value)
            changed = merged is not self._messages
            if not changed:
                _logger.debug("Discarding redelivered message id=%s", value.id)
            self._messages = merged
        elif topic == Topic.SYSTEM_STATUS_CHANGED and isinstance(value, SystemStatus):
            self._status = reduce_status(self._status, value)
            changed = True
        elif topic == Topic.SETTINGS_UPDATED and isinstance(value, Settings):
            self._settings = reduce_settings(self._settings, value)
            changed = True

        if changed:
            self._notify(topic)
        return changed

    def _notify(self, topic: Topic) -> None:
        for listener in list(self._listeners):
            try:
                listener(topic)
            except Exception:
                _logger.warning("Slice listener failed for %s", topic, exc_info=True)
