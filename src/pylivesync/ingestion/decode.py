"""Decode step for subscription events.

Turns a GraphQL execution result into an :class:`EventEnvelope` payload and
then into the typed model for its topic. Shape failures raise
:class:`PayloadDecodeError`; callers decide whether to drop or surface them.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from pylivesync.exceptions import PayloadDecodeError
from pylivesync.models.message import Message
from pylivesync.models.settings import Settings
from pylivesync.models.status import SystemStatus
from pylivesync.state.events import Topic

_logger = logging.getLogger(__name__)

_TOPIC_MODELS: dict[Topic, type[Message] | type[SystemStatus] | type[Settings]] = {
    Topic.MESSAGE_ADDED: Message,
    Topic.SYSTEM_STATUS_CHANGED: SystemStatus,
    Topic.SETTINGS_UPDATED: Settings,
}


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(item) for item in err.get("loc", ())) or "<root>"
        parts.append(f"{location}: {err.get('msg', 'invalid')}")
    return "; ".join(parts)


def extract_event_payload(topic: Topic, result: Any) -> dict[str, Any] | None:
    """Return ``data[<topic>]`` from a ``next`` execution result.

    GraphQL errors attached to the result are logged. ``None`` is returned
    when the result carries no object for the topic.
    """
    if not isinstance(result, dict):
        _logger.warning("Ignoring %s event: execution result is not an object", topic)
        return None

    errors = result.get("errors")
    if errors:
        _logger.warning("GraphQL errors on %s subscription: %s", topic, errors)

    data = result.get("data")
    if not isinstance(data, dict):
        return None
    payload = data.get(topic.value)
    if not isinstance(payload, dict):
        _logger.warning("Ignoring %s event: data.%s is not an object", topic, topic.value)
        return None
    return payload


def decode_payload(topic: Topic, payload: dict[str, Any]) -> Message | SystemStatus | Settings:
    """Validate *payload* into the model for *topic*."""
    model = _TOPIC_MODELS[topic]
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise PayloadDecodeError(
            f"Malformed {topic} payload: {_format_validation_error(exc)}",
            topic=topic.value,
        ) from exc
