"""GraphQL documents and operation builders.

One subscription document per :class:`Topic` and the ``sendMessage``
mutation. Builders return ready-to-send ``subscribe`` frames; the parser
turns the mutation's direct response into a :class:`Message` or raises
:class:`CommandError`.
"""

from __future__ import annotations

from typing import Any, cast

from pylivesync._api._protocol import ProtocolMessage, build_subscribe
from pylivesync.exceptions import CommandError, PayloadDecodeError
from pylivesync.ingestion.decode import decode_payload
from pylivesync.models.message import Message
from pylivesync.state.events import Topic

_MESSAGE_FIELDS = """
      id
      text
      createdAt
      author
      channel
      important
      tags
"""

MESSAGE_ADDED_SUBSCRIPTION = f"""
  subscription OnMessageAdded {{
    messageAdded {{{_MESSAGE_FIELDS}    }}
  }}
"""

SYSTEM_STATUS_SUBSCRIPTION = """
  subscription OnSystemStatusChanged {
    systemStatusChanged {
      online
      load
      updatedAt
    }
  }
"""

SETTINGS_UPDATED_SUBSCRIPTION = """
  subscription OnSettingsUpdated {
    settingsUpdated {
      theme
      lang
      updatedAt
    }
  }
"""

SEND_MESSAGE_MUTATION = f"""
  mutation SendMessage($text: String!) {{
    sendMessage(text: $text) {{{_MESSAGE_FIELDS}    }}
  }}
"""

SEND_MESSAGE_FIELD = "sendMessage"

#: Topic -> (operationName, document).
SUBSCRIPTION_DOCUMENTS: dict[Topic, tuple[str, str]] = {
    Topic.MESSAGE_ADDED: ("OnMessageAdded", MESSAGE_ADDED_SUBSCRIPTION),
    Topic.SYSTEM_STATUS_CHANGED: ("OnSystemStatusChanged", SYSTEM_STATUS_SUBSCRIPTION),
    Topic.SETTINGS_UPDATED: ("OnSettingsUpdated", SETTINGS_UPDATED_SUBSCRIPTION),
}


def build_subscription_request(operation_id: str, topic: Topic) -> ProtocolMessage:
    """Build the ``subscribe`` frame for a topic subscription."""
    operation_name, query = SUBSCRIPTION_DOCUMENTS[topic]
    return build_subscribe(operation_id, query, operation_name=operation_name)


def build_send_message_request(operation_id: str, text: str) -> ProtocolMessage:
    """Build the ``subscribe`` frame carrying the ``sendMessage`` mutation."""
    return build_subscribe(
        operation_id,
        SEND_MESSAGE_MUTATION,
        variables={"text": text},
        operation_name="SendMessage",
    )


def _error_messages(errors: list[dict[str, Any]]) -> str:
    texts = [str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors]
    return "; ".join(texts) or "unknown error"


def parse_send_message_result(operation_id: str, result: Any) -> Message:
    """Parse the execution result of ``sendMessage`` from a ``next`` frame."""
    if not isinstance(result, dict):
        raise CommandError("sendMessage result is not an object", operation_id=operation_id)

    errors = result.get("errors")
    if errors:
        error_list = errors if isinstance(errors, list) else [errors]
        raise CommandError(
            f"sendMessage rejected: {_error_messages(error_list)}",
            operation_id=operation_id,
            errors=error_list,
        )

    data = result.get("data")
    payload = data.get(SEND_MESSAGE_FIELD) if isinstance(data, dict) else None
    if not isinstance(payload, dict):
        raise CommandError("sendMessage returned no message", operation_id=operation_id)

    try:
        return cast(Message, decode_payload(Topic.MESSAGE_ADDED, payload))
    except PayloadDecodeError as exc:
        raise CommandError(f"sendMessage returned a malformed message: {exc}", operation_id=operation_id) from exc


def command_error_from_frame(operation_id: str, payload: Any) -> CommandError:
    """Build the error for an ``error`` frame answering a command."""
    error_list = payload if isinstance(payload, list) else [payload] if payload else []
    return CommandError(
        f"sendMessage failed: {_error_messages(error_list)}",
        operation_id=operation_id,
        errors=error_list,
    )
