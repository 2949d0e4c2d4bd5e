"""Topics and normalized inbound event envelopes.

Every subscription ``next`` frame is converted into an :class:`EventEnvelope`.
Only the state/store layer is allowed to fold envelopes into slices.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Topic(StrEnum):
    """Subscription topics; the value is the GraphQL root field name."""

    MESSAGE_ADDED = "messageAdded"
    SYSTEM_STATUS_CHANGED = "systemStatusChanged"
    SETTINGS_UPDATED = "settingsUpdated"


class EventEnvelope(BaseModel):
    """One inbound event for a topic, as received from the peer."""

    model_config = ConfigDict(frozen=True)

    topic: Topic
    payload: dict[str, Any] = Field(default_factory=dict, description="Undecoded topic payload")
    operation_id: str | None = Field(default=None, description="Subscription id that delivered the event")
    received_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
