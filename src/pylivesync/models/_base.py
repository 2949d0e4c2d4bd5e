"""Base model for GraphQL payloads.

Every payload model inherits from :class:`SyncBaseModel` which provides:

* ``alias_generator=to_camel`` so camelCase GraphQL fields map
  automatically to snake_case attributes.
* Frozen instances: an observed value is never mutated in place.

Timestamps are declared with :data:`SyncTimestamp`, which accepts ISO-8601
strings as well as epoch seconds or milliseconds and always yields an aware
UTC ``datetime``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict
from pydantic.alias_generators import to_camel

# Threshold to distinguish seconds from milliseconds.
_MS_THRESHOLD = 1_000_000_000_000


def _from_epoch(value: float) -> datetime:
    if value >= _MS_THRESHOLD:
        value = value / 1000.0
    try:
        return datetime.fromtimestamp(value, tz=UTC)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"timestamp out of range: {value!r}") from exc


def parse_timestamp(value: Any) -> Any:
    """Coerce a wire timestamp to an aware UTC ``datetime``.

    ``None`` is passed through untouched so that required fields still fail
    validation when the peer omits them.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, bool):
        raise ValueError("timestamp must not be a boolean")
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise ValueError("timestamp is empty")
        try:
            return _from_epoch(float(text))
        except ValueError:
            pass
        parsed = datetime.fromisoformat(text)
        return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)
    raise ValueError(f"unsupported timestamp value: {value!r}")


SyncTimestamp = Annotated[datetime, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces ISO strings and epoch numbers to UTC datetimes."""


class SyncBaseModel(BaseModel):
    """Base for payload models received from the peer."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
