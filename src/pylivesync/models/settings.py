"""Settings model (``settingsUpdated`` topic)."""

from __future__ import annotations

from pylivesync.models._base import SyncBaseModel, SyncTimestamp


class Settings(SyncBaseModel):
    """Latest user-facing settings published by the peer."""

    theme: str
    lang: str
    updated_at: SyncTimestamp
