"""System status model (``systemStatusChanged`` topic)."""

from __future__ import annotations

from pylivesync.models._base import SyncBaseModel, SyncTimestamp


class SystemStatus(SyncBaseModel):
    """Point-in-time status snapshot of the peer."""

    online: bool
    load: float
    updated_at: SyncTimestamp
