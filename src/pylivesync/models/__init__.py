"""Data models for payloads received from the peer."""

from pylivesync.models._base import SyncBaseModel, SyncTimestamp, parse_timestamp
from pylivesync.models.message import Message
from pylivesync.models.settings import Settings
from pylivesync.models.status import SystemStatus

__all__ = [
    "Message",
    "Settings",
    "SyncBaseModel",
    "SyncTimestamp",
    "SystemStatus",
    "parse_timestamp",
]
