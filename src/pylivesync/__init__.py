"""pylivesync - Async GraphQL-over-WebSocket client mirroring live streams."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pylivesync")
except PackageNotFoundError:
    __version__ = "0+local"
from pylivesync._transport import TransportState
from pylivesync.client import SubscriptionHandle, SyncClient
from pylivesync.config import SyncConfig
from pylivesync.exceptions import (
    ClientStoppedError,
    CommandError,
    DuplicateOperationError,
    PayloadDecodeError,
    StartupError,
    SyncConfigError,
    SyncConnectionError,
    SyncError,
    SyncProtocolError,
    SyncTransportError,
)
from pylivesync.models import Message, Settings, SystemStatus
from pylivesync.state.events import EventEnvelope, Topic

__all__ = [
    "__version__",
    "ClientStoppedError",
    "CommandError",
    "DuplicateOperationError",
    "EventEnvelope",
    "Message",
    "PayloadDecodeError",
    "Settings",
    "StartupError",
    "SubscriptionHandle",
    "SyncClient",
    "SyncConfig",
    "SyncConfigError",
    "SyncConnectionError",
    "SyncError",
    "SyncProtocolError",
    "SyncTransportError",
    "SystemStatus",
    "Topic",
    "TransportState",
]
