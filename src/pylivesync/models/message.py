"""Message model (``messageAdded`` topic and ``sendMessage`` result)."""

from __future__ import annotations

from pydantic import Field

from pylivesync.models._base import SyncBaseModel, SyncTimestamp


class Message(SyncBaseModel):
    """A chat message.

    Identity is :attr:`id`; once observed a message never changes.

    Parameters
    ----------
    id : str
        Unique message id assigned by the peer.
    text : str
        Message body.
    created_at : datetime
        Creation time (UTC).
    author : str
        Display name of the author.
    channel : str
        Channel the message was posted to.
    important : bool
        Whether the peer flagged the message as important.
    tags : tuple of str
        Ordered tags.
    """

    id: str = Field(min_length=1)
    text: str
    created_at: SyncTimestamp
    author: str
    channel: str
    important: bool
    tags: tuple[str, ...]
