from __future__ import annotations

from datetime import UTC, datetime

from pylivesync.models import Message, Settings, SystemStatus
from pylivesync.state.reducers import reduce_messages, reduce_settings, reduce_status


def _dt(minute: int = 0) -> datetime:
    return datetime(2026, 1, 1, 12, minute, tzinfo=UTC)


def _message(message_id: str, text: str = "hi") -> Message:
    return Message(
        id=message_id,
        text=text,
        created_at=_dt(),
        author="alice",
        channel="general",
        important=False,
        tags=(),
    )


def test_redelivered_message_is_discarded() -> None:
    first = _message("m1")
    once = reduce_messages((), first)
    twice = reduce_messages(once, first)

    assert twice == once
    assert twice is once


def test_redelivery_with_different_body_keeps_first_copy() -> None:
    slice_ = reduce_messages((), _message("m1", text="original"))
    slice_ = reduce_messages(slice_, _message("m1", text="retry"))

    assert [m.text for m in slice_] == ["original"]


def test_distinct_messages_keep_arrival_order() -> None:
    m1, m2, m3 = _message("m1"), _message("m2"), _message("m3")
    slice_: tuple[Message, ...] = ()
    for message in (m1, m2, m3):
        slice_ = reduce_messages(slice_, message)

    assert list(slice_) == [m1, m2, m3]


def test_reduce_messages_does_not_mutate_input() -> None:
    current = (_message("m1"),)
    reduce_messages(current, _message("m2"))
    assert len(current) == 1


def test_status_last_write_wins_by_arrival() -> None:
    newer = SystemStatus(online=True, load=1.0, updated_at=_dt(30))
    older = SystemStatus(online=False, load=2.0, updated_at=_dt(0))

    current = reduce_status(None, newer)
    current = reduce_status(current, older)

    assert current.load == 2.0
    assert current.online is False


def test_settings_replace() -> None:
    current = reduce_settings(None, Settings(theme="light", lang="en", updated_at=_dt()))
    current = reduce_settings(current, Settings(theme="dark", lang="ja", updated_at=_dt(1)))

    assert (current.theme, current.lang) == ("dark", "ja")
