"""
Tests for EventStream: broadcast delivery, no replay, close semantics.
"""

from __future__ import annotations

from unittest.mock import MagicMock

from storefront.observable import EventStream


def test_every_listener_gets_every_event() -> None:
    stream: EventStream = EventStream()
    a, b = [], []
    stream.subscribe(a.append)
    stream.subscribe(b.append)
    stream.publish(1)
    stream.publish(2)
    assert a == [1, 2]
    assert b == [1, 2]


def test_no_replay_for_late_subscribers() -> None:
    stream: EventStream = EventStream()
    stream.publish("early")
    late = []
    stream.subscribe(late.append)
    stream.publish("late")
    assert late == ["late"]


def test_failing_listener_does_not_block_others() -> None:
    stream: EventStream = EventStream()
    seen = []
    stream.subscribe(MagicMock(side_effect=RuntimeError("boom")))
    stream.subscribe(seen.append)
    stream.publish("x")
    assert seen == ["x"]


def test_close_is_idempotent_and_stops_delivery() -> None:
    stream: EventStream = EventStream()
    listener = MagicMock()
    stream.subscribe(listener)
    stream.close()
    stream.close()
    stream.publish("after")
    listener.assert_not_called()
    assert stream.closed
    sub = stream.subscribe(listener)
    assert not sub.active


def test_cancel_twice() -> None:
    stream: EventStream = EventStream()
    listener = MagicMock()
    sub = stream.subscribe(listener)
    sub.cancel()
    sub.cancel()
    stream.publish(1)
    listener.assert_not_called()
    assert stream.listener_count == 0


def test_close_during_publish_stops_remaining_listeners() -> None:
    stream: EventStream[str] = EventStream("test")
    later = MagicMock()
    stream.subscribe(lambda event: stream.close())
    stream.subscribe(later)

    stream.publish("a")

    later.assert_not_called()
    assert stream.closed
