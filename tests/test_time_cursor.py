from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

from sattraj.computation.time_cursor import TimeCursor, extract_event_time
from sattraj.events import DATA_HOVER, GRAPH_HOVER, EventBus
from sattraj.utils.time_utils import TimeInterval


def test_trailing_edge_sets_stop_or_clears() -> None:
    cursor = TimeCursor()
    cursor.set_from_trailing_edge(TimeInterval(0.0, 60_000.0))
    assert cursor.value == 60_000.0

    cursor.set_from_trailing_edge(None)
    assert cursor.value is None


def test_notification_always_overwrites() -> None:
    cursor = TimeCursor()
    cursor.set_from_trailing_edge(TimeInterval(0.0, 60_000.0))

    cursor.set_from_notification(10.0)
    assert cursor.value == 10.0
    # Outside the availability window is kept as is
    cursor.set_from_notification(-5_000_000.0)
    assert cursor.value == -5_000_000.0
    cursor.set_from_notification(10.0)
    assert cursor.value == 10.0


def test_extract_event_time_shapes() -> None:
    assert extract_event_time({"point": {"time": 1234}}) == 1234.0
    assert extract_event_time(SimpleNamespace(payload=SimpleNamespace(point=SimpleNamespace(time=99.0)))) == 99.0
    aware = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert extract_event_time({"point": {"time": aware}}) == 1_704_067_200_000.0
    assert extract_event_time({"point": {}}) is None
    assert extract_event_time({}) is None
    assert extract_event_time({"point": {"time": "soon"}}) is None


def test_attached_cursor_follows_both_hover_topics() -> None:
    bus = EventBus()
    cursor = TimeCursor()
    cursor.attach(bus)

    bus.publish(DATA_HOVER, {"point": {"time": 100.0}})
    assert cursor.value == 100.0
    bus.publish(GRAPH_HOVER, {"point": {"time": 200.0}})
    assert cursor.value == 200.0
    bus.publish(DATA_HOVER, {"point": {}})
    assert cursor.value == 200.0


def test_rapid_notifications_last_wins() -> None:
    bus = EventBus()
    cursor = TimeCursor()
    cursor.attach(bus)
    for t in (5.0, 1.0, 9.0, 3.0):
        bus.publish(DATA_HOVER, {"point": {"time": t}})
    assert cursor.value == 3.0


def test_detach_releases_subscriptions() -> None:
    bus = EventBus()
    cursor = TimeCursor()
    with cursor.attach(bus):
        assert bus.subscriber_count(DATA_HOVER) == 1
        assert bus.subscriber_count(GRAPH_HOVER) == 1

    assert bus.subscriber_count(DATA_HOVER) == 0
    assert bus.subscriber_count(GRAPH_HOVER) == 0
    bus.publish(DATA_HOVER, {"point": {"time": 1.0}})
    assert cursor.value is None


def test_reattach_does_not_duplicate() -> None:
    bus = EventBus()
    cursor = TimeCursor()
    cursor.attach(bus)
    cursor.attach(bus)
    assert bus.subscriber_count(DATA_HOVER) == 1
    cursor.detach()
    assert not cursor.is_attached


def test_failing_subscriber_does_not_block_others() -> None:
    bus = EventBus()
    seen = []

    def broken(event) -> None:
        raise RuntimeError("boom")

    bus.subscribe(DATA_HOVER, broken)
    bus.subscribe(DATA_HOVER, seen.append)
    bus.publish(DATA_HOVER, "event")
    assert seen == ["event"]


def test_unsubscribe_is_idempotent() -> None:
    bus = EventBus()
    subscription = bus.subscribe(DATA_HOVER, lambda event: None)
    subscription.unsubscribe()
    subscription.unsubscribe()
    assert bus.subscriber_count(DATA_HOVER) == 0
