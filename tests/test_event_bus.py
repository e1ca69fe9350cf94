from __future__ import annotations

from sattraj.events import EventBus, SubscriptionGroup


def test_publish_delivers_in_subscription_order() -> None:
    bus = EventBus()
    seen = []
    bus.subscribe("topic", lambda e: seen.append(("a", e)))
    bus.subscribe("topic", lambda e: seen.append(("b", e)))

    bus.publish("topic", 1)

    assert seen == [("a", 1), ("b", 1)]


def test_publish_ignores_other_topics() -> None:
    bus = EventBus()
    seen = []
    bus.subscribe("topic", seen.append)

    bus.publish("other", 1)

    assert seen == []


def test_unsubscribe_is_idempotent() -> None:
    bus = EventBus()
    subscription = bus.subscribe("topic", lambda e: None)
    assert bus.subscriber_count("topic") == 1

    subscription.unsubscribe()
    subscription.unsubscribe()

    assert not subscription.active
    assert bus.subscriber_count("topic") == 0


def test_subscription_released_on_context_exit() -> None:
    bus = EventBus()
    seen = []
    with bus.subscribe("topic", seen.append):
        bus.publish("topic", 1)
    bus.publish("topic", 2)

    assert seen == [1]
    assert bus.subscriber_count("topic") == 0


def test_failing_callback_does_not_stop_delivery() -> None:
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.subscribe("topic", broken)
    bus.subscribe("topic", seen.append)

    bus.publish("topic", 7)

    assert seen == [7]


def test_callback_may_unsubscribe_during_delivery() -> None:
    bus = EventBus()
    seen = []
    holder = {}

    def once(event):
        seen.append(event)
        holder["sub"].unsubscribe()

    holder["sub"] = bus.subscribe("topic", once)
    bus.publish("topic", 1)
    bus.publish("topic", 2)

    assert seen == [1]


def test_group_releases_every_subscription() -> None:
    bus = EventBus()
    group = SubscriptionGroup([bus.subscribe("a", lambda e: None), bus.subscribe("b", lambda e: None)])
    assert group.active

    with group:
        pass

    assert not group.active
    assert bus.subscriber_count("a") == 0
    assert bus.subscriber_count("b") == 0
