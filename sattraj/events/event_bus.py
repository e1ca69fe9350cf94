"""
In-process notification stream.

Topics are plain strings. Subscribers receive events synchronously, in
subscription order, on the publishing thread. A Subscription is released
exactly once, either explicitly or by leaving its context.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

# Hover notifications carrying { point: { time } } payloads
DATA_HOVER = "data-hover"
GRAPH_HOVER = "graph-hover"

Callback = Callable[[Any], None]


class Subscription:
    """Handle for one registered callback."""

    def __init__(self, bus: "EventBus", topic: str, callback: Callback):
        self._bus = bus
        self.topic = topic
        self.callback = callback
        self.active = True

    def unsubscribe(self) -> None:
        """Release the callback. Safe to call more than once."""
        if not self.active:
            return
        self.active = False
        self._bus._remove(self)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()


class SubscriptionGroup:
    """Several subscriptions released together."""

    def __init__(self, subscriptions: List[Subscription]):
        self.subscriptions = list(subscriptions)

    @property
    def active(self) -> bool:
        return any(s.active for s in self.subscriptions)

    def unsubscribe(self) -> None:
        for subscription in self.subscriptions:
            subscription.unsubscribe()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.unsubscribe()


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, topic: str, callback: Callback) -> Subscription:
        subscription = Subscription(self, topic, callback)
        self._subscribers.setdefault(topic, []).append(subscription)
        logger.debug(f"Subscribed to '{topic}' ({len(self._subscribers[topic])} subscribers)")
        return subscription

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, []))

    def publish(self, topic: str, event: Any) -> None:
        """Deliver event to every current subscriber of topic."""
        # Copy so callbacks may unsubscribe during delivery
        for subscription in list(self._subscribers.get(topic, [])):
            if not subscription.active:
                continue
            try:
                subscription.callback(event)
            except Exception as e:
                logger.error(f"Subscriber to '{topic}' failed: {e}")

    def _remove(self, subscription: Subscription) -> None:
        subscribers = self._subscribers.get(subscription.topic, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        logger.debug(f"Unsubscribed from '{subscription.topic}'")
