"""
Current-instant cursor.

The cursor is the instant at which the trajectory is sampled. It is written
either from the trailing edge of the availability window or from hover
notifications; the last write wins. Notification instants are never clamped to
the availability window.
"""

import logging
from datetime import datetime
from typing import Any, Optional

from ..events.event_bus import DATA_HOVER, GRAPH_HOVER, EventBus, SubscriptionGroup
from ..utils.time_utils import TimeInterval, to_instant

logger = logging.getLogger(__name__)

HOVER_TOPICS = (DATA_HOVER, GRAPH_HOVER)


def extract_event_time(event: Any) -> Optional[float]:
    """
    Pull point.time out of a hover event.

    Accepts mappings ({"point": {"time": t}}) and objects exposing
    payload.point.time. Returns None when the event carries no time.
    """
    payload = getattr(event, "payload", event)
    if isinstance(payload, dict):
        point = payload.get("point")
    else:
        point = getattr(payload, "point", None)

    if isinstance(point, dict):
        value = point.get("time")
    else:
        value = getattr(point, "time", None)

    if value is None or value == 0:
        return None
    if isinstance(value, (int, float, datetime)):
        return to_instant(value)
    logger.warning(f"Ignoring hover event with unsupported time {value!r}")
    return None


class TimeCursor:
    """Single source of truth for the current query instant."""

    def __init__(self):
        self.value: Optional[float] = None
        self._subscriptions: Optional[SubscriptionGroup] = None

    @property
    def is_attached(self) -> bool:
        return self._subscriptions is not None and self._subscriptions.active

    def set_from_trailing_edge(self, interval: Optional[TimeInterval]) -> None:
        """Move the cursor to interval.stop, or clear it when there is no interval."""
        self.value = interval.stop if interval is not None else None
        logger.debug(f"Cursor set from trailing edge: {self.value}")

    def set_from_notification(self, instant: float) -> None:
        """Overwrite the cursor unconditionally."""
        self.value = float(instant)

    def handle_hover_event(self, event: Any) -> None:
        instant = extract_event_time(event)
        if instant is not None:
            self.set_from_notification(instant)

    def attach(self, bus: EventBus) -> SubscriptionGroup:
        """
        Subscribe to hover notifications.

        Any previous subscription is released first. The returned group can be
        used as a context manager.
        """
        self.detach()
        self._subscriptions = SubscriptionGroup([
            bus.subscribe(topic, self.handle_hover_event) for topic in HOVER_TOPICS
        ])
        logger.info("Time cursor subscribed to hover notifications")
        return self._subscriptions

    def detach(self) -> None:
        """Release hover subscriptions, if any."""
        if self._subscriptions is not None:
            self._subscriptions.unsubscribe()
            self._subscriptions = None
            logger.info("Time cursor unsubscribed from hover notifications")
