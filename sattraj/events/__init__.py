"""
Notification stream with scoped subscriptions.
"""

from .event_bus import (
    DATA_HOVER,
    GRAPH_HOVER,
    EventBus,
    Subscription,
    SubscriptionGroup,
)

__all__ = [
    'DATA_HOVER',
    'GRAPH_HOVER',
    'EventBus',
    'Subscription',
    'SubscriptionGroup',
]
