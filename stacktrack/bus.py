from __future__ import annotations

import logging
from typing import Callable, List

from stacktrack.model import Event

logger = logging.getLogger(__name__)

Subscriber = Callable[[Event], object]


class NotificationBus:
    """Delivers simulator events to subscribers in publication order."""

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []

    def subscribe(self, subscriber: Subscriber) -> None:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def is_subscribed(self, subscriber: Subscriber) -> bool:
        return subscriber in self._subscribers

    def publish(self, event: Event) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                # One broken subscriber must not starve the rest.
                logger.exception("Subscriber %r failed on %r", subscriber, event)
