"""Notification channel for recurring pull lifecycle events"""

import logging
from typing import Any, Callable, Dict, List

from recurra.domain.models.events import TOPICS

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


class NotificationChannel:
    """Delivers events to subscribers, per topic, in subscription order.

    Delivery is synchronous. A failing subscriber is logged and skipped; it
    never interrupts delivery to the others or the code that emitted the event.
    Past events are not retained.
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {topic: [] for topic in TOPICS}

    def _check_topic(self, topic: str) -> None:
        if topic not in self._subscribers:
            available = ", ".join(TOPICS)
            raise ValueError(f"Unknown topic: {topic}. Available topics: {available}")

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        """Register a handler for a topic

        Args:
            topic: One of "paid", "failed", "end"
            handler: Called with the event payload

        Returns:
            Callable that removes the subscription

        Raises:
            ValueError: If topic is unknown
        """
        self._check_topic(topic)
        handlers = self._subscribers[topic]
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, topic: str, event: Any) -> None:
        """Deliver an event to every current subscriber of a topic"""
        self._check_topic(topic)
        # Copy so handlers may unsubscribe while being called
        for handler in list(self._subscribers[topic]):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Subscriber for '{topic}' failed on {event!r}")

    def subscriber_count(self, topic: str) -> int:
        self._check_topic(topic)
        return len(self._subscribers[topic])
