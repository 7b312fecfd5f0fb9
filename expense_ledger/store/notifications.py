"""
Change notifications for continuous queries.

The store publishes a key after each committed mutation. Any
number of subscribers may listen on a key; callbacks run on the
publishing thread, after the write lock has been released.
"""

import logging
import threading
from typing import Callable, Hashable

logger = logging.getLogger(__name__)

Callback = Callable[[Hashable], None]


class Subscription:
    """Handle returned by ChangeBus.subscribe. Close it to stop delivery."""

    def __init__(self, bus: "ChangeBus", key: Hashable, callback: Callback):
        self.bus = bus
        self.key = key
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        if not self.closed:
            self.bus._remove(self)
            self.closed = True

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class ChangeBus:

    def __init__(self):
        self._guard = threading.Lock()
        self._subscribers: dict[Hashable, list[Subscription]] = {}

    def subscribe(self, key: Hashable, callback: Callback) -> Subscription:
        subscription = Subscription(self, key, callback)
        with self._guard:
            self._subscribers.setdefault(key, []).append(subscription)
        return subscription

    def publish(self, key: Hashable) -> None:
        """Notify every subscriber of key. A failing callback is logged and skipped."""
        with self._guard:
            targets = list(self._subscribers.get(key, ()))
        for subscription in targets:
            try:
                subscription.callback(key)
            except Exception:
                logger.exception("Change subscriber for %r failed", key)

    def subscriber_count(self, key: Hashable) -> int:
        with self._guard:
            return len(self._subscribers.get(key, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._guard:
            listeners = self._subscribers.get(subscription.key, [])
            if subscription in listeners:
                listeners.remove(subscription)
            if not listeners:
                self._subscribers.pop(subscription.key, None)
