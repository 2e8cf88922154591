"""
core/common/event_bus.py

Explicit subscriber list for domain events.

Publishers do not know their observers. A failing subscriber is logged and
skipped; it never breaks the publisher or the remaining subscribers.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

E = TypeVar("E")


class EventBus(Generic[E]):
    """Synchronous fan-out of events to registered callbacks."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[E], None]] = []

    def subscribe(self, callback: Callable[[E], None]) -> None:
        with self._lock:
            if callback not in self._subscribers:
                self._subscribers.append(callback)

    def unsubscribe(self, callback: Callable[[E], None]) -> None:
        with self._lock:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

    def publish(self, event: E) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("Event subscriber %r failed for %r", callback, event)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
