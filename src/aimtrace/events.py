"""In-process announcements.

The watcher publishes on three topics; the desktop shell (or the CLI)
subscribes to whichever it cares about.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

_log = logging.getLogger(__name__)

WATCHER_STARTED = "watcher_started"
RECORD_ADDED = "record_added"
RECORD_UPDATED = "record_updated"

WILDCARD = "*"

Callback = Callable[..., None]


class EventBus:
    """Topic-based callback registry.

    Topic subscribers are called with the payload; ``"*"`` subscribers are
    called with ``(topic, payload)``. A failing subscriber is logged and the
    remaining subscribers still run.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[str, list[Callback]] = {}

    def subscribe(self, topic: str, callback: Callback) -> Callable[[], None]:
        """Register a callback. Returns a function that unregisters it."""
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(topic, [])
                if callback in callbacks:
                    callbacks.remove(callback)

        return unsubscribe

    def emit(self, topic: str, payload: Any = None) -> None:
        with self._lock:
            direct = list(self._subscribers.get(topic, []))
            wildcard = list(self._subscribers.get(WILDCARD, []))

        for callback in direct:
            try:
                callback(payload)
            except Exception as e:
                _log.warning(f"Subscriber for {topic} failed: {e}")
        for callback in wildcard:
            try:
                callback(topic, payload)
            except Exception as e:
                _log.warning(f"Wildcard subscriber failed on {topic}: {e}")
