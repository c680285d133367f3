"""
Event Bus and Notifications

Publish/subscribe channel used by the persistence facade, the preferences
service and the scan processor to push state changes to UI consumers,
plus the notification sink for user feedback.

Subscribers and sinks are external: their failures are logged and never
reach the pipeline.
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Protocol

from foodscan.core.constants import VALID_NOTIFY_KINDS

logger = logging.getLogger(__name__)

Subscriber = Callable[[Any], None]


class EventBus:
    """Synchronous topic-based observer list."""

    def __init__(self):
        self._subscribers: dict[str, list[Subscriber]] = defaultdict(list)

    def subscribe(self, topic: str, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        self._subscribers[topic].append(callback)

        def unsubscribe():
            if callback in self._subscribers[topic]:
                self._subscribers[topic].remove(callback)

        return unsubscribe

    def publish(self, topic: str, payload: Any) -> None:
        for callback in list(self._subscribers[topic]):
            try:
                callback(payload)
            except Exception as e:
                logger.warning(f"[EventBus] Subscriber for '{topic}' failed: {e}")


class NotificationSink(Protocol):
    """Fire-and-forget user feedback (toast, sound, speech...)."""

    def notify(self, kind: str, message: str) -> None:
        ...


class LoggingNotificationSink:
    """Default sink: writes notifications to the log."""

    def notify(self, kind: str, message: str) -> None:
        if kind not in VALID_NOTIFY_KINDS:
            kind = "info"
        level = {"error": logging.ERROR, "warning": logging.WARNING}.get(kind, logging.INFO)
        logger.log(level, f"[Notify:{kind}] {message}")


def safe_notify(sink: NotificationSink, kind: str, message: str) -> None:
    """Call the sink without depending on its outcome."""
    try:
        sink.notify(kind, message)
    except Exception as e:
        logger.warning(f"[Notify] Sink failed for '{message}': {e}")
