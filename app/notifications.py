"""
Notification publishing for assignment events.

Request handlers receive a publisher through the `get_publisher` dependency
instead of reaching for a process-wide socket object.
"""
from typing import Any, Dict, List, Optional, Protocol, Tuple

from app.logger import get_logger

logger = get_logger(__name__)


class NotificationPublisher(Protocol):
    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        ...


class LoggingNotificationPublisher:
    """Publisher that writes events to the log."""

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        logger.info(f"Event {event}: {payload}")


class InMemoryNotificationPublisher:
    """Publisher that keeps events in a list, for inspection."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        self.events.append((event, payload))


def publish_safely(publisher: NotificationPublisher, event: str, payload: Dict[str, Any]) -> bool:
    """
    Publish an event after the data it describes is committed.
    A failing publisher is logged, never propagated.
    """
    try:
        publisher.publish(event, payload)
        return True
    except Exception as e:
        logger.warning(f"Failed to publish {event}: {e}")
        return False


_publisher: Optional[NotificationPublisher] = None


def get_publisher() -> NotificationPublisher:
    """Get the notification publisher (FastAPI dependency)."""
    global _publisher
    if _publisher is None:
        _publisher = LoggingNotificationPublisher()
    return _publisher
