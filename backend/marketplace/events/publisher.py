# backend/marketplace/events/publisher.py
"""Event publisher - queues booking notifications for background delivery."""

import logging
from typing import Any, Callable, Dict, Optional, Protocol

from ..tasks.enqueue import enqueue_task

logger = logging.getLogger(__name__)

DELIVER_NOTIFICATION_TASK = "marketplace.tasks.notifications.deliver_booking_notification"


class Notification(Protocol):
    type: str

    def to_dict(self) -> Dict[str, Any]:
        ...


class EventPublisher:
    """Hands notifications to the Celery worker that talks to the dispatcher."""

    def __init__(self, enqueue: Optional[Callable[..., Any]] = None):
        self._enqueue = enqueue or enqueue_task

    def publish(self, notification: Notification) -> None:
        """
        Queue a notification for delivery.

        Enqueue failures propagate; callers on the booking path treat
        publishing as best-effort.
        """
        self._enqueue(DELIVER_NOTIFICATION_TASK, kwargs={"notification": notification.to_dict()})
        logger.debug(f"Queued {notification.type} notification")
