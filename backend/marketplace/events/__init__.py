"""Booking notifications and their publisher."""

from .booking_events import (
    Accepted,
    BookingNotification,
    CounterOffered,
    Declined,
    NotificationType,
    VendorResponse,
    booking_cancelled_notification,
    booking_completed_notification,
    booking_created_notification,
    notification_for_response,
    status_for_response,
)
from .publisher import EventPublisher

__all__ = [
    "Accepted",
    "BookingNotification",
    "CounterOffered",
    "Declined",
    "EventPublisher",
    "NotificationType",
    "VendorResponse",
    "booking_cancelled_notification",
    "booking_completed_notification",
    "booking_created_notification",
    "notification_for_response",
    "status_for_response",
]
