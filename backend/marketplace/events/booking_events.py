# backend/marketplace/events/booking_events.py
"""Booking notifications and vendor response variants."""

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from ..models.booking import BookingStatus

if TYPE_CHECKING:
    from ..models.booking import Booking


class NotificationType:
    BOOKING_CREATED = "booking_created"
    BOOKING_ACCEPTED = "booking_accepted"
    BOOKING_DECLINED = "booking_declined"
    BOOKING_COUNTER_OFFERED = "booking_counter_offered"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_COMPLETED = "booking_completed"


@dataclass
class BookingNotification:
    """Request for the external dispatcher to notify one user about a booking."""

    type: str
    recipient_id: str
    payload: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Accepted:
    """Vendor accepts the booking as requested."""


@dataclass(frozen=True)
class Declined:
    """Vendor declines the booking."""

    reason: Optional[str] = None


@dataclass(frozen=True)
class CounterOffered:
    """Vendor proposes a different amount."""

    amount: Decimal
    message: Optional[str] = None


VendorResponse = Union[Accepted, Declined, CounterOffered]


def status_for_response(response: VendorResponse) -> BookingStatus:
    """Booking status a vendor response leads to."""
    if isinstance(response, Accepted):
        return BookingStatus.ACCEPTED
    if isinstance(response, Declined):
        return BookingStatus.DECLINED
    if isinstance(response, CounterOffered):
        return BookingStatus.COUNTER_OFFERED
    raise TypeError(f"Unknown vendor response: {response!r}")


def notification_for_response(booking: "Booking", response: VendorResponse) -> BookingNotification:
    """Notification sent to the customer after a vendor response."""
    payload: Dict[str, Any] = {"booking_id": booking.id}
    if isinstance(response, Accepted):
        kind = NotificationType.BOOKING_ACCEPTED
    elif isinstance(response, Declined):
        kind = NotificationType.BOOKING_DECLINED
        if response.reason:
            payload["reason"] = response.reason
    elif isinstance(response, CounterOffered):
        kind = NotificationType.BOOKING_COUNTER_OFFERED
        payload["counter_amount"] = str(response.amount)
        if response.message:
            payload["counter_message"] = response.message
    else:
        raise TypeError(f"Unknown vendor response: {response!r}")
    return BookingNotification(type=kind, recipient_id=booking.customer_id, payload=payload)


def booking_created_notification(booking: "Booking") -> BookingNotification:
    return BookingNotification(
        type=NotificationType.BOOKING_CREATED,
        recipient_id=booking.vendor_id,
        payload={"booking_id": booking.id},
    )


def booking_cancelled_notification(booking: "Booking", cancelled_by_id: str) -> BookingNotification:
    """Tell the other party that the booking was cancelled."""
    recipient = booking.vendor_id if cancelled_by_id == booking.customer_id else booking.customer_id
    return BookingNotification(
        type=NotificationType.BOOKING_CANCELLED,
        recipient_id=recipient,
        payload={"booking_id": booking.id, "cancelled_by_id": cancelled_by_id},
    )


def booking_completed_notification(booking: "Booking") -> BookingNotification:
    return BookingNotification(
        type=NotificationType.BOOKING_COMPLETED,
        recipient_id=booking.customer_id,
        payload={"booking_id": booking.id},
    )
