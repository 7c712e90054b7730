# backend/marketplace/models/booking.py
"""
Booking model for the vendor marketplace.

A booking reserves a vendor for an event window. Event times are stored as
naive vendor-local timestamps; an absent ``event_end`` means the default
booking duration applies wherever an interval is needed.

Status lifecycle:
    pending -> accepted | declined | counter_offered | cancelled
    counter_offered -> accepted | declined | counter_offered | cancelled
    accepted -> completed | cancelled
    declined, cancelled and completed are terminal.

Only blocking statuses participate in conflict detection.
"""

from datetime import datetime, timedelta
from enum import Enum
import logging
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..core.config import settings
from ..core.exceptions import InvalidStatusTransitionException
from ..database import Base
from ..utils.time_utils import default_event_end, duration_hours

logger = logging.getLogger(__name__)


class BookingStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    COUNTER_OFFERED = "counter_offered"


BLOCKING_STATUSES: FrozenSet[str] = frozenset(
    {BookingStatus.PENDING.value, BookingStatus.ACCEPTED.value, BookingStatus.COUNTER_OFFERED.value}
)
TERMINAL_STATUSES: FrozenSet[str] = frozenset(
    {BookingStatus.DECLINED.value, BookingStatus.CANCELLED.value, BookingStatus.COMPLETED.value}
)

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    BookingStatus.PENDING.value: frozenset(
        {
            BookingStatus.ACCEPTED.value,
            BookingStatus.DECLINED.value,
            BookingStatus.COUNTER_OFFERED.value,
            BookingStatus.CANCELLED.value,
        }
    ),
    BookingStatus.COUNTER_OFFERED.value: frozenset(
        {
            BookingStatus.ACCEPTED.value,
            BookingStatus.DECLINED.value,
            BookingStatus.COUNTER_OFFERED.value,
            BookingStatus.CANCELLED.value,
        }
    ),
    BookingStatus.ACCEPTED.value: frozenset(
        {BookingStatus.COMPLETED.value, BookingStatus.CANCELLED.value}
    ),
    BookingStatus.DECLINED.value: frozenset(),
    BookingStatus.CANCELLED.value: frozenset(),
    BookingStatus.COMPLETED.value: frozenset(),
}


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, BookingStatus) else str(status)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    customer_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    vendor_id = Column(String(26), ForeignKey("users.id"), nullable=False, index=True)
    service_id = Column(String(26), ForeignKey("services.id"), nullable=True)

    event_start = Column(DateTime, nullable=False)
    event_end = Column(DateTime, nullable=True)
    booking_date = Column(Date, nullable=False)

    status = Column(String(20), nullable=False, default=BookingStatus.PENDING.value)
    total_amount = Column(Numeric(10, 2), nullable=False)
    location = Column(String(500), nullable=False)
    requirements = Column(Text, nullable=True)
    special_instructions = Column(Text, nullable=True)

    counter_offer_amount = Column(Numeric(10, 2), nullable=True)
    counter_offer_message = Column(Text, nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by_id = Column(String(26), ForeignKey("users.id"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), nullable=True)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    customer = relationship("User", foreign_keys=[customer_id])
    vendor = relationship("User", foreign_keys=[vendor_id])
    service = relationship("Service")
    cancelled_by = relationship("User", foreign_keys=[cancelled_by_id])

    __table_args__ = (
        Index("ix_bookings_vendor_date_status", "vendor_id", "booking_date", "status"),
        CheckConstraint("total_amount > 0", name="ck_bookings_total_amount_positive"),
        CheckConstraint(
            "event_end IS NULL OR event_end > event_start", name="ck_bookings_event_window"
        ),
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'completed', 'cancelled', 'counter_offered')",
            name="ck_bookings_status",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        event_start = kwargs.get("event_start")
        if event_start is not None and "booking_date" not in kwargs:
            kwargs["booking_date"] = event_start.date()
        if "status" in kwargs:
            kwargs["status"] = _status_value(kwargs["status"])
        else:
            kwargs["status"] = BookingStatus.PENDING.value
        super().__init__(**kwargs)

    @property
    def effective_end(self) -> datetime:
        """``event_end`` or ``event_start`` plus the default booking duration."""
        return default_event_end(
            self.event_start, self.event_end, settings.default_booking_duration_minutes
        )

    @property
    def duration(self) -> timedelta:
        return self.effective_end - self.event_start

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.duration)

    @property
    def is_blocking(self) -> bool:
        return self.status in BLOCKING_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def can_transition_to(self, new_status: Any) -> bool:
        return _status_value(new_status) in ALLOWED_TRANSITIONS.get(self.status, frozenset())

    def transition_to(self, new_status: Any) -> None:
        """
        Move the booking to ``new_status``.

        Raises:
            InvalidStatusTransitionException: If the lifecycle does not allow it
        """
        target = _status_value(new_status)
        if not self.can_transition_to(target):
            raise InvalidStatusTransitionException(str(self.id), str(self.status), target)
        logger.debug(f"Booking {self.id}: {self.status} -> {target}")
        self.status = target

    def reschedule(self, event_start: datetime, event_end: Optional[datetime]) -> None:
        self.event_start = event_start
        self.event_end = event_end
        self.booking_date = event_start.date()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "customer_id": self.customer_id,
            "vendor_id": self.vendor_id,
            "service_id": self.service_id,
            "event_start": self.event_start.isoformat() if self.event_start else None,
            "event_end": self.event_end.isoformat() if self.event_end else None,
            "booking_date": self.booking_date.isoformat() if self.booking_date else None,
            "status": self.status,
            "total_amount": float(self.total_amount) if self.total_amount is not None else None,
            "location": self.location,
            "requirements": self.requirements,
            "counter_offer_amount": (
                float(self.counter_offer_amount) if self.counter_offer_amount is not None else None
            ),
            "counter_offer_message": self.counter_offer_message,
            "cancellation_reason": self.cancellation_reason,
        }

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: vendor={self.vendor_id} customer={self.customer_id} "
            f"{self.event_start} status={self.status}>"
        )
