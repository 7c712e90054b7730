# backend/marketplace/models/__init__.py
"""
ORM models. Importing this package registers every table on ``Base.metadata``.
"""

from .availability import AvailabilityWindow
from .booking import (
    ALLOWED_TRANSITIONS,
    BLOCKING_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
)
from .service import Service
from .user import User, UserRole

__all__ = [
    "ALLOWED_TRANSITIONS",
    "AvailabilityWindow",
    "BLOCKING_STATUSES",
    "Booking",
    "BookingStatus",
    "Service",
    "TERMINAL_STATUSES",
    "User",
    "UserRole",
]
