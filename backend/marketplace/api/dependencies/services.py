# backend/marketplace/api/dependencies/services.py
"""
Service layer dependencies.

Each provider builds a request-scoped service bound to the request's
database session.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from ...events.publisher import EventPublisher
from ...services.availability_checker import AvailabilityChecker
from ...services.booking_service import BookingService
from ...services.conflict_checker import ConflictChecker
from .database import get_db


@lru_cache(maxsize=1)
def get_event_publisher() -> EventPublisher:
    """Process-wide publisher; it holds no per-request state."""
    return EventPublisher()


def get_availability_checker(db: Session = Depends(get_db)) -> AvailabilityChecker:
    return AvailabilityChecker(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_booking_service(
    db: Session = Depends(get_db),
    publisher: EventPublisher = Depends(get_event_publisher),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        publisher: Queues booking notifications

    Returns:
        BookingService instance
    """
    return BookingService(db, publisher=publisher)
