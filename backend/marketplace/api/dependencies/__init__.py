"""FastAPI dependency providers."""

from .database import get_db
from .services import (
    get_availability_checker,
    get_booking_service,
    get_conflict_checker,
    get_event_publisher,
)

__all__ = [
    "get_availability_checker",
    "get_booking_service",
    "get_conflict_checker",
    "get_db",
    "get_event_publisher",
]
