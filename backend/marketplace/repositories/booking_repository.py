# backend/marketplace/repositories/booking_repository.py
"""
Booking Repository for the vendor marketplace.

Handles booking persistence and lookups by vendor and customer, plus the
transaction-scoped lock that serializes booking writes for one vendor day.
"""

from datetime import date
import hashlib
import logging
from typing import List, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


def vendor_day_lock_key(vendor_id: str, day: date) -> int:
    """Stable signed 64-bit key for ``pg_advisory_xact_lock``."""
    digest = hashlib.blake2b(f"{vendor_id}:{day.isoformat()}".encode(), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_for_update(self, booking_id: str) -> Optional[Booking]:
        """Load a booking with a row lock held until the transaction ends."""
        try:
            query = self.db.query(Booking).filter(Booking.id == booking_id)
            if self.dialect_name == "postgresql":
                query = query.with_for_update()
            return query.first()
        except Exception as e:
            self.logger.error(f"Error locking booking {booking_id}: {str(e)}")
            raise RepositoryException(f"Failed to load booking: {str(e)}")

    def get_for_vendor(self, vendor_id: str, status: Optional[str] = None) -> List[Booking]:
        try:
            query = self.db.query(Booking).filter(Booking.vendor_id == vendor_id)
            if status:
                query = query.filter(Booking.status == status)
            return query.order_by(Booking.event_start).all()
        except Exception as e:
            self.logger.error(f"Error getting vendor bookings: {str(e)}")
            raise RepositoryException(f"Failed to get vendor bookings: {str(e)}")

    def get_for_customer(self, customer_id: str, status: Optional[str] = None) -> List[Booking]:
        try:
            query = self.db.query(Booking).filter(Booking.customer_id == customer_id)
            if status:
                query = query.filter(Booking.status == status)
            return query.order_by(Booking.event_start).all()
        except Exception as e:
            self.logger.error(f"Error getting customer bookings: {str(e)}")
            raise RepositoryException(f"Failed to get customer bookings: {str(e)}")

    def lock_vendor_day(self, vendor_id: str, day: date) -> None:
        """
        Serialize writers for ``(vendor_id, day)`` until the transaction ends.

        Uses a PostgreSQL transaction-scoped advisory lock. Other dialects
        have no equivalent and rely on the distributed booking lock.
        """
        if self.dialect_name != "postgresql":
            self.logger.debug(
                f"Advisory lock skipped for {vendor_id} on {day} (dialect={self.dialect_name})"
            )
            return
        try:
            self.db.execute(
                text("SELECT pg_advisory_xact_lock(:key)"),
                {"key": vendor_day_lock_key(vendor_id, day)},
            )
        except Exception as e:
            self.logger.error(f"Error acquiring vendor day lock: {str(e)}")
            raise RepositoryException(f"Failed to lock vendor day: {str(e)}")
