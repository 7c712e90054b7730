# backend/marketplace/repositories/conflict_checker_repository.py
"""
ConflictChecker Repository for the vendor marketplace.

Read-only queries used by the conflict resolver: the blocking bookings of a
vendor across a range of dates, and the service lookup that resolves a vendor.
"""

from datetime import date
import logging
from typing import List, Optional, cast

from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.booking import BLOCKING_STATUSES, Booking
from ..models.service import Service
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ConflictCheckerRepository(BaseRepository[Booking]):
    """Repository for conflict checking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def get_blocking_bookings_between(
        self,
        vendor_id: str,
        first_date: date,
        last_date: date,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        """
        Get bookings that block the vendor's calendar across a date range.

        Args:
            vendor_id: The vendor to check
            first_date: Earliest calendar date of the bookings' start
            last_date: Latest calendar date of the bookings' start (inclusive)
            exclude_booking_id: Optional booking ID to leave out (self re-validation)

        Returns:
            Blocking bookings ordered by start
        """
        try:
            query = self.db.query(Booking).filter(
                Booking.vendor_id == vendor_id,
                Booking.booking_date >= first_date,
                Booking.booking_date <= last_date,
                Booking.status.in_(sorted(BLOCKING_STATUSES)),
            )
            if exclude_booking_id:
                query = query.filter(Booking.id != exclude_booking_id)

            return cast(List[Booking], query.order_by(Booking.event_start).all())

        except Exception as e:
            self.logger.error(f"Error getting bookings for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get conflict bookings: {str(e)}")

    def get_active_service(self, service_id: str) -> Optional[Service]:
        """
        Get an active service by ID.

        Returns:
            Service if active and exists, None otherwise
        """
        try:
            result = (
                self.db.query(Service)
                .filter(Service.id == service_id, Service.is_active.is_(True))
                .first()
            )
            return cast(Optional[Service], result)
        except Exception as e:
            self.logger.error(f"Error getting active service: {str(e)}")
            raise RepositoryException(f"Failed to get service: {str(e)}")
