# backend/marketplace/repositories/availability_repository.py
"""
Read access to vendor availability windows.

Windows are created and edited by the vendor profile surface; this
repository only reads them.
"""

from datetime import date
import logging
from typing import List

from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.availability import AvailabilityWindow
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class AvailabilityRepository(BaseRepository[AvailabilityWindow]):
    def __init__(self, db: Session):
        super().__init__(db, AvailabilityWindow)
        self.logger = logging.getLogger(__name__)

    def get_open_windows(self, vendor_id: str, target_date: date) -> List[AvailabilityWindow]:
        """
        Get open windows for a vendor on a date, ordered by start time.

        Args:
            vendor_id: The vendor's user id
            target_date: Calendar date the windows are declared for

        Returns:
            Open windows, earliest first
        """
        try:
            return (
                self.db.query(AvailabilityWindow)
                .filter(
                    AvailabilityWindow.vendor_id == vendor_id,
                    AvailabilityWindow.window_date == target_date,
                    AvailabilityWindow.is_open.is_(True),
                )
                .order_by(AvailabilityWindow.start_time)
                .all()
            )
        except Exception as e:
            self.logger.error(f"Error getting open windows: {str(e)}")
            raise RepositoryException(f"Failed to get availability windows: {str(e)}")
