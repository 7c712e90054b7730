# backend/marketplace/models/availability.py
"""
Availability models for the vendor marketplace.

Vendors declare open windows per calendar date. Several windows per date
are allowed (split morning/afternoon). A window whose end clock is earlier
than its start clock is declared as overnight and runs into the next day.

Classes:
    AvailabilityWindow: A vendor-declared open time range on one date
"""

from datetime import datetime, timedelta
import logging
from typing import Tuple

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, String, Time
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base
from ..utils.time_utils import duration_hours, is_overnight, resolve_window_bounds

logger = logging.getLogger(__name__)


class AvailabilityWindow(Base):
    """Vendor open window on a specific date, in vendor-local clock time."""

    __tablename__ = "availability_windows"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    vendor_id = Column(String(26), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    window_date = Column(Date, nullable=False, index=True)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    vendor = relationship("User", back_populates="availability_windows")

    __table_args__ = (
        Index("ix_availability_windows_vendor_date", "vendor_id", "window_date"),
        Index("ix_availability_windows_date_open", "window_date", "is_open"),
    )

    @property
    def is_overnight(self) -> bool:
        return is_overnight(self.start_time, self.end_time)

    def bounds(self) -> Tuple[datetime, datetime]:
        """Absolute ``[start, end)`` for this window's date."""
        return resolve_window_bounds(self.window_date, self.start_time, self.end_time)

    @property
    def duration(self) -> timedelta:
        start, end = self.bounds()
        return end - start

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.duration)

    def __repr__(self) -> str:
        return (
            f"<AvailabilityWindow {self.id}: vendor={self.vendor_id} "
            f"{self.window_date} {self.start_time}-{self.end_time} open={self.is_open}>"
        )
