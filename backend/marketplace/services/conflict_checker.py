# backend/marketplace/services/conflict_checker.py
"""
Conflict Checker Service for the vendor marketplace.

Handles booking conflict detection and alternative suggestions:
- Detecting overlap between a requested window and blocking bookings
- Listing the conflicting bookings themselves
- Proposing free windows of the requested duration inside open availability

Intervals are half-open, so a booking ending at 12:00 does not conflict
with a request starting at 12:00. Bookings without an end occupy the
default booking duration.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import FieldError
from ..models.booking import Booking
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..repositories.conflict_checker_repository import ConflictCheckerRepository
from ..utils.time_utils import (
    Interval,
    default_event_end,
    duration_hours,
    free_windows,
    intervals_overlap,
    is_offset_aware,
    span_dates,
)
from .base import BaseService

logger = logging.getLogger(__name__)

LOCAL_TIME_REQUIRED = "must be a vendor-local time"


@dataclass(frozen=True)
class AlternativeWindow:
    start: datetime
    end: datetime

    @property
    def duration_hours(self) -> float:
        return duration_hours(self.end - self.start)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "start_at": self.start.isoformat(),
            "end_at": self.end.isoformat(),
            "duration_hours": self.duration_hours,
        }


@dataclass
class ConflictCheckResult:
    """
    Outcome of a conflict evaluation.

    When the inputs cannot be evaluated ``has_conflict`` is False and
    ``errors`` explains why. Callers must look at ``errors`` first.
    """

    has_conflict: bool
    conflicts: List[Booking] = field(default_factory=list)
    errors: List[FieldError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ConflictChecker(BaseService):
    """
    Service for detecting booking overlaps and suggesting free windows.

    Holds no per-vendor state; the vendor id is passed on every call.
    """

    def __init__(
        self,
        db: Session,
        repository: Optional[ConflictCheckerRepository] = None,
        availability_repository: Optional[AvailabilityRepository] = None,
    ):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_conflict_checker_repository(db)
        self.availability_repository = (
            availability_repository or RepositoryFactory.create_availability_repository(db)
        )

    def _requested_end(self, requested_start: datetime, requested_end: Optional[datetime]) -> datetime:
        return default_event_end(
            requested_start, requested_end, settings.default_booking_duration_minutes
        )

    @BaseService.measure_operation("check_conflict")
    def check_conflict(
        self,
        vendor_id: Optional[str],
        requested_start: Optional[datetime],
        requested_end: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> ConflictCheckResult:
        """
        Check a requested window against the vendor's blocking bookings.

        Bookings starting on any date the request touches are considered,
        plus the day before, whose bookings may run past midnight.

        Args:
            vendor_id: The vendor to check
            requested_start: Start of the requested window
            requested_end: End of the requested window (defaults to start + default duration)
            exclude_booking_id: Booking to ignore, used when re-validating its own update

        Returns:
            ConflictCheckResult with the overlapping bookings
        """
        errors = []
        if not vendor_id:
            errors.append(FieldError("vendor", "can't be blank"))
        if requested_start is None:
            errors.append(FieldError("event_date", "can't be blank"))
        for name, value in (("event_date", requested_start), ("event_end_date", requested_end)):
            if value is not None and is_offset_aware(value):
                errors.append(FieldError(name, LOCAL_TIME_REQUIRED))
        if errors:
            return ConflictCheckResult(has_conflict=False, errors=errors)

        end = self._requested_end(requested_start, requested_end)
        if end <= requested_start:
            return ConflictCheckResult(
                has_conflict=False,
                errors=[FieldError("event_end_date", "must be after event_date")],
            )

        days = span_dates(requested_start, end)
        bookings = self.repository.get_blocking_bookings_between(
            vendor_id, days[0] - timedelta(days=1), days[-1], exclude_booking_id
        )
        conflicts = [
            booking
            for booking in bookings
            if intervals_overlap(requested_start, end, booking.event_start, booking.effective_end)
        ]

        if conflicts:
            self.logger.warning(
                f"Found {len(conflicts)} booking conflicts for vendor {vendor_id} "
                f"between {requested_start} and {end}"
            )

        return ConflictCheckResult(has_conflict=bool(conflicts), conflicts=conflicts)

    def has_conflict(
        self,
        vendor_id: Optional[str],
        requested_start: Optional[datetime],
        requested_end: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> bool:
        """Boolean form of check_conflict. Unevaluable input answers False."""
        return self.check_conflict(
            vendor_id, requested_start, requested_end, exclude_booking_id
        ).has_conflict

    def get_conflicting_bookings(
        self,
        vendor_id: Optional[str],
        requested_start: Optional[datetime],
        requested_end: Optional[datetime] = None,
        exclude_booking_id: Optional[str] = None,
    ) -> List[Booking]:
        return self.check_conflict(
            vendor_id, requested_start, requested_end, exclude_booking_id
        ).conflicts

    @BaseService.measure_operation("suggest_alternatives")
    def suggest_alternatives(
        self,
        vendor_id: Optional[str],
        requested_start: Optional[datetime],
        requested_end: Optional[datetime] = None,
    ) -> List[AlternativeWindow]:
        """
        Free windows of the requested duration on the requested date.

        Returns an empty list unless the request actually conflicts.
        """
        if not self.has_conflict(vendor_id, requested_start, requested_end):
            return []

        duration = self._requested_end(requested_start, requested_end) - requested_start
        return self.find_free_windows(vendor_id, requested_start.date(), duration)

    @BaseService.measure_operation("find_free_windows")
    def find_free_windows(
        self, vendor_id: str, target_date: date, duration: timedelta
    ) -> List[AlternativeWindow]:
        """
        Walk every open window on ``target_date`` and collect free candidates.

        Overnight windows run into the next day. Bookings from the previous
        day count as busy time since they may run past midnight. Results are
        deduplicated and sorted by start.
        """
        windows = self.availability_repository.get_open_windows(vendor_id, target_date)
        if not windows:
            return []

        bounds = [window.bounds() for window in windows]
        last_day = max(window_end for _, window_end in bounds).date()
        bookings = self.repository.get_blocking_bookings_between(
            vendor_id, target_date - timedelta(days=1), last_day
        )
        busy: List[Interval] = [(b.event_start, b.effective_end) for b in bookings]

        seen: Set[Tuple[datetime, datetime]] = set()
        for window_start, window_end in bounds:
            seen.update(free_windows(window_start, window_end, busy, duration))

        return [AlternativeWindow(start, end) for start, end in sorted(seen)]
