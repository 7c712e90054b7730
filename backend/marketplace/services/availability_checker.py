# backend/marketplace/services/availability_checker.py
"""
Availability Checker Service for the vendor marketplace.

Decides whether a requested event window is covered by one of the
vendor's open availability windows. Containment is boundary-inclusive and
partial overlap with a window is not enough.

Overnight windows (end clock earlier than start clock) never satisfy a
containment check unless ``settings.allow_overnight_availability`` is on.
When it is, windows are compared as absolute ``[start, end)`` instants,
the same normalization the conflict resolver uses for suggestions.
"""

from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.availability import AvailabilityWindow
from ..repositories import RepositoryFactory
from ..repositories.availability_repository import AvailabilityRepository
from ..utils.time_utils import ClockValue, interval_contains, parse_clock
from .base import BaseService

logger = logging.getLogger(__name__)

DateValue = Union[date, datetime, str]


@dataclass(frozen=True)
class SuggestedWindow:
    """Display tuple for an open window or a free slot."""

    start: str
    end: str
    duration_hours: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class AvailabilityCheckResult:
    available: bool
    errors: List[str] = field(default_factory=list)
    suggested_windows: List[SuggestedWindow] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "available": self.available,
            "errors": list(self.errors),
            "suggested_windows": [w.to_dict() for w in self.suggested_windows],
        }


def coerce_date(value: Optional[DateValue]) -> Optional[date]:
    """Return a calendar date for ``value`` or None when it is missing or malformed."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


class AvailabilityChecker(BaseService):
    """
    Containment checks against vendor availability windows.

    Holds no per-vendor state; the vendor id is passed on every call.
    """

    def __init__(self, db: Session, repository: Optional[AvailabilityRepository] = None):
        super().__init__(db)
        self.logger = logging.getLogger(__name__)
        self.repository = repository or RepositoryFactory.create_availability_repository(db)

    @property
    def overnight_enabled(self) -> bool:
        return settings.allow_overnight_availability

    def _window_usable(self, window: AvailabilityWindow) -> bool:
        return self.overnight_enabled or not window.is_overnight

    @BaseService.measure_operation("is_available")
    def is_available(
        self,
        vendor_id: Optional[str],
        check_date: Optional[DateValue],
        start_time: Optional[ClockValue],
        end_time: Optional[ClockValue],
    ) -> bool:
        """
        Whether ``[start_time, end_time)`` on ``check_date`` lies inside an open window.

        Missing vendor, a missing or malformed date, unparsable clock values
        and empty ranges all answer False.
        """
        day = coerce_date(check_date)
        if not vendor_id or day is None or start_time is None or end_time is None:
            return False
        try:
            start_clock = parse_clock(start_time)
            end_clock = parse_clock(end_time)
        except ValueError:
            self.logger.info(f"Unparsable clock values {start_time!r}-{end_time!r}")
            return False

        requested_start = datetime.combine(day, start_clock)
        requested_end = datetime.combine(day, end_clock)
        if requested_end <= requested_start:
            if not (self.overnight_enabled and end_clock < start_clock):
                return False
            requested_end += timedelta(days=1)

        return self.covers(vendor_id, requested_start, requested_end)

    def covers(self, vendor_id: str, requested_start: datetime, requested_end: datetime) -> bool:
        """Absolute-instant containment check used by the booking write path."""
        if requested_end <= requested_start:
            return False

        day = requested_start.date()
        candidates = list(self.repository.get_open_windows(vendor_id, day))
        if self.overnight_enabled:
            previous = self.repository.get_open_windows(vendor_id, day - timedelta(days=1))
            candidates.extend(w for w in previous if w.is_overnight)

        for window in candidates:
            if not self._window_usable(window):
                continue
            window_start, window_end = window.bounds()
            if interval_contains(window_start, window_end, requested_start, requested_end):
                return True

        self.logger.info(
            f"Vendor {vendor_id} has no open window covering {requested_start}-{requested_end}"
        )
        return False

    @BaseService.measure_operation("get_suggested_windows")
    def get_suggested_windows(
        self, vendor_id: Optional[str], check_date: Optional[DateValue]
    ) -> List[SuggestedWindow]:
        """
        Every usable open window on the date as a display tuple.

        Existing bookings are not taken into account.
        """
        day = coerce_date(check_date)
        if not vendor_id or day is None:
            return []

        return [
            SuggestedWindow(
                start=window.start_time.strftime("%H:%M"),
                end=window.end_time.strftime("%H:%M"),
                duration_hours=window.duration_hours,
            )
            for window in self.repository.get_open_windows(vendor_id, day)
            if self._window_usable(window)
        ]

    def check_availability(
        self,
        vendor_id: Optional[str],
        check_date: Optional[DateValue],
        start_time: Optional[ClockValue],
        end_time: Optional[ClockValue],
    ) -> AvailabilityCheckResult:
        """Availability answer with presence errors and the day's open windows."""
        errors = []
        if not vendor_id:
            errors.append("Vendor can't be blank")
        if check_date is None:
            errors.append("Date can't be blank")
        elif coerce_date(check_date) is None:
            errors.append("Date is invalid")
        if start_time is None:
            errors.append("Start time can't be blank")
        if end_time is None:
            errors.append("End time can't be blank")

        return AvailabilityCheckResult(
            available=False if errors else self.is_available(vendor_id, check_date, start_time, end_time),
            errors=errors,
            suggested_windows=self.get_suggested_windows(vendor_id, check_date),
        )
