from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Tuple, Union

ClockValue = Union[time, str]
Interval = Tuple[datetime, datetime]


def time_to_minutes(t: time) -> int:
    """Convert a clock value to minutes since midnight (0-1439)."""
    return t.hour * 60 + t.minute


def parse_clock(value: ClockValue) -> time:
    """
    Parse a clock value given as ``time`` or ``"HH:MM"`` / ``"HH:MM:SS"``.

    Raises:
        ValueError: If the value is not a recognizable time of day.
    """
    if isinstance(value, datetime):
        return value.time()
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid time value: {value!r}")
    candidate = value.strip()
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(candidate, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")


def is_overnight(start_clock: time, end_clock: time) -> bool:
    """A window whose end clock is earlier than its start clock wraps past midnight."""
    return time_to_minutes(end_clock) < time_to_minutes(start_clock)


def intervals_overlap(a_start, a_end, b_start, b_end) -> bool:
    """
    Half-open overlap test for ``[a_start, a_end)`` and ``[b_start, b_end)``.

    Touching intervals (``a_end == b_start``) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def interval_contains(outer_start, outer_end, inner_start, inner_end) -> bool:
    """Boundary-inclusive containment of the inner interval in the outer one."""
    return outer_start <= inner_start and inner_end <= outer_end


def resolve_window_bounds(day: date, start_clock: time, end_clock: time) -> Interval:
    """
    Resolve clock values declared for ``day`` into absolute ``[start, end)`` datetimes.

    Overnight windows end on the following day.
    """
    start = datetime.combine(day, start_clock)
    end = datetime.combine(day, end_clock)
    if end < start:
        end += timedelta(days=1)
    return start, end


def is_offset_aware(value: datetime) -> bool:
    """Vendor-local datetimes are naive; anything carrying a UTC offset is not."""
    return value.tzinfo is not None and value.utcoffset() is not None


def span_dates(start: datetime, end: datetime) -> List[date]:
    """
    Calendar dates touched by ``[start, end)``, in order.

    An interval ending exactly at midnight does not touch the following day.
    """
    last = (end - timedelta(microseconds=1)).date() if end > start else start.date()
    days = []
    current = start.date()
    while current <= last:
        days.append(current)
        current += timedelta(days=1)
    return days


def default_event_end(
    start: datetime, end: Optional[datetime], default_minutes: int
) -> datetime:
    """Return ``end`` or ``start`` plus the default duration when no end is recorded."""
    if end is not None:
        return end
    return start + timedelta(minutes=default_minutes)


def duration_hours(duration: timedelta) -> float:
    return round(duration.total_seconds() / 3600, 2)


def free_windows(
    window_start: datetime,
    window_end: datetime,
    busy: Iterable[Interval],
    duration: timedelta,
) -> List[Interval]:
    """
    Walk busy intervals left to right and emit free candidates of ``duration``.

    ``busy`` must be sorted by start. At most one candidate is emitted per gap,
    anchored at the gap start; a final candidate may follow the last busy
    interval. Candidates never extend past ``window_end``.
    """
    if duration <= timedelta(0):
        return []

    candidates: List[Interval] = []
    cursor = window_start

    for busy_start, busy_end in busy:
        gap_end = min(busy_start, window_end)
        if gap_end - cursor >= duration:
            candidates.append((cursor, cursor + duration))
        cursor = max(cursor, busy_end)

    if window_end - cursor >= duration:
        candidates.append((cursor, cursor + duration))

    return candidates
