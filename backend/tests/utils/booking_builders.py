from __future__ import annotations

from datetime import date, datetime, time

# Far enough ahead that cancellation notice rules never trip by accident
EVENT_DAY = date(2030, 6, 15)


def at(clock: str, day: date = EVENT_DAY) -> datetime:
    """``at("10:00")`` is 10:00 on the shared test event day."""
    hour, minute = clock.split(":")
    return datetime.combine(day, time(int(hour), int(minute)))


def parse_clock(clock: str) -> time:
    hour, minute = clock.split(":")
    return time(int(hour), int(minute))


def booking_payload(**overrides: object) -> dict:
    """JSON body for POST /api/v1/bookings/ with sensible defaults."""
    payload = {
        "event_start": "2030-06-15T10:00:00",
        "event_end": "2030-06-15T12:00:00",
        "location": "12 Pier Road",
        "total_amount": 500,
        "requirements": "Vegetarian options",
    }
    payload.update(overrides)
    return payload
