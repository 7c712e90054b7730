from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from marketplace.core.exceptions import InvalidStatusTransitionException
from marketplace.models.booking import (
    ALLOWED_TRANSITIONS,
    BLOCKING_STATUSES,
    TERMINAL_STATUSES,
    Booking,
    BookingStatus,
)


def _booking(status=BookingStatus.PENDING, end=None) -> Booking:
    return Booking(
        id="01J0BOOKING0000000000000001",
        customer_id="customer",
        vendor_id="vendor",
        event_start=datetime(2030, 6, 15, 10, 0),
        event_end=end,
        status=status,
        total_amount=Decimal("250.00"),
        location="Town hall",
    )


@pytest.mark.unit
class TestBookingDefaults:
    def test_booking_date_derives_from_start(self):
        assert _booking().booking_date == date(2030, 6, 15)

    def test_status_defaults_to_pending(self):
        booking = Booking(
            customer_id="c",
            vendor_id="v",
            event_start=datetime(2030, 6, 15, 10, 0),
            total_amount=Decimal("10"),
            location="x",
        )
        assert booking.status == "pending"

    def test_enum_status_is_stored_as_string(self):
        assert _booking(BookingStatus.COUNTER_OFFERED).status == "counter_offered"

    def test_missing_end_uses_default_two_hours(self):
        booking = _booking()
        assert booking.effective_end == datetime(2030, 6, 15, 12, 0)
        assert booking.duration == timedelta(hours=2)
        assert booking.duration_hours == 2.0

    def test_explicit_end(self):
        booking = _booking(end=datetime(2030, 6, 15, 13, 30))
        assert booking.effective_end == datetime(2030, 6, 15, 13, 30)
        assert booking.duration_hours == 3.5


@pytest.mark.unit
class TestBlockingSet:
    def test_blocking_statuses(self):
        assert BLOCKING_STATUSES == {"pending", "accepted", "counter_offered"}

    @pytest.mark.parametrize("status", list(BookingStatus))
    def test_is_blocking_matches_set(self, status):
        assert _booking(status).is_blocking is (status.value in BLOCKING_STATUSES)

    def test_terminal_statuses_have_no_exits(self):
        for status in TERMINAL_STATUSES:
            assert ALLOWED_TRANSITIONS[status] == frozenset()
            assert _booking(status).is_terminal


@pytest.mark.unit
class TestTransitions:
    @pytest.mark.parametrize(
        "start,target",
        [
            (BookingStatus.PENDING, BookingStatus.ACCEPTED),
            (BookingStatus.PENDING, BookingStatus.DECLINED),
            (BookingStatus.PENDING, BookingStatus.COUNTER_OFFERED),
            (BookingStatus.PENDING, BookingStatus.CANCELLED),
            (BookingStatus.COUNTER_OFFERED, BookingStatus.ACCEPTED),
            (BookingStatus.COUNTER_OFFERED, BookingStatus.COUNTER_OFFERED),
            (BookingStatus.ACCEPTED, BookingStatus.COMPLETED),
            (BookingStatus.ACCEPTED, BookingStatus.CANCELLED),
        ],
    )
    def test_allowed(self, start, target):
        booking = _booking(start)
        booking.transition_to(target)
        assert booking.status == target.value

    @pytest.mark.parametrize(
        "start,target",
        [
            (BookingStatus.PENDING, BookingStatus.COMPLETED),
            (BookingStatus.ACCEPTED, BookingStatus.DECLINED),
            (BookingStatus.DECLINED, BookingStatus.ACCEPTED),
            (BookingStatus.CANCELLED, BookingStatus.PENDING),
            (BookingStatus.COMPLETED, BookingStatus.CANCELLED),
        ],
    )
    def test_rejected(self, start, target):
        booking = _booking(start)
        assert not booking.can_transition_to(target)
        with pytest.raises(InvalidStatusTransitionException) as exc_info:
            booking.transition_to(target)
        assert exc_info.value.details["current"] == start.value
        assert exc_info.value.details["requested"] == target.value
        assert booking.status == start.value


@pytest.mark.unit
def test_reschedule_moves_booking_date():
    booking = _booking(end=datetime(2030, 6, 15, 12, 0))
    booking.reschedule(datetime(2030, 6, 16, 9, 0), None)

    assert booking.booking_date == date(2030, 6, 16)
    assert booking.event_end is None
    assert booking.effective_end == datetime(2030, 6, 16, 11, 0)


@pytest.mark.unit
def test_to_dict_serializes_amounts_and_times():
    data = _booking(end=datetime(2030, 6, 15, 12, 0)).to_dict()

    assert data["event_start"] == "2030-06-15T10:00:00"
    assert data["event_end"] == "2030-06-15T12:00:00"
    assert data["booking_date"] == "2030-06-15"
    assert data["total_amount"] == 250.0
    assert data["counter_offer_amount"] is None
