from datetime import date, datetime, time, timedelta, timezone

import pytest

from marketplace.utils.time_utils import (
    default_event_end,
    duration_hours,
    free_windows,
    interval_contains,
    intervals_overlap,
    is_offset_aware,
    is_overnight,
    parse_clock,
    resolve_window_bounds,
    span_dates,
    time_to_minutes,
)

DAY = date(2030, 6, 15)


def dt(hour: int, minute: int = 0, day: date = DAY) -> datetime:
    return datetime.combine(day, time(hour, minute))


@pytest.mark.unit
class TestParseClock:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("09:30", time(9, 30)),
            (" 17:00 ", time(17, 0)),
            ("23:59:59", time(23, 59, 59)),
            (time(6, 15), time(6, 15)),
            (datetime(2030, 1, 1, 8, 45), time(8, 45)),
        ],
    )
    def test_accepts_supported_forms(self, value, expected):
        assert parse_clock(value) == expected

    @pytest.mark.parametrize("value", ["", "9am", "25:00", "12:60", 930, None])
    def test_rejects_garbage(self, value):
        with pytest.raises(ValueError):
            parse_clock(value)


@pytest.mark.unit
class TestMinutes:
    def test_minutes_since_midnight(self):
        assert time_to_minutes(time(0, 0)) == 0
        assert time_to_minutes(time(13, 5)) == 785
        assert time_to_minutes(time(23, 59)) == 1439


@pytest.mark.unit
class TestSpanDates:
    def test_same_day_interval(self):
        assert span_dates(dt(10), dt(12)) == [DAY]

    def test_interval_crossing_midnight(self):
        next_day = DAY + timedelta(days=1)
        assert span_dates(dt(23), dt(1, day=next_day)) == [DAY, next_day]

    def test_ending_at_midnight_stays_on_one_day(self):
        assert span_dates(dt(22), dt(0, day=DAY + timedelta(days=1))) == [DAY]

    def test_empty_interval_keeps_start_date(self):
        assert span_dates(dt(10), dt(10)) == [DAY]


@pytest.mark.unit
def test_offset_awareness():
    assert not is_offset_aware(dt(10))
    assert is_offset_aware(datetime(2030, 6, 15, 10, tzinfo=timezone.utc))


@pytest.mark.unit
class TestIntervals:
    def test_half_open_overlap(self):
        assert intervals_overlap(dt(10), dt(12), dt(11), dt(13))
        assert intervals_overlap(dt(11), dt(13), dt(10), dt(12))
        assert intervals_overlap(dt(9), dt(17), dt(10), dt(11))

    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap(dt(10), dt(12), dt(12), dt(14))
        assert not intervals_overlap(dt(12), dt(14), dt(10), dt(12))

    def test_containment_is_boundary_inclusive(self):
        assert interval_contains(dt(16), dt(18), dt(16), dt(18))
        assert interval_contains(dt(9), dt(17), dt(10), dt(12))

    def test_partial_overlap_is_not_containment(self):
        assert not interval_contains(dt(9), dt(12), dt(11), dt(13))
        assert not interval_contains(dt(9), dt(12), dt(8), dt(10))


@pytest.mark.unit
class TestWindowBounds:
    def test_same_day_window(self):
        assert resolve_window_bounds(DAY, time(9), time(17)) == (dt(9), dt(17))

    def test_overnight_window_ends_next_day(self):
        start, end = resolve_window_bounds(DAY, time(22), time(6))
        assert start == dt(22)
        assert end == dt(6, day=DAY + timedelta(days=1))
        assert is_overnight(time(22), time(6))
        assert not is_overnight(time(9), time(17))


@pytest.mark.unit
class TestDefaults:
    def test_missing_end_uses_default_duration(self):
        assert default_event_end(dt(10), None, 120) == dt(12)

    def test_explicit_end_wins(self):
        assert default_event_end(dt(10), dt(11), 120) == dt(11)

    def test_duration_hours_rounds_to_two_places(self):
        assert duration_hours(timedelta(minutes=100)) == 1.67
        assert duration_hours(timedelta(hours=2)) == 2.0


@pytest.mark.unit
class TestFreeWindows:
    def test_empty_day_yields_one_candidate_at_window_start(self):
        assert free_windows(dt(9), dt(17), [], timedelta(hours=2)) == [(dt(9), dt(11))]

    def test_candidate_is_anchored_at_each_gap_start(self):
        busy = [(dt(10), dt(12))]
        assert free_windows(dt(9), dt(17), busy, timedelta(hours=2)) == [(dt(12), dt(14))]

    def test_short_leading_gap_is_skipped(self):
        busy = [(dt(10), dt(12)), (dt(15), dt(16))]
        result = free_windows(dt(9), dt(17), busy, timedelta(hours=1))
        assert result == [(dt(9), dt(10)), (dt(12), dt(13)), (dt(16), dt(17))]

    def test_gap_end_is_clamped_to_window_end(self):
        busy = [(dt(18), dt(20))]
        assert free_windows(dt(15), dt(17), busy, timedelta(hours=2)) == [(dt(15), dt(17))]

    def test_overlapping_busy_intervals_do_not_move_cursor_backwards(self):
        busy = [(dt(9), dt(13)), (dt(10), dt(11))]
        assert free_windows(dt(9), dt(17), busy, timedelta(hours=4)) == [(dt(13), dt(17))]

    def test_no_room_for_duration(self):
        busy = [(dt(10), dt(16))]
        assert free_windows(dt(9), dt(17), busy, timedelta(hours=2)) == []

    def test_non_positive_duration(self):
        assert free_windows(dt(9), dt(17), [], timedelta(0)) == []
