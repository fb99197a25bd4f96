"""Tests for calendar-day arithmetic behind the SLA clock."""
from datetime import datetime, timedelta, timezone

import pytest

from portal.sla.domain import DeadlineCalculator
from tests.conftest import utc


class TestComputeDueDate:
    def test_adds_exact_calendar_days(self):
        start = utc(2024, 1, 1)
        assert DeadlineCalculator.compute_due_date(start, 30) == utc(2024, 1, 31)

    def test_keeps_time_of_day(self):
        start = utc(2024, 2, 27, 15, 30)
        assert DeadlineCalculator.compute_due_date(start, 3) == utc(2024, 3, 1, 15, 30)

    def test_shift_due_date(self):
        assert DeadlineCalculator.shift_due_date(utc(2024, 1, 31), 5) == utc(2024, 2, 5)
        assert DeadlineCalculator.shift_due_date(utc(2024, 1, 31), 0) == utc(2024, 1, 31)


class TestDaysBetween:
    def test_whole_days(self):
        assert DeadlineCalculator.days_between(utc(2024, 1, 10), utc(2024, 1, 15)) == 5

    def test_truncates_partial_days(self):
        assert DeadlineCalculator.days_between(utc(2024, 1, 10), utc(2024, 1, 15, 23, 59)) == 5

    def test_negative_truncates_toward_zero(self):
        assert DeadlineCalculator.days_between(utc(2024, 2, 10), utc(2024, 2, 5)) == -5
        assert DeadlineCalculator.days_between(utc(2024, 2, 5, 12), utc(2024, 2, 5)) == 0
        assert DeadlineCalculator.days_between(utc(2024, 2, 6, 12), utc(2024, 2, 5)) == -1

    def test_naive_datetimes_are_utc(self):
        naive = datetime(2024, 1, 10)
        assert DeadlineCalculator.days_between(naive, utc(2024, 1, 12)) == 2

    def test_other_timezones_are_converted(self):
        plus_five = timezone(timedelta(hours=5))
        # 2024-01-11T02:00+05:00 is 2024-01-10T21:00Z
        start = datetime(2024, 1, 11, 2, tzinfo=plus_five)
        assert DeadlineCalculator.days_between(start, utc(2024, 1, 11, 20)) == 0
        assert DeadlineCalculator.days_between(start, utc(2024, 1, 11, 21)) == 1


class TestPauseLengthDays:
    @pytest.mark.parametrize("resumed_at, expected", [
        (utc(2024, 1, 15), 5),
        (utc(2024, 1, 10, 3), 1),
        (utc(2024, 1, 12, 0, 1), 3),
        (utc(2024, 1, 10), 0),
        (utc(2024, 1, 9), 0),
    ])
    def test_rounds_partial_days_up(self, resumed_at, expected):
        assert DeadlineCalculator.pause_length_days(utc(2024, 1, 10), resumed_at) == expected


class TestActiveDaysElapsed:
    def test_subtracts_closed_pauses(self):
        assert DeadlineCalculator.active_days_elapsed(utc(2024, 1, 20), utc(2024, 1, 1), 5) == 14

    def test_subtracts_open_pause_without_committing(self):
        elapsed = DeadlineCalculator.active_days_elapsed(
            utc(2024, 1, 20), utc(2024, 1, 1), 0, paused_at=utc(2024, 1, 15)
        )
        assert elapsed == 14

    def test_open_pause_stamped_after_now_is_ignored(self):
        elapsed = DeadlineCalculator.active_days_elapsed(
            utc(2024, 1, 20), utc(2024, 1, 1), 0, paused_at=utc(2024, 1, 23)
        )
        assert elapsed == 19

    def test_clamped_at_zero_before_start(self):
        assert DeadlineCalculator.active_days_elapsed(utc(2024, 1, 1), utc(2024, 2, 1), 0) == 0
