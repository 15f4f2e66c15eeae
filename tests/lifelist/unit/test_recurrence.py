"""Unit tests for recurrence expansion helpers."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from lifelist.calendar.models import Event, FloatingRule, Frequency
from lifelist.calendar.recurrence import (
    PendingOccurrence,
    day_key,
    derive_next_cycle,
    derive_next_span_day,
    is_upcoming,
    next_cycle_start,
    spans_multiple_days,
)

pytestmark = pytest.mark.unit


def _event(start=None, end=None, frequency="once", **extra):
    return Event.model_validate({"name": "e", "priority": 5, "start": start, "end": end, "frequency": frequency, **extra})


class TestNextCycleStart:
    """Tests for next_cycle_start."""

    def test_once_has_no_next(self):
        assert next_cycle_start(Frequency.ONCE, datetime(2023, 1, 1)) is None

    @pytest.mark.parametrize(
        ("frequency", "expected"),
        [
            (Frequency.DAILY, datetime(2023, 1, 2)),
            (Frequency.WEEKLY, datetime(2023, 1, 8)),
            (Frequency.BIWEEKLY, datetime(2023, 1, 15)),
        ],
    )
    def test_fixed_steps(self, frequency, expected):
        assert next_cycle_start(frequency, datetime(2023, 1, 1)) == expected

    def test_weekdays_skips_weekend(self):
        friday = datetime(2023, 1, 6, 9, 0)

        assert next_cycle_start(Frequency.WEEKDAYS, friday) == datetime(2023, 1, 9, 9, 0)

    def test_monthly_clamps_without_drift(self):
        series = datetime(2023, 1, 31)

        february = next_cycle_start(Frequency.MONTHLY, series, series_start=series, cycle=0)
        march = next_cycle_start(Frequency.MONTHLY, february, series_start=series, cycle=1)

        assert february == datetime(2023, 2, 28)
        assert march == datetime(2023, 3, 31)

    def test_annually_clamps_leap_day(self):
        assert next_cycle_start(Frequency.ANNUALLY, datetime(2024, 2, 29)) == datetime(2025, 2, 28)

    def test_floating_fourth_thursday(self):
        rule = FloatingRule(weekday="thursday", week="fourth", month="november")

        assert next_cycle_start(Frequency.FLOATING, datetime(2023, 11, 23, 15), floating=rule) == datetime(2024, 11, 28, 15)

    def test_floating_last_monday(self):
        rule = FloatingRule(weekday="monday", week="last", month="may")

        assert next_cycle_start(Frequency.FLOATING, datetime(2023, 5, 29), floating=rule) == datetime(2024, 5, 27)


class TestDeriveNextCycle:
    """Tests for derive_next_cycle."""

    def test_end_moves_with_start(self):
        pending = PendingOccurrence(_event(datetime(2023, 1, 1, 10), datetime(2023, 1, 1, 11), "weekly"))

        following = derive_next_cycle(pending)

        assert following.event.start == datetime(2023, 1, 8, 10)
        assert following.event.end == datetime(2023, 1, 8, 11)
        assert following.cycle == 1
        assert following.series_start == datetime(2023, 1, 1, 10)

    def test_other_fields_inherited(self):
        source = _event(datetime(2023, 1, 1), None, "daily", location="Home", tags=["a", "b"])

        following = derive_next_cycle(PendingOccurrence(source)).event

        assert (following.name, following.priority, following.location, following.tags) == (
            "e",
            5,
            "Home",
            ("a", "b"),
        )
        assert following.frequency == Frequency.DAILY

    def test_wall_clock_kept_across_dst(self):
        new_york = ZoneInfo("America/New_York")
        pending = PendingOccurrence(_event(datetime(2024, 3, 9, 9, tzinfo=new_york), None, "daily"))

        following = derive_next_cycle(pending).event

        assert following.start.hour == 9
        assert following.start.utcoffset() == timedelta(hours=-4)

    def test_one_off_and_todo_have_no_next(self):
        assert derive_next_cycle(PendingOccurrence(_event(datetime(2023, 1, 1)))) is None
        assert derive_next_cycle(PendingOccurrence(_event())) is None


class TestSpans:
    """Tests for multi-day span helpers."""

    def test_spans_multiple_days(self):
        assert spans_multiple_days(_event(datetime(2025, 8, 27), datetime(2025, 9, 1)))
        assert not spans_multiple_days(_event(datetime(2025, 8, 27, 9), datetime(2025, 8, 27, 17)))
        assert not spans_multiple_days(_event(datetime(2025, 8, 27)))

    def test_next_span_day_is_one_off(self):
        source = _event(datetime(2025, 8, 27), datetime(2025, 9, 1), "weekly")

        continuation = derive_next_span_day(source)

        assert continuation.start == datetime(2025, 8, 28)
        assert continuation.end == datetime(2025, 9, 1)
        assert continuation.frequency == Frequency.ONCE


class TestDayHelpers:
    """Tests for is_upcoming and day_key."""

    def test_is_upcoming_uses_calendar_day(self):
        query_day = date(2023, 1, 1)

        assert is_upcoming(_event(datetime(2023, 1, 1, 0, 1)), query_day)
        assert is_upcoming(_event(), query_day)
        assert not is_upcoming(_event(datetime(2022, 12, 31, 23, 59)), query_day)

    def test_day_key_format(self):
        assert day_key(datetime(2023, 1, 1, 18, 30)) == "Sun Jan 01 2023"
        assert day_key(date(2025, 8, 27)) == "Wed Aug 27 2025"
