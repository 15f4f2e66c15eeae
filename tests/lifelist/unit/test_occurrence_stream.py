"""Unit tests for the lazy occurrence stream."""

import itertools
from datetime import date, datetime

import pytest

from lifelist.calendar.models import Event, Frequency
from lifelist.calendar.occurrence_stream import OccurrenceStream

pytestmark = pytest.mark.unit


def _event(name, start=None, end=None, frequency="once", priority=5):
    return Event.model_validate(
        {"name": name, "priority": priority, "start": start, "end": end, "frequency": frequency}
    )


def _take(stream, count):
    return list(itertools.islice(stream, count))


def _starts(occurrences):
    return [o.start for o in occurrences]


class TestOrdering:
    """Tests for chronological order."""

    def test_sorted_with_todos_first(self):
        events = [
            _event("later", datetime(2023, 3, 1)),
            _event("todo"),
            _event("sooner", datetime(2023, 2, 1)),
        ]

        names = [o.name for o in OccurrenceStream(date(2023, 1, 1), events)]

        assert names == ["todo", "sooner", "later"]

    def test_equal_starts_keep_insertion_order(self):
        events = [
            _event("weekly", datetime(2023, 1, 1), frequency="weekly"),
            _event("one-off", datetime(2023, 1, 8)),
        ]

        names = [o.name for o in _take(OccurrenceStream(date(2023, 1, 1), events), 3)]

        # The derived weekly occurrence is queued after the one-off already waiting
        assert names == ["weekly", "one-off", "weekly"]

    def test_never_rewinds(self):
        stream = OccurrenceStream(date(2023, 1, 1), [_event("daily", datetime(2023, 1, 1), frequency="daily")])

        first = stream.next_occurrence()
        second = stream.next_occurrence()

        assert second.start > first.start
        assert stream.yielded == 2


class TestRecurrence:
    """Tests for recurring series."""

    def test_weekly(self):
        stream = OccurrenceStream(date(2023, 1, 1), [_event("w", datetime(2023, 1, 1), frequency="weekly")])

        assert _starts(_take(stream, 3)) == [datetime(2023, 1, 1), datetime(2023, 1, 8), datetime(2023, 1, 15)]

    def test_biweekly(self):
        stream = OccurrenceStream(date(2023, 1, 1), [_event("b", datetime(2023, 1, 1), frequency="biweekly")])

        assert _starts(_take(stream, 3)) == [datetime(2023, 1, 1), datetime(2023, 1, 15), datetime(2023, 1, 29)]

    def test_weekdays_skip_weekends(self):
        stream = OccurrenceStream(date(2023, 1, 6), [_event("w", datetime(2023, 1, 6), frequency="weekdays")])

        assert _starts(_take(stream, 3)) == [datetime(2023, 1, 6), datetime(2023, 1, 9), datetime(2023, 1, 10)]

    def test_series_started_in_the_past(self):
        stream = OccurrenceStream(date(2023, 1, 1), [_event("d", datetime(2022, 12, 30, 7), frequency="daily")])

        assert stream.next_occurrence().start == datetime(2023, 1, 1, 7)

    def test_recurring_multi_day_event(self):
        event = _event("weekend", datetime(2023, 1, 6), datetime(2023, 1, 8), frequency="weekly")

        starts = _starts(_take(OccurrenceStream(date(2023, 1, 6), [event]), 5))

        assert [s.day for s in starts] == [6, 7, 8, 13, 14]


class TestSpansAndFiltering:
    """Tests for multi-day spans and past-event filtering."""

    def test_multi_day_event_yields_each_day(self):
        event = _event("Dragon*Con", datetime(2025, 8, 27), datetime(2025, 9, 1))
        stream = OccurrenceStream(date(2025, 8, 27), [event])

        occurrences = list(stream)

        assert [o.start.date() for o in occurrences] == [
            date(2025, 8, 27),
            date(2025, 8, 28),
            date(2025, 8, 29),
            date(2025, 8, 30),
            date(2025, 8, 31),
            date(2025, 9, 1),
        ]
        assert all(o.end == datetime(2025, 9, 1) for o in occurrences)
        assert all(o.frequency == Frequency.ONCE for o in occurrences)
        assert stream.exhausted
        assert stream.next_occurrence() is None

    def test_span_started_before_query_day_is_skipped(self):
        event = _event("Dragon*Con", datetime(2025, 8, 27), datetime(2025, 9, 1))
        stream = OccurrenceStream(date(2025, 8, 30), [event])

        assert list(stream) == []
        assert stream.exhausted

    def test_recurring_span_resumes_with_next_cycle(self):
        event = _event(
            "Weekend trip", datetime(2025, 8, 29), datetime(2025, 8, 31), frequency=Frequency.WEEKLY
        )

        stream = OccurrenceStream(date(2025, 8, 30), [event])
        occurrences = [stream.next_occurrence() for _ in range(3)]

        assert [o.start.date() for o in occurrences] == [date(2025, 9, 5), date(2025, 9, 6), date(2025, 9, 7)]

    def test_past_events_skipped(self):
        events = [_event("past", datetime(2022, 12, 31, 23)), _event("future", datetime(2023, 1, 2))]

        assert [o.name for o in OccurrenceStream(date(2023, 1, 1), events)] == ["future"]

    def test_same_day_earlier_time_still_upcoming(self):
        events = [_event("morning", datetime(2023, 1, 1, 6))]

        assert [o.name for o in OccurrenceStream(datetime(2023, 1, 1, 20), events)] == ["morning"]

    def test_empty_source(self):
        stream = OccurrenceStream(date(2023, 1, 1), [])

        assert stream.exhausted
        assert stream.next_occurrence() is None
