"""Lazy, date-ordered stream of event occurrences."""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Iterable, Iterator
from datetime import date, datetime
from typing import Optional, Union

from lifelist.calendar.models import Event, instant_key
from lifelist.calendar.recurrence import (
    PendingOccurrence,
    derive_next_cycle,
    derive_next_span_day,
    is_upcoming,
    spans_multiple_days,
)

logger = logging.getLogger(__name__)

SortKey = tuple[int, float]


def occurrence_sort_key(start: Optional[datetime]) -> SortKey:
    """Undated items sort before every dated one."""
    if start is None:
        return (0, 0.0)
    return (1, instant_key(start))


class OccurrenceStream:
    """Yields occurrences on or after a query day, earliest first.

    The working set is a heap of pending occurrences seeded from the source
    events. Recurring series are infinite, so occurrences are derived only
    when the stream is pulled. Equal starts come out in insertion order. A
    stream never rewinds and is owned by a single caller.
    """

    def __init__(self, query_date: Union[date, datetime], events: Iterable[Event]) -> None:
        self.query_day = query_date.date() if isinstance(query_date, datetime) else query_date
        self._heap: list[tuple[SortKey, int, PendingOccurrence]] = []
        self._sequence = itertools.count()
        self.yielded = 0
        for event in events:
            self._push(PendingOccurrence(event=event))

    @property
    def exhausted(self) -> bool:
        """True once the working set is empty."""
        return not self._heap

    def _push(self, pending: PendingOccurrence) -> None:
        key = occurrence_sort_key(pending.event.start)
        heapq.heappush(self._heap, (key, next(self._sequence), pending))

    def next_occurrence(self) -> Optional[Event]:
        """Return the next eligible occurrence, or None when none remain."""
        while self._heap:
            _, _, pending = heapq.heappop(self._heap)
            event = pending.event

            following = derive_next_cycle(pending)
            if following is not None:
                self._push(following)

            if not is_upcoming(event, self.query_day):
                continue

            if spans_multiple_days(event):
                self._push(PendingOccurrence(event=derive_next_span_day(event)))

            self.yielded += 1
            return event

        return None

    def __iter__(self) -> Iterator[Event]:
        return self

    def __next__(self) -> Event:
        occurrence = self.next_occurrence()
        if occurrence is None:
            raise StopIteration
        return occurrence
