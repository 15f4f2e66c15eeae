"""Recurrence expansion for lifelist events.

Each occurrence popped from a stream's working set may produce up to two
follow-ups: the next cycle of a recurring series and the next day of an event
that spans several calendar days. All arithmetic is wall-clock arithmetic in
the event's own zone, so a daily 9am event stays at 9am across DST changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Union

from dateutil.relativedelta import FR, MO, SA, SU, TH, TU, WE, relativedelta

from lifelist.calendar.models import Event, FloatingRule, Frequency, WeekOfMonth

logger = logging.getLogger(__name__)

# Indexed by datetime.weekday() (Monday == 0)
_RELATIVE_WEEKDAYS = (MO, TU, WE, TH, FR, SA, SU)

_FIXED_STEPS: dict[Frequency, timedelta] = {
    Frequency.DAILY: timedelta(days=1),
    Frequency.WEEKLY: timedelta(days=7),
    Frequency.BIWEEKLY: timedelta(days=14),
}


@dataclass(frozen=True)
class PendingOccurrence:
    """An occurrence waiting in a working set.

    ``series_start`` and ``cycle`` let month- and year-based rules compute each
    cycle from the first one, so clamping to a short month never drifts.
    """

    event: Event
    series_start: Optional[datetime] = None
    cycle: int = 0


def floating_date(rule: FloatingRule, year: int, template: datetime) -> datetime:
    """The rule's day in ``year``, keeping the time of day and zone of ``template``."""
    first_of_month = template.replace(year=year, month=rule.month.number, day=1)
    weekday = _RELATIVE_WEEKDAYS[rule.weekday.index]
    if rule.week is WeekOfMonth.LAST:
        return first_of_month + relativedelta(day=31, weekday=weekday(-1))
    return first_of_month + relativedelta(weekday=weekday(rule.week.ordinal))


def next_cycle_start(
    frequency: Frequency,
    start: datetime,
    *,
    series_start: Optional[datetime] = None,
    cycle: int = 0,
    floating: Optional[FloatingRule] = None,
) -> Optional[datetime]:
    """Start of the cycle after the one beginning at ``start``.

    Args:
        frequency: Recurrence kind
        start: Start of the current cycle
        series_start: Start of the first cycle (monthly/annually only)
        cycle: Index of the current cycle, 0 for the first
        floating: Rule for floating frequency

    Returns:
        The next start, or None for one-off events
    """
    if frequency == Frequency.ONCE:
        return None

    step = _FIXED_STEPS.get(frequency)
    if step is not None:
        return start + step

    if frequency == Frequency.WEEKDAYS:
        candidate = start + timedelta(days=1)
        while candidate.weekday() >= 5:
            candidate += timedelta(days=1)
        return candidate

    base = series_start or start
    if frequency == Frequency.MONTHLY:
        return base + relativedelta(months=cycle + 1)
    if frequency == Frequency.ANNUALLY:
        return base + relativedelta(years=cycle + 1)

    if frequency == Frequency.FLOATING:
        if floating is None:
            raise ValueError("floating frequency requires a rule")
        return floating_date(floating, start.year + 1, start)

    raise ValueError(f"Unsupported frequency: {frequency}")


def derive_next_cycle(pending: PendingOccurrence) -> Optional[PendingOccurrence]:
    """Next occurrence of a recurring series, or None for one-off events.

    ``end`` moves by the same wall-clock delta as ``start``.
    """
    event = pending.event
    if event.start is None or not event.is_recurring:
        return None

    series_start = pending.series_start or event.start
    next_start = next_cycle_start(
        event.frequency,
        event.start,
        series_start=series_start,
        cycle=pending.cycle,
        floating=event.floating,
    )
    if next_start is None:
        return None

    delta = next_start - event.start
    next_end = event.end + delta if event.end is not None else None
    return PendingOccurrence(
        event=event.model_copy(update={"start": next_start, "end": next_end}),
        series_start=series_start,
        cycle=pending.cycle + 1,
    )


def spans_multiple_days(event: Event) -> bool:
    """True when ``end`` falls on a later calendar day than ``start``."""
    if event.start is None or event.end is None:
        return False
    return event.end.date() > event.start.date()


def derive_next_span_day(event: Event) -> Event:
    """Continuation of a multi-day event on the following day.

    The continuation is a one-off: the recurring series already produces its
    own next cycle.
    """
    if event.start is None:
        raise ValueError("undated events do not span days")
    return event.model_copy(
        update={
            "start": event.start + timedelta(days=1),
            "frequency": Frequency.ONCE,
            "floating": None,
        }
    )


def is_upcoming(event: Event, query_day: date) -> bool:
    """True for undated events and events starting on or after ``query_day``."""
    return event.start is None or event.start.date() >= query_day


def day_key(value: Union[date, datetime]) -> str:
    """Calendar-day key such as ``"Sun Jan 01 2023"``."""
    return f"{value:%a %b %d %Y}"
