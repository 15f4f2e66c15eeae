"""Group occurrences by calendar day and summarize them for display."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime, time
from typing import Any, Optional

from lifelist.calendar.models import Event, EventSummary
from lifelist.calendar.recurrence import day_key
from lifelist.core.timezone_utils import display_zone_label

TODO_KEY = "TODO"

DayGroup = tuple[str, list[EventSummary]]


def format_time(value: Optional[datetime], include_zone: bool = True) -> Optional[str]:
    """Format the time of day as ``7pm`` or ``7:30pm PT``.

    Midnight means "no time given" and yields None.
    """
    if value is None or value.time() == time(0, 0):
        return None
    hour = value.hour % 12 or 12
    suffix = "am" if value.hour < 12 else "pm"
    text = f"{hour}{suffix}" if value.minute == 0 else f"{hour}:{value.minute:02d}{suffix}"
    label = display_zone_label(value) if include_zone else None
    return f"{text} {label}" if label else text


def summarize(event: Event) -> EventSummary:
    """Display view of one occurrence.

    When both ends have a time the zone is only shown once, after the end.
    """
    end_time = format_time(event.end)
    start_time = format_time(event.start, include_zone=end_time is None)
    return EventSummary(
        name=event.name,
        priority=event.priority,
        location=event.location,
        start_time=start_time,
        end_time=end_time,
        tags=list(event.tags),
    )


def group_and_summarize(events: Iterable[Event]) -> list[DayGroup]:
    """Bucket occurrences by calendar day.

    Returns:
        ``[(day_key, [summary, ...]), ...]`` with the ``"TODO"`` bucket first,
        then days in ascending order. Within a day, higher priority comes
        first and equal priorities keep their input order.
    """
    buckets: dict[str, list[Event]] = {}
    days: dict[str, Optional[date]] = {}
    for event in events:
        if event.start is None:
            key, day = TODO_KEY, None
        else:
            key, day = day_key(event.start), event.start.date()
        buckets.setdefault(key, []).append(event)
        days.setdefault(key, day)

    ordered_keys = sorted(buckets, key=lambda k: (0, date.min) if days[k] is None else (1, days[k]))
    return [
        (key, [summarize(event) for event in sorted(buckets[key], key=lambda e: -e.priority)])
        for key in ordered_keys
    ]


def groups_to_json(groups: list[DayGroup]) -> list[list[Any]]:
    """JSON-ready form: ``[[day_key, [summary_dict, ...]], ...]``."""
    return [[key, [summary.model_dump() for summary in summaries]] for key, summaries in groups]
