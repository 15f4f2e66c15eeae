"""Free-form date/time parsing for event start and end values.

Strings such as ``"August 27, 2025"``, ``"6/13/2014"``, ``"7pm PT"`` or
``"2024-01-25 14:30:00 CT"`` are parsed with :mod:`dateutil.parser`. The
parser runs twice with two different default datetimes so that every
component the text actually names can be told apart from one that was filled
in from the default.
"""

from __future__ import annotations

import datetime
import logging
import warnings
from dataclasses import dataclass
from typing import Optional

from dateutil import parser as date_parser
from dateutil.parser import UnknownTimezoneWarning

from lifelist.core.exceptions import DateParseError
from lifelist.core.timezone_utils import extract_timezone, now, zone_label

logger = logging.getLogger(__name__)

# Two defaults differing in every component; a component is "known" when both
# parses agree on it.
_DEFAULT_A = datetime.datetime(2000, 1, 1, 0, 0)
_DEFAULT_B = datetime.datetime(2004, 2, 2, 1, 1)


@dataclass(frozen=True)
class ParsedComponents:
    """Components found in a date string, with per-component certainty."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    second: int
    known_year: bool
    known_month: bool
    known_day: bool
    known_hour: bool
    known_minute: bool
    tzinfo: Optional[datetime.tzinfo] = None

    @property
    def known_offset(self) -> bool:
        """True when the text named a zone or a UTC offset."""
        return self.tzinfo is not None

    @property
    def is_specific(self) -> bool:
        """Enough information to place the value on a calendar or a clock."""
        return (self.known_month and self.known_day) or self.known_hour

    def resolve(self, today: datetime.date) -> datetime.datetime:
        """Build a datetime, filling unknown date parts from ``today``.

        Raises:
            ValueError: If the filled-in components do not form a real date
        """
        year = self.year if self.known_year else today.year
        month = self.month if self.known_month else today.month
        day = self.day if self.known_day else today.day
        hour = self.hour if self.known_hour else 0
        minute = self.minute if self.known_hour and self.known_minute else 0
        second = self.second if self.known_hour else 0
        return datetime.datetime(year, month, day, hour, minute, second, tzinfo=self.tzinfo)


def _parse_with_default(text: str, default: datetime.datetime) -> datetime.datetime:
    with warnings.catch_warnings():
        # Unknown zone names come back naive; the table lookup already ran
        warnings.simplefilter("ignore", UnknownTimezoneWarning)
        return date_parser.parse(text, default=default)


def _fixed_offset(value: datetime.datetime) -> Optional[datetime.tzinfo]:
    offset = value.utcoffset()
    if offset is None:
        return None
    return datetime.timezone(offset)


def parse_components(text: str) -> Optional[ParsedComponents]:
    """Parse ``text`` into components, or None when it is not a date at all.

    A US timezone abbreviation or an IANA key in the text is looked up in the
    fixed timezone table first and removed before dateutil sees the rest.
    """
    if not text or not text.strip():
        return None

    zone, remaining = extract_timezone(text.strip())
    if not remaining:
        return None

    try:
        first = _parse_with_default(remaining, _DEFAULT_A)
        second = _parse_with_default(remaining, _DEFAULT_B)
    except (ValueError, OverflowError) as e:
        logger.debug("dateutil rejected %r: %s", remaining, e)
        return None

    return ParsedComponents(
        year=first.year,
        month=first.month,
        day=first.day,
        hour=first.hour,
        minute=first.minute,
        second=first.second,
        known_year=first.year == second.year,
        known_month=first.month == second.month,
        known_day=first.day == second.day,
        known_hour=first.hour == second.hour,
        known_minute=first.minute == second.minute,
        tzinfo=zone if zone is not None else _fixed_offset(first),
    )


def parse_datetime(text: str) -> datetime.datetime:
    """Parse a free-form date/time string into a datetime.

    Unknown date components are taken from today in the value's own zone
    (local time for naive values). A value without a zone stays naive.

    Raises:
        DateParseError: If the text is malformed or too vague (e.g. ``"12"``)
    """
    components = parse_components(text)
    if components is None:
        raise DateParseError(text)
    if not components.is_specific:
        raise DateParseError(text, "is too vague to be a date")

    if components.tzinfo is not None:
        today = now(components.tzinfo).date()
    else:
        today = now().astimezone().date()

    try:
        return components.resolve(today)
    except ValueError as e:
        raise DateParseError(text, f"is not a valid date ({e})") from e


def format_datetime(value: datetime.datetime) -> str:
    """Render a datetime in the form written back to the data file.

    Naive midnight values are written as a plain date (``January 25, 2024``);
    anything else carries the time and, for aware values, a zone label that
    :func:`parse_datetime` reads back (``January 25, 2024 7:47 PM ET``).
    """
    text = f"{value:%B} {value.day}, {value.year}"
    label = zone_label(value)
    if label is None and value.time() == datetime.time(0, 0):
        return text

    hour = value.hour % 12 or 12
    meridiem = "AM" if value.hour < 12 else "PM"
    clock = f"{hour}:{value.minute:02d}"
    if value.second:
        clock += f":{value.second:02d}"
    text = f"{text} {clock} {meridiem}"
    if label:
        text = f"{text} {label}"
    return text
