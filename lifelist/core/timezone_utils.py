"""Timezone lookup and time provider utilities for lifelist."""

from __future__ import annotations

import datetime
import logging
import os
import re
import zoneinfo
from functools import lru_cache
from typing import ClassVar

logger = logging.getLogger(__name__)

# Default fallback timezone for all timezone operations
DEFAULT_SERVER_TIMEZONE = "America/Los_Angeles"


class TimezoneTable:
    """Fixed lookup table between US timezone abbreviations and IANA zones."""

    # Abbreviation to IANA identifier mapping (generic, standard and daylight names)
    TZ_ABBREV_MAP: ClassVar[dict[str, str]] = {
        "ET": "America/New_York",
        "EST": "America/New_York",
        "EDT": "America/New_York",
        "CT": "America/Chicago",
        "CST": "America/Chicago",
        "CDT": "America/Chicago",
        "MT": "America/Denver",
        "MST": "America/Denver",
        "MDT": "America/Denver",
        "PT": "America/Los_Angeles",
        "PST": "America/Los_Angeles",
        "PDT": "America/Los_Angeles",
        "AKST": "America/Anchorage",
        "AKDT": "America/Anchorage",
        "HST": "Pacific/Honolulu",
        "HAST": "Pacific/Honolulu",
        "HADT": "Pacific/Honolulu",
        "CHST": "Pacific/Guam",
    }

    # IANA identifier to the generic abbreviation used when displaying or writing times
    GENERIC_ABBREV_MAP: ClassVar[dict[str, str]] = {
        "America/New_York": "ET",
        "America/Chicago": "CT",
        "America/Denver": "MT",
        "America/Los_Angeles": "PT",
    }

    # Longest alternatives first so "AKST" wins over "ST"-like prefixes
    ABBREV_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"\b("
        + "|".join(sorted(TZ_ABBREV_MAP, key=len, reverse=True))
        + r")\b",
        re.IGNORECASE,
    )

    # Area/Location style identifiers such as "Asia/Tokyo" or "America/Argentina/Salta"
    IANA_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r"\b([A-Z][A-Za-z_]+(?:/[A-Za-z0-9_+\-]+)+)\b"
    )

    def lookup_abbreviation(self, text: str) -> tuple[str | None, str]:
        """Find a US timezone abbreviation in free text.

        Returns:
            (IANA identifier or None, text with the abbreviation removed)
        """
        match = self.ABBREV_PATTERN.search(text)
        if not match:
            return None, text
        iana = self.TZ_ABBREV_MAP[match.group(1).upper()]
        return iana, _remove_span(text, match.span())

    def lookup_iana_key(self, text: str) -> tuple[str | None, str]:
        """Find an embedded IANA identifier in free text.

        Returns:
            (IANA identifier or None, text with the identifier removed)
        """
        for match in self.IANA_PATTERN.finditer(text):
            candidate = match.group(1)
            if load_zone(candidate) is not None:
                return candidate, _remove_span(text, match.span())
        return None, text

    def generic_abbreviation(self, zone_key: str) -> str | None:
        """Return the generic abbreviation ("PT") for an IANA key, if it has one."""
        return self.GENERIC_ABBREV_MAP.get(zone_key)


class TimeProvider:
    """Provides current time with test time override support."""

    def now(self, tz: datetime.tzinfo | None = None) -> datetime.datetime:
        """Return the current time in ``tz`` (UTC when omitted).

        Can be overridden for testing via LIFELIST_TEST_TIME environment variable.
        Format: ISO 8601 datetime string (e.g., "2025-03-25T08:20:00-07:00").
        A naive override is taken as UTC.
        """
        target = tz or datetime.timezone.utc
        test_time = os.environ.get("LIFELIST_TEST_TIME")
        if test_time:
            try:
                from dateutil import parser as date_parser

                dt = date_parser.isoparse(test_time)
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=datetime.timezone.utc)
                return dt.astimezone(target)
            except ValueError as e:
                logger.warning("Failed to parse LIFELIST_TEST_TIME=%r: %s", test_time, e)

        return datetime.datetime.now(target)


def _remove_span(text: str, span: tuple[int, int]) -> str:
    start, end = span
    return " ".join(f"{text[:start]} {text[end:]}".split())


# Shared instances
_table = TimezoneTable()
_time_provider = TimeProvider()


@lru_cache(maxsize=64)
def load_zone(key: str) -> zoneinfo.ZoneInfo | None:
    """Load an IANA zone, returning None for unknown or malformed keys."""
    try:
        return zoneinfo.ZoneInfo(key)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        return None


def extract_timezone(text: str) -> tuple[zoneinfo.ZoneInfo | None, str]:
    """Extract a timezone named in free text.

    A recognized US abbreviation wins; otherwise an embedded IANA identifier is
    used. The matched token is removed from the returned text so the remainder
    can be handed to the date parser.

    Examples:
        >>> zone, rest = extract_timezone("7pm PT")
        >>> zone.key, rest
        ('America/Los_Angeles', '7pm')
    """
    iana, remaining = _table.lookup_abbreviation(text)
    if iana is None:
        iana, remaining = _table.lookup_iana_key(text)
    if iana is None:
        return None, text
    return load_zone(iana), remaining


def zone_label(dt: datetime.datetime) -> str | None:
    """Short label for a datetime's zone, or None for naive datetimes.

    US zones from the lookup table use their generic abbreviation (PT, ET);
    other IANA zones use their key so the label can be parsed back; fixed
    offsets use "UTC" or a numeric offset such as "-0500".
    """
    if dt.tzinfo is None:
        return None
    key = getattr(dt.tzinfo, "key", None)
    if key:
        return _table.generic_abbreviation(key) or key
    offset = dt.utcoffset()
    if not offset:
        return "UTC"
    return dt.strftime("%z")


def display_zone_label(dt: datetime.datetime) -> str | None:
    """Zone label for display: generic abbreviation when known, else tzname()."""
    if dt.tzinfo is None:
        return None
    key = getattr(dt.tzinfo, "key", None)
    if key and _table.generic_abbreviation(key):
        return _table.generic_abbreviation(key)
    return dt.tzname()


def get_default_timezone(fallback: str = DEFAULT_SERVER_TIMEZONE) -> str:
    """Get default timezone from environment with validation.

    Checks the LIFELIST_DEFAULT_TIMEZONE environment variable first, then
    falls back to the provided fallback timezone.
    """
    timezone = os.environ.get("LIFELIST_DEFAULT_TIMEZONE", fallback)
    if load_zone(timezone) is None:
        logger.warning("Invalid timezone %r, falling back to %r", timezone, fallback)
        return fallback
    return timezone


def parse_request_timezone(tz_str: str | None, default: str | None = None) -> zoneinfo.ZoneInfo:
    """Parse a timezone string from a request.

    Args:
        tz_str: IANA timezone identifier from the request, or None
        default: IANA identifier used when tz_str is empty

    Raises:
        ValueError: If the identifier is not a valid IANA timezone
    """
    key = tz_str or default or get_default_timezone()
    zone = load_zone(key)
    if zone is None:
        raise ValueError(f"{key!r} is not a valid IANA timezone")
    return zone


def now(tz: datetime.tzinfo | None = None) -> datetime.datetime:
    """Get the current time in ``tz`` (convenience function)."""
    return _time_provider.now(tz)
