"""Per-query-day cache of materialized occurrences.

One cache belongs to one parsed event snapshot. When the data file changes,
the engine replaces the snapshot and its cache together, so entries never
need to be invalidated one by one.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Union

from lifelist.calendar.models import Event
from lifelist.calendar.occurrence_stream import OccurrenceStream
from lifelist.calendar.recurrence import day_key

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Occurrences materialized so far for one day, and the stream behind them."""

    stream: OccurrenceStream
    occurrences: list[Event] = field(default_factory=list)
    exhausted: bool = False


class OccurrenceCache:
    """Materializes occurrences on demand and remembers them per query day.

    Requests for the same day share one stream. A request for more
    occurrences than are cached pulls only the difference; a request for
    fewer returns a prefix of what is cached.

    Example:
        cache = OccurrenceCache(document.upcoming)
        first = cache.get_occurrences(datetime(2023, 1, 1), 10)
        more = cache.get_occurrences(datetime(2023, 1, 1, 18, 30), 25)
        assert more[:10] == first
    """

    def __init__(self, events: Sequence[Event]) -> None:
        """Initialize the cache for a parsed event snapshot.

        Args:
            events: Source events; treated as immutable for the cache's lifetime
        """
        self._events: tuple[Event, ...] = tuple(events)
        self._entries: dict[str, CacheEntry] = {}
        self.stats = {
            "hits": 0,
            "misses": 0,
            "pulled": 0,
        }

    @property
    def events(self) -> tuple[Event, ...]:
        """The source events this cache expands."""
        return self._events

    def get_occurrences(self, from_date: Union[date, datetime], count: int) -> list[Event]:
        """Return the first ``count`` occurrences on or after ``from_date``'s day.

        Args:
            from_date: Query date; only its calendar day matters
            count: Number of occurrences wanted

        Returns:
            A list of ``min(count, available)`` occurrences in stream order

        Raises:
            ValueError: If count is negative or not an integer
        """
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"count must be a non-negative integer, got {count!r}")

        key = day_key(from_date)
        entry = self._entries.get(key)
        if entry is None:
            self.stats["misses"] += 1
            entry = CacheEntry(stream=OccurrenceStream(from_date, self._events))
            self._entries[key] = entry
            logger.debug("Created occurrence stream for %s", key)
        else:
            self.stats["hits"] += 1

        needed = count - len(entry.occurrences)
        while needed > 0 and not entry.exhausted:
            occurrence = entry.stream.next_occurrence()
            if occurrence is None:
                entry.exhausted = True
                logger.debug("Occurrence stream for %s exhausted after %d", key, len(entry.occurrences))
                break
            entry.occurrences.append(occurrence)
            self.stats["pulled"] += 1
            needed -= 1

        return entry.occurrences[:count]

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with hits, misses, pulled (occurrences materialized), the
            number of cached days and the number of source events
        """
        return {
            "hits": self.stats["hits"],
            "misses": self.stats["misses"],
            "pulled": self.stats["pulled"],
            "cached_days": len(self._entries),
            "event_count": len(self._events),
        }
