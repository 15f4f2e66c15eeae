"""The lifelist event engine.

``EventsManager`` owns the parsed event snapshot, the occurrence cache built
over it, the data file and the change notifier that keeps the two in sync.
One instance is created per process and passed to whoever needs it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime
from typing import Any, Optional, Union

from lifelist.calendar.models import Event
from lifelist.calendar.occurrence_cache import OccurrenceCache
from lifelist.calendar.schema import EventDocument, dump_document, parse_document, validate_event
from lifelist.calendar.source import EventSource
from lifelist.calendar.watcher import SourceWatcher
from lifelist.core.config_manager import Config
from lifelist.core.debounce import Debouncer
from lifelist.core.exceptions import LifelistError
from lifelist.core.health_tracker import HealthTracker
from lifelist.core.timezone_utils import load_zone, now
from lifelist.domain.grouping import DayGroup, group_and_summarize

logger = logging.getLogger(__name__)


class EventsManager:
    """Serves occurrences from the data file and follows its changes.

    Use :meth:`create` to build one; it either returns a fully loaded engine
    or raises. Changes to the file (including the engine's own writes) are
    picked up by a polling watcher and re-parsed after a quiet period. A
    failed re-parse is logged and the previous snapshot stays in service.
    """

    def __init__(
        self,
        config: Config,
        source: EventSource,
        cache: OccurrenceCache,
        health: Optional[HealthTracker] = None,
    ) -> None:
        self.config = config
        self.source = source
        # Snapshot and cache are swapped together as one reference
        self._cache = cache
        self.health = health or HealthTracker()
        self._write_lock = asyncio.Lock()
        self._debouncer = Debouncer(self._reparse, config.debounce_seconds)
        self._watcher = SourceWatcher(source, self._debouncer.schedule, config.poll_interval_seconds)
        self.reload_count = 0

    @classmethod
    async def create(cls, config: Optional[Config] = None) -> EventsManager:
        """Load the data file and start watching it.

        Raises:
            SourceNotFoundError: If the data file does not exist
            SchemaValidationError: If the data file is not a valid events document
        """
        config = config or Config()
        source = EventSource(config.data_file)
        health = HealthTracker()

        health.record_reload_attempt()
        document = parse_document(await source.read())
        health.record_reload_success(len(document.upcoming))

        manager = cls(config, source, OccurrenceCache(document.upcoming), health)
        await manager._watcher.start()
        logger.info("Loaded %d events from %s", len(document.upcoming), source.path)
        return manager

    @property
    def events(self) -> tuple[Event, ...]:
        """Source events of the current snapshot."""
        return self._cache.events

    @property
    def reload_pending(self) -> bool:
        """True while a change is waiting out the debounce period or being parsed."""
        return self._debouncer.pending or self._debouncer.running

    def _resolve_query(
        self, from_date: Optional[Union[date, datetime]], count: Optional[int]
    ) -> tuple[Union[date, datetime], int]:
        if from_date is None:
            from_date = now(load_zone(self.config.default_timezone))
        if count is None:
            count = self.config.default_event_count
        return from_date, count

    async def get_occurrences(
        self, from_date: Optional[Union[date, datetime]] = None, count: Optional[int] = None
    ) -> list[Event]:
        """Next ``count`` occurrences on or after ``from_date``'s calendar day.

        Waits for a re-parse that is already running, so a caller never sees
        a snapshot that is about to be replaced mid-parse.

        Raises:
            ValueError: If count is negative or not an integer
        """
        await self._debouncer.wait()
        from_date, count = self._resolve_query(from_date, count)
        return self._cache.get_occurrences(from_date, count)

    async def get_events(
        self, from_date: Optional[Union[date, datetime]] = None, count: Optional[int] = None
    ) -> list[DayGroup]:
        """Like :meth:`get_occurrences`, grouped by day and summarized."""
        return group_and_summarize(await self.get_occurrences(from_date, count))

    async def add_event(self, raw: Union[Event, dict[str, Any]]) -> Event:
        """Append an event to the data file.

        The file is re-read and validated as a whole before the write, and
        the in-memory snapshot is only refreshed through the watcher path.

        Raises:
            SchemaValidationError: If the event or the current file is invalid
            SourceNotFoundError: If the data file is missing
        """
        result = validate_event(raw)
        if not result.ok:
            result.raise_error()
        event = result.value

        async with self._write_lock:
            document = parse_document(await self.source.read())
            updated = EventDocument(upcoming=[*document.upcoming, event], **document.extra_sections)
            await self.source.write(dump_document(updated))

        logger.info("Added event %r to %s", event.name, self.source.path)
        self._debouncer.schedule()
        return event

    async def reload(self) -> None:
        """Re-parse the data file now instead of waiting for the debounce."""
        await self._debouncer.flush()

    async def close(self) -> None:
        """Stop watching the file and drop any pending re-parse."""
        await self._watcher.stop()
        self._debouncer.cancel()
        await self._debouncer.wait()
        logger.debug("Events manager for %s closed", self.source.path)

    async def _reparse(self) -> None:
        self.health.record_reload_attempt()
        try:
            document = parse_document(await self.source.read())
        except (LifelistError, OSError, UnicodeDecodeError) as e:
            self.health.record_reload_failure(str(e))
            logger.warning("Re-parse of %s failed; keeping previous events: %s", self.source.path, e)
            return

        self._cache = OccurrenceCache(document.upcoming)
        self.reload_count += 1
        self.health.record_reload_success(len(document.upcoming))
        logger.info("Reloaded %d events from %s", len(document.upcoming), self.source.path)

    def get_cache_stats(self) -> dict[str, Any]:
        """Statistics of the current occurrence cache."""
        return self._cache.get_stats()

    def get_health(self) -> dict[str, Any]:
        """Health snapshot including cache statistics."""
        snapshot = self.health.to_dict(now().isoformat())
        snapshot["cache"] = self.get_cache_stats()
        return snapshot
