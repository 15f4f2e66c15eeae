"""Polling change notifier for the data file."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Optional, Union

from lifelist.calendar.source import EventSource, StatSignature

logger = logging.getLogger(__name__)


class SourceWatcher:
    """Calls ``on_change`` whenever the data file's stat signature changes.

    Polling works the same on every platform and filesystem, including
    editors that save by renaming a new file over the old one. A file that
    disappears for a while is logged and polling continues; its return counts
    as a change.
    """

    def __init__(
        self,
        source: Union[EventSource, str, Path],
        on_change: Callable[[], None],
        poll_interval: float = 0.5,
    ) -> None:
        self.source = source if isinstance(source, EventSource) else EventSource(source)
        self._on_change = on_change
        self.poll_interval = poll_interval
        self._last: Optional[StatSignature] = None
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task[None]] = None
        self.change_count = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Record the current signature and start polling."""
        if self.running:
            return
        self._last = await asyncio.to_thread(self.source.stat_signature)
        self._stop_event.clear()
        self._task = asyncio.create_task(self._poll_loop(), name="lifelist-source-watcher")
        logger.debug("Watching %s every %.2fs", self.source.path, self.poll_interval)

    async def stop(self) -> None:
        """Stop polling and wait for the loop to exit."""
        self._stop_event.set()
        task = self._task
        self._task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
            logger.debug("Stopped watching %s", self.source.path)

    async def check(self) -> bool:
        """Compare the signature once; return True if a change was reported."""
        current = await asyncio.to_thread(self.source.stat_signature)
        if current == self._last:
            return False

        self._last = current
        if current is None:
            logger.warning("Data file %s disappeared; keeping current events", self.source.path)
            return False

        self.change_count += 1
        logger.info("Data file %s changed", self.source.path)
        self._on_change()
        return True

    async def _poll_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.poll_interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.check()
            except Exception:
                logger.exception("Source watcher poll failed for %s", self.source.path)
