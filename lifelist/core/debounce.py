"""Timer-coalescing debounce utility for asyncio callbacks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class Debouncer:
    """Delay an async callback until a burst of triggers goes quiet.

    Every call to ``schedule()`` restarts the quiet period; the callback runs
    once, ``delay`` seconds after the last trigger. ``cancel()`` drops a
    pending run and ``flush()`` runs the callback immediately.

    Example:
        debouncer = Debouncer(manager.reload, delay=0.8)
        debouncer.schedule()
        debouncer.schedule()  # coalesced with the first trigger
        await debouncer.wait()
    """

    def __init__(self, callback: Callable[[], Awaitable[None]], delay: float) -> None:
        self._callback = callback
        self.delay = delay
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self.fire_count = 0

    @property
    def pending(self) -> bool:
        """True while a scheduled run is waiting for its quiet period."""
        return self._handle is not None

    @property
    def running(self) -> bool:
        """True while the callback is executing."""
        return self._task is not None and not self._task.done()

    def schedule(self) -> None:
        """(Re)start the quiet period. Must be called from the event loop thread."""
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self._handle = loop.call_later(self.delay, self._fire)
        logger.debug("Debounced run scheduled in %.3fs", self.delay)

    def cancel(self) -> None:
        """Drop the pending run, if any. A callback already running is not interrupted."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Debounced run cancelled")

    async def flush(self) -> None:
        """Cancel the pending timer and run the callback now."""
        self.cancel()
        self._start()
        await self.wait()

    async def wait(self) -> None:
        """Wait for a running callback to finish."""
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait([task])

    def _fire(self) -> None:
        self._handle = None
        self._start()

    def _start(self) -> None:
        self.fire_count += 1
        previous = self._task

        async def _run() -> None:
            # Runs never overlap: a new run waits for the previous one
            if previous is not None and not previous.done():
                await asyncio.wait([previous])
            await self._callback()

        self._task = asyncio.ensure_future(_run())
        self._task.add_done_callback(self._log_failure)

    @staticmethod
    def _log_failure(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Debounced callback failed: %s", exc, exc_info=exc)
