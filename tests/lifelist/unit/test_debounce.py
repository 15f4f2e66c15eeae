"""Unit tests for the asyncio debouncer."""

import asyncio
import logging

import pytest

from lifelist.core.debounce import Debouncer

pytestmark = pytest.mark.unit


class Recorder:
    """Async callback that counts its calls."""

    def __init__(self, duration: float = 0.0, fail_first: bool = False) -> None:
        self.calls = 0
        self.duration = duration
        self.fail_first = fail_first

    async def __call__(self) -> None:
        self.calls += 1
        if self.duration:
            await asyncio.sleep(self.duration)
        if self.fail_first and self.calls == 1:
            raise RuntimeError("boom")


class TestDebouncer:
    """Tests for Debouncer."""

    async def test_burst_is_coalesced(self):
        recorder = Recorder()
        debouncer = Debouncer(recorder, delay=0.05)

        for _ in range(5):
            debouncer.schedule()
            await asyncio.sleep(0.01)
        await asyncio.sleep(0.2)

        assert recorder.calls == 1
        assert debouncer.fire_count == 1
        assert not debouncer.pending

    async def test_reschedule_restarts_quiet_period(self):
        recorder = Recorder()
        debouncer = Debouncer(recorder, delay=0.2)

        debouncer.schedule()
        await asyncio.sleep(0.12)
        debouncer.schedule()
        await asyncio.sleep(0.12)

        assert recorder.calls == 0
        assert debouncer.pending

        await asyncio.sleep(0.3)
        assert recorder.calls == 1

    async def test_cancel_drops_pending_run(self):
        recorder = Recorder()
        debouncer = Debouncer(recorder, delay=0.05)

        debouncer.schedule()
        debouncer.cancel()
        await asyncio.sleep(0.1)

        assert recorder.calls == 0
        assert not debouncer.pending

    async def test_flush_runs_now(self):
        recorder = Recorder()
        debouncer = Debouncer(recorder, delay=10)

        debouncer.schedule()
        await debouncer.flush()

        assert recorder.calls == 1
        assert not debouncer.pending

    async def test_wait_for_running_callback(self):
        recorder = Recorder(duration=0.1)
        debouncer = Debouncer(recorder, delay=0.01)

        debouncer.schedule()
        await asyncio.sleep(0.04)
        assert debouncer.running

        await debouncer.wait()

        assert not debouncer.running
        assert recorder.calls == 1

    async def test_wait_without_run_returns(self):
        await Debouncer(Recorder(), delay=0.01).wait()

    async def test_failure_is_logged_and_next_run_works(self, caplog):
        recorder = Recorder(fail_first=True)
        debouncer = Debouncer(recorder, delay=0.01)

        with caplog.at_level(logging.ERROR, logger="lifelist.core.debounce"):
            await debouncer.flush()
            await asyncio.sleep(0)

        assert "Debounced callback failed" in caplog.text

        await debouncer.flush()
        assert recorder.calls == 2
