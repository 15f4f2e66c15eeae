import asyncio
from collections.abc import AsyncIterator, Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from lifelist.core.config_manager import Config
from lifelist.domain.events_manager import EventsManager

SAMPLE_YAML = """\
upcoming:
  - name: Dragon*Con
    priority: 10
    location: Atlanta
    start: August 27, 2025
    end: September 1, 2025
    tags:
      - Convention
  - name: Water plants
    priority: 3
    start: August 25, 2025 8am PT
    frequency: weekly
  - name: Renew passport
    priority: 6
settings:
  owner: me
"""

LIFELIST_ENV_VARS = [
    "LIFELIST_DATA_FILE",
    "LIFELIST_WEB_HOST",
    "LIFELIST_WEB_PORT",
    "LIFELIST_DEBOUNCE_SECONDS",
    "LIFELIST_POLL_INTERVAL_SECONDS",
    "LIFELIST_DEFAULT_TIMEZONE",
    "LIFELIST_DEFAULT_EVENT_COUNT",
    "LIFELIST_LOG_LEVEL",
    "LIFELIST_DEBUG",
    "LIFELIST_TEST_TIME",
]


@pytest.fixture(autouse=True)
def clean_test_environment(monkeypatch: Any) -> Generator[None, Any, None]:
    """Ensure LIFELIST_* environment variables never leak between tests.

    Some tests set LIFELIST_TEST_TIME to freeze "now" for date parsing.
    """
    for key in LIFELIST_ENV_VARS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture
def write_data_file(tmp_path: Path) -> Callable[[str], Path]:
    """Return a helper that writes YAML text to the test data file."""
    path = tmp_path / "data.yaml"

    def _write(text: str) -> Path:
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def data_file(write_data_file: Callable[[str], Path]) -> Path:
    """Data file pre-filled with the sample events."""
    return write_data_file(SAMPLE_YAML)


@pytest.fixture
def fast_config(data_file: Path) -> Config:
    """Config with short debounce and poll intervals so reloads happen quickly."""
    return Config(
        data_file=str(data_file),
        debounce_seconds=0.05,
        poll_interval_seconds=0.1,
        default_timezone="America/Los_Angeles",
        default_event_count=20,
    )


@pytest.fixture
async def events_manager(fast_config: Config) -> AsyncIterator[EventsManager]:
    """Running events manager over the sample data file."""
    manager = await EventsManager.create(fast_config)
    yield manager
    await manager.close()


async def _wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.02)


@pytest.fixture
def wait_for() -> Callable[..., Any]:
    """Return a coroutine function polling a predicate until it is true or a timeout passes."""
    return _wait_for
