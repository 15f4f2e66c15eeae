"""Integration tests for EventsManager over a real data file."""

from datetime import date, datetime

import pytest

from lifelist.core.config_manager import Config
from lifelist.core.exceptions import SchemaValidationError, SourceNotFoundError
from lifelist.domain.events_manager import EventsManager

AUG_27 = date(2025, 8, 27)


@pytest.mark.integration
class TestCreate:
    """Tests for EventsManager.create."""

    async def test_missing_data_file_fails(self, tmp_path):
        config = Config(data_file=str(tmp_path / "data.yaml"))

        with pytest.raises(SourceNotFoundError, match="Data file not found"):
            await EventsManager.create(config)

    async def test_invalid_data_file_fails(self, write_data_file):
        path = write_data_file("upcoming:\n  - name: broken\n    priority: 42\n")

        with pytest.raises(SchemaValidationError, match="priority"):
            await EventsManager.create(Config(data_file=str(path)))

    async def test_loads_events(self, events_manager):
        assert [e.name for e in events_manager.events] == ["Dragon*Con", "Water plants", "Renew passport"]
        assert events_manager.health.determine_overall_status() == "ok"


@pytest.mark.integration
class TestQueries:
    """Tests for get_occurrences and get_events."""

    async def test_occurrences_in_order(self, events_manager):
        occurrences = await events_manager.get_occurrences(AUG_27, 8)

        assert [o.name for o in occurrences] == ["Renew passport"] + ["Dragon*Con"] * 6 + ["Water plants"]
        assert occurrences[-1].start.date() == date(2025, 9, 1)

    async def test_grouped_events(self, events_manager):
        groups = await events_manager.get_events(AUG_27, 8)

        assert [key for key, _ in groups] == [
            "TODO",
            "Wed Aug 27 2025",
            "Thu Aug 28 2025",
            "Fri Aug 29 2025",
            "Sat Aug 30 2025",
            "Sun Aug 31 2025",
            "Mon Sep 01 2025",
        ]
        september_first = groups[-1][1]
        assert [s.name for s in september_first] == ["Dragon*Con", "Water plants"]
        assert september_first[1].start_time == "8am PT"
        assert groups[1][1][0].location == "Atlanta"

    async def test_repeated_queries_are_identical(self, events_manager):
        first = await events_manager.get_occurrences(datetime(2025, 8, 27, 9), 10)
        second = await events_manager.get_occurrences(datetime(2025, 8, 27, 21), 10)

        assert first == second

    async def test_defaults_from_config_and_test_time(self, events_manager, monkeypatch):
        monkeypatch.setenv("LIFELIST_TEST_TIME", "2025-08-30T18:00:00+00:00")

        occurrences = await events_manager.get_occurrences()

        assert len(occurrences) == 20
        assert occurrences[1].name == "Water plants"
        assert occurrences[1].start.date() == date(2025, 9, 1)
        assert "Dragon*Con" not in {o.name for o in occurrences}

    async def test_negative_count_rejected(self, events_manager):
        with pytest.raises(ValueError):
            await events_manager.get_occurrences(AUG_27, -1)


@pytest.mark.integration
class TestInvalidation:
    """Tests for file-change driven reloads."""

    async def test_external_edit_is_picked_up(self, events_manager, data_file, wait_for):
        before = await events_manager.get_occurrences(AUG_27, 1)
        assert before[0].name == "Renew passport"

        data_file.write_text(
            "upcoming:\n  - name: Brand new todo with a longer name\n    priority: 2\n",
            encoding="utf-8",
        )
        await wait_for(lambda: events_manager.reload_count >= 1)

        after = await events_manager.get_occurrences(AUG_27, 5)
        assert [o.name for o in after] == ["Brand new todo with a longer name"]
        assert events_manager.get_cache_stats()["event_count"] == 1

    async def test_failed_reparse_keeps_previous_events(self, events_manager, data_file, wait_for):
        expected = await events_manager.get_occurrences(AUG_27, 8)

        data_file.write_text("upcoming:\n  - name: [unterminated\n", encoding="utf-8")
        await wait_for(lambda: events_manager.health.to_dict("now")["data_status"]["reload_failures"] >= 1)

        assert await events_manager.get_occurrences(AUG_27, 8) == expected
        assert events_manager.health.determine_overall_status() == "degraded"
        assert events_manager.reload_count == 0

    async def test_deleted_file_keeps_previous_events(self, events_manager, data_file):
        data_file.unlink()

        assert await events_manager._watcher.check() is False
        assert len(await events_manager.get_occurrences(AUG_27, 3)) == 3

    async def test_reload_now(self, events_manager, data_file):
        data_file.write_text("upcoming: []\n", encoding="utf-8")

        await events_manager.reload()

        assert await events_manager.get_occurrences(AUG_27, 5) == []


@pytest.mark.integration
class TestAddEvent:
    """Tests for add_event."""

    async def test_add_event_round_trip(self, events_manager, data_file, wait_for):
        added = await events_manager.add_event(
            {"name": "Labor Day BBQ", "priority": 7, "start": "September 1, 2025 7:47pm ET", "tags": ["Food"]}
        )

        text = data_file.read_text(encoding="utf-8")
        assert "  - name: Labor Day BBQ\n    priority: 7\n    start: September 1, 2025 7:47 PM ET\n" in text
        assert "settings:\n  owner: me\n" in text
        assert added.start.tzinfo.key == "America/New_York"

        await wait_for(lambda: events_manager.reload_count >= 1)
        names = [o.name for o in await events_manager.get_occurrences(date(2025, 9, 1), 10)]
        assert "Labor Day BBQ" in names

    async def test_invalid_event_leaves_file_untouched(self, events_manager, data_file):
        before = data_file.read_text(encoding="utf-8")

        with pytest.raises(SchemaValidationError):
            await events_manager.add_event({"name": "Bad", "priority": 11})

        assert data_file.read_text(encoding="utf-8") == before
        assert len(events_manager.events) == 3

    async def test_missing_file_rejects_write(self, events_manager, data_file):
        data_file.unlink()

        with pytest.raises(SourceNotFoundError):
            await events_manager.add_event({"name": "Orphan", "priority": 1})

        assert not data_file.exists()
        assert len(events_manager.events) == 3

    async def test_close_stops_watching(self, fast_config, data_file):
        manager = await EventsManager.create(fast_config)
        await manager.close()

        data_file.write_text("upcoming: []\n", encoding="utf-8")

        assert not manager._watcher.running
        assert not manager.reload_pending
