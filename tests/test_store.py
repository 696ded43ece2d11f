"""Tests for the MonitoringStore implementations.

The same contract is exercised against the in-memory store and the SQL
store on an in-memory SQLite database.
"""

from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import pytest
import pytest_asyncio

from ecomarine.domain.enums import PollutionLevel
from ecomarine.domain.records import Classification, MonitoringRecord
from ecomarine.store.base import RecordNotFoundError, StorageError
from ecomarine.store.memory import InMemoryMonitoringStore
from ecomarine.store.seed import baseline_records
from ecomarine.store.sql import SqlMonitoringStore

_BASE = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def _record(**overrides) -> MonitoringRecord:
    base = {
        "location": "Marmara Denizi - Tuzla",
        "pollution_level": "clean",
        "confidence": 75,
        "coordinates": {"lat": 40.825, "lng": 29.3083},
        "image_url": "https://img.test/tuzla.jpg",
    }
    base.update(overrides)
    return MonitoringRecord.model_validate(base)


@pytest_asyncio.fixture(params=["memory", "sql"])
async def any_store(request) -> AsyncIterator:
    if request.param == "memory":
        store = InMemoryMonitoringStore(rng=random.Random(5))
    else:
        store = SqlMonitoringStore("sqlite+aiosqlite:///:memory:")
    await store.open()
    try:
        yield store
    finally:
        await store.close()


class TestWrites:
    @pytest.mark.asyncio
    async def test_write_assigns_identifier(self, any_store) -> None:
        first = await any_store.write_monitoring_record(_record())
        second = await any_store.write_monitoring_record(_record())
        assert first.id is not None
        assert second.id != first.id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", ["polluted", "critical"])
    async def test_severe_label_creates_one_matching_alarm(self, any_store, level: str) -> None:
        stored = await any_store.write_monitoring_record(_record(pollution_level=level, confidence=88))
        alarm = await any_store.write_alarm_if_severe(stored)

        assert alarm is not None
        alarms = await any_store.read_active_alarms()
        assert len(alarms) == 1
        assert alarms[0].location == stored.location
        assert alarms[0].pollution_level.value == level
        assert alarms[0].confidence == 88
        assert alarms[0].record_id == stored.id
        assert alarms[0].active

    @pytest.mark.asyncio
    @pytest.mark.parametrize("level", ["clean", "moderate"])
    async def test_mild_label_creates_no_alarm(self, any_store, level: str) -> None:
        stored = await any_store.write_monitoring_record(_record(pollution_level=level))
        assert await any_store.write_alarm_if_severe(stored) is None
        assert await any_store.read_active_alarms() == []

    @pytest.mark.asyncio
    async def test_update_in_place(self, any_store) -> None:
        stored = await any_store.write_monitoring_record(_record())
        updated = await any_store.update_monitoring_record(
            stored.id,
            Classification(pollution_level=PollutionLevel.CRITICAL, confidence=97, risk_score=9.7),
        )
        assert updated.id == stored.id
        assert updated.pollution_level == PollutionLevel.CRITICAL
        assert updated.image_url == stored.image_url
        recent = await any_store.read_recent_records(10)
        assert len(recent) == 1
        assert recent[0].confidence == 97

    @pytest.mark.asyncio
    async def test_update_missing_record_raises(self, any_store) -> None:
        with pytest.raises(RecordNotFoundError):
            await any_store.update_monitoring_record(
                999, Classification(pollution_level=PollutionLevel.CLEAN, confidence=50)
            )

    @pytest.mark.asyncio
    async def test_seed_skips_known_locations(self, any_store) -> None:
        from datetime import date

        records = baseline_records(date(2026, 1, 1))
        assert await any_store.seed_records(records) == 12
        assert await any_store.seed_records(records) == 0


class TestReads:
    @pytest.mark.asyncio
    async def test_recent_records_limited_and_newest_first(self, any_store) -> None:
        for minutes in (5, 1, 9, 3, 7):
            await any_store.write_monitoring_record(
                _record(timestamp=_BASE + timedelta(minutes=minutes))
            )

        recent = await any_store.read_recent_records(3)

        assert len(recent) == 3
        stamps = [r.timestamp for r in recent]
        assert stamps == sorted(stamps, reverse=True)
        assert stamps[0] == _BASE + timedelta(minutes=9)
        assert all(a > b for a, b in zip(stamps, stamps[1:]))

    @pytest.mark.asyncio
    async def test_round_trip_keeps_coordinates_and_label(self, any_store) -> None:
        await any_store.write_monitoring_record(
            _record(pollution_level="critical", coordinates={"lat": 40.825, "lng": 29.3083})
        )
        [record] = await any_store.read_recent_records(5)
        assert record.coordinates.lat == 40.825
        assert record.coordinates.lng == 29.3083
        assert record.pollution_level == PollutionLevel.CRITICAL

    @pytest.mark.asyncio
    async def test_statistics_default_is_zeroed(self, any_store) -> None:
        snap = await any_store.read_latest_statistics()
        assert snap.total == 0
        assert snap.last_updated is None

    @pytest.mark.asyncio
    async def test_refresh_statistics_counts_window(self, any_store) -> None:
        await any_store.write_monitoring_record(_record(pollution_level="clean"))
        await any_store.write_monitoring_record(_record(pollution_level="critical"))
        await any_store.write_monitoring_record(_record(pollution_level="critical"))
        await any_store.write_monitoring_record(
            _record(pollution_level="polluted", timestamp=datetime.now(timezone.utc) - timedelta(days=3))
        )

        snap = await any_store.refresh_statistics(24)

        assert (snap.total, snap.clean, snap.critical, snap.polluted) == (3, 1, 2, 0)
        latest = await any_store.read_latest_statistics()
        assert latest.total == 3
        assert latest.critical == 2

    @pytest.mark.asyncio
    async def test_latest_statistics_is_stable_between_reads(self, any_store) -> None:
        await any_store.write_monitoring_record(_record())
        await any_store.refresh_statistics(24)
        first = await any_store.read_latest_statistics()
        second = await any_store.read_latest_statistics()
        assert first.model_dump_json() == second.model_dump_json()

    @pytest.mark.asyncio
    async def test_sample_records_bounded(self, any_store) -> None:
        for i in range(5):
            await any_store.write_monitoring_record(_record(location=f"Site {i}"))
        sample = await any_store.sample_records(3)
        assert len(sample) == 3
        assert len({r.id for r in sample}) == 3
        assert len(await any_store.sample_records(10)) == 5


class TestSqlLifecycle:
    @pytest.mark.asyncio
    async def test_ping_reflects_open_state(self) -> None:
        store = SqlMonitoringStore("sqlite+aiosqlite:///:memory:")
        assert await store.ping() is False
        await store.open()
        assert await store.ping() is True
        await store.close()
        assert await store.ping() is False

    @pytest.mark.asyncio
    async def test_use_before_open_raises_storage_error(self) -> None:
        store = SqlMonitoringStore("sqlite+aiosqlite:///:memory:")
        with pytest.raises(StorageError):
            await store.read_recent_records(5)


class TestBaselineRows:
    @pytest.mark.asyncio
    async def test_seeded_rows_excluded_from_statistics(self, any_store) -> None:
        from datetime import date

        await any_store.seed_records(baseline_records(date(2026, 1, 1)))
        await any_store.write_monitoring_record(_record(pollution_level="critical"))

        snap = await any_store.refresh_statistics(24)

        assert (snap.total, snap.clean, snap.critical) == (1, 0, 1)
        assert len(await any_store.read_recent_records(50)) == 13

    @pytest.mark.asyncio
    async def test_analysis_clears_baseline_flag(self, any_store) -> None:
        from datetime import date

        await any_store.seed_records(baseline_records(date(2026, 1, 1))[:1])
        [seeded] = await any_store.read_recent_records(5)
        assert seeded.baseline

        updated = await any_store.update_monitoring_record(
            seeded.id, Classification(pollution_level=PollutionLevel.MODERATE, confidence=71)
        )
        snap = await any_store.refresh_statistics(24)

        assert not updated.baseline
        assert (snap.total, snap.moderate) == (1, 1)
