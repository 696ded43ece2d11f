"""In-memory MonitoringStore with async-safe access.

Design notes:
    - An asyncio.Lock guards all mutations so concurrent request handlers
      and the polling cycle never interleave half-written state.
    - Identifiers are assigned from monotonically increasing counters,
      mirroring SERIAL columns in the SQL store.
    - Nothing is persisted; a restart starts from empty.
"""

from __future__ import annotations

import asyncio
import logging
import random
from datetime import timedelta
from typing import Sequence

from ecomarine.domain.assessment import alarm_message
from ecomarine.domain.records import (
    AlarmRecord,
    Classification,
    MonitoringRecord,
    StatisticsSnapshot,
)
from ecomarine.foundation.clock import utc_now
from ecomarine.store.base import RecordNotFoundError

logger = logging.getLogger(__name__)


class InMemoryMonitoringStore:
    """Dict-backed implementation of the MonitoringStore protocol."""

    def __init__(self, rng: random.Random | None = None) -> None:
        self._lock = asyncio.Lock()
        self._rng = rng or random.Random()
        self._records: dict[int, MonitoringRecord] = {}
        self._alarms: dict[int, AlarmRecord] = {}
        self._statistics: list[StatisticsSnapshot] = []
        self._next_record_id = 1
        self._next_alarm_id = 1

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def open(self) -> None:
        logger.info("Using in-memory monitoring store")

    async def close(self) -> None:
        pass

    async def ping(self) -> bool:
        return True

    # ── Writes ───────────────────────────────────────────────────────────

    async def write_monitoring_record(self, record: MonitoringRecord) -> MonitoringRecord:
        async with self._lock:
            stored = record.model_copy(update={"id": self._next_record_id})
            self._records[stored.id] = stored
            self._next_record_id += 1
            logger.debug("Stored record %d for %s", stored.id, stored.location)
            return stored

    async def update_monitoring_record(
        self,
        record_id: int,
        classification: Classification,
    ) -> MonitoringRecord:
        async with self._lock:
            existing = self._records.get(record_id)
            if existing is None:
                raise RecordNotFoundError(record_id)
            updated = existing.model_copy(update={
                "pollution_level": classification.pollution_level,
                "confidence": classification.confidence,
                "risk_score": classification.risk_score,
                "recommendations": list(classification.recommendations),
                "analysis_data": classification.analysis_data,
                "baseline": False,
                "timestamp": utc_now(),
            })
            self._records[record_id] = updated
            return updated

    async def write_alarm_if_severe(self, record: MonitoringRecord) -> AlarmRecord | None:
        if not record.is_severe:
            return None
        async with self._lock:
            alarm = AlarmRecord(
                id=self._next_alarm_id,
                record_id=record.id,
                location=record.location,
                pollution_level=record.pollution_level,
                confidence=record.confidence,
                message=alarm_message(record.location, record.pollution_level, record.confidence),
            )
            self._alarms[alarm.id] = alarm
            self._next_alarm_id += 1
            logger.info("Alarm %d raised for %s (%s)", alarm.id, alarm.location, alarm.pollution_level.value)
            return alarm

    async def seed_records(self, records: Sequence[MonitoringRecord]) -> int:
        async with self._lock:
            known = {r.location for r in self._records.values()}
            inserted = 0
            for record in records:
                if record.location in known:
                    continue
                stored = record.model_copy(update={"id": self._next_record_id})
                self._records[stored.id] = stored
                self._next_record_id += 1
                known.add(record.location)
                inserted += 1
            return inserted

    async def refresh_statistics(self, window_hours: int) -> StatisticsSnapshot:
        async with self._lock:
            now = utc_now()
            cutoff = now - timedelta(hours=window_hours)
            levels = [
                r.pollution_level
                for r in self._records.values()
                if r.timestamp >= cutoff and not r.baseline
            ]
            snapshot = StatisticsSnapshot.from_levels(
                levels, window_hours=window_hours, last_updated=now
            )
            self._statistics.append(snapshot)
            return snapshot

    # ── Reads ────────────────────────────────────────────────────────────

    async def read_recent_records(self, limit: int) -> list[MonitoringRecord]:
        async with self._lock:
            ordered = sorted(
                self._records.values(),
                key=lambda r: (r.timestamp, r.id),
                reverse=True,
            )
            return ordered[:max(limit, 0)]

    async def read_active_alarms(self) -> list[AlarmRecord]:
        async with self._lock:
            active = [a for a in self._alarms.values() if a.active]
            return sorted(active, key=lambda a: (a.timestamp, a.id), reverse=True)

    async def read_latest_statistics(self) -> StatisticsSnapshot:
        async with self._lock:
            if not self._statistics:
                return StatisticsSnapshot()
            return self._statistics[-1]

    async def sample_records(self, limit: int) -> list[MonitoringRecord]:
        async with self._lock:
            records = list(self._records.values())
            return self._rng.sample(records, min(max(limit, 0), len(records)))
