"""Relational MonitoringStore on SQLAlchemy's asyncio extension.

PostgreSQL (``postgresql+asyncpg://``) in production; SQLite
(``sqlite+aiosqlite://``) for local runs and tests.  Tables are created on
open() if they do not exist.  Every SQLAlchemy failure is re-raised as a
StorageError so callers never depend on driver exception types.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import AsyncIterator, Sequence

from sqlalchemy import func, select, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from ecomarine.domain.assessment import alarm_message
from ecomarine.domain.enums import PollutionLevel
from ecomarine.domain.records import (
    AlarmRecord,
    Classification,
    MonitoringRecord,
    StatisticsSnapshot,
)
from ecomarine.foundation.clock import utc_now
from ecomarine.store.base import RecordNotFoundError, StorageError
from ecomarine.store.tables import AlarmRow, Base, SatelliteMonitoringRow, StatisticsRow

logger = logging.getLogger(__name__)


def _redact(url: URL) -> str:
    return url.render_as_string(hide_password=True)


class SqlMonitoringStore:
    """SQLAlchemy-backed implementation of the MonitoringStore protocol.

    Args:
        database_url: Async SQLAlchemy URL, as a string or a URL object.
        echo: Log emitted SQL.
    """

    def __init__(self, database_url: str | URL, echo: bool = False) -> None:
        self._database_url = make_url(database_url)
        self._echo = echo
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def display_url(self) -> str:
        """Database URL with the password masked, for logs and diagnostics."""
        return _redact(self._database_url)

    # ── Lifecycle ────────────────────────────────────────────────────────

    async def open(self) -> None:
        """Create the engine and any missing tables."""
        if self._engine is not None:
            return

        kwargs: dict = {"echo": self._echo}
        if self._database_url.get_backend_name() == "sqlite":
            if self._database_url.database in (None, "", ":memory:"):
                # One shared connection, otherwise each session sees an empty database
                kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        else:
            kwargs["pool_pre_ping"] = True

        try:
            self._engine = create_async_engine(self._database_url, **kwargs)
            self._session_factory = async_sessionmaker(self._engine, expire_on_commit=False)
            async with self._engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
        except SQLAlchemyError as exc:
            logger.error("Failed to open database %s: %s", self.display_url, exc)
            raise StorageError(f"cannot open database: {exc}") from exc

        logger.info("Database ready: %s", self.display_url)

    async def close(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Database connection pool closed")

    async def ping(self) -> bool:
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning("Database ping failed: %s", exc)
            return False
        return True

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        if self._session_factory is None:
            raise StorageError("store is not open")
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                await session.rollback()
                raise StorageError(str(exc)) from exc

    # ── Writes ───────────────────────────────────────────────────────────

    async def write_monitoring_record(self, record: MonitoringRecord) -> MonitoringRecord:
        async with self._session() as session:
            row = SatelliteMonitoringRow.from_record(record)
            session.add(row)
            await session.commit()
            stored = row.to_record()
        logger.debug("Stored record %d for %s", stored.id, stored.location)
        return stored

    async def update_monitoring_record(
        self,
        record_id: int,
        classification: Classification,
    ) -> MonitoringRecord:
        async with self._session() as session:
            row = await session.get(SatelliteMonitoringRow, record_id)
            if row is None:
                raise RecordNotFoundError(record_id)
            row.pollution_level = classification.pollution_level.value
            row.confidence = classification.confidence
            row.risk_score = classification.risk_score
            row.recommendations = list(classification.recommendations)
            row.analysis_data = classification.analysis_data
            row.baseline = False
            row.timestamp = utc_now()
            await session.commit()
            return row.to_record()

    async def write_alarm_if_severe(self, record: MonitoringRecord) -> AlarmRecord | None:
        if not record.is_severe:
            return None
        async with self._session() as session:
            row = AlarmRow(
                record_id=record.id,
                location=record.location,
                pollution_level=record.pollution_level.value,
                confidence=record.confidence,
                message=alarm_message(record.location, record.pollution_level, record.confidence),
                active=True,
                timestamp=utc_now(),
            )
            session.add(row)
            await session.commit()
            alarm = row.to_alarm()
        logger.info("Alarm %d raised for %s (%s)", alarm.id, alarm.location, alarm.pollution_level.value)
        return alarm

    async def seed_records(self, records: Sequence[MonitoringRecord]) -> int:
        async with self._session() as session:
            result = await session.execute(select(SatelliteMonitoringRow.location).distinct())
            known = set(result.scalars())
            inserted = 0
            for record in records:
                if record.location in known:
                    continue
                session.add(SatelliteMonitoringRow.from_record(record))
                known.add(record.location)
                inserted += 1
            await session.commit()
        return inserted

    async def refresh_statistics(self, window_hours: int) -> StatisticsSnapshot:
        now = utc_now()
        cutoff = now - timedelta(hours=window_hours)
        async with self._session() as session:
            result = await session.execute(
                select(SatelliteMonitoringRow.pollution_level, func.count())
                .where(SatelliteMonitoringRow.timestamp >= cutoff)
                .where(SatelliteMonitoringRow.baseline.is_(False))
                .group_by(SatelliteMonitoringRow.pollution_level)
            )
            levels: list[PollutionLevel] = []
            for label, count in result.all():
                levels.extend([PollutionLevel(label)] * count)
            snapshot = StatisticsSnapshot.from_levels(
                levels, window_hours=window_hours, last_updated=now
            )
            session.add(StatisticsRow.from_snapshot(snapshot))
            await session.commit()
        return snapshot

    # ── Reads ────────────────────────────────────────────────────────────

    async def read_recent_records(self, limit: int) -> list[MonitoringRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(SatelliteMonitoringRow)
                .order_by(SatelliteMonitoringRow.timestamp.desc(), SatelliteMonitoringRow.id.desc())
                .limit(max(limit, 0))
            )
            return [row.to_record() for row in result.scalars()]

    async def read_active_alarms(self) -> list[AlarmRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(AlarmRow)
                .where(AlarmRow.active.is_(True))
                .order_by(AlarmRow.timestamp.desc(), AlarmRow.id.desc())
            )
            return [row.to_alarm() for row in result.scalars()]

    async def read_latest_statistics(self) -> StatisticsSnapshot:
        async with self._session() as session:
            result = await session.execute(
                select(StatisticsRow)
                .order_by(StatisticsRow.last_updated.desc(), StatisticsRow.id.desc())
                .limit(1)
            )
            row = result.scalars().first()
            if row is None:
                return StatisticsSnapshot()
            return row.to_snapshot()

    async def sample_records(self, limit: int) -> list[MonitoringRecord]:
        async with self._session() as session:
            result = await session.execute(
                select(SatelliteMonitoringRow).order_by(func.random()).limit(max(limit, 0))
            )
            return [row.to_record() for row in result.scalars()]
