"""SQLAlchemy table mappings for the relational store.

Flat tables, no foreign keys: an alarm carries the id of the record it
was raised for, but records and alarms are written independently.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ecomarine.domain.enums import PollutionLevel
from ecomarine.domain.records import AlarmRecord, MonitoringRecord, StatisticsSnapshot
from ecomarine.foundation.clock import utc_now


class Base(DeclarativeBase):
    pass


class SatelliteMonitoringRow(Base):
    __tablename__ = "satellite_monitoring"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    location: Mapped[str] = mapped_column(String(255), index=True)
    pollution_level: Mapped[str] = mapped_column(String(50))
    confidence: Mapped[int] = mapped_column(Integer)
    coordinates: Mapped[dict[str, Any]] = mapped_column(JSON)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, index=True)
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    analysis_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    risk_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    recommendations: Mapped[list[str]] = mapped_column(JSON, default=list)
    baseline: Mapped[bool] = mapped_column(Boolean, default=False)

    @classmethod
    def from_record(cls, record: MonitoringRecord) -> "SatelliteMonitoringRow":
        return cls(
            location=record.location,
            pollution_level=record.pollution_level.value,
            confidence=record.confidence,
            coordinates=record.coordinates.model_dump(),
            timestamp=record.timestamp,
            image_url=record.image_url,
            analysis_data=record.analysis_data,
            risk_score=record.risk_score,
            recommendations=list(record.recommendations),
            baseline=record.baseline,
        )

    def to_record(self) -> MonitoringRecord:
        return MonitoringRecord(
            id=self.id,
            location=self.location,
            pollution_level=PollutionLevel(self.pollution_level),
            confidence=self.confidence,
            coordinates=self.coordinates,
            timestamp=self.timestamp,
            image_url=self.image_url,
            analysis_data=self.analysis_data,
            risk_score=self.risk_score,
            recommendations=self.recommendations or [],
            baseline=bool(self.baseline),
        )


class AlarmRow(Base):
    __tablename__ = "alarms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    record_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    location: Mapped[str] = mapped_column(String(255))
    pollution_level: Mapped[str] = mapped_column(String(50))
    confidence: Mapped[int] = mapped_column(Integer)
    message: Mapped[str] = mapped_column(Text)
    active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    def to_alarm(self) -> AlarmRecord:
        return AlarmRecord(
            id=self.id,
            record_id=self.record_id,
            location=self.location,
            pollution_level=PollutionLevel(self.pollution_level),
            confidence=self.confidence,
            message=self.message,
            active=self.active,
            timestamp=self.timestamp,
            resolved_at=self.resolved_at,
        )


class StatisticsRow(Base):
    __tablename__ = "statistics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    total: Mapped[int] = mapped_column(Integer, default=0)
    clean: Mapped[int] = mapped_column(Integer, default=0)
    moderate: Mapped[int] = mapped_column(Integer, default=0)
    polluted: Mapped[int] = mapped_column(Integer, default=0)
    critical: Mapped[int] = mapped_column(Integer, default=0)
    window_hours: Mapped[int] = mapped_column(Integer)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now, index=True)

    @classmethod
    def from_snapshot(cls, snapshot: StatisticsSnapshot) -> "StatisticsRow":
        return cls(
            total=snapshot.total,
            clean=snapshot.clean,
            moderate=snapshot.moderate,
            polluted=snapshot.polluted,
            critical=snapshot.critical,
            window_hours=snapshot.window_hours,
            last_updated=snapshot.last_updated,
        )

    def to_snapshot(self) -> StatisticsSnapshot:
        return StatisticsSnapshot(
            total=self.total,
            clean=self.clean,
            moderate=self.moderate,
            polluted=self.polluted,
            critical=self.critical,
            window_hours=self.window_hours,
            last_updated=self.last_updated,
        )
