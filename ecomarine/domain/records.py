"""Persistent record models — what the ingestion cycle writes and the API reads.

A MonitoringRecord is one classification event for one location at one
point in time.  AlarmRecords are derived from records whose label is in
the high-severity subset.  StatisticsSnapshot is a recomputable rollup
used only by dashboard summary tiles.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ecomarine.domain.enums import PollutionLevel
from ecomarine.domain.location import Coordinates
from ecomarine.foundation.clock import ensure_utc, utc_now


# ── Classification ───────────────────────────────────────────────────────────

class Classification(BaseModel):
    """A decoded answer from the external classification service."""

    pollution_level: PollutionLevel
    confidence: int = Field(..., ge=0, le=100, description="Integer percentage")
    risk_score: Optional[float] = Field(default=None, ge=0.0)
    recommendations: list[str] = Field(default_factory=list)
    analysis_data: Optional[dict[str, Any]] = None

    model_config = {"frozen": True}


# ── Monitoring Record ────────────────────────────────────────────────────────

class MonitoringRecord(BaseModel):
    """One classification event for one geographic location.

    ``id`` is ``None`` until storage assigns one.  ``baseline`` marks a seeded
    placeholder that has not been analysed yet; statistics skip it.
    """

    id: Optional[int] = None
    location: str = Field(..., min_length=1, max_length=255)
    pollution_level: PollutionLevel
    confidence: int = Field(..., ge=0, le=100)
    coordinates: Coordinates
    timestamp: datetime = Field(default_factory=utc_now)
    image_url: Optional[str] = None
    analysis_data: Optional[dict[str, Any]] = None
    risk_score: Optional[float] = Field(default=None, ge=0.0)
    recommendations: list[str] = Field(default_factory=list)
    baseline: bool = False

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_severe(self) -> bool:
        return self.pollution_level.is_severe

    @classmethod
    def from_classification(
        cls,
        classification: Classification,
        *,
        location: str,
        coordinates: Coordinates,
        image_url: str | None,
    ) -> "MonitoringRecord":
        return cls(
            location=location,
            pollution_level=classification.pollution_level,
            confidence=classification.confidence,
            coordinates=coordinates,
            image_url=image_url,
            analysis_data=classification.analysis_data,
            risk_score=classification.risk_score,
            recommendations=list(classification.recommendations),
        )


# ── Alarm ────────────────────────────────────────────────────────────────────

class AlarmRecord(BaseModel):
    """An alarm raised for a high-severity monitoring record."""

    id: Optional[int] = None
    record_id: Optional[int] = None
    location: str
    pollution_level: PollutionLevel
    confidence: int = Field(..., ge=0, le=100)
    message: str
    active: bool = True
    timestamp: datetime = Field(default_factory=utc_now)
    resolved_at: Optional[datetime] = None

    @field_validator("timestamp")
    @classmethod
    def timestamp_must_be_aware(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("resolved_at")
    @classmethod
    def resolved_at_must_be_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


# ── Statistics ───────────────────────────────────────────────────────────────

class StatisticsSnapshot(BaseModel):
    """Count of records per classification bucket within a trailing window."""

    total: int = 0
    clean: int = 0
    moderate: int = 0
    polluted: int = 0
    critical: int = 0
    window_hours: int = 24
    last_updated: Optional[datetime] = None

    @field_validator("last_updated")
    @classmethod
    def last_updated_must_be_aware(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    @classmethod
    def from_levels(
        cls,
        levels: list[PollutionLevel],
        *,
        window_hours: int,
        last_updated: datetime,
    ) -> "StatisticsSnapshot":
        counts = {level: 0 for level in PollutionLevel}
        for level in levels:
            counts[level] += 1
        return cls(
            total=len(levels),
            clean=counts[PollutionLevel.CLEAN],
            moderate=counts[PollutionLevel.MODERATE],
            polluted=counts[PollutionLevel.POLLUTED],
            critical=counts[PollutionLevel.CRITICAL],
            window_hours=window_hours,
            last_updated=last_updated,
        )
