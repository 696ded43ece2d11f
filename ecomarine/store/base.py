"""Storage contract used by the ingestion cycle and the HTTP layer.

The cycle and the routers depend only on this protocol, so the SQL and
in-memory implementations are interchangeable.
"""

from __future__ import annotations

from typing import Protocol, Sequence

from ecomarine.domain.records import (
    AlarmRecord,
    Classification,
    MonitoringRecord,
    StatisticsSnapshot,
)


class StorageError(Exception):
    """Raised when the store cannot complete a read or write."""


class RecordNotFoundError(StorageError):
    """Raised when an update targets a record that does not exist."""

    def __init__(self, record_id: int) -> None:
        self.record_id = record_id
        super().__init__(f"Monitoring record {record_id} not found")


class MonitoringStore(Protocol):
    """Protocol for monitoring-record persistence."""

    async def open(self) -> None:
        """Acquire resources (connection pool, schema)."""
        ...

    async def close(self) -> None:
        ...

    async def ping(self) -> bool:
        """True if the backing store is reachable."""
        ...

    async def write_monitoring_record(self, record: MonitoringRecord) -> MonitoringRecord:
        """Persist *record*, returning the stored form with its id assigned."""
        ...

    async def update_monitoring_record(
        self,
        record_id: int,
        classification: Classification,
    ) -> MonitoringRecord:
        """Overwrite a record's classification in place and refresh its timestamp."""
        ...

    async def write_alarm_if_severe(self, record: MonitoringRecord) -> AlarmRecord | None:
        """Create an alarm iff *record* is in the high-severity subset."""
        ...

    async def read_recent_records(self, limit: int) -> Sequence[MonitoringRecord]:
        """At most *limit* records, newest observation first."""
        ...

    async def read_active_alarms(self) -> Sequence[AlarmRecord]:
        ...

    async def read_latest_statistics(self) -> StatisticsSnapshot:
        """Most recent snapshot, or a zeroed default if none exists."""
        ...

    async def refresh_statistics(self, window_hours: int) -> StatisticsSnapshot:
        """Recompute and store a snapshot over the trailing window."""
        ...

    async def sample_records(self, limit: int) -> Sequence[MonitoringRecord]:
        """Random subset of stored records for re-analysis."""
        ...

    async def seed_records(self, records: Sequence[MonitoringRecord]) -> int:
        """Insert each record whose location is not yet stored; return count inserted."""
        ...
