"""IngestionCycle — one pass of select → resolve → classify → store → broadcast.

Design principles:
    1. Items are processed sequentially; each external call is awaited
       before the next item starts.
    2. One item's failure never affects the others.  Any exception is
       logged, recorded in the CycleReport, and the batch continues.
    3. No retries and no deduplication: every successful classification
       produces a write.
    4. Per item the order is fixed: write record → write alarm if
       severe → broadcast.  A broadcast therefore always describes a
       committed record.  A failed alarm write is logged and
       reported but does not stop the broadcast.

Work items come from one of two sources:
    catalog  Random coastal locations; a fresh point inside each
             location's bounds; every success inserts a new record.
    storage  Random stored records; the stored image URL is re-analysed
             and the record is updated in place.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from ecomarine.domain.enums import MessageType, WorkSource
from ecomarine.domain.location import COASTAL_LOCATIONS, CoastalLocation, Coordinates
from ecomarine.domain.records import AlarmRecord, MonitoringRecord
from ecomarine.foundation.clock import utc_now
from ecomarine.services.classifier import ClassifierClient
from ecomarine.services.connection_manager import ConnectionRegistry
from ecomarine.services.imagery import ImageryResolver
from ecomarine.store.base import MonitoringStore, StorageError

logger = logging.getLogger(__name__)


class IngestionError(Exception):
    """Raised by analyze_single() when the single item cannot be processed."""

    def __init__(self, location: str, cause: BaseException) -> None:
        self.location = location
        self.cause = cause
        super().__init__(f"Analysis failed for {location}: {cause}")


@dataclass(frozen=True)
class WorkItem:
    """One location to analyse.  ``record_id`` is set for stored rows."""

    location: str
    coordinates: Coordinates
    image_url: str | None = None
    record_id: int | None = None


@dataclass(frozen=True)
class ItemFailure:
    location: str
    reason: str

    def to_dict(self) -> dict:
        return {"location": self.location, "reason": self.reason}


@dataclass
class CycleReport:
    """Outcome of one run_cycle() call."""

    started_at: datetime
    finished_at: datetime | None = None
    succeeded: list[MonitoringRecord] = field(default_factory=list)
    failed: list[ItemFailure] = field(default_factory=list)
    alarm_failures: list[ItemFailure] = field(default_factory=list)
    alarms_raised: int = 0

    @property
    def attempted(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def to_dict(self) -> dict:
        return {
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "alarms_raised": self.alarms_raised,
            "records": [r.model_dump(mode="json") for r in self.succeeded],
            "failures": [f.to_dict() for f in self.failed],
            "alarm_failures": [f.to_dict() for f in self.alarm_failures],
        }


class IngestionCycle:
    """Periodic satellite analysis over a small random batch.

    Args:
        store: Where records, alarms and statistics are written.
        classifier: External classification client.
        imagery: Resolves work items to image URLs.
        connections: Dashboard clients to notify after each write.
        batch_size: Maximum number of items per cycle.
        work_source: ``catalog`` or ``storage``.
        statistics_window_hours: Trailing window for the statistics refresh.
        catalog: Locations to sample in catalog mode.
        rng: Random source, injectable for deterministic tests.
    """

    def __init__(
        self,
        store: MonitoringStore,
        classifier: ClassifierClient,
        imagery: ImageryResolver,
        connections: ConnectionRegistry,
        batch_size: int = 3,
        work_source: WorkSource | str = WorkSource.CATALOG,
        statistics_window_hours: int = 24,
        catalog: Sequence[CoastalLocation] = COASTAL_LOCATIONS,
        rng: random.Random | None = None,
    ) -> None:
        if batch_size < 0:
            raise ValueError("batch_size must not be negative")
        self._store = store
        self._classifier = classifier
        self._imagery = imagery
        self._connections = connections
        self._batch_size = batch_size
        self._work_source = WorkSource(work_source)
        self._statistics_window_hours = statistics_window_hours
        self._catalog = tuple(catalog)
        self._rng = rng or random.Random()
        self._cycles_run = 0

    @property
    def cycles_run(self) -> int:
        return self._cycles_run

    @property
    def work_source(self) -> WorkSource:
        return self._work_source

    # ── Public API ───────────────────────────────────────────────────────

    async def run_cycle(self) -> CycleReport:
        """Analyse one batch.  Never raises for per-item failures."""
        report = CycleReport(started_at=utc_now())
        items = await self._select_items()
        logger.info("Ingestion cycle started: %d item(s) from %s", len(items), self._work_source.value)

        for item in items:
            try:
                record, alarm, alarm_error = await self._process(item)
            except Exception as exc:
                logger.error("Analysis failed for %s: %s", item.location, exc)
                report.failed.append(ItemFailure(item.location, str(exc)))
                continue
            report.succeeded.append(record)
            if alarm_error is not None:
                report.alarm_failures.append(ItemFailure(item.location, alarm_error))
            if alarm is not None:
                report.alarms_raised += 1

        if report.succeeded:
            try:
                await self._store.refresh_statistics(self._statistics_window_hours)
            except Exception as exc:
                logger.error("Statistics refresh failed: %s", exc)

        report.finished_at = utc_now()
        self._cycles_run += 1
        logger.info(
            "Ingestion cycle finished: %d succeeded, %d failed, %d alarm(s)",
            len(report.succeeded),
            len(report.failed),
            report.alarms_raised,
        )
        return report

    async def analyze_single(
        self,
        location: str,
        coordinates: Coordinates,
        image_url: str | None = None,
    ) -> MonitoringRecord:
        """Run the per-item pipeline for one caller-supplied location.

        Raises:
            IngestionError: Wrapping whatever stopped the item.
        """
        item = WorkItem(location=location, coordinates=coordinates, image_url=image_url)
        try:
            record, _, _ = await self._process(item)
        except Exception as exc:
            logger.error("Analysis failed for %s: %s", location, exc)
            raise IngestionError(location, exc) from exc

        try:
            await self._store.refresh_statistics(self._statistics_window_hours)
        except Exception as exc:
            logger.error("Statistics refresh failed: %s", exc)
        return record

    # ── Internals ────────────────────────────────────────────────────────

    async def _select_items(self) -> list[WorkItem]:
        if self._batch_size == 0:
            return []

        if self._work_source is WorkSource.STORAGE:
            rows = await self._store.sample_records(self._batch_size)
            return [
                WorkItem(
                    location=r.location,
                    coordinates=r.coordinates,
                    image_url=r.image_url,
                    record_id=r.id,
                )
                for r in rows
            ]

        picked = self._rng.sample(self._catalog, min(self._batch_size, len(self._catalog)))
        return [
            WorkItem(location=loc.name, coordinates=loc.bounds.random_point(self._rng))
            for loc in picked
        ]

    async def _process(
        self, item: WorkItem
    ) -> tuple[MonitoringRecord, AlarmRecord | None, str | None]:
        image_url = self._imagery.resolve(item.coordinates, item.image_url)
        classification = await self._classifier.classify(image_url, item.coordinates, item.location)

        if item.record_id is not None:
            record = await self._store.update_monitoring_record(item.record_id, classification)
            message_type = MessageType.SATELLITE_UPDATE
        else:
            record = await self._store.write_monitoring_record(
                MonitoringRecord.from_classification(
                    classification,
                    location=item.location,
                    coordinates=item.coordinates,
                    image_url=image_url,
                )
            )
            message_type = MessageType.NEW_ANALYSIS

        # Record is committed; it is broadcast even if the alarm write fails
        alarm_error: str | None = None
        try:
            alarm = await self._store.write_alarm_if_severe(record)
        except StorageError as exc:
            logger.error("Alarm write failed for %s (record %s): %s", record.location, record.id, exc)
            alarm = None
            alarm_error = str(exc)

        logger.info(
            "Stored %s for %s: %s (%d%%)",
            "update" if item.record_id is not None else "record",
            record.location,
            record.pollution_level.value,
            record.confidence,
        )

        await self._connections.broadcast(message_type.value, record.model_dump(mode="json"))
        return record, alarm, alarm_error
