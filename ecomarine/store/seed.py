"""Baseline rows for the coastal catalog.

Storage-mode ingestion re-analyses existing rows, so a fresh database
needs one row per location before the first cycle has anything to pick.
Baseline rows are marked clean with zero confidence and flagged as
baseline, which keeps them out of the statistics until first analysed.
"""

from __future__ import annotations

from datetime import date
from typing import Sequence

from ecomarine.domain.enums import PollutionLevel
from ecomarine.domain.location import COASTAL_LOCATIONS, CoastalLocation
from ecomarine.domain.records import MonitoringRecord
from ecomarine.services.imagery import gibs_url
from ecomarine.store.base import MonitoringStore


def baseline_records(
    day: date,
    delta: float = 0.05,
    catalog: Sequence[CoastalLocation] = COASTAL_LOCATIONS,
) -> list[MonitoringRecord]:
    return [
        MonitoringRecord(
            location=loc.name,
            pollution_level=PollutionLevel.CLEAN,
            confidence=0,
            coordinates=loc.coordinates,
            image_url=gibs_url(loc.coordinates, day, delta),
            baseline=True,
        )
        for loc in catalog
    ]


async def seed_catalog(store: MonitoringStore, day: date, delta: float = 0.05) -> int:
    """Insert baseline rows for catalog locations not yet stored."""
    return await store.seed_records(baseline_records(day, delta))
