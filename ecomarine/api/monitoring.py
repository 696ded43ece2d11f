"""REST endpoints for the dashboard.

Paths (all under /api):
    GET  /satellite-monitoring     recent records, newest first
    GET  /statistics               latest statistics snapshot
    GET  /alarms                   active alarms
    GET  /locations                static coastal catalog
    GET  /satellite-image          imagery URL for a coordinate
    POST /update-satellite-data    run one ingestion cycle now
    POST /analyze-satellite-image  analyse one caller-supplied location

Read handlers are thin accessors over the store.  The two POST handlers
run the same pipeline as the scheduler and translate its failures into
generic HTTP errors.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from ecomarine.core.ingestion import IngestionCycle, IngestionError
from ecomarine.decoders.registry import ClassificationError
from ecomarine.domain.location import COASTAL_LOCATIONS, Coordinates
from ecomarine.domain.records import AlarmRecord, MonitoringRecord, StatisticsSnapshot
from ecomarine.services.imagery import ImageryError, ImageryResolver, bbox, format_bbox, gibs_url
from ecomarine.store.base import MonitoringStore, StorageError

logger = logging.getLogger(__name__)


class AnalyzeRequest(BaseModel):
    """Body of POST /api/analyze-satellite-image."""

    location: str = Field(..., min_length=1, max_length=255)
    coordinates: Coordinates
    image_url: Optional[str] = Field(default=None, description="Analyse this image instead of a GIBS tile")


def create_monitoring_router(
    store: MonitoringStore,
    cycle: IngestionCycle,
    imagery: ImageryResolver,
    recent_limit: int = 20,
) -> APIRouter:
    """Factory that wires the REST surface to a store and an ingestion cycle."""

    router = APIRouter(prefix="/api", tags=["monitoring"])

    @router.get("/satellite-monitoring", response_model=list[MonitoringRecord])
    async def satellite_monitoring(
        limit: int = Query(default=recent_limit, ge=1, le=200),
    ) -> list[MonitoringRecord]:
        try:
            return list(await store.read_recent_records(limit))
        except StorageError as exc:
            logger.error("Reading recent records failed: %s", exc)
            raise HTTPException(status_code=500, detail="DB query failed") from exc

    @router.get("/statistics", response_model=StatisticsSnapshot)
    async def statistics() -> StatisticsSnapshot:
        try:
            return await store.read_latest_statistics()
        except StorageError as exc:
            logger.error("Reading statistics failed: %s", exc)
            raise HTTPException(status_code=500, detail="DB query failed") from exc

    @router.get("/alarms", response_model=list[AlarmRecord])
    async def alarms() -> list[AlarmRecord]:
        try:
            return list(await store.read_active_alarms())
        except StorageError as exc:
            logger.error("Reading alarms failed: %s", exc)
            raise HTTPException(status_code=500, detail="DB query failed") from exc

    @router.get("/locations")
    async def locations() -> list[dict[str, Any]]:
        return [loc.model_dump(mode="json") for loc in COASTAL_LOCATIONS]

    @router.get("/satellite-image")
    async def satellite_image(
        lat: float = Query(..., ge=-90.0, le=90.0),
        lng: float = Query(..., ge=-180.0, le=180.0),
        d: Optional[float] = Query(default=None, gt=0.0, le=1.0, description="Box half-width in degrees"),
        day: Optional[date] = Query(default=None, alias="date", description="Acquisition date"),
    ) -> dict[str, Any]:
        coordinates = Coordinates(lat=lat, lng=lng)
        delta = d or imagery.delta
        day = day or imagery.default_day()
        return {
            "url": gibs_url(coordinates, day, delta),
            "coordinates": coordinates.model_dump(),
            "bbox": format_bbox(bbox(coordinates, delta)),
            "date": day.isoformat(),
            "source": "NASA GIBS MODIS Terra",
        }

    @router.post("/update-satellite-data")
    async def update_satellite_data() -> dict[str, Any]:
        try:
            report = await cycle.run_cycle()
        except Exception as exc:
            logger.error("Manual ingestion cycle failed: %s", exc)
            raise HTTPException(status_code=500, detail="Satellite update failed") from exc
        return {"message": "AI analysis completed", **report.to_dict()}

    @router.post("/analyze-satellite-image", response_model=MonitoringRecord)
    async def analyze_satellite_image(body: AnalyzeRequest) -> MonitoringRecord:
        try:
            return await cycle.analyze_single(body.location, body.coordinates, body.image_url)
        except IngestionError as exc:
            if isinstance(exc.cause, (ClassificationError, ImageryError)):
                raise HTTPException(status_code=502, detail="Classification service failed") from exc
            raise HTTPException(status_code=500, detail="Analysis failed") from exc

    return router
