"""Satellite image reference resolution.

Work items either already carry a stored image URL or are turned into a
NASA GIBS WMS GetMap request for a small box around the observation
point.  GIBS publishes daily MODIS mosaics with a lag, so the default
acquisition date is a configurable number of days in the past.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta

import httpx

from ecomarine.domain.location import Coordinates
from ecomarine.foundation.clock import utc_today

logger = logging.getLogger(__name__)

GIBS_WMS_ENDPOINT = "https://gibs.earthdata.nasa.gov/wms/epsg4326/best/wms.cgi"
GIBS_LAYER = "MODIS_Terra_CorrectedReflectance_TrueColor"
IMAGE_WIDTH = 1024
IMAGE_HEIGHT = 768


class ImageryError(Exception):
    """Raised when an image cannot be downloaded."""


def bbox(coordinates: Coordinates, delta: float = 0.05) -> tuple[float, float, float, float]:
    """(west, south, east, north) box of +/- *delta* degrees, clamped to Earth bounds."""
    return (
        round(max(coordinates.lng - delta, -180.0), 4),
        round(max(coordinates.lat - delta, -90.0), 4),
        round(min(coordinates.lng + delta, 180.0), 4),
        round(min(coordinates.lat + delta, 90.0), 4),
    )


def format_bbox(box: tuple[float, float, float, float]) -> str:
    return ",".join(f"{v:.4f}" for v in box)


def gibs_url(coordinates: Coordinates, day: date, delta: float = 0.05) -> str:
    """WMS 1.3.0 GetMap URL for the MODIS true-colour layer on *day*.

    EPSG:4326 under WMS 1.3.0 uses latitude-first axis order, so BBOX is
    south,west,north,east.
    """
    west, south, east, north = bbox(coordinates, delta)
    return (
        f"{GIBS_WMS_ENDPOINT}?SERVICE=WMS&REQUEST=GetMap&VERSION=1.3.0"
        f"&LAYERS={GIBS_LAYER}&FORMAT=image/jpeg"
        f"&WIDTH={IMAGE_WIDTH}&HEIGHT={IMAGE_HEIGHT}&CRS=EPSG:4326"
        f"&BBOX={format_bbox((south, west, north, east))}"
        f"&TIME={day.isoformat()}"
    )


class ImageryResolver:
    """Turns a work item into an image URL, and downloads images on demand.

    Args:
        client: Shared HTTP client used for downloads.
        delta: Half-width of the requested box in degrees.
        lag_days: How many days before today the default acquisition date is.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        delta: float = 0.05,
        lag_days: int = 7,
    ) -> None:
        self._client = client
        self._delta = delta
        self._lag_days = lag_days

    @property
    def delta(self) -> float:
        return self._delta

    def default_day(self) -> date:
        return utc_today() - timedelta(days=self._lag_days)

    def resolve(
        self,
        coordinates: Coordinates,
        image_url: str | None = None,
        day: date | None = None,
    ) -> str:
        """Return the stored *image_url* if present, else a GIBS URL."""
        if image_url:
            return image_url
        return gibs_url(coordinates, day or self.default_day(), self._delta)

    async def fetch_image(self, url: str) -> bytes:
        """Download *url* and return the body.

        Raises:
            ImageryError: On transport failure or a non-success status.
        """
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise ImageryError(f"image download failed: {exc}") from exc
        if response.is_error:
            raise ImageryError(f"image download failed: HTTP {response.status_code}")
        logger.debug("Downloaded %d bytes from %s", len(response.content), url)
        return response.content

    async def aclose(self) -> None:
        await self._client.aclose()
