"""HTTP client for the external pollution classification service.

Two request styles are supported:

    json  POST {base}/analyze            {"image_url", "coordinates", "location", ...}
    file  POST {base}/v1/predict_file    multipart upload of the downloaded image

Either way the JSON answer goes through the DecoderRegistry, so both
response formats are understood regardless of which endpoint was called.
"""

from __future__ import annotations

import logging
from typing import Literal

import httpx

from ecomarine.decoders.registry import ClassificationError, DecoderRegistry, default_registry
from ecomarine.domain.location import Coordinates
from ecomarine.domain.records import Classification
from ecomarine.services.imagery import ImageryResolver

logger = logging.getLogger(__name__)

ANALYZE_PATH = "/analyze"
PREDICT_FILE_PATH = "/v1/predict_file"


class ClassifierClient:
    """Calls the classification service and decodes its answer.

    Args:
        client: HTTP client whose ``base_url`` points at the service.
        imagery: Used to download images in ``file`` mode.
        mode: Request style, ``json`` or ``file``.
        registry: Response decoders; defaults to every built-in decoder.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        imagery: ImageryResolver,
        mode: Literal["json", "file"] = "json",
        registry: DecoderRegistry | None = None,
    ) -> None:
        if mode not in ("json", "file"):
            raise ValueError(f"unsupported classifier mode: {mode!r}")
        self._client = client
        self._imagery = imagery
        self._mode = mode
        self._registry = registry or default_registry()

    @property
    def base_url(self) -> str:
        return str(self._client.base_url)

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def registry(self) -> DecoderRegistry:
        return self._registry

    async def classify(
        self,
        image_url: str,
        coordinates: Coordinates,
        location: str,
    ) -> Classification:
        """Classify one image.

        Raises:
            ClassificationError: Transport failure, non-success status, or an
                undecodable response.
            ImageryError: The image could not be downloaded (``file`` mode).
        """
        if self._mode == "file":
            image = await self._imagery.fetch_image(image_url)
            logger.info("Sending image for %s to classifier (%d bytes)", location, len(image))
            request = self._client.post(
                PREDICT_FILE_PATH,
                files={"file": ("satellite.jpg", image, "image/jpeg")},
            )
        else:
            logger.info("Sending image reference for %s to classifier", location)
            request = self._client.post(
                ANALYZE_PATH,
                json={
                    "image_url": image_url,
                    "coordinates": coordinates.model_dump(),
                    "location": location,
                    "analysis_type": "marine_pollution",
                },
            )

        try:
            response = await request
        except httpx.HTTPError as exc:
            raise ClassificationError(f"classifier request failed: {exc}") from exc

        if response.is_error:
            raise ClassificationError(f"classifier returned HTTP {response.status_code}")

        try:
            body = response.json()
        except ValueError as exc:
            raise ClassificationError("classifier returned a non-JSON body") from exc

        classification = self._registry.decode(body)
        logger.debug(
            "Classifier result for %s: %s (%d%%)",
            location,
            classification.pollution_level.value,
            classification.confidence,
        )
        return classification

    async def aclose(self) -> None:
        await self._client.aclose()
