"""
Vision Client - Google Cloud Vision object localization.

Wraps the blocking ImageAnnotatorClient so detections can be requested from
async handlers, and converts protobuf annotations into plain dataclasses.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import vision

from chair_bot.exceptions import DetectionError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NormalizedVertex:
    """Polygon vertex as a fraction (0..1) of image width/height."""

    x: float
    y: float


@dataclass(frozen=True)
class Detection:
    """A localized object returned by the vision service."""

    name: str
    score: float
    vertices: List[NormalizedVertex] = field(default_factory=list)


class VisionClient:
    """
    Async facade over Google Cloud Vision object localization.

    Usage:
        vision_client = VisionClient()
        detections = await vision_client.localize_objects(image_bytes)
        for d in detections:
            print(d.name, d.score)

    Credentials are resolved by the Google client library
    (GOOGLE_APPLICATION_CREDENTIALS or the ambient environment).
    """

    def __init__(self, client: Optional[vision.ImageAnnotatorClient] = None):
        """
        Initialize vision client.

        Args:
            client: Pre-built ImageAnnotatorClient. Created on first use if omitted.
        """
        self._client = client

    @property
    def client(self) -> vision.ImageAnnotatorClient:
        if self._client is None:
            self._client = vision.ImageAnnotatorClient()
        return self._client

    async def localize_objects(self, content: bytes) -> List[Detection]:
        """
        Detect objects in raw image bytes.

        Args:
            content: Encoded image (PNG/JPEG) bytes

        Returns:
            Detections in the order the service returned them

        Raises:
            DetectionError: If the API call fails or reports an error
        """

        def _sync_localize():
            """Run the blocking RPC in a thread executor."""
            return self.client.object_localization(image=vision.Image(content=content))

        try:
            loop = asyncio.get_running_loop()
            response = await loop.run_in_executor(None, _sync_localize)
        except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError) as e:
            raise DetectionError(f"Object localization failed: {e}") from e

        if response.error.message:
            raise DetectionError(f"Object localization failed: {response.error.message}")

        detections = [
            Detection(
                name=annotation.name,
                score=annotation.score,
                vertices=[
                    NormalizedVertex(x=v.x, y=v.y)
                    for v in annotation.bounding_poly.normalized_vertices
                ],
            )
            for annotation in response.localized_object_annotations
        ]
        logger.debug(f"Vision returned {len(detections)} objects")
        return detections
