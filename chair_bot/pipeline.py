"""
Per-message image pipeline: fetch, detect, crop, caption, encode.

Every step is injected so the pipeline can run against fakes in tests.
Each message is processed start to finish or abandoned on its first error;
partial output is never returned.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from PIL import Image

from chair_bot.caption import CaptionRenderer
from chair_bot.compositor import DEFAULT_CAPTION, caption_crop, encode_png
from chair_bot.exceptions import ImageProcessingError
from chair_bot.file_handler import decode_image
from chair_bot.regions import Rect, detection_rects
from clients.vision_client import VisionClient

logger = logging.getLogger(__name__)


DEFAULT_LABEL = "Chair"

Downloader = Callable[[str], Awaitable[bytes]]


@dataclass
class ProcessingResult:
    """Outcome of processing one message's attachments."""

    images: List[bytes] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def has_output(self) -> bool:
        return self.ok and bool(self.images)


class ChairPipeline:
    """Turn image attachments into captioned crops of every matching object."""

    def __init__(
        self,
        vision: VisionClient,
        renderer: CaptionRenderer,
        downloader: Downloader,
        label: str = DEFAULT_LABEL,
        caption: str = DEFAULT_CAPTION,
    ):
        """
        Args:
            vision: Object localization client
            renderer: Shared caption renderer
            downloader: Async callable fetching an attachment URL
            label: Detection label to crop (exact match)
            caption: Text drawn on every crop
        """
        self.vision = vision
        self.renderer = renderer
        self.downloader = downloader
        self.label = label
        self.caption = caption

    async def process_attachments(self, attachments: List[Dict[str, Any]]) -> ProcessingResult:
        """
        Process image attachments in order and collect encoded crops.

        Returns:
            ProcessingResult with all crops, or with `error` set and no
            images if any step failed
        """
        edited: List[bytes] = []
        for attachment in attachments:
            name = attachment.get("name", "unknown")
            try:
                edited.extend(await self._process_image(attachment))
            except ImageProcessingError as e:
                logger.error(f"Aborting message at attachment {name}: {e}")
                return ProcessingResult(error=e)
        return ProcessingResult(images=edited)

    async def _process_image(self, attachment: Dict[str, Any]) -> List[bytes]:
        name = attachment.get("name", "unknown")
        content = await self.downloader(attachment.get("url_private_download") or "")

        detections = await self.vision.localize_objects(content)
        if not any(d.name == self.label for d in detections):
            logger.debug(f"No {self.label} objects in {name}")
            return []

        loop = asyncio.get_running_loop()
        img = await loop.run_in_executor(None, decode_image, content)
        rects = detection_rects(detections, self.label, img.width, img.height)
        logger.info(f"Found {len(rects)} {self.label} objects in {name}")

        return await loop.run_in_executor(None, self._render_crops, img, rects)

    def _render_crops(self, img: Image.Image, rects: List[Rect]) -> List[bytes]:
        return [
            encode_png(caption_crop(img, rect, self.renderer, self.caption))
            for rect in rects
        ]
