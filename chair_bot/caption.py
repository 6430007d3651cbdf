"""
Caption rendering with the bundled typeface.

The font is loaded and validated once, at startup. A renderer is immutable
after construction and is shared by every message handler.
"""

import functools
import io
import logging
import math
import threading
from pathlib import Path
from typing import Union

from PIL import Image, ImageDraw, ImageFont

from chair_bot.exceptions import FontLoadError

logger = logging.getLogger(__name__)


# Extra width added to the measured text, and the left edge of the baseline
CAPTION_PADDING = 20
BASELINE_X = 10

# Size used to check that the font file parses
_PROBE_SIZE = 12


class CaptionRenderer:
    """Render white text onto transparent RGBA bitmaps."""

    def __init__(self, font_bytes: bytes):
        """
        Initialize renderer from raw TrueType/OpenType data.

        Raises:
            FontLoadError: If the data is not a usable font
        """
        self._font_bytes = font_bytes
        self._lock = threading.Lock()
        self._face = functools.lru_cache(maxsize=32)(self._load_face)
        try:
            self._face(_PROBE_SIZE)
        except (OSError, ValueError) as e:
            raise FontLoadError(f"Malformed font data: {e}") from e

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "CaptionRenderer":
        """
        Load the typeface from disk.

        Raises:
            FontLoadError: If the file is missing, unreadable or malformed
        """
        try:
            font_bytes = Path(path).read_bytes()
        except OSError as e:
            raise FontLoadError(f"Cannot read font file {path}: {e}") from e
        renderer = cls(font_bytes)
        logger.info(f"Loaded caption font from {path} ({len(font_bytes)} bytes)")
        return renderer

    def _load_face(self, size: int) -> ImageFont.FreeTypeFont:
        return ImageFont.truetype(io.BytesIO(self._font_bytes), size)

    def measure(self, text: str, size: int) -> int:
        """Rendered advance width of `text` at `size`, rounded up to whole pixels."""
        if size <= 0 or not text:
            return 0
        with self._lock:
            return math.ceil(self._face(size).getlength(text))

    def render(self, text: str, size: int) -> Image.Image:
        """
        Draw `text` in solid white on a transparent bitmap.

        The bitmap is (measured width + padding) wide and one and a half
        times `size` tall, with the baseline at (BASELINE_X, size). Glyphs
        with descenders may be clipped.
        """
        width = self.measure(text, size) + CAPTION_PADDING
        if size <= 0:
            return Image.new("RGBA", (width, 0), (0, 0, 0, 0))

        img = Image.new("RGBA", (width, size + size // 2), (0, 0, 0, 0))
        with self._lock:
            draw = ImageDraw.Draw(img)
            draw.text(
                (BASELINE_X, size),
                text,
                font=self._face(size),
                fill=(255, 255, 255, 255),
                anchor="ls",
            )
        return img
