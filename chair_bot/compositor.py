"""Crop detected regions and overlay the caption."""

import io
from dataclasses import dataclass
from typing import Tuple

from PIL import Image

from chair_bot.caption import CaptionRenderer
from chair_bot.exceptions import ImageEncodeError
from chair_bot.regions import Rect


DEFAULT_CAPTION = "CHAIR"

# Caption height as a fraction of the crop height
CAPTION_SCALE = 10


@dataclass(frozen=True)
class Crop:
    """A cropped bitmap plus the source-image origin it was cut from."""

    image: Image.Image
    origin: Tuple[int, int]

    @property
    def bounds(self) -> Rect:
        """The rectangle this crop covers, in source-image coordinates."""
        x0, y0 = self.origin
        return Rect(x0, y0, x0 + self.image.width, y0 + self.image.height)


def crop_region(img: Image.Image, rect: Rect) -> Crop:
    """Copy the pixels inside `rect` into a new RGBA bitmap."""
    crop = img.convert("RGBA").crop(rect.box)
    return Crop(image=crop, origin=(rect.x0, rect.y0))


def caption_offset(crop_width: int, caption_width: int) -> int:
    """Horizontal position that centres the caption over the crop."""
    return crop_width // 2 - caption_width // 2


def caption_crop(
    img: Image.Image,
    rect: Rect,
    renderer: CaptionRenderer,
    text: str = DEFAULT_CAPTION,
) -> Image.Image:
    """
    Crop `rect` out of `img` and draw `text` across its top edge.

    The caption is a tenth of the crop height and is alpha-composited over
    the crop, so only the glyphs cover the underlying pixels.
    """
    crop = crop_region(img, rect)
    caption = renderer.render(text, rect.height // CAPTION_SCALE)
    out = crop.image
    if caption.width and caption.height and out.width and out.height:
        # Negative offsets (caption wider than crop) are clipped by paste
        layer = Image.new("RGBA", out.size, (0, 0, 0, 0))
        layer.paste(caption, (caption_offset(out.width, caption.width), 0))
        out = Image.alpha_composite(out, layer)
    return out


def encode_png(img: Image.Image) -> bytes:
    """
    Encode an image as PNG bytes.

    Raises:
        ImageEncodeError: If the image is empty or the encoder fails
    """
    if img.width == 0 or img.height == 0:
        raise ImageEncodeError(f"Cannot encode empty image of size {img.size}")
    buf = io.BytesIO()
    try:
        img.save(buf, format="PNG")
    except (OSError, ValueError) as e:
        raise ImageEncodeError(f"PNG encoding failed: {e}") from e
    return buf.getvalue()
