"""
Unit tests for cropping, caption compositing and PNG encoding.
"""

import io

import pytest
from PIL import Image

from chair_bot.compositor import (
    caption_crop,
    caption_offset,
    crop_region,
    encode_png,
)
from chair_bot.exceptions import ImageEncodeError
from chair_bot.regions import Rect


BACKGROUND = (30, 60, 90, 255)


@pytest.fixture
def source_image():
    """400x300 opaque image with a red marker pixel at (150, 120)."""
    img = Image.new("RGBA", (400, 300), BACKGROUND)
    img.putpixel((150, 120), (255, 0, 0, 255))
    return img


@pytest.mark.unit
class TestCropRegion:
    def test_bounds_equal_requested_rect(self, source_image):
        rect = Rect(100, 100, 300, 250)

        crop = crop_region(source_image, rect)

        assert crop.bounds == rect
        assert crop.origin == (100, 100)
        assert crop.image.size == (200, 150)

    def test_pixels_come_from_rect(self, source_image):
        crop = crop_region(source_image, Rect(100, 100, 300, 250))

        assert crop.image.getpixel((50, 20)) == (255, 0, 0, 255)
        assert crop.image.getpixel((0, 0)) == BACKGROUND

    def test_rgb_source_converted(self):
        img = Image.new("RGB", (50, 50), (1, 2, 3))
        crop = crop_region(img, Rect(0, 0, 10, 10))

        assert crop.image.mode == "RGBA"


@pytest.mark.unit
class TestCaptionOffset:
    def test_centres_narrow_caption(self):
        assert caption_offset(200, 100) == 50

    def test_integer_halves(self):
        assert caption_offset(201, 99) == 100 - 49

    def test_wide_caption_goes_negative(self):
        assert caption_offset(50, 120) == -35


@pytest.mark.unit
class TestCaptionCrop:
    """Tests for compositing the rendered caption over the crop"""

    def test_output_matches_rect_size(self, source_image, renderer):
        out = caption_crop(source_image, Rect(0, 0, 400, 300), renderer)
        assert out.size == (400, 300)

    def test_caption_drawn_in_top_band(self, renderer):
        plain = Image.new("RGBA", (400, 300), BACKGROUND)
        rect = Rect(0, 0, 400, 300)
        caption = renderer.render("CHAIR", rect.height // 10)

        out = caption_crop(plain, rect, renderer)

        top = out.crop((0, 0, out.width, caption.height))
        bottom = out.crop((0, caption.height, out.width, out.height))
        assert (255, 255, 255, 255) in {c for _, c in top.getcolors(maxcolors=400 * 300)}
        assert bottom.getcolors() == [(bottom.width * bottom.height, BACKGROUND)]

    def test_caption_is_horizontally_centred(self, source_image, renderer):
        rect = Rect(0, 0, 400, 300)
        caption = renderer.render("CHAIR", rect.height // 10)
        x = caption_offset(rect.width, caption.width)

        out = caption_crop(source_image, rect, renderer)

        left_edge = out.crop((0, 0, x, caption.height))
        right_edge = out.crop((x + caption.width, 0, out.width, caption.height))
        assert left_edge.getcolors() == [(left_edge.width * left_edge.height, BACKGROUND)]
        assert right_edge.getcolors() == [(right_edge.width * right_edge.height, BACKGROUND)]

    def test_transparent_caption_pixels_keep_crop(self, source_image, renderer):
        out = caption_crop(source_image, Rect(100, 100, 300, 250), renderer)

        # Marker sits left of the caption bitmap
        assert out.getpixel((50, 20)) == (255, 0, 0, 255)

    def test_short_rect_gets_no_caption(self, source_image, renderer):
        rect = Rect(10, 10, 60, 15)

        out = caption_crop(source_image, rect, renderer)

        assert out.size == (50, 5)
        assert out.getcolors() == [(250, BACKGROUND)]

    def test_caption_wider_than_crop_is_clipped(self, source_image, renderer):
        out = caption_crop(source_image, Rect(0, 0, 30, 300), renderer, text="CHAIR CHAIR CHAIR")
        assert out.size == (30, 300)


@pytest.mark.unit
class TestEncodePng:
    def test_png_round_trip(self, source_image):
        data = encode_png(source_image)

        assert data.startswith(b"\x89PNG\r\n\x1a\n")
        with Image.open(io.BytesIO(data)) as decoded:
            assert decoded.size == (400, 300)

    def test_empty_image_raises(self):
        with pytest.raises(ImageEncodeError):
            encode_png(Image.new("RGBA", (0, 10)))
