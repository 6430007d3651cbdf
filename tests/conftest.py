"""
Core pytest fixtures and configuration for the test framework.

This module provides shared fixtures for unit and integration tests: a real
TrueType font for caption rendering, in-memory test images, fake vision
detections and Slack event / client mocks matching production structures.
"""

import sys
from pathlib import Path

# Add parent directory to path so we can import agents and clients modules
sys.path.insert(0, str(Path(__file__).parent.parent))

import io
import pytest
from unittest.mock import AsyncMock, MagicMock
from typing import Any, Callable, Dict, Tuple

from PIL import Image, ImageFont

from clients.vision_client import Detection, NormalizedVertex


# ============================================================================
# Font Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def font_bytes() -> bytes:
    """
    TrueType font data for caption rendering.

    Uses the scalable font that Pillow embeds for load_default(). Tests that
    need it are skipped on Pillow builds without FreeType.

    Returns:
        bytes: Raw TrueType font data
    """
    font = ImageFont.load_default(size=24)
    data = getattr(font, "font_bytes", None)
    if not data:
        pytest.skip("Pillow was built without FreeType support")
    return data


@pytest.fixture
def font_path(tmp_path, font_bytes) -> Path:
    """Font data written to a temporary .ttf file."""
    path = tmp_path / "caption.ttf"
    path.write_bytes(font_bytes)
    return path


@pytest.fixture
def renderer(font_bytes):
    """Caption renderer backed by the test font."""
    from chair_bot.caption import CaptionRenderer

    return CaptionRenderer(font_bytes)


# ============================================================================
# Image Fixtures
# ============================================================================


def encode_image(
    size: Tuple[int, int] = (200, 100),
    color: Tuple[int, int, int] = (30, 60, 90),
    fmt: str = "PNG",
) -> bytes:
    """Encode a solid-colour RGB image."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture
def image_factory() -> Callable[..., bytes]:
    """Factory fixture encoding solid-colour test images."""
    return encode_image


@pytest.fixture
def png_bytes() -> bytes:
    """200x100 solid PNG."""
    return encode_image()


@pytest.fixture
def jpeg_bytes() -> bytes:
    """200x100 solid JPEG."""
    return encode_image(fmt="JPEG")


# ============================================================================
# Vision Fixtures
# ============================================================================


def make_detection(
    name: str = "Chair",
    box: Tuple[float, float, float, float] = (0.1, 0.2, 0.5, 0.8),
    score: float = 0.9,
) -> Detection:
    """Detection whose polygon is the rectangle (x0, y0, x1, y1) in normalized units."""
    x0, y0, x1, y1 = box
    return Detection(
        name=name,
        score=score,
        vertices=[
            NormalizedVertex(x0, y0),
            NormalizedVertex(x1, y0),
            NormalizedVertex(x1, y1),
            NormalizedVertex(x0, y1),
        ],
    )


@pytest.fixture
def detection_factory() -> Callable[..., Detection]:
    """Factory fixture building Detection objects."""
    return make_detection


@pytest.fixture
def mock_vision() -> AsyncMock:
    """
    Mock VisionClient with an async localize_objects() method.

    Returns one chair detection by default.

    Returns:
        AsyncMock: Mock vision client
    """
    mock = AsyncMock()
    mock.localize_objects.return_value = [make_detection()]
    return mock


# ============================================================================
# Slack Event Fixtures
# ============================================================================


def make_file(name: str, file_id: str = "F01TEST") -> Dict[str, Any]:
    """Slack file object as it appears in a message event."""
    return {
        "id": file_id,
        "name": name,
        "mimetype": "image/png",
        "size": 1024,
        "url_private_download": f"https://files.slack.com/files-pri/T01/{file_id}/download/{name}",
    }


@pytest.fixture
def sample_image_event() -> Dict[str, Any]:
    """
    Realistic Slack message event carrying one PNG attachment.

    Returns:
        Dict[str, Any]: Dict matching Slack file_share message structure
    """
    return {
        "type": "message",
        "subtype": "file_share",
        "channel_type": "channel",
        "user": "U01TEST123",
        "text": "look at this",
        "ts": "1234567890.123456",
        "channel": "C01TEST",
        "files": [make_file("living-room.png")],
    }


@pytest.fixture
def file_factory() -> Callable[..., Dict[str, Any]]:
    """Factory fixture building Slack file objects."""
    return make_file


# ============================================================================
# Slack Client Mocks
# ============================================================================


@pytest.fixture
def mock_slack_client() -> AsyncMock:
    """
    Mock Slack AsyncWebClient.

    Provides files_upload_v2() for replies, users_profile_set() for the
    status loop and auth_test() for startup verification.

    Returns:
        AsyncMock: Mock web client
    """
    client = AsyncMock()
    client.files_upload_v2.return_value = {"ok": True, "files": []}
    client.users_profile_set.return_value = {"ok": True}
    client.auth_test.return_value = {"user": "chair_bot", "user_id": "U0CHAIRBOT"}
    return client


@pytest.fixture
def mock_slack_app(mock_slack_client) -> MagicMock:
    """Mock Slack AsyncApp whose client is mock_slack_client."""
    app = MagicMock()
    app.client = mock_slack_client
    return app


@pytest.fixture
def slack_env(monkeypatch):
    """Slack tokens in the environment."""
    monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
    monkeypatch.setenv("SLACK_APP_TOKEN", "xapp-test")

