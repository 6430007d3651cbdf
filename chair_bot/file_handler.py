"""
File handler for downloading Slack attachments and decoding them as images.
"""

import io
import logging

import httpx
import numpy as np
from PIL import Image, UnidentifiedImageError

from chair_bot.exceptions import FileDownloadError, ImageDecodeError

logger = logging.getLogger(__name__)


async def download_file_from_slack(url: str, token: str, timeout: float = 30.0) -> bytes:
    """
    Download a file from Slack using authenticated URL.

    Args:
        url: File URL (url_private_download from Slack)
        token: Slack bot token for authentication
        timeout: Request timeout in seconds

    Returns:
        File content as bytes

    Raises:
        FileDownloadError: If download fails
    """
    if not url:
        raise FileDownloadError("Attachment has no download URL")

    try:
        logger.info(f"Downloading from Slack: {url[:100]}...")
        async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as client:
            headers = {"Authorization": f"Bearer {token}"}
            response = await client.get(url, headers=headers)
            response.raise_for_status()

        if not response.content:
            raise FileDownloadError("Empty response from Slack file download")

        # Detect HTML error/login pages (redirect landed on a web page, not a file)
        content_type = response.headers.get("Content-Type", "")
        if "text/html" in content_type:
            raise FileDownloadError(
                f"Got HTML response instead of file content, "
                f"possible auth redirect to {str(response.url)[:100]}"
            )

        logger.info(f"Downloaded {len(response.content)} bytes from Slack")
        return response.content
    except FileDownloadError:
        raise
    except httpx.HTTPError as e:
        raise FileDownloadError(f"Failed to download file from Slack: {e}") from e
    except Exception as e:
        raise FileDownloadError(f"Unexpected error downloading file: {e}") from e


def decode_image(content: bytes) -> Image.Image:
    """
    Decode PNG or JPEG bytes into an RGBA image.

    The format is sniffed from the bytes themselves, so a mislabelled
    attachment still decodes. 16-bit grayscale keeps its tone by taking
    the high byte of each sample.

    Raises:
        ImageDecodeError: If the bytes are not a readable image
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            if img.mode.startswith("I;16") or img.mode == "I":
                samples = np.asarray(img.convert("I"), dtype=np.int64)
                gray = (samples.clip(0, 0xFFFF) >> 8).astype(np.uint8)
                return Image.fromarray(gray).convert("RGBA")
            return img.convert("RGBA")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        SyntaxError,
        ValueError,
    ) as e:
        raise ImageDecodeError(f"Failed to decode image: {e}") from e
