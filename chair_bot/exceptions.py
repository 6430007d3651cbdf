"""
Custom exceptions for chair_bot image handling.
"""


class FontLoadError(Exception):
    """Raised when the caption typeface is missing, unreadable or malformed."""

    pass


class ImageProcessingError(Exception):
    """Base class for failures that abort processing of a single message."""

    pass


class FileDownloadError(ImageProcessingError):
    """Raised when file download from Slack fails."""

    pass


class DetectionError(ImageProcessingError):
    """Raised when the object localization call fails."""

    pass


class ImageDecodeError(ImageProcessingError):
    """Raised when downloaded bytes cannot be decoded as an image."""

    pass


class ImageEncodeError(ImageProcessingError):
    """Raised when a captioned crop cannot be encoded."""

    pass
