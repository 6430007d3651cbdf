"""
Message processor for detecting and filtering file attachments in Slack messages.
"""

from typing import List, Dict, Any
import os


# Raster formats the detector and decoder understand
IMAGE_SUFFIXES = (".png", ".jpg", ".jpeg")


def is_automated_sender(message_data: Dict[str, Any]) -> bool:
    """
    Check whether a Slack message was posted by a bot or integration.

    Args:
        message_data: Message event data from Slack

    Returns:
        True for bot messages, including our own replies
    """
    if message_data.get("subtype") == "bot_message":
        return True
    return bool(message_data.get("bot_id"))


def is_image_filename(file_name: str) -> bool:
    """Case-insensitive check for a recognized raster image suffix."""
    return file_name.lower().endswith(IMAGE_SUFFIXES)


def detect_file_attachments(message_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Detect file attachments in a Slack message.

    Args:
        message_data: Message event data from Slack

    Returns:
        List of file attachment info with name, type, and URL
    """
    attachments = []

    files = message_data.get("files", [])
    for file_obj in files:
        file_name = file_obj.get("name", "")
        if not file_name:
            continue

        # Extract file extension
        _, ext = os.path.splitext(file_name)
        file_type = ext.lstrip(".").lower() if ext else ""

        attachment = {
            "name": file_name,
            "type": file_type,
            "url_private_download": file_obj.get("url_private_download"),
            "mimetype": file_obj.get("mimetype"),
            "size": file_obj.get("size", 0),
        }
        attachments.append(attachment)

    return attachments


def detect_image_attachments(message_data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Detect image attachments in a Slack message, keeping message order.

    Args:
        message_data: Message event data from Slack

    Returns:
        Attachments whose filename ends in .png, .jpg or .jpeg
    """
    return [
        attachment
        for attachment in detect_file_attachments(message_data)
        if is_image_filename(attachment["name"])
    ]
