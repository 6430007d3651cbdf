"""
Chair Agent - Slack bot that finds chairs in shared images

Connects to Slack via Socket Mode and, for every message with image
attachments:
- Runs Google Cloud Vision object localization on each image
- Crops every detected chair and captions it
- Replies once with all the crops as file uploads
"""

import os
import sys
import asyncio
import functools
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from slack_bolt.async_app import AsyncApp
from slack_bolt.adapter.socket_mode.async_handler import AsyncSocketModeHandler
from slack_sdk.errors import SlackApiError

from agent_platform import Agent, AgentPlatform, configure_logging
from clients.vision_client import VisionClient
from chair_bot.caption import CaptionRenderer
from chair_bot.compositor import DEFAULT_CAPTION
from chair_bot.file_handler import download_file_from_slack
from chair_bot.message_processor import detect_image_attachments, is_automated_sender
from chair_bot.pipeline import ChairPipeline, ProcessingResult, DEFAULT_LABEL
from chair_bot.presence import StatusUpdater, DEFAULT_STATUS_TEXT, DEFAULT_INTERVAL_SECONDS


DEFAULT_REPLY_FILENAME = "chairs.png"
DEFAULT_MAX_CONCURRENT_HANDLERS = 4


class ChairAgent(Agent):
    """Slack bot that replies to images with captioned crops of detected chairs"""

    def __init__(
        self,
        config: Dict,
        vision: Optional[VisionClient] = None,
        renderer: Optional[CaptionRenderer] = None,
        app: Optional[AsyncApp] = None,
    ):
        super().__init__("chair_agent", config)

        # Slack setup
        self.bot_token = os.getenv("SLACK_BOT_TOKEN")
        self.app_token = os.getenv("SLACK_APP_TOKEN")

        if not self.bot_token or not self.app_token:
            raise ValueError(
                "Missing Slack tokens. Set SLACK_BOT_TOKEN and SLACK_APP_TOKEN in environment."
            )

        # Initialize Slack app
        self.app = app or AsyncApp(token=self.bot_token)
        self.socket_handler = None

        # Font must load before we connect; FontLoadError propagates to the launcher
        self.renderer = renderer or CaptionRenderer.from_path(
            config.get("font_path", "impact.ttf")
        )
        self.vision = vision or VisionClient()

        # Configuration
        self.label = config.get("label", DEFAULT_LABEL)
        self.caption = config.get("caption", DEFAULT_CAPTION)
        self.reply_filename = config.get("reply_filename", DEFAULT_REPLY_FILENAME)
        self.max_concurrent_handlers = config.get(
            "max_concurrent_handlers", DEFAULT_MAX_CONCURRENT_HANDLERS
        )
        if self.max_concurrent_handlers < 1:
            raise ValueError("max_concurrent_handlers must be at least 1")
        self.handler_slots = asyncio.Semaphore(self.max_concurrent_handlers)

        self.pipeline = ChairPipeline(
            vision=self.vision,
            renderer=self.renderer,
            downloader=functools.partial(
                download_file_from_slack,
                token=self.bot_token,
                timeout=config.get("download_timeout", 30.0),
            ),
            label=self.label,
            caption=self.caption,
        )

        self.status = StatusUpdater(
            self.app.client,
            text=config.get("status_text", DEFAULT_STATUS_TEXT),
            interval=config.get("status_interval", DEFAULT_INTERVAL_SECONDS),
        )

        # Register event handlers
        self._register_handlers()

    def _register_handlers(self):
        """Register Slack event handlers"""

        @self.app.event("message")
        async def handle_message(event, client):
            """Handle incoming messages"""
            await self.handle_message(event, client)

    async def handle_message(self, event: Dict[str, Any], client) -> Optional[ProcessingResult]:
        """
        Process one inbound message and reply with any captioned crops.

        Args:
            event: Slack message event
            client: Slack AsyncWebClient used for the reply

        Returns:
            The processing result, or None if the message was ignored
        """
        if is_automated_sender(event):
            return None

        attachments = detect_image_attachments(event)
        if not attachments:
            return None

        channel_id = event.get("channel")
        self.logger.info(
            f"Processing {len(attachments)} image(s) from {event.get('user')} in {channel_id}"
        )

        async with self.handler_slots:
            result = await self.pipeline.process_attachments(attachments)

        if not result.ok:
            self.logger.error(f"Message {event.get('ts')} in {channel_id} abandoned: {result.error}")
            return result

        if result.has_output:
            await self._send_reply(client, channel_id, event.get("thread_ts"), result.images)

        return result

    async def _send_reply(
        self, client, channel_id: str, thread_ts: Optional[str], images: List[bytes]
    ) -> bool:
        """Upload all crops as a single reply. Failures are logged, never posted."""
        file_uploads = [
            {"file": img, "filename": self.reply_filename} for img in images
        ]
        try:
            await client.files_upload_v2(
                channel=channel_id,
                thread_ts=thread_ts,
                file_uploads=file_uploads,
            )
            self.logger.info(f"Sent {len(images)} crop(s) to {channel_id}")
            return True
        except SlackApiError as e:
            self.logger.error(f"Failed to upload crops to {channel_id}: {e}")
            return False
        except Exception as e:
            self.logger.error(f"Unexpected error uploading crops to {channel_id}: {e}")
            return False

    async def run(self):
        """
        Main agent loop - starts Socket Mode handler (blocks indefinitely)
        """
        self.logger.info("Starting chair agent with Socket Mode...")

        try:
            await self._health_check()

            self.status.start()
            self.socket_handler = AsyncSocketModeHandler(self.app, self.app_token)

            self.logger.info("✅ Chair agent connected and ready")

            # This blocks forever, listening for events
            await self.socket_handler.start_async()

        except Exception as e:
            self.logger.error(f"Fatal error in chair agent: {e}", exc_info=True)
            raise

        finally:
            await self.status.stop()

    async def close(self):
        if self.socket_handler:
            await self.socket_handler.close_async()
            self.socket_handler = None

    async def _health_check(self):
        """Check that the bot token is valid"""
        try:
            auth_test = await self.app.client.auth_test()
            bot_name = auth_test.get("user", "Unknown")
            self.logger.info(f"✅ Slack auth OK (bot: {bot_name})")
        except SlackApiError as e:
            self.logger.error(f"❌ Slack auth failed: {e}")
            raise RuntimeError(f"Health check failed: Slack auth failed: {e}") from e


# Test mode
if __name__ == "__main__":
    configure_logging()

    config = {
        "font_path": os.getenv("CAPTION_FONT_PATH", "impact.ttf"),
        "max_concurrent_handlers": 2,
    }

    print("🚀 Starting chair agent in test mode...")
    print(f"   Font: {config['font_path']}")
    print("\nPress Ctrl+C to stop\n")

    agent = ChairAgent(config)

    try:
        asyncio.run(AgentPlatform(max_restarts=1).start_service(agent))
    except KeyboardInterrupt:
        print("\n👋 Chair agent stopped")
