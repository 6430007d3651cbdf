"""
Periodic status refresh for the bot user.

Runs as its own asyncio task, independent of message handling.
"""

import asyncio
import logging
from typing import Optional

from slack_sdk.errors import SlackApiError
from slack_sdk.web.async_client import AsyncWebClient

logger = logging.getLogger(__name__)


DEFAULT_STATUS_TEXT = "\U0001FA91"
DEFAULT_STATUS_EMOJI = ":chair:"
DEFAULT_INTERVAL_SECONDS = 20.0

# Rejections that repeat on every call until the token or app scopes change
PERMANENT_ERRORS = frozenset(
    {
        "not_allowed_token_type",
        "missing_scope",
        "not_authed",
        "invalid_auth",
        "account_inactive",
    }
)


class StatusUpdater:
    """
    Keep the bot's profile status set on a fixed interval.

    Slack only accepts users.profile.set from a user token with the
    users.profile:write scope. A permanent rejection is logged once and
    ends the loop; transient failures are retried on the next tick.
    """

    def __init__(
        self,
        client: AsyncWebClient,
        text: str = DEFAULT_STATUS_TEXT,
        emoji: str = DEFAULT_STATUS_EMOJI,
        interval: float = DEFAULT_INTERVAL_SECONDS,
    ):
        self.client = client
        self.text = text
        self.emoji = emoji
        self.interval = interval
        self.disabled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def update_once(self) -> bool:
        """
        Set the status once.

        Returns:
            True if Slack accepted the update, False otherwise
        """
        try:
            await self.client.users_profile_set(
                profile={"status_text": self.text, "status_emoji": self.emoji}
            )
            return True
        except SlackApiError as e:
            error = e.response.get("error", "")
            if error in PERMANENT_ERRORS:
                logger.warning(f"Status updates disabled, Slack rejected the token: {error}")
                self.disabled = True
            else:
                logger.warning(f"Status update rejected: {error or e}")
        except Exception as e:
            logger.warning(f"Status update failed: {e}")
        return False

    async def _loop(self):
        while True:
            await self.update_once()
            if self.disabled:
                return
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Start the refresh loop in the background (no-op if already running)."""
        if self.running:
            return
        logger.info(f"Starting status loop (every {self.interval:.0f}s)")
        self._task = asyncio.create_task(self._loop())

    async def stop(self) -> None:
        """Cancel the refresh loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
