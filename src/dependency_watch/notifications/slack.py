"""Slack incoming webhook notification delivery.

Setup:
1. In your Slack workspace → Apps → Incoming Webhooks → Add to Slack
2. Choose a channel, copy the webhook URL
3. Set SLACK_WEBHOOK_URL env var (or ``notifications.slack_webhook_url``)
"""

from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from ..models import Coordinate

logger = logging.getLogger("dependency-watch")


class SlackWebhookNotifier:
    """Post a Block Kit message per available version."""

    def __init__(self, default_webhook_url: str = ""):
        self._default_url = default_webhook_url
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=15)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _build_blocks(self, coordinate: Coordinate) -> list[dict]:
        return [
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": (
                        f":package: *{coordinate.artifact} {coordinate.version}* "
                        f"is available\n`{coordinate}`"
                    ),
                },
            },
            {
                "type": "context",
                "elements": [{"type": "mrkdwn", "text": f"dependency-watch | {coordinate.group}"}],
            },
        ]

    async def notify(self, coordinate: Coordinate, webhook_url: str = "") -> bool:
        """Send to Slack. Returns True on success."""
        url = webhook_url or self._default_url
        if not url:
            return False

        session = self._get_session()
        payload = {
            "blocks": self._build_blocks(coordinate),
            "text": f"{coordinate} is available",  # Fallback for clients without blocks
        }

        try:
            async with session.post(url, json=payload) as resp:
                ok = resp.status < 400

            if ok:
                logger.info(f"Slack sent: {coordinate}")
            else:
                logger.warning(f"Slack webhook failed: HTTP {resp.status}")
            return ok

        except Exception as e:
            logger.warning(f"Slack error: {e}")
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
