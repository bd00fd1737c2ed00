"""Discord webhook notification delivery.

Setup:
1. In your Discord server → Settings → Integrations → Webhooks → New Webhook
2. Copy the webhook URL (https://discord.com/api/webhooks/{id}/{token})
3. Set DISCORD_WEBHOOK_URL env var (or ``notifications.discord_webhook_url``)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

import aiohttp

from ..models import Coordinate

logger = logging.getLogger("dependency-watch")

_EMBED_COLOR = 0x2ECC71  # green


class DiscordWebhookNotifier:
    """Post an embed per available version."""

    def __init__(self, default_webhook_url: str = ""):
        self._default_url = default_webhook_url
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=15)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _build_embed(self, coordinate: Coordinate) -> dict:
        return {
            "title": f"{coordinate.artifact} {coordinate.version} is available",
            "description": f"`{coordinate}`",
            "color": _EMBED_COLOR,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "footer": {"text": f"dependency-watch | {coordinate.group}"},
        }

    async def notify(self, coordinate: Coordinate, webhook_url: str = "") -> bool:
        """Send to Discord. Returns True on success."""
        url = webhook_url or self._default_url
        if not url:
            return False

        session = self._get_session()
        payload = {"embeds": [self._build_embed(coordinate)]}

        try:
            async with session.post(url, json=payload) as resp:
                ok = resp.status < 400

            if ok:
                logger.info(f"Discord sent: {coordinate}")
            else:
                logger.warning(f"Discord webhook failed: HTTP {resp.status}")
            return ok

        except Exception as e:
            logger.warning(f"Discord error: {e}")
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
