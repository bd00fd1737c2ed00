"""ntfy.sh push notification delivery.

ntfy is a free, zero-signup push notification service. Subscribe to a topic
in the ntfy app and every newly published version arrives as a push.

Docs: https://docs.ntfy.sh/
"""

from __future__ import annotations

import logging
from typing import Optional

import aiohttp

from ..models import Coordinate

logger = logging.getLogger("dependency-watch")


class NtfyNotifier:
    """Push notifications via ntfy.sh (or self-hosted ntfy)."""

    def __init__(
        self,
        default_topic: str = "",
        server_url: str = "https://ntfy.sh",
    ):
        self._default_topic = default_topic
        self._server_url = server_url.rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=15)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def notify(self, coordinate: Coordinate, topic: str | None = None) -> bool:
        """POST a text message to the topic. Returns True on success."""
        target_topic = topic or self._default_topic
        if not target_topic:
            return False

        url = f"{self._server_url}/{target_topic}"
        headers = {
            "Title": f"{coordinate.artifact} {coordinate.version} is available",
            "Tags": "package",
        }
        message = str(coordinate)

        session = self._get_session()
        try:
            async with session.post(url, data=message.encode(), headers=headers) as resp:
                ok = resp.status < 400
            if ok:
                logger.info(f"ntfy sent: {coordinate}")
            else:
                logger.warning(f"ntfy failed: HTTP {resp.status}")
            return ok
        except Exception as e:
            logger.warning(f"ntfy error: {e}")
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
