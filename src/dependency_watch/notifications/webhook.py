"""Generic webhook notification delivery.

POSTs a JSON payload to any URL when a version becomes available. The
payload carries ``value1``..``value3`` (group, artifact, version) so an IFTTT
Maker webhook URL works without extra glue; anything else can read the named
fields.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import aiohttp

from ..models import Coordinate

logger = logging.getLogger("dependency-watch")


class WebhookNotifier:
    """POST structured JSON to a URL."""

    def __init__(self, default_url: str = ""):
        self._default_url = default_url
        self._session: aiohttp.ClientSession | None = None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            timeout = aiohttp.ClientTimeout(total=15)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _build_payload(self, coordinate: Coordinate) -> dict:
        return {
            "event": "artifact_available",
            "coordinate": str(coordinate),
            "group": coordinate.group,
            "artifact": coordinate.artifact,
            "version": coordinate.version,
            "value1": coordinate.group,
            "value2": coordinate.artifact,
            "value3": coordinate.version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    async def notify(self, coordinate: Coordinate, url: str = "") -> bool:
        """POST the payload. Returns True on success."""
        target_url = url or self._default_url
        if not target_url:
            return False

        session = self._get_session()
        payload = self._build_payload(coordinate)

        try:
            async with session.post(target_url, json=payload) as resp:
                ok = resp.status < 400

            if ok:
                logger.info(f"Webhook sent: {coordinate} → {target_url}")
            else:
                logger.warning(f"Webhook failed: HTTP {resp.status} → {target_url}")
            return ok

        except Exception as e:
            logger.warning(f"Webhook error: {e}")
            return False

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session:
            await self._session.close()
            self._session = None
