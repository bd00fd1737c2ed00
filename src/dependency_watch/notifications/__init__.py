"""Notification delivery for newly available versions.

Every notification goes to the console; each configured channel gets a copy:
- "desktop": OS-native popup (macOS / Linux / Windows)
- "ntfy": push notification via ntfy.sh (free, zero-signup)
- "slack": Slack incoming webhook
- "discord": Discord incoming webhook
- "webhook": generic HTTP POST (JSON payload, IFTTT-compatible)
"""

from __future__ import annotations

__all__ = ["NotificationDispatcher", "Notifier"]

import logging

from ..config import NotificationsConfig
from ..models import Coordinate
from .base import Notifier
from .console import ConsoleNotifier
from .desktop import DesktopNotifier
from .discord import DiscordWebhookNotifier
from .ntfy import NtfyNotifier
from .slack import SlackWebhookNotifier
from .webhook import WebhookNotifier

logger = logging.getLogger("dependency-watch")


class NotificationDispatcher(Notifier):
    """Fans one coordinate out to the console plus every configured channel.

    Channel failures are logged by the channel itself and never raised, so a
    dead webhook cannot stop the console line or the other channels.
    """

    def __init__(self, config: NotificationsConfig | None = None, console: bool = True):
        self._config = config or NotificationsConfig()
        self._console = ConsoleNotifier(enabled=console)
        self._desktop = DesktopNotifier() if self._config.desktop_enabled else None
        self._ntfy = NtfyNotifier(
            default_topic=self._config.ntfy_topic,
            server_url=self._config.ntfy_server_url,
        )
        self._slack = SlackWebhookNotifier(
            default_webhook_url=self._config.slack_webhook_url,
        )
        self._discord = DiscordWebhookNotifier(
            default_webhook_url=self._config.discord_webhook_url,
        )
        self._webhook = WebhookNotifier(
            default_url=self._config.webhook_url,
        )

    @property
    def channels(self) -> list[str]:
        """Names of the channels a notification will reach."""
        names = ["console"] if self._console.enabled else []
        if self._desktop:
            names.append("desktop")
        if self._config.ntfy_topic:
            names.append("ntfy")
        if self._config.slack_webhook_url:
            names.append("slack")
        if self._config.discord_webhook_url:
            names.append("discord")
        if self._config.webhook_url:
            names.append("webhook")
        return names

    async def notify(self, coordinate: Coordinate) -> None:
        logger.debug(f"Dispatching {coordinate} to {', '.join(self.channels)}")
        self._console.notify(coordinate)
        if self._desktop:
            self._desktop.notify(
                f"{coordinate.artifact} {coordinate.version} is available",
                str(coordinate),
            )
        if self._config.ntfy_topic:
            await self._ntfy.notify(coordinate)
        if self._config.slack_webhook_url:
            await self._slack.notify(coordinate)
        if self._config.discord_webhook_url:
            await self._discord.notify(coordinate)
        if self._config.webhook_url:
            await self._webhook.notify(coordinate)

    async def close(self) -> None:
        """Clean up resources."""
        await self._ntfy.close()
        await self._slack.close()
        await self._discord.close()
        await self._webhook.close()
