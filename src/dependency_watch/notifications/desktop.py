"""Desktop notifications via OS-native commands.

- macOS: terminal-notifier when installed, osascript otherwise
- Linux: notify-send (libnotify)
- Windows: PowerShell toast (best-effort)

No pip dependencies required.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys

logger = logging.getLogger("dependency-watch")

_APP_NAME = "dependency-watch"


class DesktopNotifier:
    """Fire-and-forget desktop popups. Never raises."""

    def __init__(self) -> None:
        self._platform = sys.platform
        self._has_terminal_notifier = (
            self._platform == "darwin"
            and shutil.which("terminal-notifier") is not None
        )

    def notify(self, title: str, body: str) -> bool:
        """Returns True if a notification command was launched."""
        try:
            if self._platform == "darwin":
                self._notify_macos(title, body)
            elif self._platform == "linux":
                self._notify_linux(title, body)
            elif self._platform == "win32":
                self._notify_windows(title, body)
            else:
                logger.debug(f"Desktop notifications unsupported on {self._platform}")
                return False
            logger.debug(f"Desktop notification: {title}")
            return True
        except Exception as e:
            logger.warning(f"Desktop notification error: {e}")
            return False

    def _notify_macos(self, title: str, body: str) -> None:
        if self._has_terminal_notifier:
            cmd = [
                "terminal-notifier",
                "-title", title,
                "-message", body,
                "-group", _APP_NAME,
            ]
        else:
            script = (
                f'display notification "{_escape(body)}" '
                f'with title "{_escape(title)}"'
            )
            cmd = ["osascript", "-e", script]
        subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)

    def _notify_linux(self, title: str, body: str) -> None:
        subprocess.Popen(
            ["notify-send", f"--app-name={_APP_NAME}", title, body],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )

    def _notify_windows(self, title: str, body: str) -> None:
        ps_script = (
            "[Windows.UI.Notifications.ToastNotificationManager, "
            "Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null; "
            "$xml = [Windows.UI.Notifications.ToastNotificationManager]::"
            "GetTemplateContent([Windows.UI.Notifications.ToastTemplateType]::ToastText02); "
            "$texts = $xml.GetElementsByTagName('text'); "
            f"$texts[0].AppendChild($xml.CreateTextNode('{_escape(title)}')) | Out-Null; "
            f"$texts[1].AppendChild($xml.CreateTextNode('{_escape(body)}')) | Out-Null; "
            "[Windows.UI.Notifications.ToastNotificationManager]::"
            f"CreateToastNotifier('{_APP_NAME}').Show("
            "[Windows.UI.Notifications.ToastNotification]::new($xml))"
        )
        subprocess.Popen(
            ["powershell", "-Command", ps_script],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


def _escape(text: str) -> str:
    """Escape quotes and backslashes for shell embedding."""
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("'", "\\'")
