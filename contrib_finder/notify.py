"""Desktop notifications (macOS, Linux, Windows)."""

from __future__ import annotations

import subprocess
import sys

from .errors import NotificationError

_WINDOWS_TOAST = """
[Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
[Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null
$xml = New-Object Windows.Data.Xml.Dom.XmlDocument
$xml.LoadXml('<toast><visual><binding template="ToastText02"><text id="1">{title}</text><text id="2">{message}</text></binding></visual></toast>')
$toast = New-Object Windows.UI.Notifications.ToastNotification $xml
[Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("Issue Finder").Show($toast)
"""


def _escape_applescript(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def notification_command(title: str, message: str, platform: str | None = None) -> list[str]:
    platform = platform or sys.platform
    if platform == "darwin":
        script = (
            f'display notification "{_escape_applescript(message)}" '
            f'with title "{_escape_applescript(title)}" sound name "Glass"'
        )
        return ["osascript", "-e", script]
    if platform.startswith("linux"):
        return ["notify-send", title, message]
    if platform == "win32":
        script = _WINDOWS_TOAST.format(
            title=title.replace("'", "''"), message=message.replace("'", "''"),
        )
        return ["powershell", "-Command", script]
    raise NotificationError(f"notifications not supported on {platform}")


def send_notification(title: str, message: str) -> None:
    cmd = notification_command(title, message)
    try:
        subprocess.run(cmd, check=True, capture_output=True, timeout=10)
    except (OSError, subprocess.SubprocessError) as e:
        raise NotificationError(f"{cmd[0]} failed: {e}") from e
