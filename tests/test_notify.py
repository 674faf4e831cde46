import pytest

from contrib_finder.errors import NotificationError
from contrib_finder.notify import notification_command


class TestNotificationCommand:
    def test_macos(self):
        cmd = notification_command("Title", 'Say "hi"', platform="darwin")
        assert cmd[:2] == ["osascript", "-e"]
        assert 'Say \\"hi\\"' in cmd[2]

    def test_linux(self):
        assert notification_command("T", "M", platform="linux") == ["notify-send", "T", "M"]

    def test_windows(self):
        cmd = notification_command("T", "It's done", platform="win32")
        assert cmd[0] == "powershell"
        assert "It''s done" in cmd[2]

    def test_unsupported(self):
        with pytest.raises(NotificationError):
            notification_command("T", "M", platform="sunos5")
