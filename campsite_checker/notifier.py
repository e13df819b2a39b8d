import platform
import subprocess
import sys
from typing import List, Optional
import requests
from loguru import logger

class Notifier:
    """Best-effort alerts when sites turn up.

    Every channel swallows its own failures: a missing ``notify-send`` or an
    unreachable webhook must never interrupt the polling loop.
    """

    def __init__(self, enable_desktop: bool = False, webhook_url: Optional[str] = None,
                 timeout_seconds: int = 10):
        self.enable_desktop = enable_desktop
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def desktop_command(title: str, message: str, system: str = None) -> Optional[List[str]]:
        """Command line that shows a notification on this platform, if any."""
        system = system or platform.system()
        if system == "Darwin":
            safe_title = title.replace('"', '\\"')
            safe_message = message.replace('"', '\\"')
            script = f'display notification "{safe_message}" with title "{safe_title}"'
            return ["osascript", "-e", script]
        elif system == "Linux":
            return ["notify-send", title, message]
        elif system == "Windows":
            return ["msg", "*", f"{title}: {message}"]
        return None

    def send_desktop_notification(self, title: str, message: str) -> bool:
        """Send a desktop notification."""
        if not self.enable_desktop:
            return False

        command = self.desktop_command(title, message)
        if command is None:
            logger.debug(f"Desktop notifications not supported on {platform.system()}")
            return False

        try:
            subprocess.run(command, check=True, capture_output=True, timeout=self.timeout_seconds)
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Desktop notification failed: {e}")
            return False

    def send_webhook(self, title: str, message: str) -> bool:
        """POST the alert as JSON to the configured webhook."""
        if not self.webhook_url:
            return False

        try:
            response = requests.post(
                self.webhook_url,
                json={"title": title, "message": message},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.debug(f"Webhook notification failed: {e}")
            return False

    @staticmethod
    def bell():
        """Audible cue in the terminal."""
        sys.stdout.write('\a')
        sys.stdout.flush()

    def notify(self, title: str, message: str):
        """Send through every enabled channel, then ring the bell."""
        self.send_desktop_notification(title, message)
        self.send_webhook(title, message)
        self.bell()
