"""Desktop notification and tray display gateways.

``TrayNotifier`` posts through the running pystray icon.  Where the tray
backend cannot show balloons, ``CommandNotifier`` shells out to the
platform's notification command.  ``LogNotifier`` is the headless fallback.
"""

import logging
import subprocess
import sys
from typing import Any, Optional

from pomotrack.core.models import TrayStatus
from pomotrack.platform.base import Notifier, TrayDisplay

logger = logging.getLogger(__name__)


class TrayNotifier(Notifier):
    """Shows notifications through ``pystray.Icon.notify``."""

    def __init__(self, icon: Any) -> None:
        self.icon = icon

    def notify(self, title: str, body: str, urgent: bool = False, silent: bool = False) -> None:
        if not getattr(self.icon, "HAS_NOTIFICATION", True):
            raise RuntimeError("Tray backend does not support notifications")
        self.icon.notify(body, title)


class CommandNotifier(Notifier):
    """Shows notifications via ``osascript`` on macOS or ``notify-send`` elsewhere."""

    def __init__(self, platform: str = sys.platform) -> None:
        self.platform = platform

    def build_command(self, title: str, body: str, urgent: bool, silent: bool) -> list[str]:
        if self.platform == "darwin":
            escaped_title = title.replace("\\", "\\\\").replace('"', '\\"')
            escaped_body = body.replace("\\", "\\\\").replace('"', '\\"')
            script = f'display notification "{escaped_body}" with title "{escaped_title}"'
            if not silent:
                script += ' sound name "Glass"'
            return ["osascript", "-e", script]

        command = ["notify-send", "--app-name=PomoTrack"]
        if urgent:
            command.append("--urgency=critical")
        command.extend([title, body])
        return command

    def notify(self, title: str, body: str, urgent: bool = False, silent: bool = False) -> None:
        subprocess.Popen(
            self.build_command(title, body, urgent, silent),
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )


class LogNotifier(Notifier):
    """Writes notifications to the log."""

    def notify(self, title: str, body: str, urgent: bool = False, silent: bool = False) -> None:
        logger.info("%s: %s", title, body)


class FallbackNotifier(Notifier):
    """Tries each notifier in turn until one succeeds.

    Failures of all but the last are logged at debug level; the last
    failure propagates to the caller.
    """

    def __init__(self, *notifiers: Notifier) -> None:
        if not notifiers:
            raise ValueError("FallbackNotifier needs at least one notifier")
        self.notifiers = list(notifiers)

    def notify(self, title: str, body: str, urgent: bool = False, silent: bool = False) -> None:
        for notifier in self.notifiers[:-1]:
            try:
                notifier.notify(title, body, urgent=urgent, silent=silent)
                return
            except Exception as exc:
                logger.debug("%s failed (%s), trying next", type(notifier).__name__, exc)
        self.notifiers[-1].notify(title, body, urgent=urgent, silent=silent)


class PystrayDisplay(TrayDisplay):
    """Mirrors the timer status onto a pystray icon.

    pystray has no separate title next to the icon, so the countdown is
    prepended to the tooltip text when present.
    """

    def __init__(self, icon: Any = None) -> None:
        self.icon = icon
        self.last_status: Optional[TrayStatus] = None

    def update(self, status: TrayStatus) -> None:
        self.last_status = status
        if self.icon is None:
            return
        self.icon.title = f"{status.title} {status.tooltip}" if status.title else status.tooltip
