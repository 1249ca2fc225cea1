"""Factory for creating the appropriate Notifier for the current OS."""

import shutil
import sys
from typing import Any, Optional

from pomotrack.platform.base import Notifier
from pomotrack.platform.notify import (
    CommandNotifier,
    FallbackNotifier,
    LogNotifier,
    TrayNotifier,
)


def create_notifier(tray_icon: Optional[Any] = None) -> Notifier:
    """Build the notifier chain for the current platform.

    The tray icon is preferred when given, then the OS notification
    command when it is installed, and the log always comes last so a
    notification is never lost silently.

    Args:
        tray_icon: A running ``pystray.Icon``, or ``None`` when headless.

    Returns:
        A Notifier that delivers through the best available channel.
    """
    chain: list[Notifier] = []
    if tray_icon is not None:
        chain.append(TrayNotifier(tray_icon))

    command = "osascript" if sys.platform == "darwin" else "notify-send"
    if sys.platform != "win32" and shutil.which(command):
        chain.append(CommandNotifier(sys.platform))

    chain.append(LogNotifier())
    if len(chain) == 1:
        return chain[0]
    return FallbackNotifier(*chain)
