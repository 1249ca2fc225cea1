"""System tray application for PomoTrack.

Provides a pystray-based system tray icon with menu items for driving the
Pomodoro timer, viewing today's progress, opening the web dashboard, and
quitting.  The timer ticks on a background thread owned by the clock so the
tray icon remains responsive.
"""

import logging
import os
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional

from pomotrack.core.clock import SystemClock
from pomotrack.core.config import load_config
from pomotrack.core.models import Settings, StatsSnapshot
from pomotrack.core.pomodoro import PomodoroTimer
from pomotrack.core.session_log import SessionLog
from pomotrack.core.settings import validate_settings
from pomotrack.core.stats import StatsAggregator
from pomotrack.persistence.store import PomodoroStore
from pomotrack.platform.factory import create_notifier
from pomotrack.platform.notify import PystrayDisplay
from pomotrack.reporting.analytics import AnalyticsEngine
from pomotrack.reporting.formatter import TextFormatter

logger = logging.getLogger(__name__)

_MODE_COLORS = {
    "focus": (231, 76, 60),
    "shortBreak": (39, 174, 96),
    "longBreak": (52, 152, 219),
}


def _create_default_icon(mode: str = "focus"):
    """Create a round tray icon tinted for *mode*, or load from assets."""
    try:
        from PIL import Image, ImageDraw
    except ImportError:
        return None

    assets_dir = Path(__file__).resolve().parent.parent.parent / "assets"
    icon_path = assets_dir / f"icon-{mode}.png"
    if icon_path.exists():
        try:
            return Image.open(str(icon_path))
        except Exception:
            logger.debug("Could not load icon from %s, creating default", icon_path)

    img = Image.new("RGBA", (64, 64), color=(0, 0, 0, 0))
    draw = ImageDraw.Draw(img)
    draw.ellipse((4, 4, 60, 60), fill=_MODE_COLORS.get(mode, _MODE_COLORS["focus"]))
    return img


class PomoTrackApp:
    """Main application class that runs PomoTrack as a system tray app."""

    def __init__(self, config_path: str) -> None:
        self.config_path = config_path
        self.config = load_config(config_path)
        self.tray_icon = None
        self.timer: Optional[PomodoroTimer] = None
        self.analytics: Optional[AnalyticsEngine] = None
        self.session_log: Optional[SessionLog] = None
        self.stats: Optional[StatsAggregator] = None
        self._store: Optional[PomodoroStore] = None
        self._clock: Optional[SystemClock] = None
        self._display = PystrayDisplay()
        self._dashboard_url: Optional[str] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Initialize all components, start the dashboard, and display the tray icon."""
        self._init_components()
        self._start_dashboard()
        self._run_tray()

    def stop(self) -> None:
        """Stop the timer and clean up resources."""
        if self._clock is not None:
            self._clock.disarm()
        if self._store is not None:
            self._store.close()
            self._store = None
        if self.tray_icon is not None:
            try:
                self.tray_icon.stop()
            except Exception:
                logger.debug("Tray icon already stopped")
            self.tray_icon = None

    def show_today(self) -> None:
        """Display today's progress in a popup window."""
        if self.analytics is None:
            logger.warning("Analytics not initialized")
            return
        try:
            text = TextFormatter.format_progress("Today", self.analytics.today_stats())
            text += TextFormatter.format_progress("This week", self.analytics.week_stats())
            self._show_popup("Today's Progress", text)
        except Exception:
            logger.exception("Failed to build today's progress")

    def export_data(self) -> dict[str, Any]:
        return self._store.export_data()

    def import_data(self, data: Any) -> dict[str, Any]:
        """Import a data bundle and reload every component from the store."""
        result = self._store.import_data(data)
        if result.get("success"):
            self._reload_from_store()
        return result

    def reset_settings(self) -> Settings:
        """Restore default timer settings."""
        self.timer.update_settings(Settings())
        return self.timer.settings

    # ------------------------------------------------------------------
    # Component initialization
    # ------------------------------------------------------------------

    def _init_components(self) -> None:
        """Wire up all PomoTrack components from config."""
        db_path = os.path.expanduser(self.config.get("database_path", "~/.pomotrack/pomotrack.db"))
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
        self._store = PomodoroStore(db_path)
        self._store.init_db()

        self.session_log = SessionLog(self._store)
        self.session_log.load()
        self.stats = StatsAggregator(self._store)
        self.stats.load()

        self._clock = SystemClock()
        self.timer = PomodoroTimer(
            settings=self._load_settings(),
            clock=self._clock,
            session_log=self.session_log,
            stats=self.stats,
            store=self._store,
            notifier=create_notifier(),
            tray=self._display,
        )
        self.timer.subscribe(self._on_timer_event)
        self.analytics = AnalyticsEngine(self.session_log, self.stats, self._clock)

    def _load_settings(self) -> Settings:
        try:
            stored = self._store.load_settings()
        except Exception:
            logger.exception("Failed to load settings; using defaults")
            return Settings()
        if not stored:
            return Settings()
        settings, _errors = validate_settings(stored)
        return settings

    def _reload_from_store(self) -> None:
        self.timer.reset()
        self.timer.update_settings(self._load_settings())
        stored_stats = self._store.load_stats()
        self.stats.replace(StatsSnapshot.from_dict(stored_stats) if stored_stats else StatsSnapshot())
        self.session_log.replace(self._store.load_history())

    # ------------------------------------------------------------------
    # System tray
    # ------------------------------------------------------------------

    def _on_timer_event(self, event: str, payload: Any) -> None:
        if event == "state_changed" and self.tray_icon is not None:
            icon = _create_default_icon(self.timer.mode.value)
            if icon is not None:
                self.tray_icon.icon = icon

    def _run_tray(self) -> None:
        """Create and run the pystray system tray icon."""
        try:
            import pystray
            from pystray import MenuItem, Menu
        except ImportError:
            logger.warning(
                "pystray not available; running without system tray. "
                "Install pystray for tray icon support."
            )
            return

        icon_image = _create_default_icon()
        if icon_image is None:
            logger.warning("Could not create tray icon image; skipping tray")
            return

        def _toggle_label(item):
            if self.timer.running and not self.timer.paused:
                return "Pause"
            return "Resume" if self.timer.paused else "Start"

        menu = Menu(
            MenuItem(_toggle_label, lambda: self.timer.toggle(), default=True),
            MenuItem("Reset", lambda: self.timer.reset()),
            Menu.SEPARATOR,
            MenuItem("Today", lambda: self.show_today()),
            MenuItem("Dashboard", lambda: self._open_dashboard()),
            Menu.SEPARATOR,
            MenuItem("Quit", lambda: self._quit()),
        )

        self.tray_icon = pystray.Icon("PomoTrack", icon_image, "PomoTrack", menu)
        self._display.icon = self.tray_icon
        self.timer.notifier = create_notifier(self.tray_icon)
        self._display.update(self.timer.tray_status())
        self.tray_icon.run()

    def _quit(self) -> None:
        """Quit the application cleanly."""
        self.stop()

    # ------------------------------------------------------------------
    # Web dashboard
    # ------------------------------------------------------------------

    def _start_dashboard(self) -> None:
        """Start the web dashboard in a background thread."""
        dashboard = self.config.get("dashboard", {})
        if not dashboard.get("enabled", True):
            logger.info("Dashboard disabled in config")
            return
        host = dashboard.get("host", "127.0.0.1")
        port = int(dashboard.get("port", 5566))
        try:
            from pomotrack.ui.web import start_dashboard
            start_dashboard(self, host=host, port=port)
            self._dashboard_url = f"http://{host}:{port}"
        except Exception:
            logger.exception("Failed to start web dashboard")

    def _open_dashboard(self) -> None:
        """Open the dashboard in the default browser."""
        if self._dashboard_url is None:
            logger.warning("Dashboard is not running")
            return
        opener = "open" if sys.platform == "darwin" else "xdg-open"
        try:
            subprocess.Popen([opener, self._dashboard_url])
        except Exception:
            logger.exception("Failed to open dashboard")

    # ------------------------------------------------------------------
    # UI helpers
    # ------------------------------------------------------------------

    def _show_popup(self, title: str, message: str) -> None:
        """Show a popup with the given message using native macOS dialogs."""
        if sys.platform == "darwin":
            self._osascript_display(title, message)
        else:
            logger.info("%s:\n%s", title, message)

    def _osascript_display(self, title: str, message: str) -> None:
        """Display text via a native macOS dialog."""
        escaped = message.replace("\\", "\\\\").replace('"', '\\"')
        script = (
            f'display dialog "{escaped}" '
            f'with title "{title}" '
            f'buttons {{"OK"}} default button "OK"'
        )
        try:
            subprocess.Popen(
                ["osascript", "-e", script],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except Exception:
            logger.info("%s:\n%s", title, message)
