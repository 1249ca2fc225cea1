"""Pomodoro timer for PomoTrack.

Runs the focus → short break → long break cycle.  The timer owns all
countdown state, records every naturally finished session in the
:class:`SessionLog`, feeds focus completions to the
:class:`StatsAggregator` and publishes events to subscribed listeners.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Mapping, Optional, Union

from pomotrack.core.clock import Cancellable, Clock
from pomotrack.core.models import (
    ModeInfo,
    SessionRecord,
    Settings,
    TimerMode,
    TimerState,
    TrayStatus,
)
from pomotrack.core.session_log import SessionLog
from pomotrack.core.settings import validate_settings
from pomotrack.core.stats import StatsAggregator
from pomotrack.persistence.base import PersistenceGateway
from pomotrack.platform.base import Notifier, TrayDisplay

logger = logging.getLogger(__name__)

Listener = Callable[[str, Any], None]

_MODE_LABELS = {
    TimerMode.FOCUS: ("🎯", "Focus"),
    TimerMode.SHORT_BREAK: ("☕", "Break"),
    TimerMode.LONG_BREAK: ("🌟", "Long Break"),
}


class PomodoroTimer:
    """Session state machine driven by a :class:`Clock`.

    Events published to listeners (``listener(event, payload)``):

    - ``'tick'``: one second elapsed; payload is the :class:`TimerState`
    - ``'session_completed'``: payload is the appended :class:`SessionRecord`
    - ``'state_changed'``: payload is the :class:`TimerState`

    Public methods may be called from any thread; they are serialised by
    an internal lock.
    """

    TICK_INTERVAL = 1.0
    AUTO_START_DELAY = 2.0

    def __init__(
        self,
        settings: Settings,
        clock: Clock,
        session_log: SessionLog,
        stats: StatsAggregator,
        store: Optional[PersistenceGateway] = None,
        notifier: Optional[Notifier] = None,
        tray: Optional[TrayDisplay] = None,
    ) -> None:
        self.settings = settings
        self.clock = clock
        self.session_log = session_log
        self.stats = stats
        self.store = store
        self.notifier = notifier
        self.tray = tray

        self.mode = TimerMode.FOCUS
        self.session_index = 1
        self.time_left = settings.focus_time * 60
        self.total_time = settings.focus_time * 60
        self.running = False
        self.paused = False
        self.interruptions = 0
        self.session_start: Optional[datetime] = None

        self._lock = threading.RLock()
        self._listeners: list[Listener] = []
        self._generation = 0  # bumped on every arm/disarm; stale ticks are ignored
        self._auto_start: Optional[Cancellable] = None

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _publish(self, event: str, payload: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception:
                logger.exception("Listener failed while handling %r", event)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start an idle session or resume a paused one.

        Starting a timer that is already counting down does nothing.
        """
        with self._lock:
            self._cancel_auto_start()
            self._start()

    def _start(self) -> None:
        if self.running and not self.paused:
            return
        if self.paused:
            self.paused = False
        else:
            self.running = True
            self.session_start = self.clock.now()

        self._arm()
        self._update_tray()
        self._publish("state_changed", self.state)

    def pause(self) -> None:
        """Pause a running countdown. Counts as one interruption."""
        with self._lock:
            self._cancel_auto_start()
            if not self.running or self.paused:
                return
            self.paused = True
            self.interruptions += 1
            self._disarm()
            self._update_tray()
            self._publish("state_changed", self.state)

    def toggle(self) -> None:
        with self._lock:
            if self.running and not self.paused:
                self.pause()
            else:
                self.start()

    def reset(self) -> None:
        """Abandon the current session and return to the first focus session.

        Nothing is written to the session log.
        """
        with self._lock:
            self._cancel_auto_start()
            self._disarm()
            self.running = False
            self.paused = False
            self.interruptions = 0
            self.session_index = 1
            self.mode = TimerMode.FOCUS
            self.time_left = self.total_time = self.settings.focus_time * 60
            self.session_start = None

            self._update_tray()
            self._publish("state_changed", self.state)

    def update_settings(self, new_settings: Union[Settings, Mapping[str, Any]]) -> list[str]:
        """Apply new settings and persist them.

        A mapping or a whole :class:`Settings` is merged over the current
        settings; invalid fields are dropped and reported in the returned
        error list.  An idle timer picks up the new duration of its current
        mode immediately.
        """
        with self._lock:
            if isinstance(new_settings, Settings):
                new_settings = new_settings.to_dict()
            self.settings, errors = validate_settings(new_settings, base=self.settings)

            if self.store is not None:
                try:
                    self.store.save_settings(self.settings)
                except Exception:
                    logger.exception("Failed to save settings")

            if not self.running:
                self.time_left = self.total_time = self.settings.duration_for(self.mode) * 60

            self._update_tray()
            self._publish("state_changed", self.state)
            return errors

    # ------------------------------------------------------------------
    # Ticking and completion
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        self._generation += 1
        generation = self._generation
        self.clock.arm(self.TICK_INTERVAL, lambda: self._tick(generation))

    def _disarm(self) -> None:
        self._generation += 1
        self.clock.disarm()

    def _tick(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation or not self.running or self.paused:
                return
            try:
                self.time_left = max(self.time_left - 1, 0)
                self._update_tray()
                self._publish("tick", self.state)
                if self.time_left <= 0:
                    self.complete_session()
            except Exception:
                logger.exception("Unexpected error while ticking")

    def complete_session(self) -> SessionRecord:
        """Close the current session, record it and move to the next mode."""
        with self._lock:
            self._disarm()
            self.running = False
            self.paused = False

            now = self.clock.now()
            completed = self.time_left <= 0
            record = self.session_log.append(
                SessionRecord(
                    date=now.date().isoformat(),
                    type=self.mode,
                    duration=(self.total_time - self.time_left) // 60,
                    completed=completed,
                    interruptions=self.interruptions,
                    start_time=self.session_start,
                    timestamp=now,
                )
            )

            if self.mode == TimerMode.FOCUS and completed:
                self.stats.record_focus_session(self.settings.focus_time)

            self._notify_completion()
            self.transition_to_next_session()

            self._publish("session_completed", record)
            self._publish("state_changed", self.state)
            return record

    def transition_to_next_session(self) -> None:
        """Advance the mode after a session ends."""
        with self._lock:
            if self.mode == TimerMode.FOCUS:
                if self.session_index % self.settings.sessions_before_long_break == 0:
                    self.mode = TimerMode.LONG_BREAK
                else:
                    self.mode = TimerMode.SHORT_BREAK
                auto_start = self.settings.auto_start_breaks
            else:
                if self.mode == TimerMode.LONG_BREAK:
                    self.session_index = 1
                else:
                    self.session_index += 1
                self.mode = TimerMode.FOCUS
                auto_start = self.settings.auto_start_pomodoros

            self.time_left = self.total_time = self.settings.duration_for(self.mode) * 60
            self.interruptions = 0
            self.session_start = None

            if auto_start:
                self._schedule_auto_start()
            self._update_tray()

    def _schedule_auto_start(self) -> None:
        self._cancel_auto_start()
        self._auto_start = self.clock.call_later(self.AUTO_START_DELAY, self._run_auto_start)

    def _run_auto_start(self) -> None:
        with self._lock:
            self._auto_start = None
            self._start()

    def _cancel_auto_start(self) -> None:
        if self._auto_start is not None:
            self._auto_start.cancel()
            self._auto_start = None

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _notify_completion(self) -> None:
        if not self.settings.notifications_enabled or self.notifier is None:
            return

        if self.mode == TimerMode.FOCUS:
            title = "🎯 Focus Session Complete!"
            body = (
                f"Great work! You completed a {self.settings.focus_time}-minute "
                "focus session. Time for a break!"
            )
        elif self.mode == TimerMode.SHORT_BREAK:
            title = "☕ Short Break Complete!"
            body = "Break time is over. Ready for your next focus session?"
        else:
            title = "🌟 Long Break Complete!"
            body = "Long break finished! Time to start a new cycle of focus sessions."

        try:
            self.notifier.notify(title, body, urgent=True, silent=not self.settings.sound_enabled)
        except Exception:
            logger.exception("Failed to show notification")

    def _update_tray(self) -> None:
        if self.tray is None:
            return
        try:
            self.tray.update(self.tray_status())
        except Exception:
            logger.exception("Failed to update tray")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def state(self) -> TimerState:
        return TimerState(
            mode=self.mode,
            session_index=self.session_index,
            time_left=self.time_left,
            total_time=self.total_time,
            running=self.running,
            paused=self.paused,
            interruptions=self.interruptions,
            session_start=self.session_start,
        )

    @property
    def auto_start_pending(self) -> bool:
        return self._auto_start is not None

    def formatted_time(self) -> str:
        """Remaining time as ``MM:SS``."""
        minutes, seconds = divmod(self.time_left, 60)
        return f"{minutes:02d}:{seconds:02d}"

    def progress_percent(self) -> float:
        if self.total_time <= 0:
            return 0.0
        elapsed = self.total_time - self.time_left
        return min(max(elapsed / self.total_time * 100, 0.0), 100.0)

    def mode_info(self) -> ModeInfo:
        if self.mode == TimerMode.FOCUS:
            return ModeInfo(
                icon="🎯",
                title="Focus Session",
                class_name="focus-mode",
                description=f"Session {self.session_index} of {self.settings.sessions_before_long_break}",
            )
        if self.mode == TimerMode.SHORT_BREAK:
            return ModeInfo("☕", "Short Break", "break-mode", "Take a short break!")
        return ModeInfo("🌟", "Long Break", "long-break-mode", "Enjoy your long break!")

    def tray_status(self) -> TrayStatus:
        icon, label = _MODE_LABELS[self.mode]
        status = "Running" if self.running and not self.paused else "Paused"
        title = self.formatted_time() if self.running or self.paused else ""
        return TrayStatus(title=title, tooltip=f"Pomodoro Timer - {icon} {label} - {status}")
