"""Clock and ticker abstraction used by the Pomodoro timer.

A :class:`Clock` supplies the current time, a single repeating ticker
(``arm``/``disarm``) and one-shot deferred calls (``call_later``).

- :class:`SystemClock` drives the ticker from a daemon thread and deferred
  calls from ``threading.Timer``.
- :class:`ManualClock` keeps virtual time that only moves when
  :meth:`ManualClock.advance` is called, so countdowns can be exercised
  deterministically.
"""

import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class Cancellable(ABC):
    """Handle for a deferred call."""

    @abstractmethod
    def cancel(self) -> None:
        pass


class Clock(ABC):
    """Time source plus at most one repeating ticker."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current local time."""
        pass

    @abstractmethod
    def arm(self, interval: float, on_tick: Callable[[], None]) -> None:
        """Call *on_tick* every *interval* seconds until disarmed.

        Arming replaces any ticker that is already running.
        """
        pass

    @abstractmethod
    def disarm(self) -> None:
        """Stop the ticker. A no-op when nothing is armed."""
        pass

    @abstractmethod
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        """Run *callback* once after *delay* seconds."""
        pass


# ---------------------------------------------------------------------------
# Wall-clock implementation
# ---------------------------------------------------------------------------

class _TimerHandle(Cancellable):
    def __init__(self, timer: threading.Timer) -> None:
        self._timer = timer

    def cancel(self) -> None:
        self._timer.cancel()


class SystemClock(Clock):
    """Real time. The ticker runs on a daemon thread per arming."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def armed(self) -> bool:
        return self._stop_event is not None

    def now(self) -> datetime:
        return datetime.now()

    def arm(self, interval: float, on_tick: Callable[[], None]) -> None:
        stop_event = threading.Event()
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()
            self._stop_event = stop_event
            self._thread = threading.Thread(
                target=self._run,
                args=(interval, on_tick, stop_event),
                daemon=True,
                name="pomotrack-ticker",
            )
            self._thread.start()

    def disarm(self) -> None:
        with self._lock:
            if self._stop_event is not None:
                self._stop_event.set()
            self._stop_event = None
            self._thread = None

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return _TimerHandle(timer)

    @staticmethod
    def _run(interval: float, on_tick: Callable[[], None], stop_event: threading.Event) -> None:
        # Event.wait returns True once set, which ends the loop
        while not stop_event.wait(interval):
            try:
                on_tick()
            except Exception:
                logger.exception("Tick callback failed")


# ---------------------------------------------------------------------------
# Virtual-time implementation
# ---------------------------------------------------------------------------

class _ScheduledCall(Cancellable):
    def __init__(self, due: datetime, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock(Clock):
    """Clock whose time only moves through :meth:`advance`."""

    def __init__(self, start: Optional[datetime] = None) -> None:
        self._now = start or datetime(2025, 1, 1, 9, 0, 0)
        self._interval: Optional[timedelta] = None
        self._on_tick: Optional[Callable[[], None]] = None
        self._next_tick: Optional[datetime] = None
        self._scheduled: list[_ScheduledCall] = []

    @property
    def armed(self) -> bool:
        return self._on_tick is not None

    @property
    def pending_calls(self) -> int:
        return sum(1 for call in self._scheduled if not call.cancelled)

    def now(self) -> datetime:
        return self._now

    def set_time(self, moment: datetime) -> None:
        """Jump to *moment* without firing ticks or deferred calls."""
        self._now = moment

    def arm(self, interval: float, on_tick: Callable[[], None]) -> None:
        self._interval = timedelta(seconds=interval)
        self._on_tick = on_tick
        self._next_tick = self._now + self._interval

    def disarm(self) -> None:
        self._interval = None
        self._on_tick = None
        self._next_tick = None

    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable:
        call = _ScheduledCall(self._now + timedelta(seconds=delay), callback)
        self._scheduled.append(call)
        return call

    def advance(self, seconds: float) -> None:
        """Move time forward, firing ticks and deferred calls in order."""
        target = self._now + timedelta(seconds=seconds)
        while True:
            self._scheduled = [c for c in self._scheduled if not c.cancelled]
            due_call = min(
                (c for c in self._scheduled if c.due <= target),
                key=lambda c: c.due,
                default=None,
            )
            tick_due = self._next_tick is not None and self._next_tick <= target

            if tick_due and (due_call is None or self._next_tick <= due_call.due):
                self._now = self._next_tick
                self._next_tick = self._next_tick + self._interval
                self._on_tick()
            elif due_call is not None:
                self._now = due_call.due
                self._scheduled.remove(due_call)
                due_call.callback()
            else:
                break
        self._now = target
