"""Analytics derived from the session log and cumulative stats."""

import math
from collections import defaultdict
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

from pomotrack.core.clock import Clock
from pomotrack.core.models import (
    DayPattern,
    GoalProgress,
    ProductivityInsights,
    SessionRecord,
    TimerMode,
    TypeBreakdown,
)
from pomotrack.core.session_log import SessionLog
from pomotrack.core.stats import StatsAggregator

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


class AnalyticsEngine:
    """Produces progress, pattern and insight views on demand.

    Nothing is cached: every call rescans the log, which is small (at most
    a thousand records) and append-only.  "Today" comes from *clock* when
    given, otherwise from the local wall clock.
    """

    def __init__(
        self,
        session_log: SessionLog,
        stats: StatsAggregator,
        clock: Optional[Clock] = None,
    ) -> None:
        self.session_log = session_log
        self.stats = stats
        self.clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def today(self) -> date:
        now = self.clock.now() if self.clock is not None else datetime.now()
        return now.date()

    def today_stats(self) -> GoalProgress:
        today = self.today().isoformat()
        sessions = [r for r in self._completed_focus() if r.date == today]
        return self._progress(sessions, self.stats.snapshot.daily_goal)

    def week_stats(self) -> GoalProgress:
        """Completed focus sessions from seven days ago through today."""
        cutoff = (self.today() - timedelta(days=7)).isoformat()
        sessions = [r for r in self._completed_focus() if r.date >= cutoff]
        return self._progress(sessions, self.stats.snapshot.weekly_goal)

    def daily_pattern(self, days: int = 7) -> Iterator[DayPattern]:
        """Yield one entry per day, oldest first, ending today."""
        today = self.today()
        counts: dict[str, int] = defaultdict(int)
        minutes: dict[str, int] = defaultdict(int)
        for record in self._completed_focus():
            counts[record.date] += 1
            minutes[record.date] += record.duration

        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            key = day.isoformat()
            yield DayPattern(
                date=key,
                day=_WEEKDAYS[day.weekday()],
                sessions=counts.get(key, 0),
                minutes=minutes.get(key, 0),
            )

    def productivity_insights(self) -> ProductivityInsights:
        pattern = list(self.daily_pattern(30))

        active_days = [d for d in pattern if d.sessions > 0]
        average = (
            sum(d.sessions for d in active_days) / len(active_days)
            if active_days
            else 0
        )

        current_streak, longest_streak = _streaks(pattern)
        snapshot = self.stats.snapshot

        return ProductivityInsights(
            today=self.today_stats(),
            week=self.week_stats(),
            average_daily_sessions=_round1(average),
            most_productive_day=_most_productive_day(pattern),
            current_streak=current_streak,
            longest_streak=longest_streak,
            total_sessions=snapshot.completed_sessions,
            total_minutes=snapshot.total_minutes,
            total_hours=_round1(snapshot.total_minutes / 60),
            daily_pattern=pattern,
        )

    def session_type_breakdown(self, days: int = 30) -> dict[TimerMode, TypeBreakdown]:
        """Completed vs interrupted counts per session type over *days*."""
        cutoff = (self.today() - timedelta(days=days)).isoformat()
        breakdown = {mode: TypeBreakdown() for mode in TimerMode}
        for record in self.session_log:
            if record.date < cutoff:
                continue
            entry = breakdown[record.type]
            if record.completed:
                entry.completed += 1
            else:
                entry.interrupted += 1
            entry.total_minutes += record.duration
        return breakdown

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _completed_focus(self) -> list[SessionRecord]:
        return [
            r for r in self.session_log
            if r.type == TimerMode.FOCUS and r.completed
        ]

    @staticmethod
    def _progress(sessions: list[SessionRecord], goal: int) -> GoalProgress:
        completed = len(sessions)
        progress = min(completed / goal * 100, 100.0) if goal > 0 else 100.0
        return GoalProgress(
            completed_sessions=completed,
            total_minutes=sum(r.duration for r in sessions),
            goal=goal,
            progress=progress,
            remaining=max(goal - completed, 0),
        )


def _round1(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def _most_productive_day(pattern: list[DayPattern]) -> str:
    """Weekday with the highest mean sessions; the first to reach it wins."""
    totals: dict[str, list[int]] = {}
    for day in pattern:
        entry = totals.setdefault(day.day, [0, 0])
        entry[0] += day.sessions
        entry[1] += 1

    best_day = "Monday"
    highest = 0.0
    for name, (sessions, count) in totals.items():
        average = sessions / count
        if average > highest:
            highest = average
            best_day = name
    return best_day


def _streaks(pattern: list[DayPattern]) -> tuple[int, int]:
    """Return ``(current, longest)`` streaks, scanning newest to oldest.

    ``current`` only grows while it is in step with the running streak and
    is zeroed at the first gap it meets, so a streak ending today that is
    preceded by an empty day reports 0.  Only a run reaching back to the
    oldest day of the window survives as ``current``.
    """
    current = longest = running = 0
    for day in reversed(pattern):
        if day.sessions > 0:
            if running == current:
                current += 1
            running += 1
            longest = max(longest, running)
        else:
            if running == current:
                current = 0
            running = 0
    return current, longest
