"""Core data models for PomoTrack.

Defines all dataclasses and enums used across the application:
- Timer: TimerMode, Settings, TimerState, ModeInfo, TrayStatus
- Session log: SessionRecord
- Stats: StatsSnapshot
- Analytics: GoalProgress, DayPattern, TypeBreakdown, ProductivityInsights

Serialisation helpers use the camelCase keys of the exported data bundle so
that exports from earlier versions of the app import cleanly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


# ---------------------------------------------------------------------------
# Timer
# ---------------------------------------------------------------------------

class TimerMode(Enum):
    """Session mode of the timer. Values double as session record types."""
    FOCUS = "focus"
    SHORT_BREAK = "shortBreak"
    LONG_BREAK = "longBreak"


# Python attribute name -> exported key
_SETTINGS_KEYS = {
    "focus_time": "focusTime",
    "short_break_time": "shortBreakTime",
    "long_break_time": "longBreakTime",
    "sessions_before_long_break": "sessionsBeforeLongBreak",
    "auto_start_breaks": "autoStartBreaks",
    "auto_start_pomodoros": "autoStartPomodoros",
    "sound_enabled": "soundEnabled",
    "notifications_enabled": "notificationsEnabled",
    "theme": "theme",
    "always_on_top": "alwaysOnTop",
    "minimize_to_tray": "minimizeToTray",
}


@dataclass
class Settings:
    """User-editable timer preferences. Durations are in minutes."""
    focus_time: int = 25
    short_break_time: int = 5
    long_break_time: int = 15
    sessions_before_long_break: int = 4
    auto_start_breaks: bool = False
    auto_start_pomodoros: bool = False
    sound_enabled: bool = True
    notifications_enabled: bool = True
    theme: str = "auto"
    always_on_top: bool = False
    minimize_to_tray: bool = True

    def duration_for(self, mode: TimerMode) -> int:
        """Return the configured length of *mode* in minutes."""
        if mode == TimerMode.SHORT_BREAK:
            return self.short_break_time
        if mode == TimerMode.LONG_BREAK:
            return self.long_break_time
        return self.focus_time

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _SETTINGS_KEYS.items()}

    @classmethod
    def field_for_key(cls, key: str) -> Optional[str]:
        """Map an exported key (or attribute name) to the attribute name."""
        if key in _SETTINGS_KEYS:
            return key
        for attr, exported in _SETTINGS_KEYS.items():
            if exported == key:
                return attr
        return None


@dataclass(frozen=True)
class TimerState:
    """Read-only snapshot of the timer's mutable state."""
    mode: TimerMode
    session_index: int
    time_left: int      # seconds
    total_time: int     # seconds
    running: bool
    paused: bool
    interruptions: int
    session_start: Optional[datetime] = None


@dataclass(frozen=True)
class ModeInfo:
    """Display metadata for the current mode."""
    icon: str
    title: str
    class_name: str
    description: str


@dataclass(frozen=True)
class TrayStatus:
    """Text shown next to / on hover of the tray icon."""
    title: str
    tooltip: str


# ---------------------------------------------------------------------------
# Session log
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SessionRecord:
    """One finished session. Immutable once appended to the log."""
    date: str                      # local calendar day, YYYY-MM-DD
    type: TimerMode
    duration: int                  # whole minutes elapsed
    completed: bool
    interruptions: int
    timestamp: datetime
    start_time: Optional[datetime] = None
    id: int = 0                    # assigned by the session log / store

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "type": self.type.value,
            "duration": self.duration,
            "completed": self.completed,
            "interruptions": self.interruptions,
            "startTime": self.start_time.isoformat() if self.start_time else None,
            "timestamp": self.timestamp.isoformat(),
            "id": self.id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SessionRecord":
        if not isinstance(data, dict):
            raise ValueError(f"Session record must be an object, got {type(data).__name__}")
        start = data.get("startTime")
        return cls(
            date=str(data["date"]),
            type=TimerMode(data["type"]),
            duration=int(data.get("duration", 0)),
            completed=bool(data.get("completed", False)),
            interruptions=int(data.get("interruptions", 0)),
            timestamp=_parse_instant(data["timestamp"]),
            start_time=_parse_instant(start) if start else None,
            id=int(data.get("id", 0)),
        )


def next_session_id(previous: int, now: datetime) -> int:
    """Return a millisecond-based id strictly greater than *previous*."""
    return max(int(now.timestamp() * 1000), previous + 1)


def _parse_instant(value: str) -> datetime:
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO 8601 timestamp, got {value!r}")
    # Exports from the desktop app use a trailing "Z"
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


# ---------------------------------------------------------------------------
# Stats
# ---------------------------------------------------------------------------

_STATS_KEYS = {
    "completed_sessions": "completedSessions",
    "total_minutes": "totalMinutes",
    "streak_count": "streakCount",
    "daily_goal": "dailyGoal",
    "weekly_goal": "weeklyGoal",
}


@dataclass(frozen=True)
class StatsSnapshot:
    """Cumulative counters, updated when a focus session completes."""
    completed_sessions: int = 0
    total_minutes: int = 0
    streak_count: int = 0
    daily_goal: int = 8
    weekly_goal: int = 40

    def to_dict(self) -> dict[str, Any]:
        return {key: getattr(self, attr) for attr, key in _STATS_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any], base: Optional["StatsSnapshot"] = None) -> "StatsSnapshot":
        """Build a snapshot from exported keys, filling gaps from *base*."""
        if not isinstance(data, dict):
            raise ValueError(f"Stats must be an object, got {type(data).__name__}")
        base = base or cls()
        values = {}
        for attr, key in _STATS_KEYS.items():
            raw = data.get(key, data.get(attr))
            values[attr] = int(raw) if raw is not None else getattr(base, attr)
        return cls(**values)


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GoalProgress:
    """Completed focus sessions measured against a goal."""
    completed_sessions: int
    total_minutes: int
    goal: int
    progress: float      # percent, capped at 100
    remaining: int


@dataclass(frozen=True)
class DayPattern:
    """Completed focus sessions on a single calendar day."""
    date: str
    day: str             # short weekday name, e.g. "Mon"
    sessions: int
    minutes: int


@dataclass
class TypeBreakdown:
    """Completed vs interrupted sessions of one type."""
    completed: int = 0
    interrupted: int = 0
    total_minutes: int = 0


@dataclass(frozen=True)
class ProductivityInsights:
    """Aggregated view over the session log and cumulative stats."""
    today: GoalProgress
    week: GoalProgress
    average_daily_sessions: float
    most_productive_day: str
    current_streak: int
    longest_streak: int
    total_sessions: int
    total_minutes: int
    total_hours: float
    daily_pattern: list[DayPattern] = field(default_factory=list)
