"""Unit tests for TextFormatter."""

from datetime import datetime

import pytest

from pomotrack.core.models import (
    DayPattern,
    GoalProgress,
    ProductivityInsights,
    SessionRecord,
    TimerMode,
    TypeBreakdown,
)
from pomotrack.reporting.formatter import TextFormatter


def _progress(completed: int = 4, goal: int = 8, minutes: int = 100) -> GoalProgress:
    return GoalProgress(
        completed_sessions=completed,
        total_minutes=minutes,
        goal=goal,
        progress=min(completed / goal * 100, 100.0) if goal else 100.0,
        remaining=max(goal - completed, 0),
    )


# ------------------------------------------------------------------
# format_minutes
# ------------------------------------------------------------------

class TestFormatMinutes:
    def test_zero(self):
        assert TextFormatter.format_minutes(0) == "0m"

    def test_minutes_only(self):
        assert TextFormatter.format_minutes(45) == "45m"

    def test_hours_and_minutes(self):
        assert TextFormatter.format_minutes(135) == "2h 15m"

    def test_exactly_one_hour(self):
        assert TextFormatter.format_minutes(60) == "1h 0m"

    def test_negative_treated_as_zero(self):
        assert TextFormatter.format_minutes(-10) == "0m"


# ------------------------------------------------------------------
# format_progress
# ------------------------------------------------------------------

class TestFormatProgress:
    def test_half_way(self):
        text = TextFormatter.format_progress("Today", _progress())
        assert text.startswith("Today: [#####-----] 4/8 sessions (50%)")
        assert "1h 40m focused" in text
        assert "4 to go" in text

    def test_goal_met(self):
        text = TextFormatter.format_progress("Today", _progress(completed=9))
        assert "[##########]" in text
        assert "(100%)" in text
        assert "0 to go" in text

    def test_empty(self):
        text = TextFormatter.format_progress("This week", _progress(completed=0, goal=40, minutes=0))
        assert "[----------] 0/40" in text


# ------------------------------------------------------------------
# tables
# ------------------------------------------------------------------

class TestTables:
    def test_pattern_rows(self):
        text = TextFormatter.format_pattern([
            DayPattern(date="2025-01-14", day="Tue", sessions=0, minutes=0),
            DayPattern(date="2025-01-15", day="Wed", sessions=3, minutes=75),
        ])
        lines = text.splitlines()
        assert "Day" in lines[0] and "Sessions" in lines[0]
        assert set(lines[1].strip()) == {"─"}
        assert lines[3].split() == ["Wed", "2025-01-15", "3", "1h", "15m"]

    def test_pattern_empty(self):
        assert TextFormatter.format_pattern([]) == "  No days to show.\n"

    def test_history_rows(self):
        record = SessionRecord(
            date="2025-01-15",
            type=TimerMode.LONG_BREAK,
            duration=15,
            completed=False,
            interruptions=2,
            timestamp=datetime(2025, 1, 15, 14, 5),
        )
        text = TextFormatter.format_history([record])
        row = text.splitlines()[2]
        assert "2025-01-15 14:05" in row
        assert "Long Break" in row
        assert row.split()[-2:] == ["no", "2"]

    def test_history_empty(self):
        assert "No sessions recorded" in TextFormatter.format_history([])

    def test_breakdown(self):
        text = TextFormatter.format_breakdown({
            TimerMode.FOCUS: TypeBreakdown(completed=4, interrupted=1, total_minutes=110),
            TimerMode.SHORT_BREAK: TypeBreakdown(completed=3, interrupted=0, total_minutes=15),
        })
        lines = text.splitlines()
        assert lines[2].split() == ["Focus", "4", "1", "1h", "50m"]
        assert lines[3].split()[:2] == ["Short", "Break"]

    def test_columns_are_aligned(self):
        text = TextFormatter.format_pattern([
            DayPattern(date="2025-01-14", day="Tue", sessions=10, minutes=250),
            DayPattern(date="2025-01-15", day="Wed", sessions=1, minutes=25),
        ])
        lengths = {len(line) for line in text.splitlines()}
        assert len(lengths) == 1


# ------------------------------------------------------------------
# format_insights
# ------------------------------------------------------------------

def test_format_insights():
    insights = ProductivityInsights(
        today=_progress(),
        week=_progress(completed=20, goal=40, minutes=500),
        average_daily_sessions=3.5,
        most_productive_day="Wed",
        current_streak=0,
        longest_streak=4,
        total_sessions=120,
        total_minutes=3000,
        total_hours=50.0,
        daily_pattern=[
            DayPattern(date=f"2025-01-{d:02d}", day="Mon", sessions=1, minutes=25)
            for d in range(1, 11)
        ],
    )
    text = TextFormatter.format_insights(insights)
    assert text.startswith("Productivity Insights")
    assert "Today: [#####-----]" in text
    assert "This week:" in text
    assert "3.5" in text
    assert "Wed" in text
    assert "Longest streak:" in text and "4 days" in text
    assert "120 sessions, 50.0 hours" in text
    assert "2025-01-04" in text
    assert "2025-01-03" not in text


@pytest.mark.parametrize("minutes,expected", [(1, "1m"), (59, "59m"), (6000, "100h 0m")])
def test_format_minutes_boundaries(minutes, expected):
    assert TextFormatter.format_minutes(minutes) == expected
