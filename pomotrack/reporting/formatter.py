"""Text formatter for PomoTrack analytics.

Renders goal progress, insights, daily patterns and session history as
aligned plain-text reports for the CLI and tray popups.
"""

from typing import Iterable, Sequence

from pomotrack.core.models import (
    DayPattern,
    GoalProgress,
    ProductivityInsights,
    SessionRecord,
    TimerMode,
    TypeBreakdown,
)

_MODE_NAMES = {
    TimerMode.FOCUS: "Focus",
    TimerMode.SHORT_BREAK: "Short Break",
    TimerMode.LONG_BREAK: "Long Break",
}


class TextFormatter:
    """Formats analytics results as human-readable plain text."""

    @staticmethod
    def format_minutes(minutes: int) -> str:
        """Format whole minutes as 'Xh Ym' (e.g., '2h 15m').

        Returns '0m' for zero or negative values.
        """
        minutes = max(int(minutes), 0)
        hours, rest = divmod(minutes, 60)
        if hours == 0:
            return f"{rest}m"
        return f"{hours}h {rest}m"

    @staticmethod
    def format_progress(label: str, progress: GoalProgress) -> str:
        """One progress line with a ten-cell bar, e.g. ``Today  [####------] 4/10``."""
        filled = int(progress.progress // 10)
        bar = "#" * filled + "-" * (10 - filled)
        return (
            f"{label}: [{bar}] {progress.completed_sessions}/{progress.goal} sessions "
            f"({progress.progress:.0f}%), {TextFormatter.format_minutes(progress.total_minutes)} focused, "
            f"{progress.remaining} to go\n"
        )

    @staticmethod
    def _format_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
        """Render rows under *headers*; the first column is left aligned."""
        widths = [len(h) for h in headers]
        for row in rows:
            for i, cell in enumerate(row):
                widths[i] = max(widths[i], len(cell))

        def _line(cells: Sequence[str]) -> str:
            parts = [f"{cells[0]:<{widths[0]}}"]
            parts.extend(f"{cell:>{widths[i]}}" for i, cell in enumerate(cells[1:], start=1))
            return "  " + "  ".join(parts)

        header = _line(headers)
        separator = "  " + "─" * (len(header) - 2)
        lines = [header, separator]
        lines.extend(_line(row) for row in rows)
        return "\n".join(lines) + "\n"

    @staticmethod
    def format_pattern(pattern: Iterable[DayPattern]) -> str:
        rows = [
            (f"{d.day} {d.date}", str(d.sessions), TextFormatter.format_minutes(d.minutes))
            for d in pattern
        ]
        if not rows:
            return "  No days to show.\n"
        return TextFormatter._format_table(("Day", "Sessions", "Time"), rows)

    @staticmethod
    def format_history(records: Iterable[SessionRecord]) -> str:
        """Render session records, one per row, in the order given."""
        rows = [
            (
                r.timestamp.strftime("%Y-%m-%d %H:%M"),
                _MODE_NAMES[r.type],
                TextFormatter.format_minutes(r.duration),
                "yes" if r.completed else "no",
                str(r.interruptions),
            )
            for r in records
        ]
        if not rows:
            return "  No sessions recorded.\n"
        return TextFormatter._format_table(
            ("When", "Type", "Time", "Completed", "Pauses"), rows
        )

    @staticmethod
    def format_breakdown(breakdown: dict[TimerMode, TypeBreakdown]) -> str:
        rows = [
            (
                _MODE_NAMES[mode],
                str(entry.completed),
                str(entry.interrupted),
                TextFormatter.format_minutes(entry.total_minutes),
            )
            for mode, entry in breakdown.items()
        ]
        return TextFormatter._format_table(("Type", "Completed", "Interrupted", "Time"), rows)

    @staticmethod
    def format_insights(insights: ProductivityInsights) -> str:
        """Render the full insights report."""
        parts: list[str] = ["Productivity Insights\n\n"]
        parts.append(TextFormatter.format_progress("Today", insights.today))
        parts.append(TextFormatter.format_progress("This week", insights.week))
        parts.append("\n")
        parts.append(f"  Average sessions per active day: {insights.average_daily_sessions}\n")
        parts.append(f"  Most productive day:             {insights.most_productive_day}\n")
        parts.append(f"  Current streak:                  {insights.current_streak} days\n")
        parts.append(f"  Longest streak:                  {insights.longest_streak} days\n")
        parts.append(
            f"  All time:                        {insights.total_sessions} sessions, "
            f"{insights.total_hours} hours\n"
        )
        if insights.daily_pattern:
            parts.append("\nLast 7 days:\n")
            parts.append(TextFormatter.format_pattern(insights.daily_pattern[-7:]))
        return "".join(parts)
