"""Report exporter for PomoTrack.

Generates Word (.docx) productivity reports from analytics data using
python-docx.
"""

import logging
import os
from datetime import date
from typing import Optional, Sequence

from pomotrack.core.models import DayPattern, ProductivityInsights, TimerMode, TypeBreakdown
from pomotrack.reporting.formatter import TextFormatter

logger = logging.getLogger(__name__)

_MODE_NAMES = {
    TimerMode.FOCUS: "Focus",
    TimerMode.SHORT_BREAK: "Short Break",
    TimerMode.LONG_BREAK: "Long Break",
}


class ReportExporter:
    """Exports productivity insights to a formatted Word document (.docx)."""

    def export_insights(
        self,
        insights: ProductivityInsights,
        breakdown: dict[TimerMode, TypeBreakdown],
        user_name: str,
        output_path: str,
        report_date: Optional[date] = None,
    ) -> str:
        """Generate a .docx file from productivity insights.

        Args:
            insights: The insights to export.
            breakdown: Per-type completed/interrupted counts.
            user_name: The user's configured display name.
            output_path: File path for the generated .docx file.
            report_date: Date printed on the title page; today by default.

        Returns:
            The path to the generated file.

        Raises:
            ImportError: If python-docx is not installed.
        """
        try:
            from docx import Document
        except ImportError:
            raise ImportError(
                "python-docx is required for report export. "
                "Install it with: pip install python-docx"
            )

        parent_dir = os.path.dirname(output_path)
        if parent_dir:
            os.makedirs(parent_dir, exist_ok=True)

        doc = Document()

        self._add_title_page(doc, report_date or date.today(), user_name)

        doc.add_heading("Goals", level=1)
        self._add_table(
            doc,
            ("Period", "Sessions", "Goal", "Progress", "Focus Time"),
            [
                (
                    label,
                    str(p.completed_sessions),
                    str(p.goal),
                    f"{p.progress:.0f}%",
                    TextFormatter.format_minutes(p.total_minutes),
                )
                for label, p in (("Today", insights.today), ("This Week", insights.week))
            ],
        )

        doc.add_heading("Highlights", level=1)
        for line in (
            f"Average sessions per active day: {insights.average_daily_sessions}",
            f"Most productive day: {insights.most_productive_day}",
            f"Current streak: {insights.current_streak} days",
            f"Longest streak: {insights.longest_streak} days",
            f"All time: {insights.total_sessions} sessions, {insights.total_hours} hours",
        ):
            doc.add_paragraph(line, style="List Bullet")

        doc.add_heading("Session Types", level=1)
        self._add_table(
            doc,
            ("Type", "Completed", "Interrupted", "Time"),
            [
                (
                    _MODE_NAMES[mode],
                    str(entry.completed),
                    str(entry.interrupted),
                    TextFormatter.format_minutes(entry.total_minutes),
                )
                for mode, entry in breakdown.items()
            ],
        )

        doc.add_heading("Daily Pattern", level=1)
        self._add_pattern(doc, insights.daily_pattern)

        doc.save(output_path)
        logger.info("Report written to %s", output_path)
        return output_path

    def _add_title_page(self, doc, report_date: date, user_name: str) -> None:
        """Add a title page with report title, date, and user name."""
        from docx.shared import Pt
        from docx.enum.text import WD_ALIGN_PARAGRAPH

        title_para = doc.add_paragraph()
        title_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = title_para.add_run("PomoTrack Productivity Report")
        run.bold = True
        run.font.size = Pt(24)

        date_para = doc.add_paragraph()
        date_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = date_para.add_run(report_date.strftime("%B %d, %Y"))
        run.font.size = Pt(14)

        if user_name:
            name_para = doc.add_paragraph()
            name_para.alignment = WD_ALIGN_PARAGRAPH.CENTER
            run = name_para.add_run(f"Prepared for: {user_name}")
            run.font.size = Pt(12)

        doc.add_page_break()

    def _add_pattern(self, doc, pattern: Sequence[DayPattern]) -> None:
        active = [d for d in pattern if d.sessions > 0]
        if not active:
            doc.add_paragraph("No focus sessions recorded.")
            return
        self._add_table(
            doc,
            ("Date", "Day", "Sessions", "Focus Time"),
            [
                (d.date, d.day, str(d.sessions), TextFormatter.format_minutes(d.minutes))
                for d in active
            ],
        )

    def _add_table(self, doc, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        """Add a table with a bold header row."""
        table = doc.add_table(rows=1 + len(rows), cols=len(headers))
        table.style = "Light Grid Accent 1"

        for cell, text in zip(table.rows[0].cells, headers):
            cell.text = text
        for i, row in enumerate(rows, start=1):
            for cell, text in zip(table.rows[i].cells, row):
                cell.text = text

        for cell in table.rows[0].cells:
            for paragraph in cell.paragraphs:
                for run in paragraph.runs:
                    run.bold = True

        doc.add_paragraph()  # spacing after table
