"""PomoTrack application entry point.

Supports two modes:
  - GUI mode (default): launches the system tray application
  - CLI mode: prints analytics or moves data in and out, then exits

Usage:
    python -m pomotrack.main                     # GUI mode
    python -m pomotrack.main --today             # today's goal progress
    python -m pomotrack.main --week              # this week's goal progress
    python -m pomotrack.main --insights          # full productivity insights
    python -m pomotrack.main --history 20        # last 20 sessions
    python -m pomotrack.main --export out.json   # write a data bundle
    python -m pomotrack.main --import in.json    # restore a data bundle
    python -m pomotrack.main --report out.docx   # Word productivity report
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime

from pomotrack.core.config import get_default_config_path, load_config
from pomotrack.core.session_log import SessionLog
from pomotrack.core.stats import StatsAggregator
from pomotrack.persistence.store import PomodoroStore
from pomotrack.reporting.analytics import AnalyticsEngine
from pomotrack.reporting.formatter import TextFormatter


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="pomotrack",
        description="PomoTrack: Pomodoro timer with productivity analytics",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config.json (defaults to the platform data directory)",
    )
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--today", action="store_true", help="Print today's goal progress and exit")
    group.add_argument("--week", action="store_true", help="Print this week's goal progress and exit")
    group.add_argument("--insights", action="store_true", help="Print productivity insights and exit")
    group.add_argument(
        "--history",
        type=int,
        metavar="N",
        help="Print the N most recent sessions and exit",
    )
    group.add_argument("--export", metavar="PATH", help="Write all data to a JSON file and exit")
    group.add_argument("--import", dest="import_path", metavar="PATH", help="Replace data from a JSON file and exit")
    group.add_argument(
        "--report",
        nargs="?",
        const="",
        metavar="PATH",
        help="Write a .docx productivity report and exit (defaults to the configured report directory)",
    )
    return parser


def _open_store(config: dict) -> PomodoroStore:
    db_path = os.path.expanduser(config.get("database_path", "~/.pomotrack/pomotrack.db"))
    db_dir = os.path.dirname(db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    store = PomodoroStore(db_path)
    store.init_db()
    return store


def _build_analytics(store: PomodoroStore) -> AnalyticsEngine:
    session_log = SessionLog(store)
    session_log.load()
    stats = StatsAggregator(store)
    stats.load()
    return AnalyticsEngine(session_log, stats)


def run_cli(parsed: argparse.Namespace, config: dict) -> int:
    """Run a one-shot CLI command against the configured database.

    Returns the process exit code.
    """
    store = _open_store(config)
    try:
        if parsed.export:
            with open(parsed.export, "w", encoding="utf-8") as fh:
                json.dump(store.export_data(), fh, indent=2, ensure_ascii=False)
            print(f"Exported data to {parsed.export}")
            return 0

        if parsed.import_path:
            try:
                with open(parsed.import_path, "r", encoding="utf-8") as fh:
                    data = json.load(fh)
            except (OSError, json.JSONDecodeError) as exc:
                print(f"Import failed: {exc}", file=sys.stderr)
                return 1
            result = store.import_data(data)
            if not result["success"]:
                print(f"Import failed: {result['error']}", file=sys.stderr)
                return 1
            print(f"Imported data from {parsed.import_path}")
            return 0

        analytics = _build_analytics(store)
        if parsed.today:
            print(TextFormatter.format_progress("Today", analytics.today_stats()), end="")
        elif parsed.week:
            print(TextFormatter.format_progress("This week", analytics.week_stats()), end="")
        elif parsed.insights:
            print(TextFormatter.format_insights(analytics.productivity_insights()), end="")
        elif parsed.history is not None:
            print(TextFormatter.format_history(analytics.session_log.recent(parsed.history)), end="")
        elif parsed.report:
            from pomotrack.reporting.exporter import ReportExporter

            path = ReportExporter().export_insights(
                analytics.productivity_insights(),
                analytics.session_type_breakdown(),
                config.get("report", {}).get("user_name", ""),
                parsed.report,
            )
            print(f"Report written to {path}")
        return 0
    finally:
        store.close()


def default_report_path(config: dict) -> str:
    """Return a dated .docx path inside the configured report directory."""
    directory = os.path.expanduser(
        config.get("report", {}).get("output_directory", "~/pomotrack-reports")
    )
    return os.path.join(directory, f"pomotrack-{datetime.now():%Y-%m-%d}.docx")


def main(args: list[str] | None = None) -> None:
    """Entry point for PomoTrack.

    When *args* is ``None`` the arguments are read from ``sys.argv``.
    """
    parser = build_parser()
    parsed = parser.parse_args(args)

    config_path = parsed.config or str(get_default_config_path())
    config = load_config(config_path)

    level = getattr(logging, str(config.get("log_level", "INFO")).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    if parsed.report == "":
        parsed.report = default_report_path(config)

    cli_mode = any([
        parsed.today, parsed.week, parsed.insights, parsed.history is not None,
        parsed.export, parsed.import_path, parsed.report,
    ])
    if cli_mode:
        sys.exit(run_cli(parsed, config))

    # GUI mode: import here to avoid pulling in pystray/PIL for CLI usage
    from pomotrack.ui.app import PomoTrackApp

    app = PomoTrackApp(config_path)
    app.start()


if __name__ == "__main__":
    main()
