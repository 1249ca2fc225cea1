"""SQLite-backed persistence for settings, stats and session history."""

import json
import logging
import sqlite3
import threading
from datetime import datetime
from typing import Any, Optional

from pomotrack.core.models import (
    SessionRecord,
    Settings,
    StatsSnapshot,
    TimerMode,
    next_session_id,
)
from pomotrack.core.settings import validate_settings
from pomotrack.persistence.base import MAX_HISTORY, PersistenceGateway

logger = logging.getLogger(__name__)


class PomodoroStore(PersistenceGateway):
    """Read/write interface to the local SQLite database.

    Settings and stats are kept as JSON documents in a small key-value
    table and replaced whole on every save.  Session records live in their
    own table; timestamps are persisted as ISO 8601 text so that round-trip
    fidelity is preserved.

    The connection is shared across threads, so each group of statements
    runs under an internal lock.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Connection helpers
    # ------------------------------------------------------------------

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    # ------------------------------------------------------------------
    # Schema initialisation
    # ------------------------------------------------------------------

    def init_db(self) -> None:
        """Create tables and indexes if they don't already exist."""
        with self._lock:
            conn = self._get_conn()
            conn.executescript(
                """\
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS session_history (
                    seq INTEGER PRIMARY KEY AUTOINCREMENT,
                    id INTEGER NOT NULL UNIQUE,
                    date TEXT NOT NULL,
                    type TEXT NOT NULL,
                    duration INTEGER NOT NULL,
                    completed INTEGER NOT NULL,
                    interruptions INTEGER NOT NULL DEFAULT 0,
                    start_time TEXT,
                    timestamp TEXT NOT NULL
                );

                CREATE INDEX IF NOT EXISTS idx_history_date
                    ON session_history(date);
                """
            )
            conn.commit()

    # ------------------------------------------------------------------
    # Key-value documents
    # ------------------------------------------------------------------

    def _get_document(self, key: str) -> Optional[dict[str, Any]]:
        with self._lock:
            row = self._get_conn().execute(
                "SELECT value FROM kv WHERE key = ?", (key,)
            ).fetchone()
        if row is None:
            return None
        return json.loads(row["value"])

    def _put_document(self, key: str, value: dict[str, Any], commit: bool = True) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )
            if commit:
                conn.commit()

    def load_settings(self) -> Optional[dict[str, Any]]:
        return self._get_document("settings")

    def save_settings(self, settings: Settings) -> None:
        self._put_document("settings", settings.to_dict())

    def load_stats(self) -> Optional[dict[str, Any]]:
        return self._get_document("stats")

    def save_stats(self, stats: StatsSnapshot) -> None:
        self._put_document("stats", stats.to_dict())

    # ------------------------------------------------------------------
    # Session history
    # ------------------------------------------------------------------

    def load_history(self) -> list[SessionRecord]:
        with self._lock:
            rows = self._get_conn().execute(
                "SELECT * FROM session_history ORDER BY seq"
            ).fetchall()
        return [self._row_to_record(r) for r in rows]

    def append_session(self, record: SessionRecord) -> list[SessionRecord]:
        """Insert *record* with a fresh id and trim to the newest records."""
        with self._lock:
            conn = self._get_conn()
            row = conn.execute("SELECT COALESCE(MAX(id), 0) AS last FROM session_history").fetchone()
            new_id = next_session_id(row["last"], record.timestamp)
            self._insert_record(conn, record, new_id)
            conn.execute(
                """\
                DELETE FROM session_history
                WHERE seq NOT IN (
                    SELECT seq FROM session_history ORDER BY seq DESC LIMIT ?
                )
                """,
                (MAX_HISTORY,),
            )
            conn.commit()
            return self.load_history()

    def clear_history(self) -> list[SessionRecord]:
        with self._lock:
            conn = self._get_conn()
            conn.execute("DELETE FROM session_history")
            conn.commit()
        return []

    def replace_history(self, records: list[SessionRecord], commit: bool = True) -> None:
        with self._lock:
            conn = self._get_conn()
            conn.execute("DELETE FROM session_history")
            used: set[int] = set()
            last_id = 0
            for record in records[-MAX_HISTORY:]:
                record_id = record.id
                if record_id <= 0 or record_id in used:
                    record_id = next_session_id(last_id, record.timestamp)
                    while record_id in used:
                        record_id += 1
                used.add(record_id)
                last_id = max(last_id, record_id)
                self._insert_record(conn, record, record_id)
            if commit:
                conn.commit()

    @staticmethod
    def _insert_record(conn: sqlite3.Connection, record: SessionRecord, record_id: int) -> None:
        conn.execute(
            """\
            INSERT INTO session_history
                (id, date, type, duration, completed, interruptions,
                 start_time, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                record_id,
                record.date,
                record.type.value,
                record.duration,
                1 if record.completed else 0,
                record.interruptions,
                record.start_time.isoformat() if record.start_time else None,
                record.timestamp.isoformat(),
            ),
        )

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_data(self, now: Optional[datetime] = None) -> dict[str, Any]:
        """Return every store as one JSON-compatible bundle."""
        return {
            "settings": self.load_settings(),
            "stats": self.load_stats(),
            "sessionHistory": [r.to_dict() for r in self.load_history()],
            "exportDate": (now or datetime.now()).isoformat(),
        }

    def import_data(self, data: Any) -> dict[str, Any]:
        """Replace each store present in *data*.

        The whole bundle is parsed before anything is written, so a
        malformed payload leaves the database untouched.
        """
        try:
            if not isinstance(data, dict):
                raise ValueError("Import payload must be an object")

            settings = None
            if data.get("settings"):
                if not isinstance(data["settings"], dict):
                    raise ValueError("settings must be an object")
                settings, _errors = validate_settings(data["settings"])

            stats = None
            if data.get("stats"):
                stats = StatsSnapshot.from_dict(data["stats"])

            history = None
            if data.get("sessionHistory") is not None:
                if not isinstance(data["sessionHistory"], list):
                    raise ValueError("sessionHistory must be a list")
                history = [SessionRecord.from_dict(r) for r in data["sessionHistory"]]

            with self._lock:
                conn = self._get_conn()
                try:
                    if settings is not None:
                        self._put_document("settings", settings.to_dict(), commit=False)
                    if stats is not None:
                        self._put_document("stats", stats.to_dict(), commit=False)
                    if history is not None:
                        self.replace_history(history, commit=False)
                    conn.commit()
                except Exception:
                    conn.rollback()
                    raise
        except (ValueError, KeyError, TypeError, sqlite3.Error) as exc:
            logger.error("Import failed: %s", exc)
            return {"success": False, "error": str(exc)}

        logger.info("Imported data bundle")
        return {"success": True}

    # ------------------------------------------------------------------
    # Row mapping helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> SessionRecord:
        return SessionRecord(
            id=row["id"],
            date=row["date"],
            type=TimerMode(row["type"]),
            duration=row["duration"],
            completed=bool(row["completed"]),
            interruptions=row["interruptions"],
            start_time=datetime.fromisoformat(row["start_time"]) if row["start_time"] else None,
            timestamp=datetime.fromisoformat(row["timestamp"]),
        )
