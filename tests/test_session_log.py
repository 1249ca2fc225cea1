"""Tests for SessionLog."""

import sqlite3
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from pomotrack.core.models import SessionRecord, TimerMode
from pomotrack.core.session_log import SessionLog
from pomotrack.persistence.store import PomodoroStore


T0 = datetime(2025, 1, 15, 10, 0, 0)


def _record(minute: int = 0, mode: TimerMode = TimerMode.FOCUS) -> SessionRecord:
    return SessionRecord(
        date="2025-01-15",
        type=mode,
        duration=25,
        completed=True,
        interruptions=0,
        timestamp=T0 + timedelta(minutes=minute),
    )


@pytest.fixture
def store():
    s = PomodoroStore(":memory:")
    s.init_db()
    yield s
    s.close()


class TestInMemory:
    def test_append_assigns_increasing_ids(self):
        log = SessionLog()
        first = log.append(_record(0))
        second = log.append(_record(0))
        assert first.id == int(T0.timestamp() * 1000)
        assert second.id == first.id + 1
        assert len(log) == 2

    def test_iteration_is_oldest_first(self):
        log = SessionLog()
        for minute in (0, 1, 2):
            log.append(_record(minute))
        assert [r.timestamp.minute for r in log] == [0, 1, 2]

    def test_recent_is_newest_first(self):
        log = SessionLog()
        for minute in range(5):
            log.append(_record(minute))
        assert [r.timestamp.minute for r in log.recent(3)] == [4, 3, 2]

    def test_recent_with_non_positive_limit(self):
        log = SessionLog()
        log.append(_record())
        assert log.recent(0) == []

    def test_cap_drops_oldest(self, monkeypatch):
        monkeypatch.setattr("pomotrack.core.session_log.MAX_HISTORY", 2)
        log = SessionLog()
        for minute in range(4):
            log.append(_record(minute))
        assert [r.timestamp.minute for r in log] == [2, 3]

    def test_records_is_a_snapshot(self):
        log = SessionLog()
        log.append(_record())
        records = log.records
        log.append(_record(1))
        assert len(records) == 1

    def test_clear(self):
        log = SessionLog()
        log.append(_record())
        log.clear()
        assert len(log) == 0

    def test_replace(self):
        log = SessionLog()
        log.replace([_record(5), _record(6)])
        assert [r.timestamp.minute for r in log] == [5, 6]


class TestWithStore:
    def test_append_persists(self, store):
        log = SessionLog(store)
        stored = log.append(_record())
        assert store.load_history() == [stored]

    def test_load_reads_existing_history(self, store):
        store.append_session(_record(0))
        store.append_session(_record(1))
        log = SessionLog(store)
        log.load()
        assert len(log) == 2

    def test_clear_clears_store(self, store):
        log = SessionLog(store)
        log.append(_record())
        log.clear()
        assert store.load_history() == []

    def test_store_failure_keeps_record_in_memory(self, caplog):
        failing = MagicMock()
        failing.append_session.side_effect = sqlite3.OperationalError("database is locked")
        log = SessionLog(failing)
        stored = log.append(_record())
        assert stored.id > 0
        assert len(log) == 1
        assert "Failed to persist session" in caplog.text

    def test_load_failure_starts_empty(self, caplog):
        failing = MagicMock()
        failing.load_history.side_effect = sqlite3.DatabaseError("corrupt")
        log = SessionLog(failing)
        log.load()
        assert len(log) == 0
        assert "Failed to load session history" in caplog.text
