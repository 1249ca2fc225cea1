"""Tests for the Flask dashboard API."""

from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

from pomotrack.core.clock import ManualClock
from pomotrack.core.config import get_default_config, save_config
from pomotrack.ui import web
from pomotrack.ui.app import PomoTrackApp


@pytest.fixture
def app_ref(tmp_path):
    config = get_default_config()
    config["database_path"] = str(tmp_path / "test.db")
    config_path = str(tmp_path / "config.json")
    save_config(config, config_path)

    instance = PomoTrackApp(config_path)
    with patch("pomotrack.ui.app.create_notifier", return_value=MagicMock()):
        instance._init_components()
    clock = ManualClock(datetime.now().replace(hour=9, minute=0, second=0, microsecond=0))
    instance.timer.clock = clock
    instance.analytics.clock = clock
    yield instance
    instance.stop()


@pytest.fixture
def client(app_ref, monkeypatch):
    monkeypatch.setattr(web, "_app_ref", app_ref)
    flask_app = web.create_flask_app()
    flask_app.config["TESTING"] = True
    return flask_app.test_client()


def _finish_focus(app_ref) -> None:
    app_ref.timer.start()
    app_ref.timer.clock.advance(app_ref.timer.time_left)


class TestIndex:
    def test_serves_dashboard(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert b"PomoTrack" in resp.data

    def test_api_before_init(self, monkeypatch):
        monkeypatch.setattr(web, "_app_ref", None)
        resp = web.create_flask_app().test_client().get("/api/status")
        assert resp.status_code == 503


class TestTimerApi:
    def test_status(self, client):
        data = client.get("/api/status").get_json()
        assert data["mode"] == "focus"
        assert data["timeLeft"] == 1500
        assert data["formattedTime"] == "25:00"
        assert data["running"] is False
        assert data["modeInfo"]["description"] == "Session 1 of 4"

    def test_start_and_pause(self, client, app_ref):
        data = client.post("/api/timer/start").get_json()
        assert data["running"] is True
        app_ref.timer.clock.advance(10)
        data = client.post("/api/timer/pause").get_json()
        assert data["paused"] is True
        assert data["timeLeft"] == 1490
        assert data["interruptions"] == 1

    def test_toggle_and_reset(self, client):
        client.post("/api/timer/toggle")
        data = client.post("/api/timer/reset").get_json()
        assert data["running"] is False
        assert data["timeLeft"] == 1500

    def test_unknown_action(self, client):
        assert client.post("/api/timer/explode").status_code == 404


class TestSettingsApi:
    def test_get_settings(self, client):
        data = client.get("/api/settings").get_json()
        assert data["focusTime"] == 25
        assert data["theme"] == "auto"

    def test_update_settings(self, client, app_ref):
        resp = client.post("/api/settings", json={"focusTime": 40, "longBreakTime": 500})
        data = resp.get_json()
        assert data["settings"]["focusTime"] == 40
        assert data["settings"]["longBreakTime"] == 15
        assert len(data["errors"]) == 1
        assert app_ref.timer.time_left == 2400

    def test_update_settings_requires_object(self, client):
        resp = client.post("/api/settings", data="nope", content_type="application/json")
        assert resp.status_code == 400

    def test_reset_settings(self, client):
        client.post("/api/settings", json={"focusTime": 40})
        data = client.post("/api/settings/reset").get_json()
        assert data["focusTime"] == 25


class TestAnalyticsApi:
    def test_today_after_session(self, client, app_ref):
        _finish_focus(app_ref)
        data = client.get("/api/analytics/today").get_json()
        assert data["completedSessions"] == 1
        assert data["totalMinutes"] == 25
        assert data["progress"] == 12.5

    def test_week(self, client):
        data = client.get("/api/analytics/week").get_json()
        assert data["goal"] == 40

    def test_pattern_days(self, client):
        data = client.get("/api/analytics/pattern?days=3").get_json()
        assert len(data) == 3
        assert set(data[0]) == {"date", "day", "sessions", "minutes"}

    def test_pattern_bad_days_falls_back(self, client):
        assert len(client.get("/api/analytics/pattern?days=abc").get_json()) == 7

    def test_insights(self, client, app_ref):
        _finish_focus(app_ref)
        data = client.get("/api/analytics/insights").get_json()
        assert data["totalSessions"] == 1
        assert data["totalMinutes"] == 25
        assert len(data["dailyPattern"]) == 30
        assert data["today"]["completedSessions"] == 1

    def test_breakdown(self, client, app_ref):
        _finish_focus(app_ref)
        data = client.get("/api/analytics/breakdown").get_json()
        assert data["focus"]["completed"] == 1
        assert data["shortBreak"]["completed"] == 0


class TestStatsApi:
    def test_update_goals(self, client):
        data = client.post("/api/stats/goals", json={"dailyGoal": 6}).get_json()
        assert data["dailyGoal"] == 6
        assert data["weeklyGoal"] == 40

    def test_invalid_goal(self, client):
        resp = client.post("/api/stats/goals", json={"dailyGoal": -1})
        assert resp.status_code == 400

    def test_reset_stats(self, client, app_ref):
        _finish_focus(app_ref)
        data = client.post("/api/stats/reset").get_json()
        assert data["completedSessions"] == 0
        assert data["dailyGoal"] == 8


class TestHistoryApi:
    def test_recent_history(self, client, app_ref):
        _finish_focus(app_ref)
        _finish_focus(app_ref)
        data = client.get("/api/history?limit=1").get_json()
        assert len(data) == 1
        assert data[0]["type"] == "shortBreak"

    def test_clear_history(self, client, app_ref):
        _finish_focus(app_ref)
        client.delete("/api/history")
        assert client.get("/api/history").get_json() == []


class TestExportImportApi:
    def test_export(self, client, app_ref):
        _finish_focus(app_ref)
        data = client.get("/api/export").get_json()
        assert set(data) == {"settings", "stats", "sessionHistory", "exportDate"}
        assert len(data["sessionHistory"]) == 1

    def test_import_round_trip(self, client, app_ref):
        _finish_focus(app_ref)
        bundle = client.get("/api/export").get_json()
        client.delete("/api/history")
        resp = client.post("/api/import", json=bundle)
        assert resp.status_code == 200
        assert len(app_ref.session_log) == 1

    def test_import_failure(self, client):
        resp = client.post("/api/import", json=[1, 2])
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    def test_import_wrong_section_type(self, client):
        resp = client.post("/api/import", json={"stats": [1, 2]})
        assert resp.status_code == 400
        assert "object" in resp.get_json()["error"]
