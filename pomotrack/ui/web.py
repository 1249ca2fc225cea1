"""Web-based dashboard for PomoTrack.

A lightweight Flask app serving a single-page dashboard with:
- Timer display and controls
- Today/week goal progress and insights
- Settings editor
- Session history, export and import
"""

import dataclasses
import logging
import threading
from typing import Any

from flask import Flask, jsonify, render_template_string, request

logger = logging.getLogger(__name__)

# Will be set by start_dashboard()
_app_ref = None  # type: Optional[Any]  # PomoTrackApp


def _state_json(timer) -> dict[str, Any]:
    state = timer.state
    info = timer.mode_info()
    return {
        "mode": state.mode.value,
        "sessionIndex": state.session_index,
        "timeLeft": state.time_left,
        "totalTime": state.total_time,
        "running": state.running,
        "paused": state.paused,
        "interruptions": state.interruptions,
        "formattedTime": timer.formatted_time(),
        "progress": round(timer.progress_percent(), 1),
        "modeInfo": dataclasses.asdict(info),
        "autoStartPending": timer.auto_start_pending,
    }


def _progress_json(progress) -> dict[str, Any]:
    return {
        "completedSessions": progress.completed_sessions,
        "totalMinutes": progress.total_minutes,
        "goal": progress.goal,
        "progress": progress.progress,
        "remaining": progress.remaining,
    }


def _pattern_json(pattern) -> list[dict[str, Any]]:
    return [dataclasses.asdict(d) for d in pattern]


def _days_arg(default: int) -> int:
    try:
        days = int(request.args.get("days", default))
    except ValueError:
        return default
    return min(max(days, 1), 365)


def create_flask_app() -> Flask:
    app = Flask(__name__)
    app.config["SEND_FILE_MAX_AGE_DEFAULT"] = 0

    @app.before_request
    def _require_app():
        if request.path.startswith("/api/") and (_app_ref is None or _app_ref.timer is None):
            return jsonify({"error": "not initialized"}), 503
        return None

    @app.route("/")
    def index():
        return render_template_string(DASHBOARD_HTML)

    # -- Timer --

    @app.route("/api/status")
    def api_status():
        return jsonify(_state_json(_app_ref.timer))

    @app.route("/api/timer/<action>", methods=["POST"])
    def api_timer(action):
        timer = _app_ref.timer
        handlers = {
            "start": timer.start,
            "pause": timer.pause,
            "toggle": timer.toggle,
            "reset": timer.reset,
        }
        if action not in handlers:
            return jsonify({"error": f"unknown action {action!r}"}), 404
        handlers[action]()
        return jsonify(_state_json(timer))

    # -- Settings --

    @app.route("/api/settings")
    def api_get_settings():
        return jsonify(_app_ref.timer.settings.to_dict())

    @app.route("/api/settings", methods=["POST"])
    def api_save_settings():
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return jsonify({"error": "expected a JSON object"}), 400
        errors = _app_ref.timer.update_settings(data)
        return jsonify({"settings": _app_ref.timer.settings.to_dict(), "errors": errors})

    @app.route("/api/settings/reset", methods=["POST"])
    def api_reset_settings():
        return jsonify(_app_ref.reset_settings().to_dict())

    # -- Analytics --

    @app.route("/api/analytics/today")
    def api_today():
        return jsonify(_progress_json(_app_ref.analytics.today_stats()))

    @app.route("/api/analytics/week")
    def api_week():
        return jsonify(_progress_json(_app_ref.analytics.week_stats()))

    @app.route("/api/analytics/pattern")
    def api_pattern():
        return jsonify(_pattern_json(_app_ref.analytics.daily_pattern(_days_arg(7))))

    @app.route("/api/analytics/insights")
    def api_insights():
        i = _app_ref.analytics.productivity_insights()
        return jsonify({
            "today": _progress_json(i.today),
            "week": _progress_json(i.week),
            "averageDailySessions": i.average_daily_sessions,
            "mostProductiveDay": i.most_productive_day,
            "currentStreak": i.current_streak,
            "longestStreak": i.longest_streak,
            "totalSessions": i.total_sessions,
            "totalMinutes": i.total_minutes,
            "totalHours": i.total_hours,
            "dailyPattern": _pattern_json(i.daily_pattern),
        })

    @app.route("/api/analytics/breakdown")
    def api_breakdown():
        breakdown = _app_ref.analytics.session_type_breakdown(_days_arg(30))
        return jsonify({
            mode.value: {
                "completed": entry.completed,
                "interrupted": entry.interrupted,
                "totalMinutes": entry.total_minutes,
            }
            for mode, entry in breakdown.items()
        })

    # -- Stats and goals --

    @app.route("/api/stats")
    def api_stats():
        return jsonify(_app_ref.stats.snapshot.to_dict())

    @app.route("/api/stats/goals", methods=["POST"])
    def api_goals():
        data = request.get_json(silent=True) or {}
        changes = {}
        for key, attr in (("dailyGoal", "daily_goal"), ("weeklyGoal", "weekly_goal")):
            if key not in data:
                continue
            value = data[key]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                return jsonify({"error": f"{key} must be a non-negative integer"}), 400
            changes[attr] = value
        return jsonify(_app_ref.stats.update(**changes).to_dict())

    @app.route("/api/stats/reset", methods=["POST"])
    def api_reset_stats():
        return jsonify(_app_ref.stats.reset().to_dict())

    # -- History --

    @app.route("/api/history")
    def api_history():
        try:
            limit = int(request.args.get("limit", 10))
        except ValueError:
            limit = 10
        return jsonify([r.to_dict() for r in _app_ref.session_log.recent(limit)])

    @app.route("/api/history", methods=["DELETE"])
    def api_clear_history():
        _app_ref.session_log.clear()
        return jsonify({"ok": True})

    # -- Export / import --

    @app.route("/api/export")
    def api_export():
        return jsonify(_app_ref.export_data())

    @app.route("/api/import", methods=["POST"])
    def api_import():
        result = _app_ref.import_data(request.get_json(silent=True))
        return jsonify(result), (200 if result.get("success") else 400)

    return app


def start_dashboard(app_ref, host: str = "127.0.0.1", port: int = 5566) -> threading.Thread:
    """Start the Flask dashboard in a daemon thread."""
    global _app_ref
    _app_ref = app_ref
    flask_app = create_flask_app()

    def _run():
        flask_app.run(host=host, port=port, debug=False, use_reloader=False)

    t = threading.Thread(target=_run, daemon=True, name="pomotrack-web")
    t.start()
    logger.info("Dashboard started at http://%s:%d", host, port)
    return t


DASHBOARD_HTML = r"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>PomoTrack</title>
<style>
  :root { --bg: #f8f9fa; --card: #fff; --focus: #e74c3c; --break: #27ae60; --long: #3498db;
          --text: #333; --muted: #888; --border: #e5e5e5; }
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
         background: var(--bg); color: var(--text); line-height: 1.5; }
  .container { max-width: 720px; margin: 0 auto; padding: 20px; }
  h1 { font-size: 1.4em; font-weight: 600; margin-bottom: 20px; }
  .card { background: var(--card); border-radius: 10px; padding: 20px; margin-bottom: 16px;
          box-shadow: 0 1px 3px rgba(0,0,0,0.06); }
  .card h2 { font-weight: 600; margin-bottom: 12px; color: var(--muted); text-transform: uppercase;
             letter-spacing: 0.5px; font-size: 0.75em; }
  .timer { font-size: 4em; font-weight: 300; text-align: center; font-variant-numeric: tabular-nums; }
  .mode { text-align: center; color: var(--muted); }
  .focus-mode .timer { color: var(--focus); } .break-mode .timer { color: var(--break); }
  .long-break-mode .timer { color: var(--long); }
  .bar { height: 6px; background: var(--border); border-radius: 3px; overflow: hidden; margin: 12px 0; }
  .bar > div { height: 100%; background: currentColor; width: 0; }
  .controls { display: flex; gap: 8px; justify-content: center; }
  button { padding: 8px 18px; border: 1px solid var(--border); border-radius: 6px; background: #fff; cursor: pointer; }
  table { width: 100%; border-collapse: collapse; font-size: 0.9em; }
  td, th { padding: 4px 6px; text-align: left; border-bottom: 1px solid var(--border); }
  label { display: flex; justify-content: space-between; margin: 4px 0; font-size: 0.9em; }
  input[type=number] { width: 70px; }
</style>
</head>
<body>
<div class="container">
  <h1>🍅 PomoTrack</h1>
  <div class="card" id="timer-card">
    <div class="mode" id="mode"></div>
    <div class="timer" id="time">25:00</div>
    <div class="bar"><div id="bar"></div></div>
    <div class="controls">
      <button onclick="act('toggle')" id="toggle">Start</button>
      <button onclick="act('reset')">Reset</button>
    </div>
  </div>
  <div class="card"><h2>Progress</h2><div id="progress"></div></div>
  <div class="card"><h2>Recent Sessions</h2><table id="history"></table></div>
  <div class="card"><h2>Settings</h2><form id="settings"></form>
    <div class="controls"><button onclick="saveSettings()">Save</button>
    <button onclick="location.href='/api/export'">Export</button></div></div>
</div>
<script>
const NUMERIC = ['focusTime','shortBreakTime','longBreakTime','sessionsBeforeLongBreak'];
const BOOLS = ['autoStartBreaks','autoStartPomodoros','soundEnabled','notificationsEnabled'];

async function act(action) { render(await (await fetch('/api/timer/' + action, {method: 'POST'})).json()); }

function render(s) {
  document.getElementById('timer-card').className = 'card ' + s.modeInfo.class_name;
  document.getElementById('time').textContent = s.formattedTime;
  document.getElementById('mode').textContent = s.modeInfo.icon + ' ' + s.modeInfo.title + ' · ' + s.modeInfo.description;
  document.getElementById('bar').style.width = s.progress + '%';
  document.getElementById('toggle').textContent = s.running && !s.paused ? 'Pause' : (s.paused ? 'Resume' : 'Start');
  document.title = (s.running ? s.formattedTime + ' · ' : '') + 'PomoTrack';
}

async function refreshStatus() { render(await (await fetch('/api/status')).json()); }

async function refreshProgress() {
  const i = await (await fetch('/api/analytics/insights')).json();
  document.getElementById('progress').innerHTML =
    `<p>Today: ${i.today.completedSessions}/${i.today.goal} (${Math.round(i.today.progress)}%)</p>` +
    `<p>This week: ${i.week.completedSessions}/${i.week.goal} (${Math.round(i.week.progress)}%)</p>` +
    `<p>Streak: ${i.currentStreak} days · Longest: ${i.longestStreak} · Best day: ${i.mostProductiveDay}</p>` +
    `<p>All time: ${i.totalSessions} sessions, ${i.totalHours} h</p>`;
  const h = await (await fetch('/api/history?limit=8')).json();
  document.getElementById('history').innerHTML = '<tr><th>When</th><th>Type</th><th>Min</th><th>Done</th></tr>' +
    h.map(r => `<tr><td>${r.timestamp.replace('T', ' ').slice(0, 16)}</td><td>${r.type}</td>` +
               `<td>${r.duration}</td><td>${r.completed ? '✓' : '✗'}</td></tr>`).join('');
}

async function loadSettings() {
  const s = await (await fetch('/api/settings')).json();
  document.getElementById('settings').innerHTML =
    NUMERIC.map(k => `<label>${k}<input type="number" name="${k}" value="${s[k]}"></label>`).join('') +
    BOOLS.map(k => `<label>${k}<input type="checkbox" name="${k}" ${s[k] ? 'checked' : ''}></label>`).join('');
}

async function saveSettings() {
  const form = document.getElementById('settings');
  const body = {};
  NUMERIC.forEach(k => body[k] = parseInt(form.elements[k].value, 10));
  BOOLS.forEach(k => body[k] = form.elements[k].checked);
  const res = await (await fetch('/api/settings', {method: 'POST', headers: {'Content-Type': 'application/json'},
                                                  body: JSON.stringify(body)})).json();
  if (res.errors.length) alert(res.errors.join('\n'));
  loadSettings(); refreshStatus();
}

setInterval(refreshStatus, 1000);
setInterval(refreshProgress, 15000);
refreshStatus(); refreshProgress(); loadSettings();
</script>
</body>
</html>"""
