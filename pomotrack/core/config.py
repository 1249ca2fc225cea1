"""Configuration loader for PomoTrack.

Handles loading, saving, and default creation of config.json.
Resolves platform-appropriate data directories:
  - macOS:   ~/Library/Application Support/PomoTrack
  - Windows: %APPDATA%/PomoTrack
  - Other:   ~/.pomotrack

Timer preferences (durations, auto-start, notifications) are user data and
live in the database alongside stats and history; this file only holds
where things are and how the app runs.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def get_data_directory() -> Path:
    """Return the platform-appropriate data directory for PomoTrack."""
    if sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    elif sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
    else:
        base = Path.home()
        return base / ".pomotrack"
    return base / "PomoTrack"


def get_default_config() -> dict[str, Any]:
    """Return the default configuration dictionary."""
    data_dir = get_data_directory()
    return {
        "database_path": str(data_dir / "pomotrack.db"),
        "log_level": "INFO",
        "dashboard": {
            "enabled": True,
            "host": "127.0.0.1",
            "port": 5566,
        },
        "report": {
            "user_name": "",
            "output_directory": "~/pomotrack-reports",
        },
    }


def get_default_config_path() -> Path:
    """Return the default path for config.json."""
    return get_data_directory() / "config.json"


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a JSON file.

    If *path* is ``None``, the platform default location is used.
    When the file does not exist, a default configuration is created,
    written to disk, and returned.  If the file exists but is invalid
    JSON, the error is logged and defaults are returned.  Keys missing
    from the file are filled in from the defaults.
    """
    config_path = Path(path) if path is not None else get_default_config_path()

    if not config_path.exists():
        logger.info("Config file not found at %s, creating defaults.", config_path)
        defaults = get_default_config()
        save_config(defaults, config_path)
        return defaults

    try:
        with open(config_path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        if not isinstance(data, dict):
            raise ValueError("Top-level JSON value must be an object")
    except (json.JSONDecodeError, ValueError, OSError) as exc:
        logger.error("Failed to load config from %s: %s. Using defaults.", config_path, exc)
        return get_default_config()

    return _merge_defaults(get_default_config(), data)


def save_config(config: dict[str, Any], path: str | Path | None = None) -> None:
    """Write *config* to a JSON file.

    If *path* is ``None``, the platform default location is used.
    Parent directories are created automatically.
    """
    config_path = Path(path) if path is not None else get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w", encoding="utf-8") as fh:
        json.dump(config, fh, indent=2, ensure_ascii=False)
        fh.write("\n")


def _merge_defaults(defaults: dict[str, Any], loaded: dict[str, Any]) -> dict[str, Any]:
    merged = dict(defaults)
    for key, value in loaded.items():
        if isinstance(value, dict) and isinstance(defaults.get(key), dict):
            merged[key] = _merge_defaults(defaults[key], value)
        else:
            merged[key] = value
    return merged
