"""Validation of user-supplied timer settings.

Accepts loosely typed mappings (dashboard JSON, imported bundles, stored
values) keyed by either attribute names or the exported camelCase keys and
produces a typed :class:`Settings` plus a list of field-level errors.
Invalid fields are dropped so the rest of an update still applies.
"""

import dataclasses
import logging
from typing import Any, Mapping, Optional

from pomotrack.core.models import Settings

logger = logging.getLogger(__name__)

# attribute -> (min, max), inclusive
NUMERIC_LIMITS: dict[str, tuple[int, int]] = {
    "focus_time": (1, 120),
    "short_break_time": (1, 60),
    "long_break_time": (1, 120),
    "sessions_before_long_break": (2, 20),
}

BOOLEAN_FIELDS = (
    "auto_start_breaks",
    "auto_start_pomodoros",
    "sound_enabled",
    "notifications_enabled",
    "always_on_top",
    "minimize_to_tray",
)

THEMES = ("light", "dark", "auto")


def validate_settings(
    raw: Mapping[str, Any], base: Optional[Settings] = None
) -> tuple[Settings, list[str]]:
    """Merge *raw* over *base* (defaults when ``None``).

    Returns the merged settings and one error string per rejected field.
    Unknown keys are ignored.
    """
    base = base or Settings()
    accepted: dict[str, Any] = {}
    errors: list[str] = []

    for key, value in raw.items():
        attr = Settings.field_for_key(key)
        if attr is None:
            logger.debug("Ignoring unknown setting %r", key)
            continue

        if attr in NUMERIC_LIMITS:
            number = _coerce_int(value)
            low, high = NUMERIC_LIMITS[attr]
            if number is None or not low <= number <= high:
                errors.append(f"{key}: expected an integer between {low} and {high}, got {value!r}")
                continue
            accepted[attr] = number
        elif attr in BOOLEAN_FIELDS:
            flag = _coerce_bool(value)
            if flag is None:
                errors.append(f"{key}: expected a boolean, got {value!r}")
                continue
            accepted[attr] = flag
        elif attr == "theme":
            if value not in THEMES:
                errors.append(f"{key}: expected one of {', '.join(THEMES)}, got {value!r}")
                continue
            accepted[attr] = value

    for message in errors:
        logger.warning("Invalid setting dropped: %s", message)

    return dataclasses.replace(base, **accepted), errors


def _coerce_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _coerce_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    return None
