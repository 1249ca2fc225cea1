"""Tests for timer settings validation."""

import pytest

from pomotrack.core.models import Settings, TimerMode
from pomotrack.core.settings import validate_settings


class TestValidateSettings:
    def test_empty_mapping_gives_defaults(self):
        settings, errors = validate_settings({})
        assert settings == Settings()
        assert errors == []

    def test_exported_keys_are_accepted(self):
        settings, errors = validate_settings({
            "focusTime": 50,
            "shortBreakTime": 10,
            "autoStartBreaks": True,
            "theme": "dark",
        })
        assert errors == []
        assert settings.focus_time == 50
        assert settings.short_break_time == 10
        assert settings.auto_start_breaks is True
        assert settings.theme == "dark"

    def test_attribute_names_are_accepted(self):
        settings, _ = validate_settings({"long_break_time": 20})
        assert settings.long_break_time == 20

    def test_merges_over_base(self):
        base = Settings(focus_time=40, sound_enabled=False)
        settings, _ = validate_settings({"shortBreakTime": 7}, base=base)
        assert settings.focus_time == 40
        assert settings.sound_enabled is False
        assert settings.short_break_time == 7

    @pytest.mark.parametrize("key,value", [
        ("focusTime", 1), ("focusTime", 120),
        ("shortBreakTime", 60), ("longBreakTime", 120),
        ("sessionsBeforeLongBreak", 2), ("sessionsBeforeLongBreak", 20),
    ])
    def test_range_bounds_are_inclusive(self, key, value):
        _, errors = validate_settings({key: value})
        assert errors == []

    @pytest.mark.parametrize("key,value", [
        ("focusTime", 0), ("focusTime", 121),
        ("shortBreakTime", 61), ("sessionsBeforeLongBreak", 1),
        ("focusTime", -5), ("focusTime", "abc"), ("focusTime", 2.5), ("focusTime", None),
    ])
    def test_out_of_range_is_rejected(self, key, value):
        settings, errors = validate_settings({key: value})
        assert len(errors) == 1
        assert errors[0].startswith(key)
        assert settings == Settings()

    def test_bool_is_not_a_number(self):
        _, errors = validate_settings({"focusTime": True})
        assert len(errors) == 1

    def test_numeric_strings_and_whole_floats_are_coerced(self):
        settings, errors = validate_settings({"focusTime": "45", "shortBreakTime": 6.0})
        assert errors == []
        assert settings.focus_time == 45
        assert settings.short_break_time == 6

    def test_boolean_coercion(self):
        settings, errors = validate_settings({"soundEnabled": "false", "autoStartPomodoros": 1})
        assert errors == []
        assert settings.sound_enabled is False
        assert settings.auto_start_pomodoros is True

    def test_invalid_boolean_is_rejected(self):
        _, errors = validate_settings({"soundEnabled": "sometimes"})
        assert len(errors) == 1

    def test_invalid_theme_is_rejected(self):
        settings, errors = validate_settings({"theme": "neon"})
        assert settings.theme == "auto"
        assert "theme" in errors[0]

    def test_unknown_keys_are_ignored(self):
        settings, errors = validate_settings({"volume": 11})
        assert errors == []
        assert settings == Settings()

    def test_invalid_fields_are_logged(self, caplog):
        validate_settings({"focusTime": 500})
        assert "Invalid setting dropped" in caplog.text


class TestSettingsModel:
    def test_duration_for_each_mode(self):
        settings = Settings(focus_time=30, short_break_time=6, long_break_time=20)
        assert settings.duration_for(TimerMode.FOCUS) == 30
        assert settings.duration_for(TimerMode.SHORT_BREAK) == 6
        assert settings.duration_for(TimerMode.LONG_BREAK) == 20

    def test_to_dict_uses_exported_keys(self):
        data = Settings().to_dict()
        assert data["focusTime"] == 25
        assert data["sessionsBeforeLongBreak"] == 4
        assert data["minimizeToTray"] is True
        assert len(data) == 11

    def test_to_dict_round_trips_through_validation(self):
        original = Settings(focus_time=33, theme="light", always_on_top=True)
        restored, errors = validate_settings(original.to_dict())
        assert errors == []
        assert restored == original
