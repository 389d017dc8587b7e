import logging

import pytest
from pydantic import ValidationError

from timeline_engines.config import runtime_config


def test_defaults(monkeypatch):
    for key in ("TIMELINE_DEFAULT_DURATION", "TIMELINE_MAX_TIME_SCALE", "TIMELINE_DEFAULT_FPS"):
        monkeypatch.delenv(key, raising=False)
    snapshot = runtime_config.config_snapshot()
    assert snapshot["default_duration"] == 600.0
    assert snapshot["max_time_scale"] == 10.0
    assert snapshot["default_fps"] == 24.0


def test_env_override(monkeypatch):
    monkeypatch.setenv("TIMELINE_DEFAULT_DURATION", "120")
    monkeypatch.setenv("TIMELINE_EXTEND_PADDING", "2.5")
    settings = runtime_config.get_settings()
    assert settings.default_duration == 120
    assert settings.extend_padding == 2.5


def test_bad_value_falls_back(monkeypatch, caplog):
    monkeypatch.setenv("TIMELINE_DEFAULT_FPS", "fast")
    with caplog.at_level(logging.WARNING, logger="timeline_engines.config.runtime_config"):
        assert runtime_config.get_default_fps() == 24.0
    assert "TIMELINE_DEFAULT_FPS" in caplog.text


def test_inconsistent_ranges_rejected(monkeypatch):
    monkeypatch.setenv("TIMELINE_MIN_TIME_SCALE", "20")
    with pytest.raises(ValidationError, match="min_time_scale"):
        runtime_config.get_settings()
