"""Runtime configuration helpers for the timeline engines."""
from __future__ import annotations

import logging
import os
from typing import Optional

from pydantic import BaseModel, Field, model_validator

logger = logging.getLogger(__name__)

DEFAULT_DURATION = 600.0  # 10 minutes in seconds
MIN_DURATION = 1.0
DEFAULT_TIME_SCALE = 1.0
MIN_TIME_SCALE = 0.1
MAX_TIME_SCALE = 10.0
DEFAULT_FPS = 24.0
MIN_FPS = 1.0
MAX_FPS = 240.0
EXTEND_PADDING = 10.0
PLAYBACK_INTERVAL = 1.0 / 60.0


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.getenv(name, default)


def _get_float(name: str, default: float) -> float:
    raw = _get_env(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r, using %s", name, raw, default)
        return default


def get_default_duration() -> float:
    return _get_float("TIMELINE_DEFAULT_DURATION", DEFAULT_DURATION)


def get_min_duration() -> float:
    return _get_float("TIMELINE_MIN_DURATION", MIN_DURATION)


def get_default_time_scale() -> float:
    return _get_float("TIMELINE_DEFAULT_TIME_SCALE", DEFAULT_TIME_SCALE)


def get_min_time_scale() -> float:
    return _get_float("TIMELINE_MIN_TIME_SCALE", MIN_TIME_SCALE)


def get_max_time_scale() -> float:
    return _get_float("TIMELINE_MAX_TIME_SCALE", MAX_TIME_SCALE)


def get_default_fps() -> float:
    return _get_float("TIMELINE_DEFAULT_FPS", DEFAULT_FPS)


def get_min_fps() -> float:
    return _get_float("TIMELINE_MIN_FPS", MIN_FPS)


def get_max_fps() -> float:
    return _get_float("TIMELINE_MAX_FPS", MAX_FPS)


def get_extend_padding() -> float:
    return _get_float("TIMELINE_EXTEND_PADDING", EXTEND_PADDING)


def get_playback_interval() -> float:
    return _get_float("TIMELINE_PLAYBACK_INTERVAL", PLAYBACK_INTERVAL)


def config_snapshot() -> dict:
    """Return a snapshot of relevant env-driven config."""
    return {
        "default_duration": get_default_duration(),
        "min_duration": get_min_duration(),
        "default_time_scale": get_default_time_scale(),
        "min_time_scale": get_min_time_scale(),
        "max_time_scale": get_max_time_scale(),
        "default_fps": get_default_fps(),
        "min_fps": get_min_fps(),
        "max_fps": get_max_fps(),
        "extend_padding": get_extend_padding(),
        "playback_interval": get_playback_interval(),
    }


class TimelineSettings(BaseModel):
    """Resolved limits and defaults injected into the timeline store."""
    default_duration: float = Field(DEFAULT_DURATION, gt=0)
    min_duration: float = Field(MIN_DURATION, gt=0)
    default_time_scale: float = Field(DEFAULT_TIME_SCALE, gt=0)
    min_time_scale: float = Field(MIN_TIME_SCALE, gt=0)
    max_time_scale: float = Field(MAX_TIME_SCALE, gt=0)
    default_fps: float = Field(DEFAULT_FPS, gt=0)
    min_fps: float = Field(MIN_FPS, gt=0)
    max_fps: float = Field(MAX_FPS, gt=0)
    extend_padding: float = Field(EXTEND_PADDING, ge=0)
    playback_interval: float = Field(PLAYBACK_INTERVAL, gt=0)

    @model_validator(mode="after")
    def validate_ranges(self):
        if self.min_time_scale > self.max_time_scale:
            raise ValueError("min_time_scale must be <= max_time_scale")
        if self.min_fps > self.max_fps:
            raise ValueError("min_fps must be <= max_fps")
        if self.default_duration < self.min_duration:
            raise ValueError("default_duration must be >= min_duration")
        return self


def get_settings() -> TimelineSettings:
    return TimelineSettings(**config_snapshot())
