from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from kinewatch.rate import RateConfig
from kinewatch.segment import _clamp

OVERLAY_PREFIX = "KineWatch"
OVERLAY_TARGET_THRESHOLD = 0.01


@dataclass(frozen=True)
class TickReading:
    playback_rate: float | None
    target_rate: float | None
    normalized_intensity: float | None
    raw_ratio: float | None
    curve_available: bool

    @property
    def speed_ratio(self) -> float | None:
        return self.raw_ratio


@dataclass(frozen=True)
class StatusSnapshot:
    config: RateConfig
    curve_available: bool
    raw_range_available: bool
    last_error: str | None
    playback_rate: float | None
    max_raw_value: float
    media_id: str | None
    state: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "config": self.config.to_dict(),
            "curve_available": self.curve_available,
            "raw_range_available": self.raw_range_available,
            "last_error": self.last_error,
            "playback_rate": self.playback_rate,
            "max_raw_value": self.max_raw_value,
            "media_id": self.media_id,
            "state": self.state,
        }


def _finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def _percent(value: float) -> str:
    return f"{_clamp(value, 0.0, 1.0) * 100:.0f}%"


def format_overlay_text(reading: TickReading | None) -> str:
    """One-line status text, e.g. ``KineWatch 1.50× → 1.75× • heat 40%``."""
    if reading is None or not _finite(reading.playback_rate):
        return f"{OVERLAY_PREFIX} —"
    rate = reading.playback_rate
    text = f"{OVERLAY_PREFIX} {rate:.2f}×"
    if _finite(reading.target_rate) and abs(reading.target_rate - rate) > OVERLAY_TARGET_THRESHOLD:
        text += f" → {reading.target_rate:.2f}×"
    if not reading.curve_available:
        return text + " • heat-map unavailable"
    if _finite(reading.normalized_intensity):
        text += f" • heat {_percent(reading.normalized_intensity)}"
    if _finite(reading.raw_ratio):
        text += f" • raw {_percent(reading.raw_ratio)}"
    if _finite(reading.speed_ratio):
        text += f" • speed {_percent(reading.speed_ratio)}"
    return text
