"""Speed configuration and the ratio-to-speed mapping."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from kinewatch.segment import _clamp
from kinewatch.settings import SpeedLimits
from kinewatch.types import RawValueRange

DEFAULT_SPEED_LIMITS = SpeedLimits()


@dataclass(frozen=True)
class RateConfig:
    min_speed: float
    max_speed: float

    def to_dict(self) -> dict[str, float]:
        return {"min_speed": self.min_speed, "max_speed": self.max_speed}


DEFAULT_RATE_CONFIG = RateConfig(
    min_speed=DEFAULT_SPEED_LIMITS.default_min_speed,
    max_speed=DEFAULT_SPEED_LIMITS.default_max_speed,
)

# Keys written by the browser-side store.
_KEY_ALIASES = {"minSpeed": "min_speed", "maxSpeed": "max_speed"}


def _canonical_keys(value: Mapping[str, Any] | None) -> dict[str, Any]:
    return {_KEY_ALIASES.get(key, key): val for key, val in (value or {}).items()}


def _coerce(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def sanitize_speed(value: Any, fallback: float, limits: SpeedLimits = DEFAULT_SPEED_LIMITS) -> float:
    number = _coerce(value)
    if number is None:
        return fallback
    return _clamp(number, limits.minimum, limits.maximum)


def normalize_config(
    value: Mapping[str, Any] | RateConfig | None = None,
    limits: SpeedLimits = DEFAULT_SPEED_LIMITS,
) -> RateConfig:
    """Coerce untrusted speed settings into a valid RateConfig.

    Missing or non-numeric speeds fall back to the defaults, values are
    clamped into the admissible range and swapped when inverted.
    """
    if isinstance(value, RateConfig):
        value = value.to_dict()
    source = _canonical_keys(value)
    min_speed = sanitize_speed(source.get("min_speed"), limits.default_min_speed, limits)
    max_speed = sanitize_speed(source.get("max_speed"), limits.default_max_speed, limits)
    if min_speed > max_speed:
        min_speed, max_speed = max_speed, min_speed
    return RateConfig(min_speed=round(min_speed, 3), max_speed=round(max_speed, 3))


def merge_config(current: RateConfig, partial: Mapping[str, Any] | None, limits: SpeedLimits = DEFAULT_SPEED_LIMITS) -> RateConfig:
    merged = current.to_dict()
    merged.update({key: val for key, val in _canonical_keys(partial).items() if key in merged})
    return normalize_config(merged, limits)


def config_changed(previous: RateConfig, current: RateConfig, tolerance: float = 1e-6) -> bool:
    return (
        abs(previous.min_speed - current.min_speed) > tolerance
        or abs(previous.max_speed - current.max_speed) > tolerance
    )


def raw_value_ratio(raw_value: float | None, raw_range: RawValueRange) -> float | None:
    """Position of ``raw_value`` within the curve's raw range, in ``[0, 1]``."""
    if raw_value is None or not math.isfinite(raw_value) or not raw_range.available:
        return None
    span = raw_range.maximum - raw_range.minimum
    return _clamp((raw_value - raw_range.minimum) / span, 0.0, 1.0)


def map_rate(ratio: float | None, config: RateConfig, limits: SpeedLimits = DEFAULT_SPEED_LIMITS) -> float:
    if ratio is None or not math.isfinite(ratio):
        return config.min_speed
    span = config.max_speed - config.min_speed
    if span <= 0:
        return config.min_speed
    speed = config.min_speed + _clamp(ratio, 0.0, 1.0) * span
    return _clamp(speed, limits.minimum, limits.maximum)


def should_apply_rate(current: float | None, target: float, limits: SpeedLimits = DEFAULT_SPEED_LIMITS) -> bool:
    if current is None or not math.isfinite(current):
        return True
    return abs(current - target) > limits.apply_threshold
