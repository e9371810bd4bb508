from __future__ import annotations

import math
from bisect import bisect_left

import numpy as np

from kinewatch.types import Curve, CurveReading, CurveSample


def _reading(sample: CurveSample) -> CurveReading:
    raw_value = sample.raw_value if math.isfinite(sample.raw_value) else None
    return CurveReading(normalized_intensity=sample.normalized_intensity, raw_value=raw_value)


def _interpolate_raw(previous: CurveSample, current: CurveSample, weight: float) -> float | None:
    if math.isfinite(previous.raw_value) and math.isfinite(current.raw_value):
        return previous.raw_value + weight * (current.raw_value - previous.raw_value)
    for value in (current.raw_value, previous.raw_value):
        if math.isfinite(value):
            return value
    return None


def sample_curve(curve: Curve, ratio: float | None) -> CurveReading | None:
    """Piecewise-linear reading of ``curve`` at ``ratio``.

    Ratios outside the sampled span return the nearest end sample unchanged.
    Returns None for an empty curve or a missing/non-finite ratio.
    """
    samples = curve.samples
    if not samples or ratio is None or not math.isfinite(ratio):
        return None
    first = samples[0]
    if ratio <= first.time_ratio:
        return _reading(first)
    last = samples[-1]
    if ratio >= last.time_ratio:
        return _reading(last)

    index = bisect_left([sample.time_ratio for sample in samples], ratio)
    previous = samples[index - 1]
    current = samples[index]
    span = current.time_ratio - previous.time_ratio
    if span <= 0:
        return _reading(current)
    weight = (ratio - previous.time_ratio) / span
    return CurveReading(
        normalized_intensity=previous.normalized_intensity
        + weight * (current.normalized_intensity - previous.normalized_intensity),
        raw_value=_interpolate_raw(previous, current, weight),
    )


def resample_curve(curve: Curve, count: int) -> list[dict[str, float | None]]:
    """Evenly spaced readings over ``[0, 1]``, for reports and previews."""
    if count < 2 or not curve:
        return []
    rows: list[dict[str, float | None]] = []
    for ratio in np.linspace(0.0, 1.0, count):
        reading = sample_curve(curve, float(ratio))
        if reading is None:
            continue
        rows.append(
            {
                "time_ratio": round(float(ratio), 6),
                "normalized_intensity": reading.normalized_intensity,
                "raw_value": reading.raw_value,
            }
        )
    return rows
