from __future__ import annotations

from kinewatch.settings import Calibration
from kinewatch.types import LocalSample, RawPoint

DEFAULT_CALIBRATION = Calibration()


def _clamp(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))


def normalize_time(x: float, calibration: Calibration = DEFAULT_CALIBRATION) -> float:
    return _clamp((x - calibration.x0) / calibration.x_span, 0.0, 1.0)


def normalize_intensity(y: float, calibration: Calibration = DEFAULT_CALIBRATION) -> float:
    # Screen-space y: smaller y is drawn higher and means hotter.
    return _clamp((calibration.y_max - y) / calibration.y_max, 0.0, 1.0)


def normalize_point(point: RawPoint, calibration: Calibration = DEFAULT_CALIBRATION) -> LocalSample:
    return LocalSample(
        local_time_ratio=normalize_time(point.x, calibration),
        normalized_intensity=normalize_intensity(point.y, calibration),
        raw_value=point.y,
    )


def normalize_segment(
    points: list[RawPoint],
    calibration: Calibration = DEFAULT_CALIBRATION,
) -> list[LocalSample]:
    return [normalize_point(point, calibration) for point in points]
