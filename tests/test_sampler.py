from __future__ import annotations

import math

import pytest

from kinewatch.assembler import assemble_curve
from kinewatch.sampler import resample_curve, sample_curve
from kinewatch.types import EMPTY_CURVE, CurveSample


def _curve(*points: tuple[float, float, float]):
    return assemble_curve([[CurveSample(t, i, raw) for t, i, raw in points]])


def test_linear_interpolation() -> None:
    curve = _curve((0.0, 0.2, 80.0), (1.0, 0.8, 20.0))
    reading = sample_curve(curve, 0.25)
    assert reading is not None
    assert reading.normalized_intensity == pytest.approx(0.35)
    assert reading.raw_value == pytest.approx(65.0)


def test_flat_extrapolation_outside_samples() -> None:
    curve = _curve((0.2, 0.3, 70.0), (0.8, 0.9, 10.0))
    before = sample_curve(curve, 0.05)
    after = sample_curve(curve, 0.95)
    assert (before.normalized_intensity, before.raw_value) == (0.3, 70.0)
    assert (after.normalized_intensity, after.raw_value) == (0.9, 10.0)


def test_exact_sample_time_returns_sample() -> None:
    curve = _curve((0.0, 0.1, 90.0), (0.5, 0.5, 50.0), (1.0, 0.9, 10.0))
    reading = sample_curve(curve, 0.5)
    assert reading.normalized_intensity == pytest.approx(0.5)
    assert reading.raw_value == pytest.approx(50.0)


@pytest.mark.parametrize("ratio", [None, math.nan, math.inf])
def test_no_reading_for_invalid_ratio(ratio: float | None) -> None:
    curve = _curve((0.0, 0.2, 80.0), (1.0, 0.8, 20.0))
    assert sample_curve(curve, ratio) is None


def test_no_reading_for_empty_curve() -> None:
    assert sample_curve(EMPTY_CURVE, 0.5) is None


def test_sampling_is_deterministic() -> None:
    curve = _curve((0.0, 0.13, 87.0), (0.37, 0.71, 29.0), (1.0, 0.42, 58.0))
    assert sample_curve(curve, 0.123456) == sample_curve(curve, 0.123456)


def test_resample_curve_covers_unit_range() -> None:
    curve = _curve((0.0, 0.2, 80.0), (1.0, 0.8, 20.0))
    rows = resample_curve(curve, 5)
    assert [row["time_ratio"] for row in rows] == [0.0, 0.25, 0.5, 0.75, 1.0]
    assert rows[2]["normalized_intensity"] == pytest.approx(0.5)
    assert resample_curve(EMPTY_CURVE, 5) == []
