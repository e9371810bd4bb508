from __future__ import annotations

import pytest

from kinewatch.status import TickReading, format_overlay_text


def test_overlay_without_reading() -> None:
    assert format_overlay_text(None) == "KineWatch —"
    assert format_overlay_text(TickReading(float("nan"), None, None, None, True)) == "KineWatch —"


def test_overlay_full_reading() -> None:
    reading = TickReading(
        playback_rate=1.5,
        target_rate=1.75,
        normalized_intensity=0.4,
        raw_ratio=0.5,
        curve_available=True,
    )
    assert format_overlay_text(reading) == "KineWatch 1.50× → 1.75× • heat 40% • raw 50% • speed 50%"


def test_overlay_hides_target_within_threshold() -> None:
    reading = TickReading(1.5, 1.505, 0.2, 0.25, True)
    assert format_overlay_text(reading) == "KineWatch 1.50× • heat 20% • raw 25% • speed 25%"


def test_overlay_without_curve() -> None:
    reading = TickReading(1.0, None, None, None, False)
    assert format_overlay_text(reading) == "KineWatch 1.00× • heat-map unavailable"


@pytest.mark.parametrize("raw_ratio", [None, 0.3])
def test_speed_ratio_follows_raw_ratio(raw_ratio: float | None) -> None:
    assert TickReading(1.0, 1.0, 0.5, raw_ratio, True).speed_ratio == raw_ratio
