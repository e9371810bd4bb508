"""Chapter scoping: map each chapter's local timeline into the global one."""
from __future__ import annotations

import math

from kinewatch.path_grammar import parse_number
from kinewatch.segment import _clamp
from kinewatch.types import FULL_RANGE, ChapterBounds, ChapterGeometry, CurveSample, LocalSample

DEFAULT_CHAPTER_TOLERANCE = 1e-6


def parse_pixel_value(value: str | None) -> float | None:
    if not isinstance(value, str) or not value:
        return None
    parsed = parse_number(value.replace("px", ""))
    if parsed is None or not math.isfinite(parsed):
        return None
    return parsed


def _finite(value: float | None) -> bool:
    return value is not None and math.isfinite(value)


def compute_chapter_bounds(
    geometry: ChapterGeometry | None,
    tolerance: float = DEFAULT_CHAPTER_TOLERANCE,
) -> ChapterBounds:
    """Window of the global timeline covered by one chapter.

    Falls back to the full ``[0, 1]`` range whenever the layout is missing,
    non-finite, or collapses to a window no wider than ``tolerance``.
    """
    if geometry is None:
        return FULL_RANGE
    container = geometry.container_width_px
    left = geometry.offset_px
    width = geometry.width_px
    if not _finite(container) or container <= 0:
        return FULL_RANGE
    if not _finite(left) or not _finite(width):
        return FULL_RANGE

    start = _clamp(left / container, 0.0, 1.0)
    end = _clamp((left + width) / container, 0.0, 1.0)
    ordered_start = min(start, end)
    ordered_end = max(start, end)
    if ordered_end - ordered_start <= tolerance:
        return FULL_RANGE
    return ChapterBounds(has_chapter=True, start_ratio=ordered_start, end_ratio=ordered_end)


def stitch_samples(samples: list[LocalSample], bounds: ChapterBounds) -> list[CurveSample]:
    offset = bounds.offset
    scale = bounds.scale
    return [
        CurveSample(
            time_ratio=_clamp(offset + sample.local_time_ratio * scale, 0.0, 1.0),
            normalized_intensity=sample.normalized_intensity,
            raw_value=sample.raw_value,
        )
        for sample in samples
    ]
