from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Sequence

import numpy as np

from kinewatch.chapters import DEFAULT_CHAPTER_TOLERANCE, compute_chapter_bounds, stitch_samples
from kinewatch.errors import SourceUnavailableError, SourceUnparseableError
from kinewatch.path_grammar import parse_path
from kinewatch.segment import DEFAULT_CALIBRATION, normalize_segment
from kinewatch.settings import Calibration
from kinewatch.types import Curve, CurveSample, PathSource, RawValueRange

logger = logging.getLogger(__name__)

DEFAULT_MERGE_TOLERANCE = 1e-4


def _usable(sample: CurveSample) -> bool:
    return math.isfinite(sample.time_ratio) and math.isfinite(sample.normalized_intensity)


def merge_samples(
    samples: Iterable[CurveSample],
    tolerance: float = DEFAULT_MERGE_TOLERANCE,
) -> list[CurveSample]:
    """Sort samples by time and fold near-identical timestamps into one.

    A sample closer than ``tolerance`` to the last retained sample is
    averaged into it; the retained sample keeps its own timestamp.
    """
    ordered = sorted((sample for sample in samples if _usable(sample)), key=lambda s: s.time_ratio)
    merged: list[CurveSample] = []
    for sample in ordered:
        if merged and abs(sample.time_ratio - merged[-1].time_ratio) < tolerance:
            previous = merged[-1]
            raw_value = previous.raw_value
            if math.isfinite(previous.raw_value) and math.isfinite(sample.raw_value):
                raw_value = (previous.raw_value + sample.raw_value) / 2
            merged[-1] = CurveSample(
                time_ratio=previous.time_ratio,
                normalized_intensity=(previous.normalized_intensity + sample.normalized_intensity) / 2,
                raw_value=raw_value,
            )
            continue
        merged.append(sample)
    return merged


def compute_raw_range(samples: Sequence[CurveSample]) -> RawValueRange:
    values = np.asarray([sample.raw_value for sample in samples], dtype=np.float64)
    values = values[np.isfinite(values)]
    if values.size == 0:
        return RawValueRange()
    return RawValueRange(minimum=float(values.min()), maximum=float(values.max()))


def assemble_curve(
    segments: Iterable[Iterable[CurveSample]],
    tolerance: float = DEFAULT_MERGE_TOLERANCE,
) -> Curve:
    merged = merge_samples((sample for segment in segments for sample in segment), tolerance)
    if not merged:
        raise SourceUnparseableError()
    return Curve(samples=tuple(merged), raw_range=compute_raw_range(merged))


def extract_curve(
    sources: Sequence[PathSource],
    calibration: Calibration = DEFAULT_CALIBRATION,
    merge_tolerance: float = DEFAULT_MERGE_TOLERANCE,
    chapter_tolerance: float = DEFAULT_CHAPTER_TOLERANCE,
) -> Curve:
    """Run the whole extraction pipeline over the heat-map paths of a page.

    Raises:
        SourceUnavailableError: no heat-map path was found.
        SourceUnparseableError: paths were found but yielded no samples.
    """
    if not sources:
        raise SourceUnavailableError()
    segments: list[list[CurveSample]] = []
    for source in sources:
        if not source.d:
            continue
        bounds = compute_chapter_bounds(source.geometry, chapter_tolerance)
        local_samples = normalize_segment(parse_path(source.d), calibration)
        segments.append(stitch_samples(local_samples, bounds))
    curve = assemble_curve(segments, merge_tolerance)
    logger.debug("Assembled %d samples from %d path(s)", len(curve), len(sources))
    return curve
