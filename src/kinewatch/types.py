from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class RawPoint:
    """A coordinate pair in a path segment's local space."""

    x: float
    y: float


@dataclass(frozen=True)
class LocalSample:
    local_time_ratio: float
    normalized_intensity: float
    raw_value: float


@dataclass(frozen=True)
class ChapterGeometry:
    """Layout of one chapter slice inside the progress-bar container.

    Attributes:
        offset_px: Left offset of the chapter element
        width_px: Width of the chapter element
        container_width_px: Width of the element holding all chapters
    """

    offset_px: float | None
    width_px: float | None
    container_width_px: float | None


@dataclass(frozen=True)
class ChapterBounds:
    has_chapter: bool
    start_ratio: float
    end_ratio: float

    @property
    def scale(self) -> float:
        extent = self.end_ratio - self.start_ratio
        return extent if extent > 0 else 1.0

    @property
    def offset(self) -> float:
        return self.start_ratio if self.has_chapter else 0.0


FULL_RANGE = ChapterBounds(has_chapter=False, start_ratio=0.0, end_ratio=1.0)


@dataclass(frozen=True)
class CurveSample:
    time_ratio: float
    normalized_intensity: float
    raw_value: float

    def to_dict(self) -> dict[str, float]:
        return {
            "time_ratio": self.time_ratio,
            "normalized_intensity": self.normalized_intensity,
            "raw_value": self.raw_value,
        }


@dataclass(frozen=True)
class RawValueRange:
    minimum: float = 0.0
    maximum: float = 0.0

    @property
    def available(self) -> bool:
        return (
            math.isfinite(self.minimum)
            and math.isfinite(self.maximum)
            and self.maximum > self.minimum
        )


@dataclass(frozen=True)
class Curve:
    """Time-ordered, deduplicated engagement samples spanning the whole media."""

    samples: tuple[CurveSample, ...] = ()
    raw_range: RawValueRange = field(default_factory=RawValueRange)

    def __len__(self) -> int:
        return len(self.samples)

    def __bool__(self) -> bool:
        return bool(self.samples)

    def to_dict(self) -> dict[str, Any]:
        return {
            "samples": [sample.to_dict() for sample in self.samples],
            "raw_range": {"min": self.raw_range.minimum, "max": self.raw_range.maximum},
        }


EMPTY_CURVE = Curve()


@dataclass(frozen=True)
class CurveReading:
    normalized_intensity: float
    raw_value: float | None


@dataclass(frozen=True)
class PathSource:
    """One heat-map path description and its optional chapter layout."""

    d: str
    geometry: ChapterGeometry | None = None
