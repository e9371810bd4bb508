from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from kinewatch.segment import _clamp


class PlaybackSource(Protocol):
    """Position accessor and rate sink of the observed media."""

    @property
    def playback_rate(self) -> float | None:
        ...

    def position_ratio(self) -> float | None:
        ...

    def set_playback_rate(self, rate: float) -> None:
        ...


@dataclass
class SimulatedPlayback:
    duration: float | None
    current_time: float = 0.0
    playback_rate: float = 1.0

    def position_ratio(self) -> float | None:
        if self.duration is None or not math.isfinite(self.duration) or self.duration <= 0:
            return None
        return _clamp(self.current_time / self.duration, 0.0, 1.0)

    def set_playback_rate(self, rate: float) -> None:
        self.playback_rate = rate

    def advance(self, wall_seconds: float) -> None:
        self.current_time += wall_seconds * self.playback_rate
        if self.duration is not None and math.isfinite(self.duration):
            self.current_time = min(self.current_time, self.duration)

    @property
    def ended(self) -> bool:
        return self.duration is not None and self.current_time >= self.duration
