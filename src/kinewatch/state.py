from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Protocol

from kinewatch.types import EMPTY_CURVE, Curve, RawValueRange


class SchedulerState(str, Enum):
    IDLE = "idle"
    EXTRACTING = "extracting"
    READY = "ready"
    FAILED = "failed"


class RetryTimer(Protocol):
    """A single cancellable one-shot timer."""

    def start(self, delay_ms: float, callback: Callable[[], None]) -> None:
        ...

    def cancel(self) -> None:
        ...

    @property
    def pending(self) -> bool:
        ...


@dataclass
class EngineState:
    """Everything the engine knows about the media it is currently observing.

    Attributes:
        timer: The one outstanding retry timer for this engine
        media_id: Identity of the observed media (None when unknown)
        curve: Last successfully assembled curve, replaced as a whole
        retry_attempt: Consecutive failed extractions since the last success
        last_error: Message of the last extraction failure
        phase: Refresh scheduler state
        generation: Bumped on every reset, schedule and success so a superseded
            timer callback can be ignored
    """

    timer: RetryTimer
    media_id: str | None = None
    curve: Curve = EMPTY_CURVE
    retry_attempt: int = 0
    last_error: str | None = None
    phase: SchedulerState = SchedulerState.IDLE
    generation: int = 0

    @property
    def raw_range(self) -> RawValueRange:
        return self.curve.raw_range

    def reset(self, media_id: str | None) -> None:
        self.timer.cancel()
        self.generation += 1
        self.media_id = media_id
        self.curve = EMPTY_CURVE
        self.retry_attempt = 0
        self.last_error = None
        self.phase = SchedulerState.IDLE
