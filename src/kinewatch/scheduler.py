"""Retry loop that keeps the curve extraction alive while the page mutates."""
from __future__ import annotations

import itertools
import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.background import BackgroundScheduler

from kinewatch.errors import KinewatchError
from kinewatch.settings import BackoffPolicy
from kinewatch.state import EngineState, SchedulerState
from kinewatch.types import EMPTY_CURVE, Curve

logger = logging.getLogger(__name__)

DEFAULT_BACKOFF = BackoffPolicy()


def retry_delay_ms(attempt: int, policy: BackoffPolicy = DEFAULT_BACKOFF) -> float:
    return min(policy.base_ms * policy.factor ** max(attempt, 0), policy.cap_ms)


class BackgroundRetryTimer:
    """One-shot retry timer backed by an APScheduler date job."""

    def __init__(
        self,
        scheduler: BackgroundScheduler | None = None,
        job_prefix: str = "kinewatch-refresh",
    ) -> None:
        self._scheduler = scheduler or BackgroundScheduler(daemon=True)
        self._job_prefix = job_prefix
        self._sequence = itertools.count(1)
        self._job = None

    def start(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.cancel()
        if not self._scheduler.running:
            self._scheduler.start()
        run_date = datetime.now().astimezone() + timedelta(milliseconds=delay_ms)
        self._job = self._scheduler.add_job(
            callback,
            trigger="date",
            run_date=run_date,
            id=f"{self._job_prefix}-{next(self._sequence)}",
        )

    def cancel(self) -> None:
        if self._job is None:
            return
        try:
            self._job.remove()
        except JobLookupError:
            # Already fired.
            pass
        self._job = None

    @property
    def pending(self) -> bool:
        return self._job is not None and self._scheduler.get_job(self._job.id) is not None

    def shutdown(self) -> None:
        self.cancel()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=False)


class RefreshScheduler:
    """IDLE -> EXTRACTING -> READY | FAILED, with FAILED re-entering EXTRACTING
    after an exponential backoff delay.

    At most one retry is ever pending: scheduling always cancels the previous
    timer first, and a timer that fires after it was superseded is ignored.
    """

    def __init__(
        self,
        state: EngineState,
        extract: Callable[[], Curve],
        policy: BackoffPolicy = DEFAULT_BACKOFF,
        lock: threading.RLock | None = None,
        on_retry: Callable[[], object] | None = None,
    ) -> None:
        self.state = state
        self.policy = policy
        self._extract = extract
        self._lock = lock or threading.RLock()
        self._on_retry = on_retry or self.run

    def run(self) -> bool:
        """Attempt one extraction. Returns True when a curve is ready."""
        with self._lock:
            state = self.state
            state.phase = SchedulerState.EXTRACTING
            try:
                curve = self._extract()
            except KinewatchError as exc:
                state.curve = EMPTY_CURVE
                state.last_error = exc.message
                state.phase = SchedulerState.FAILED
                delay = self.schedule_retry()
                logger.warning(
                    "Curve extraction failed (%s: %s); retry %d in %.1f ms",
                    exc.code,
                    exc.message,
                    state.retry_attempt + 1,
                    delay,
                )
                return False
            state.curve = curve
            state.last_error = None
            state.retry_attempt = 0
            state.timer.cancel()
            state.generation += 1
            state.phase = SchedulerState.READY
            logger.info("Curve ready: %d samples", len(curve))
            return True

    def schedule_retry(self) -> float:
        with self._lock:
            delay = retry_delay_ms(self.state.retry_attempt, self.policy)
            self.state.generation += 1
            generation = self.state.generation
            self.state.timer.start(delay, lambda: self._fire(generation))
            return delay

    def reset(self, media_id: str | None) -> None:
        with self._lock:
            self.state.reset(media_id)

    def _fire(self, generation: int) -> None:
        with self._lock:
            if generation != self.state.generation:
                logger.debug("Ignoring superseded retry")
                return
            self.state.retry_attempt += 1
            self._on_retry()
