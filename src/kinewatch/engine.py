"""Closed-loop playback speed controller driven by the engagement curve."""
from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any, Callable, Mapping
from urllib.parse import parse_qs, urlsplit

from kinewatch.assembler import extract_curve
from kinewatch.config_store import ConfigStore
from kinewatch.playback import PlaybackSource
from kinewatch.rate import (
    RateConfig,
    config_changed,
    map_rate,
    merge_config,
    normalize_config,
    raw_value_ratio,
    should_apply_rate,
)
from kinewatch.sampler import sample_curve
from kinewatch.scheduler import BackgroundRetryTimer, RefreshScheduler
from kinewatch.settings import DEFAULT_SETTINGS, Settings
from kinewatch.state import EngineState, RetryTimer
from kinewatch.status import StatusSnapshot, TickReading
from kinewatch.types import Curve, PathSource

logger = logging.getLogger(__name__)

SourceAccessor = Callable[[], Sequence[PathSource]]


def media_id_from_url(url: str) -> str | None:
    try:
        query = urlsplit(url).query
    except ValueError:
        return None
    values = parse_qs(query).get("v")
    return values[0] if values else None


class KinewatchEngine:
    """Owns one EngineState and reacts to discrete triggers.

    Triggers are playback ticks (``tick``), metadata changes (``refresh``),
    identity changes (``observe_media``) and configuration changes. All of
    them run under one re-entrant lock, which the retry timer shares.
    """

    def __init__(
        self,
        source: SourceAccessor,
        store: ConfigStore | None = None,
        settings: Settings = DEFAULT_SETTINGS,
        timer: RetryTimer | None = None,
    ) -> None:
        self._source = source
        self._lock = threading.RLock()
        self.settings = settings
        self.store = store or ConfigStore(limits=settings.speed)
        self.config = self.store.load()
        self.state = EngineState(timer=timer or BackgroundRetryTimer())
        self.scheduler = RefreshScheduler(
            self.state,
            self._extract,
            settings.backoff,
            lock=self._lock,
            on_retry=self.refresh,
        )
        self.playback: PlaybackSource | None = None
        self.last_reading: TickReading | None = None
        self._unsubscribe = self.store.subscribe(self.handle_config_change)

    def _extract(self) -> Curve:
        return extract_curve(
            self._source(),
            calibration=self.settings.calibration,
            merge_tolerance=self.settings.curve.merge,
            chapter_tolerance=self.settings.curve.chapter,
        )

    @property
    def curve(self) -> Curve:
        return self.state.curve

    def attach(self, playback: PlaybackSource) -> None:
        with self._lock:
            if playback is self.playback:
                return
            self.detach()
            self.playback = playback
            self.tick()
            self.refresh()

    def detach(self) -> None:
        with self._lock:
            if self.playback is None:
                return
            self.playback = None
            self.last_reading = None
            self.scheduler.reset(self.state.media_id)

    def observe_media(self, media_id: str | None, playback: PlaybackSource | None = None) -> None:
        """Switch to new media, discarding everything known about the old one."""
        with self._lock:
            if media_id == self.state.media_id:
                if playback is not None:
                    self.attach(playback)
                return
            logger.info("Observed media changed: %s -> %s", self.state.media_id, media_id)
            self.scheduler.reset(media_id)
            if playback is not None and playback is not self.playback:
                self.detach()
                self.playback = playback
            self.tick()
            self.refresh()

    def observe_url(self, url: str, playback: PlaybackSource | None = None) -> None:
        self.observe_media(media_id_from_url(url), playback)

    def refresh(self) -> bool:
        """Run one extraction attempt; failures schedule a retry."""
        with self._lock:
            if self.playback is None:
                self.scheduler.schedule_retry()
                return False
            ready = self.scheduler.run()
            self.tick()
            return ready

    def tick(self) -> TickReading | None:
        with self._lock:
            playback = self.playback
            if playback is None:
                return None
            limits = self.settings.speed
            curve = self.state.curve
            reading = sample_curve(curve, playback.position_ratio())
            raw_ratio = raw_value_ratio(reading.raw_value if reading else None, curve.raw_range)
            target = map_rate(raw_ratio, self.config, limits) if raw_ratio is not None else None
            if target is not None and should_apply_rate(playback.playback_rate, target, limits):
                logger.debug("Playback rate %s -> %.3f", playback.playback_rate, target)
                playback.set_playback_rate(target)
            self.last_reading = TickReading(
                playback_rate=playback.playback_rate,
                target_rate=target,
                normalized_intensity=reading.normalized_intensity if reading else None,
                raw_ratio=raw_ratio,
                curve_available=curve.raw_range.available,
            )
            return self.last_reading

    def apply_config(self, partial: Mapping[str, Any] | None, persist: bool = False) -> RateConfig:
        with self._lock:
            next_config = merge_config(self.config, partial, self.settings.speed)
            changed = config_changed(self.config, next_config)
            self.config = next_config
        if persist:
            self.store.save(next_config)
        if changed:
            self.tick()
        return next_config

    def handle_config_change(self, value: RateConfig | Mapping[str, Any] | None) -> None:
        if not value:
            return
        with self._lock:
            self.config = normalize_config(value, self.settings.speed)
            self.tick()

    def status(self) -> StatusSnapshot:
        with self._lock:
            state = self.state
            playback = self.playback
            return StatusSnapshot(
                config=self.config,
                curve_available=bool(state.curve),
                raw_range_available=state.raw_range.available,
                last_error=state.last_error,
                playback_rate=playback.playback_rate if playback is not None else None,
                max_raw_value=state.raw_range.maximum,
                media_id=state.media_id,
                state=state.phase.value,
            )

    def close(self) -> None:
        self._unsubscribe()
        with self._lock:
            self.state.timer.cancel()
        shutdown = getattr(self.state.timer, "shutdown", None)
        if callable(shutdown):
            shutdown()
