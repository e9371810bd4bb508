from __future__ import annotations

from pathlib import Path

import pytest

from kinewatch.config_store import ConfigStore
from kinewatch.engine import KinewatchEngine, media_id_from_url
from kinewatch.playback import SimulatedPlayback
from kinewatch.rate import RateConfig
from kinewatch.types import PathSource

TWO_POINT_PATH = "M 0,100 C 1,90 2,85 5,80 C 300,60 700,30 1005,20"


class _Source:
    def __init__(self, sources: list[PathSource]) -> None:
        self.sources = sources
        self.calls = 0

    def __call__(self) -> list[PathSource]:
        self.calls += 1
        return list(self.sources)


def _engine(manual_timer, sources: list[PathSource] | None = None, store: ConfigStore | None = None):
    source = _Source([PathSource(TWO_POINT_PATH)] if sources is None else sources)
    return KinewatchEngine(source, store=store, timer=manual_timer), source


def test_attach_extracts_and_applies_speed(manual_timer) -> None:
    engine, source = _engine(manual_timer)
    playback = SimulatedPlayback(duration=100.0)
    engine.attach(playback)
    assert source.calls == 1
    # Position 0 has the largest raw value, i.e. the coldest point.
    assert playback.playback_rate == pytest.approx(2.0)
    status = engine.status()
    assert status.curve_available
    assert status.raw_range_available
    assert status.last_error is None
    assert status.state == "ready"
    assert status.max_raw_value == 80.0


@pytest.mark.parametrize("position, expected", [(0.0, 2.0), (50.0, 1.5), (100.0, 1.0)])
def test_tick_tracks_relative_engagement(manual_timer, position: float, expected: float) -> None:
    engine, _ = _engine(manual_timer)
    playback = SimulatedPlayback(duration=100.0)
    engine.attach(playback)
    playback.current_time = position
    reading = engine.tick()
    assert reading.target_rate == pytest.approx(expected)
    assert playback.playback_rate == pytest.approx(expected)


def test_small_rate_changes_are_not_applied(manual_timer) -> None:
    engine, _ = _engine(manual_timer)
    playback = SimulatedPlayback(duration=100.0, current_time=50.0, playback_rate=1.505)
    engine.attach(playback)
    assert playback.playback_rate == 1.505


def test_unknown_duration_leaves_rate_alone(manual_timer) -> None:
    engine, _ = _engine(manual_timer)
    playback = SimulatedPlayback(duration=None, playback_rate=1.25)
    engine.attach(playback)
    reading = engine.tick()
    assert reading.target_rate is None
    assert playback.playback_rate == 1.25


def test_missing_graphic_retries_until_available(manual_timer) -> None:
    engine, source = _engine(manual_timer, sources=[])
    playback = SimulatedPlayback(duration=100.0)
    engine.attach(playback)
    status = engine.status()
    assert not status.curve_available
    assert status.last_error == "Heat map graph not available."
    assert status.state == "failed"
    assert manual_timer.delays == [1000]
    assert playback.playback_rate == 1.0

    source.sources = [PathSource(TWO_POINT_PATH)]
    manual_timer.fire()
    assert engine.status().state == "ready"
    assert engine.status().last_error is None
    assert engine.state.retry_attempt == 0
    assert not manual_timer.pending
    assert playback.playback_rate == pytest.approx(2.0)


def test_unparseable_graphic_is_reported_separately(manual_timer) -> None:
    engine, _ = _engine(manual_timer, sources=[PathSource("M 0,0 L 1,1")])
    engine.attach(SimulatedPlayback(duration=10.0))
    assert engine.status().last_error == "Heat map points unavailable."
    assert manual_timer.pending


def test_media_change_invalidates_pending_retry(manual_timer) -> None:
    engine, source = _engine(manual_timer, sources=[])
    playback = SimulatedPlayback(duration=100.0)
    engine.observe_media("first", playback)
    manual_timer.fire()
    assert manual_timer.delays == [1000, 1500]
    assert engine.state.retry_attempt == 1

    stale = manual_timer.callback
    engine.observe_media("second")
    assert engine.state.media_id == "second"
    assert engine.state.retry_attempt == 0
    assert manual_timer.delays == [1000, 1500, 1000]

    calls = source.calls
    stale()
    assert source.calls == calls
    assert engine.state.retry_attempt == 0


def test_same_media_does_not_reextract(manual_timer) -> None:
    engine, source = _engine(manual_timer)
    playback = SimulatedPlayback(duration=100.0)
    engine.observe_media("abc", playback)
    engine.observe_media("abc")
    assert source.calls == 1


def test_detach_drops_curve(manual_timer) -> None:
    engine, _ = _engine(manual_timer)
    engine.attach(SimulatedPlayback(duration=100.0))
    engine.detach()
    assert not engine.curve
    assert engine.status().state == "idle"
    assert engine.tick() is None


def test_refresh_without_media_only_schedules(manual_timer) -> None:
    engine, source = _engine(manual_timer)
    assert engine.refresh() is False
    assert source.calls == 0
    assert manual_timer.delays == [1000]


def test_apply_config_normalizes_and_persists(manual_timer, tmp_path: Path) -> None:
    store = ConfigStore(tmp_path / "store.yaml")
    engine, _ = _engine(manual_timer, store=store)
    playback = SimulatedPlayback(duration=100.0)
    engine.attach(playback)
    applied = engine.apply_config({"min_speed": 3, "max_speed": 1}, persist=True)
    assert applied == RateConfig(min_speed=1.0, max_speed=3.0)
    assert ConfigStore(tmp_path / "store.yaml").load() == applied
    assert playback.playback_rate == pytest.approx(3.0)


def test_store_changes_reach_the_engine(manual_timer) -> None:
    store = ConfigStore()
    engine, _ = _engine(manual_timer, store=store)
    playback = SimulatedPlayback(duration=100.0)
    engine.attach(playback)
    store.save({"min_speed": 1.0, "max_speed": 4.0})
    assert engine.config == RateConfig(1.0, 4.0)
    assert playback.playback_rate == pytest.approx(4.0)
    engine.close()
    store.save({"min_speed": 1.0, "max_speed": 2.0})
    assert engine.config == RateConfig(1.0, 4.0)


def test_status_payload(manual_timer) -> None:
    engine, _ = _engine(manual_timer)
    engine.observe_media("xyz", SimulatedPlayback(duration=10.0))
    payload = engine.status().to_dict()
    assert payload["config"] == {"min_speed": 1.0, "max_speed": 2.0}
    assert payload["media_id"] == "xyz"
    assert payload["curve_available"] is True
    assert payload["playback_rate"] == pytest.approx(2.0)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://www.youtube.com/watch?v=abc123&t=10", "abc123"),
        ("https://www.youtube.com/watch?list=xyz", None),
        ("not a url", None),
        ("http://[::1", None),
    ],
)
def test_media_id_from_url(url: str, expected: str | None) -> None:
    assert media_id_from_url(url) == expected


def test_superseded_retry_is_ignored(manual_timer) -> None:
    engine, source = _engine(manual_timer, sources=[])
    engine.attach(SimulatedPlayback(duration=100.0))
    dispatched = manual_timer.callback
    engine.refresh()
    assert source.calls == 2
    dispatched()
    assert source.calls == 2
    assert engine.state.retry_attempt == 0
    assert manual_timer.delays == [1000, 1000]
