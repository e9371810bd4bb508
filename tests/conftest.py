from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

TWO_CHAPTER_DOCUMENT = """<div xmlns="http://www.w3.org/1999/xhtml" class="ytp-heat-map-container" style="width: 1000px">
  <div class="ytp-heat-map-chapter" style="left: 0px; width: 400px">
    <svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1000 100">
      <path class="ytp-heat-map-path" d="M 0.0,100.0 C 1.0,90.0 2.0,85.0 5.0,80.0 C 300.0,60.0 700.0,30.0 1005.0,20.0" />
    </svg>
  </div>
  <div class="ytp-heat-map-chapter" style="left: 400px; width: 600px">
    <svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 1000 100">
      <path class="ytp-heat-map-path" d="M 0.0,100.0 C 2.0,90.0 3.0,60.0 5.0,50.0 C 300.0,40.0 400.0,20.0 505.0,10.0" />
    </svg>
  </div>
</div>
"""


class ManualTimer:
    """Retry timer that only fires when a test tells it to."""

    def __init__(self) -> None:
        self.delays: list[float] = []
        self.cancelled = 0
        self.callback: Callable[[], None] | None = None

    def start(self, delay_ms: float, callback: Callable[[], None]) -> None:
        self.cancel()
        self.delays.append(delay_ms)
        self.callback = callback

    def cancel(self) -> None:
        if self.callback is not None:
            self.cancelled += 1
            self.callback = None

    @property
    def pending(self) -> bool:
        return self.callback is not None

    def fire(self) -> None:
        callback, self.callback = self.callback, None
        assert callback is not None, "no retry pending"
        callback()


@pytest.fixture
def manual_timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def heat_map_document(tmp_path: Path) -> Path:
    path = tmp_path / "heat_map.xhtml"
    path.write_text(TWO_CHAPTER_DOCUMENT)
    return path
