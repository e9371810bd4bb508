from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from kinewatch.errors import E1201_SETTINGS_INVALID, KinewatchError
from kinewatch.settings import (
    DEFAULT_SETTINGS,
    DEFAULT_SETTINGS_PATH,
    SETTINGS_ENV_VAR,
    load_settings,
)


def test_shipped_settings_match_defaults() -> None:
    assert DEFAULT_SETTINGS_PATH.exists()
    assert load_settings(DEFAULT_SETTINGS_PATH) == DEFAULT_SETTINGS


def test_missing_file_uses_defaults(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "absent.yaml") == DEFAULT_SETTINGS


def test_partial_override(tmp_path: Path) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump({"backoff": {"base_ms": 250}, "calibration": {"y_max": 50}}))
    settings = load_settings(path)
    assert settings.backoff.base_ms == 250.0
    assert settings.backoff.cap_ms == DEFAULT_SETTINGS.backoff.cap_ms
    assert settings.calibration.y_max == 50.0
    assert settings.calibration.x0 == DEFAULT_SETTINGS.calibration.x0


def test_environment_variable_selects_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "env.yaml"
    path.write_text(yaml.safe_dump({"speed": {"apply_threshold": 0.05}}))
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    assert load_settings().speed.apply_threshold == 0.05


@pytest.mark.parametrize(
    "document",
    ["- not\n- a mapping\n", "speed:\n  max: lots\n"],
)
def test_invalid_settings_raise(tmp_path: Path, document: str) -> None:
    path = tmp_path / "settings.yaml"
    path.write_text(document)
    with pytest.raises(KinewatchError) as excinfo:
        load_settings(path)
    assert excinfo.value.code == E1201_SETTINGS_INVALID
