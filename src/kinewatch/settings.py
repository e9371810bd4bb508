from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from kinewatch.errors import E1201_SETTINGS_INVALID, KinewatchError

DEFAULT_SETTINGS_PATH = Path(__file__).resolve().parents[2] / "config" / "kinewatch.v1.yaml"
SETTINGS_ENV_VAR = "KINEWATCH_SETTINGS"


@dataclass(frozen=True)
class Calibration:
    """Coordinate convention of the upstream heat-map rendering."""

    x0: float = 5.0
    x_span: float = 1000.0
    y_max: float = 100.0


@dataclass(frozen=True)
class CurveTolerances:
    merge: float = 1e-4
    chapter: float = 1e-6


@dataclass(frozen=True)
class BackoffPolicy:
    base_ms: float = 1000.0
    factor: float = 1.5
    cap_ms: float = 10000.0


@dataclass(frozen=True)
class SpeedLimits:
    minimum: float = 0.1
    maximum: float = 16.0
    apply_threshold: float = 0.01
    default_min_speed: float = 1.0
    default_max_speed: float = 2.0


@dataclass(frozen=True)
class Settings:
    calibration: Calibration = field(default_factory=Calibration)
    curve: CurveTolerances = field(default_factory=CurveTolerances)
    backoff: BackoffPolicy = field(default_factory=BackoffPolicy)
    speed: SpeedLimits = field(default_factory=SpeedLimits)


DEFAULT_SETTINGS = Settings()


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise KinewatchError(
            code=E1201_SETTINGS_INVALID,
            message=f"Settings must be a mapping: {path}",
            hint="Ensure the settings YAML is a mapping at the top level.",
        )
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _float(section: dict[str, Any], key: str, default: float) -> float:
    value = section.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise KinewatchError(
            code=E1201_SETTINGS_INVALID,
            message=f"Invalid settings value for {key}: {value!r}",
            hint="Settings values must be numeric.",
        ) from exc


def settings_from_dict(data: dict[str, Any]) -> Settings:
    calibration = _section(data, "calibration")
    curve = _section(data, "curve")
    backoff = _section(data, "backoff")
    speed = _section(data, "speed")
    base = DEFAULT_SETTINGS
    return Settings(
        calibration=Calibration(
            x0=_float(calibration, "x0", base.calibration.x0),
            x_span=_float(calibration, "x_span", base.calibration.x_span),
            y_max=_float(calibration, "y_max", base.calibration.y_max),
        ),
        curve=CurveTolerances(
            merge=_float(curve, "merge_tolerance", base.curve.merge),
            chapter=_float(curve, "chapter_tolerance", base.curve.chapter),
        ),
        backoff=BackoffPolicy(
            base_ms=_float(backoff, "base_ms", base.backoff.base_ms),
            factor=_float(backoff, "factor", base.backoff.factor),
            cap_ms=_float(backoff, "cap_ms", base.backoff.cap_ms),
        ),
        speed=SpeedLimits(
            minimum=_float(speed, "min", base.speed.minimum),
            maximum=_float(speed, "max", base.speed.maximum),
            apply_threshold=_float(speed, "apply_threshold", base.speed.apply_threshold),
            default_min_speed=_float(speed, "default_min_speed", base.speed.default_min_speed),
            default_max_speed=_float(speed, "default_max_speed", base.speed.default_max_speed),
        ),
    )


def resolve_settings_path(path: Path | None = None) -> Path:
    if path is not None:
        return path
    env_value = os.environ.get(SETTINGS_ENV_VAR)
    if env_value:
        return Path(env_value)
    return DEFAULT_SETTINGS_PATH


def load_settings(path: Path | None = None) -> Settings:
    resolved = resolve_settings_path(path)
    if not resolved.exists():
        return DEFAULT_SETTINGS
    return settings_from_dict(_load_yaml(resolved))
