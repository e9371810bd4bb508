"""Persisted speed configuration with change notifications."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

import yaml

from kinewatch.errors import E1302_CONFIG_STORE_INVALID, KinewatchError
from kinewatch.rate import DEFAULT_SPEED_LIMITS, RateConfig, normalize_config
from kinewatch.settings import SpeedLimits

logger = logging.getLogger(__name__)

STORAGE_KEY = "kinewatchConfig"

ConfigListener = Callable[[RateConfig], None]


class ConfigStore:
    """YAML-file store for RateConfig, or an in-memory one when ``path`` is None.

    Everything read back is treated as untrusted and normalized.
    """

    def __init__(self, path: Path | None = None, limits: SpeedLimits = DEFAULT_SPEED_LIMITS) -> None:
        self.path = path
        self.limits = limits
        self._memory: dict[str, Any] = {}
        self._listeners: list[ConfigListener] = []

    def _read_document(self) -> dict[str, Any]:
        if self.path is None:
            return dict(self._memory)
        if not self.path.exists():
            return {}
        data = yaml.safe_load(self.path.read_text())
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise KinewatchError(
                code=E1302_CONFIG_STORE_INVALID,
                message=f"Config store must be a mapping: {self.path}",
                hint=f"Rewrite the file with a top-level '{STORAGE_KEY}' mapping.",
            )
        return data

    def read_raw(self) -> dict[str, Any] | None:
        value = self._read_document().get(STORAGE_KEY)
        return value if isinstance(value, dict) else None

    def load(self) -> RateConfig:
        try:
            raw = self.read_raw()
        except (OSError, yaml.YAMLError, KinewatchError) as exc:
            logger.warning("Falling back to default speeds, config store unreadable: %s", exc)
            raw = None
        return normalize_config(raw, self.limits)

    def save(self, config: RateConfig | dict[str, Any]) -> RateConfig:
        normalized = normalize_config(config, self.limits)
        if self.path is None:
            self._memory[STORAGE_KEY] = normalized.to_dict()
        else:
            try:
                document = self._read_document()
            except (yaml.YAMLError, KinewatchError) as exc:
                logger.warning("Replacing unreadable config store %s: %s", self.path, exc)
                document = {}
            document[STORAGE_KEY] = normalized.to_dict()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(yaml.safe_dump(document, sort_keys=True))
        for listener in list(self._listeners):
            listener(normalized)
        return normalized

    def subscribe(self, listener: ConfigListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe
