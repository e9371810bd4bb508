from __future__ import annotations

from dataclasses import dataclass

E1101_SOURCE_UNAVAILABLE = "E1101_SOURCE_UNAVAILABLE"
E1102_SOURCE_UNPARSEABLE = "E1102_SOURCE_UNPARSEABLE"
E1201_SETTINGS_INVALID = "E1201_SETTINGS_INVALID"
E1301_SPEED_RANGE_INVALID = "E1301_SPEED_RANGE_INVALID"
E1302_CONFIG_STORE_INVALID = "E1302_CONFIG_STORE_INVALID"


@dataclass
class KinewatchError(Exception):
    code: str
    message: str
    hint: str

    def __str__(self) -> str:
        return self.message


@dataclass
class SourceUnavailableError(KinewatchError):
    code: str = E1101_SOURCE_UNAVAILABLE
    message: str = "Heat map graph not available."
    hint: str = "The page has not rendered a heat-map path yet; extraction is retried."


@dataclass
class SourceUnparseableError(KinewatchError):
    code: str = E1102_SOURCE_UNPARSEABLE
    message: str = "Heat map points unavailable."
    hint: str = "The heat-map path contained no usable curve commands."
