"""Tokenizer for heat-map path descriptions.

The path grammar is a run of single-letter commands, each followed by a
parameter list of ``x,y`` pairs separated by whitespace. Only cubic Bezier
commands (``C``/``c``) carry curve samples; every third pair of a cubic
command is the on-curve endpoint, the other two are control points.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from string import ascii_letters

from kinewatch.types import RawPoint

CURVE_COMMAND = "C"
PAIRS_PER_CURVE = 3
NUMBER_RE = re.compile(r"^\s*([-+]?\d*\.?\d+(?:[eE][-+]?\d+)?)")


@dataclass(frozen=True)
class PathCommand:
    command: str
    params: str

    @property
    def is_curve(self) -> bool:
        return self.command.upper() == CURVE_COMMAND


def _is_exponent_marker(d: str, index: int) -> bool:
    if d[index] not in "eE" or index == 0 or index + 1 >= len(d):
        return False
    before = d[index - 1]
    after = d[index + 1]
    return (before.isdigit() or before == ".") and (after.isdigit() or after in "+-")


def tokenize_path(d: str) -> list[PathCommand]:
    """Split a path description into command-letter/parameter-run pairs.

    Text before the first command letter is ignored.
    """
    commands: list[PathCommand] = []
    command: str | None = None
    start = 0
    for index, char in enumerate(d):
        if char not in ascii_letters or _is_exponent_marker(d, index):
            continue
        if command is not None:
            commands.append(PathCommand(command, d[start:index].strip()))
        command = char
        start = index + 1
    if command is not None:
        commands.append(PathCommand(command, d[start:].strip()))
    return commands


def parse_number(value: str) -> float | None:
    match = NUMBER_RE.match(value)
    if not match:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def parse_number_pair(token: str) -> RawPoint | None:
    parts = token.split(",")
    if len(parts) < 2:
        return None
    x = parse_number(parts[0])
    y = parse_number(parts[1])
    if x is None or y is None or not math.isfinite(x) or not math.isfinite(y):
        return None
    return RawPoint(x=x, y=y)


def curve_endpoints(command: PathCommand) -> list[RawPoint]:
    """Return the on-curve endpoints of a cubic command, dropping control points."""
    if not command.is_curve or not command.params:
        return []
    pairs = [pair for pair in map(parse_number_pair, command.params.split()) if pair is not None]
    return pairs[PAIRS_PER_CURVE - 1 :: PAIRS_PER_CURVE]


def parse_path(d: str) -> list[RawPoint]:
    points: list[RawPoint] = []
    for command in tokenize_path(d):
        points.extend(curve_endpoints(command))
    return points
