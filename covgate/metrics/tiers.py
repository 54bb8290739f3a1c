from __future__ import annotations

from enum import Enum
from typing import Union

from covgate.metrics.duration import MINUTE


class SeverityTier(str, Enum):
    GREEN = "green"
    YELLOWGREEN = "yellowgreen"
    YELLOW = "yellow"
    ORANGE = "orange"
    RED = "red"

    @property
    def hex(self) -> str:
        return _HEX_COLORS[self]


# shields.io badge-maker palette
_HEX_COLORS = {
    SeverityTier.GREEN: "#97CA00",
    SeverityTier.YELLOWGREEN: "#A4A61D",
    SeverityTier.YELLOW: "#DFB317",
    SeverityTier.ORANGE: "#FE7D37",
    SeverityTier.RED: "#E05D44",
}


def coverage_tier(percent: float) -> SeverityTier:
    if percent >= 80.0:
        return SeverityTier.GREEN
    if percent >= 60.0:
        return SeverityTier.YELLOWGREEN
    if percent >= 40.0:
        return SeverityTier.YELLOW
    if percent >= 20.0:
        return SeverityTier.ORANGE
    return SeverityTier.RED


def code_to_test_ratio_tier(ratio: float) -> SeverityTier:
    if ratio >= 1.2:
        return SeverityTier.GREEN
    if ratio >= 1.0:
        return SeverityTier.YELLOWGREEN
    if ratio >= 0.8:
        return SeverityTier.YELLOW
    if ratio >= 0.6:
        return SeverityTier.ORANGE
    return SeverityTier.RED


def execution_time_tier(nanoseconds: Union[int, float]) -> SeverityTier:
    if nanoseconds < 5 * MINUTE:
        return SeverityTier.GREEN
    if nanoseconds < 10 * MINUTE:
        return SeverityTier.YELLOWGREEN
    if nanoseconds < 15 * MINUTE:
        return SeverityTier.YELLOW
    if nanoseconds < 20 * MINUTE:
        return SeverityTier.ORANGE
    return SeverityTier.RED
