"""Acceptability checks for configured metric thresholds.

Each check returns ``None`` when the value is acceptable and raises
``UnacceptableMetricError`` otherwise. An empty threshold disables the check.
"""

from __future__ import annotations

import re
from typing import Union

from covgate.errors import ThresholdParseError, UnacceptableMetricError
from covgate.metrics.duration import format_duration, parse_duration

_DECIMAL_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?$")


def _parse_decimal(threshold: str, text: str) -> float:
    candidate = text.strip()
    if not _DECIMAL_RE.match(candidate):
        raise ThresholdParseError(threshold, f"{candidate!r} is not a number")
    return float(candidate)


def parse_coverage_threshold(threshold: str) -> float:
    """``"80%"`` -> ``80.0``."""
    text = threshold.strip()
    if text.endswith("%"):
        text = text[:-1]
    return _parse_decimal(threshold, text)


def parse_code_to_test_ratio_threshold(threshold: str) -> float:
    """``"1:1.2"`` -> ``1.2``."""
    text = threshold.strip()
    if text.startswith("1:"):
        text = text[2:]
    return _parse_decimal(threshold, text)


def parse_execution_time_threshold(threshold: str) -> int:
    """``"1h30m"`` -> nanoseconds."""
    try:
        return parse_duration(threshold)
    except ValueError as exc:
        raise ThresholdParseError(threshold, str(exc)) from exc


def coverage_acceptable(coverage_percent: float, threshold: str) -> None:
    if not threshold:
        return
    accepted = parse_coverage_threshold(threshold)
    if coverage_percent < accepted:
        raise UnacceptableMetricError(
            f"code coverage is {coverage_percent:.1f}%, which is below the accepted {accepted:.1f}%"
        )


def code_to_test_ratio_acceptable(ratio: float, threshold: str) -> None:
    if not threshold:
        return
    accepted = parse_code_to_test_ratio_threshold(threshold)
    if ratio < accepted:
        raise UnacceptableMetricError(
            f"code to test ratio is 1:{ratio:.1f}, which is below the accepted 1:{accepted:.1f}"
        )


def execution_time_acceptable(nanoseconds: Union[int, float], threshold: str) -> None:
    if not threshold:
        return
    accepted = parse_execution_time_threshold(threshold)
    if nanoseconds > accepted:
        raise UnacceptableMetricError(
            "test execution time is "
            f"{format_duration(nanoseconds)}, which is above the accepted {format_duration(accepted)}"
        )
