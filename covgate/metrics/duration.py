"""Duration literals used by test execution time thresholds.

Accepted forms are sequences of ``<number><unit>`` components, optionally
separated by whitespace: ``5m``, ``1h30m``, ``1.5h``, ``2 days 4 hours``.
Values are expressed in integer nanoseconds.
"""

from __future__ import annotations

import re
from fractions import Fraction
from typing import Dict, Union

NANOSECOND = 1
MICROSECOND = 1_000 * NANOSECOND
MILLISECOND = 1_000 * MICROSECOND
SECOND = 1_000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

_UNITS: Dict[str, int] = {
    "ns": NANOSECOND,
    "nanosecond": NANOSECOND,
    "nanoseconds": NANOSECOND,
    "us": MICROSECOND,
    "µs": MICROSECOND,
    "μs": MICROSECOND,
    "microsecond": MICROSECOND,
    "microseconds": MICROSECOND,
    "ms": MILLISECOND,
    "millisecond": MILLISECOND,
    "milliseconds": MILLISECOND,
    "s": SECOND,
    "sec": SECOND,
    "secs": SECOND,
    "second": SECOND,
    "seconds": SECOND,
    "m": MINUTE,
    "min": MINUTE,
    "mins": MINUTE,
    "minute": MINUTE,
    "minutes": MINUTE,
    "h": HOUR,
    "hr": HOUR,
    "hrs": HOUR,
    "hour": HOUR,
    "hours": HOUR,
    "d": DAY,
    "day": DAY,
    "days": DAY,
    "w": WEEK,
    "wk": WEEK,
    "week": WEEK,
    "weeks": WEEK,
}

# Longest unit names first so "ms" wins over "m" and "mins" over "min".
_UNIT_PATTERN = "|".join(re.escape(u) for u in sorted(_UNITS, key=len, reverse=True))
_COMPONENT_RE = re.compile(
    rf"\s*(?P<number>\d+(?:\.\d*)?|\.\d+)\s*(?P<unit>{_UNIT_PATTERN})(?![A-Za-zµμ])\s*"
)


def parse_duration(text: str) -> int:
    """Parse a duration literal into nanoseconds. Raises ``ValueError``."""
    raw = str(text or "")
    if not raw.strip():
        raise ValueError("empty duration")
    pos = 0
    total = Fraction(0)
    while pos < len(raw):
        match = _COMPONENT_RE.match(raw, pos)
        if not match or match.end() == pos:
            raise ValueError(f"invalid duration {raw!r}")
        total += Fraction(match.group("number")) * _UNITS[match.group("unit")]
        pos = match.end()
    return int(round(total))


def _fraction_text(value: int, unit: int) -> str:
    whole, rest = divmod(value, unit)
    if rest == 0:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(rest).rjust(digits, '0').rstrip('0')}"


def format_duration(nanoseconds: Union[int, float]) -> str:
    """
    Render nanoseconds as a compact literal such as ``1h30m0s`` or ``250ms``.
    The output is always accepted back by ``parse_duration``.
    """
    value = int(round(nanoseconds))
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value == 0:
        return "0s"
    if value < MICROSECOND:
        return f"{sign}{value}ns"
    if value < MILLISECOND:
        return f"{sign}{_fraction_text(value, MICROSECOND)}µs"
    if value < SECOND:
        return f"{sign}{_fraction_text(value, MILLISECOND)}ms"

    hours, rest = divmod(value, HOUR)
    minutes, rest = divmod(rest, MINUTE)
    out = sign
    if hours:
        out += f"{hours}h"
    if hours or minutes:
        out += f"{minutes}m"
    return f"{out}{_fraction_text(rest, SECOND)}s"
