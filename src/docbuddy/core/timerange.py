"""
Time range parsing.

Tools accept compact relative ranges such as ``30m``, ``1h``, ``24h`` or
``7d`` and resolve them against the current wall clock.
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from datetime import datetime, timezone

from docbuddy.core.errors import InvalidInputError

_TIME_RANGE_PATTERN = re.compile(r"^(\d+)(m|h|d)$")

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

_UNIT_MS = {"m": MINUTE_MS, "h": HOUR_MS, "d": DAY_MS}


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class TimeWindow:
    """A resolved [from, to] window in epoch milliseconds."""

    from_ms: int
    to_ms: int

    @property
    def duration_ms(self) -> int:
        return self.to_ms - self.from_ms

    @classmethod
    def last(cls, duration_ms: int, *, end_ms: int | None = None) -> "TimeWindow":
        end = now_ms() if end_ms is None else end_ms
        return cls(from_ms=end - duration_ms, to_ms=end)

    @classmethod
    def default(cls) -> "TimeWindow":
        """The last hour."""
        return cls.last(HOUR_MS)

    def isoformat(self) -> tuple[str, str]:
        return (
            datetime.fromtimestamp(self.from_ms / 1000, tz=timezone.utc).isoformat(),
            datetime.fromtimestamp(self.to_ms / 1000, tz=timezone.utc).isoformat(),
        )


def parse_duration_ms(time_range: str) -> int:
    """Convert ``<number><m|h|d>`` to milliseconds."""
    match = _TIME_RANGE_PATTERN.match(time_range or "")
    if not match:
        raise InvalidInputError(
            f"Invalid time range format: {time_range}. "
            "Expected format: <number><unit> (e.g., 1h, 24h, 7d)",
            {"time_range": time_range},
        )
    value, unit = match.groups()
    return int(value) * _UNIT_MS[unit]


def parse_time_range(time_range: str, *, end_ms: int | None = None) -> TimeWindow:
    """Resolve a relative time range to a window ending now (or at ``end_ms``)."""
    return TimeWindow.last(parse_duration_ms(time_range), end_ms=end_ms)
