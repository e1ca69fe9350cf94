"""
Instant conversion utilities.

Instants are float milliseconds since the Unix epoch (UTC). This is the wire
format of the telemetry time column and the time axis of every interpolant.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Union

import numpy as np

MS_PER_SECOND = 1000.0
MS_PER_DAY = 86_400_000.0

# Julian date of the Unix epoch
UNIX_EPOCH_JD = 2440587.5

Instant = float
InstantLike = Union[float, int, datetime, np.datetime64]


def datetime_to_instant(dt: datetime) -> float:
    """
    Convert a timezone-aware datetime to epoch milliseconds.

    Args:
        dt: Aware datetime (any timezone)

    Returns:
        Milliseconds since 1970-01-01T00:00:00Z

    Raises:
        ValueError: If dt is naive
    """
    if dt.tzinfo is None or dt.tzinfo.utcoffset(dt) is None:
        raise ValueError(f"Naive datetime is ambiguous, attach a timezone: {dt!r}")
    return dt.timestamp() * MS_PER_SECOND


def instant_to_datetime(instant: float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(instant / MS_PER_SECOND, tz=timezone.utc)


def instant_to_iso(instant: float) -> str:
    """Format epoch milliseconds as ISO-8601 UTC with millisecond precision."""
    dt = instant_to_datetime(instant)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}"


def instant_to_julian_date(instant: float) -> float:
    """Convert epoch milliseconds to a (UTC) Julian date."""
    return UNIX_EPOCH_JD + instant / MS_PER_DAY


def to_instant(value: InstantLike) -> float:
    """
    Normalize any accepted time representation to epoch milliseconds.

    Accepts epoch-ms numbers, aware datetimes and numpy datetime64 values.
    """
    if isinstance(value, datetime):
        return datetime_to_instant(value)
    if isinstance(value, np.datetime64):
        return float(value.astype("datetime64[us]").astype(np.int64)) / MS_PER_SECOND
    return float(value)


@dataclass(frozen=True)
class TimeInterval:
    """
    Closed time interval [start, stop] in epoch milliseconds.

    Attributes:
        start: First instant covered
        stop: Last instant covered (start <= stop)
    """
    start: float
    stop: float

    def __post_init__(self):
        if not self.start <= self.stop:
            raise ValueError(f"Interval start {self.start} is after stop {self.stop}")

    def contains(self, instant: float) -> bool:
        return self.start <= instant <= self.stop

    def covers(self, other: "TimeInterval") -> bool:
        return self.start <= other.start and other.stop <= self.stop

    def extended(self, stop_pad_ms: float) -> "TimeInterval":
        """Return a copy whose stop is moved later by stop_pad_ms."""
        return TimeInterval(self.start, self.stop + stop_pad_ms)
