"""Calendar time broken into fields, and millisecond clocks."""

from __future__ import annotations

import calendar
import time as _time
from dataclasses import dataclass, replace


def _to_seconds(timestamp: int) -> int:
    """Convert milliseconds to seconds, truncating toward zero."""
    seconds = abs(int(timestamp)) // 1000
    return -seconds if timestamp < 0 else seconds


@dataclass
class Time:
    """A point in time broken into calendar fields, in UTC or local time.

    ``wday`` counts from Sunday = 0, ``yday`` from 0 for the first day of the year.
    """

    sec: int
    min: int
    hour: int
    day: int
    month: int
    year: int
    wday: int
    yday: int
    dst: bool
    utc: bool

    @classmethod
    def _from_struct(cls, tm: _time.struct_time, utc: bool) -> "Time":
        return cls(
            sec=tm.tm_sec,
            min=tm.tm_min,
            hour=tm.tm_hour,
            day=tm.tm_mday,
            month=tm.tm_mon,
            year=tm.tm_year,
            wday=(tm.tm_wday + 1) % 7,
            yday=tm.tm_yday - 1,
            dst=tm.tm_isdst > 0,
            utc=utc,
        )

    @classmethod
    def now(cls, utc: bool = False) -> "Time":
        """The current time, to the second."""
        seconds = int(_time.time())
        return cls._from_struct(_time.gmtime(seconds) if utc else _time.localtime(seconds), utc)

    @classmethod
    def from_timestamp(cls, timestamp: int, utc: bool = False) -> "Time":
        """Break a millisecond Unix timestamp into fields."""
        seconds = _to_seconds(timestamp)
        return cls._from_struct(_time.gmtime(seconds) if utc else _time.localtime(seconds), utc)

    def copy(self) -> "Time":
        """An independent copy of this time."""
        return replace(self)

    def _as_tuple(self) -> tuple:
        return (
            self.year,
            self.month,
            self.day,
            self.hour,
            self.min,
            self.sec,
            (self.wday + 6) % 7,
            self.yday + 1,
            int(self.dst),
        )

    def to_timestamp(self) -> int:
        """The millisecond Unix timestamp of these fields."""
        fields = self._as_tuple()
        if self.utc:
            return calendar.timegm(fields) * 1000
        return int(_time.mktime(fields)) * 1000

    def _assign(self, other: "Time") -> None:
        vars(self).update(vars(other))

    def to_utc(self) -> "Time":
        """Convert in place to UTC fields and return self."""
        if not self.utc:
            self._assign(Time.from_timestamp(self.to_timestamp(), True))
        return self

    def to_local(self) -> "Time":
        """Convert in place to local-time fields and return self."""
        if self.utc:
            self._assign(Time.from_timestamp(self.to_timestamp(), False))
        return self

    def format(self, fmt: str) -> str:
        """Format the fields with strftime directives."""
        if not fmt:
            return ""
        return _time.strftime(fmt, self._as_tuple())


def time_ms() -> int:
    """Current Unix time in milliseconds, at second resolution."""
    return int(_time.time()) * 1000


def ticks() -> int:
    """Monotonic clock in milliseconds."""
    return _time.monotonic_ns() // 1_000_000


def micro_ticks() -> int:
    """Monotonic clock in microseconds."""
    return _time.monotonic_ns() // 1000


def format_timestamp(timestamp: int, fmt: str, utc: bool = False) -> str:
    """Format a millisecond Unix timestamp; empty if it cannot be represented."""
    if not fmt:
        return ""
    seconds = _to_seconds(timestamp)
    try:
        tm = _time.gmtime(seconds) if utc else _time.localtime(seconds)
    except (OverflowError, OSError, ValueError):
        return ""
    return _time.strftime(fmt, tm)