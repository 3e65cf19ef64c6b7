"""Time sources used by buckets.

Every bucket reads time through a :class:`Clock` so that production code can
use the wall clock while tests drive time by hand with :class:`ManualClock`.
Timestamps are plain floats measured in seconds.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from .errors import InvalidConfiguration


class Clock(ABC):
    """Abstract time source."""

    @abstractmethod
    def now(self) -> float:
        """Return the current timestamp in seconds."""


class SystemClock(Clock):
    """Wall clock time, comparable across process restarts."""

    def now(self) -> float:
        return time.time()


class MonotonicClock(Clock):
    """Monotonic time, only meaningful within one process."""

    def now(self) -> float:
        return time.monotonic()


class ManualClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def now(self) -> float:
        return self._now

    def advance(self, seconds: float) -> float:
        if seconds < 0:
            raise ValueError(f"Cannot advance clock by negative amount {seconds}")
        self._now += seconds
        return self._now

    def set(self, timestamp: float) -> None:
        self._now = float(timestamp)


CLOCKS: dict[str, type[Clock]] = {
    "system": SystemClock,
    "monotonic": MonotonicClock,
}


def get_clock(name: str) -> Clock:
    try:
        return CLOCKS[name]()
    except KeyError:
        raise InvalidConfiguration(f"Unknown clock {name!r}") from None


__all__ = ["CLOCKS", "Clock", "ManualClock", "MonotonicClock", "SystemClock", "get_clock"]
