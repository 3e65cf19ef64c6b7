"""Leaky bucket counter.

A bucket fills by one unit per accepted event and drains continuously at
``capacity / timeframe_seconds`` units per second, so it enforces a rolling
budget instead of a fixed window. Drain is applied lazily: every operation
that observes the volume first recomputes it against the clock.
"""

from __future__ import annotations

import logging
import math

from .clock import Clock, SystemClock
from .errors import InvalidConfiguration
from .storage import BucketState

logger = logging.getLogger(__name__)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(capacity: int, timeframe_seconds: float) -> float:
    """Check bucket settings and return the resulting drain rate."""

    if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity <= 0:
        raise InvalidConfiguration(f"capacity must be a positive integer, got {capacity!r}")
    if not _is_number(timeframe_seconds) or not math.isfinite(timeframe_seconds) or timeframe_seconds <= 0:
        raise InvalidConfiguration(f"timeframe_seconds must be positive and finite, got {timeframe_seconds!r}")
    drain_rate = capacity / timeframe_seconds
    if not drain_rate > 0:
        raise InvalidConfiguration(
            f"capacity {capacity!r} over timeframe {timeframe_seconds!r} gives no drain rate"
        )
    return drain_rate


class Bucket:
    def __init__(self, capacity: int, timeframe_seconds: float, *, clock: Clock | None = None) -> None:
        self._drain_rate = validate_config(capacity, timeframe_seconds)
        self._capacity = capacity
        self._clock = clock or SystemClock()
        self._volume = 0.0
        self._last_update = self._clock.now()

    @classmethod
    def create(cls, capacity: int, timeframe_seconds: float, *, clock: Clock | None = None) -> Bucket:
        return cls(capacity, timeframe_seconds, clock=clock)

    @classmethod
    def from_state(
        cls,
        state: BucketState,
        capacity: int,
        timeframe_seconds: float,
        *,
        clock: Clock | None = None,
    ) -> Bucket:
        """Build a bucket and restore a previously saved state into it."""

        return cls(capacity, timeframe_seconds, clock=clock).load(state.requests, state.last_update)

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def drain_rate(self) -> float:
        return self._drain_rate

    @property
    def last_update(self) -> float:
        return self._last_update

    def drain(self, now: float | None = None) -> None:
        """Remove the volume leaked since the last update.

        A timestamp older than ``last_update`` counts as no elapsed time, so
        a clock stepping backwards never refills the bucket or rewinds it.
        """

        if now is None:
            now = self._clock.now()
        elapsed = now - self._last_update
        if elapsed <= 0:
            return
        drained = elapsed * self._drain_rate
        logger.debug("Draining %.6f from bucket (volume %.6f)", drained, self._volume)
        self._volume = max(0.0, self._volume - drained)
        self._last_update = now

    def fill(self, requests: int = 1) -> None:
        if requests <= 0:
            return
        self._volume += requests

    def load(self, requests: int, last_update: float) -> Bucket:
        """Restore stored state without draining it at the load instant."""

        self.fill(requests)
        self._last_update = float(last_update)
        return self

    def has_capacity(self, now: float | None = None) -> bool:
        self.drain(now)
        return math.floor(self._volume) < self._capacity

    def get_volume(self, now: float | None = None) -> float:
        self.drain(now)
        return self._volume

    def time_until_capacity(self, now: float | None = None) -> float:
        """Seconds until the volume has drained back down to capacity.

        Returns ``0.0`` when there is room already. Otherwise room frees up
        as soon as strictly more than the returned time has passed.
        """

        if self.has_capacity(now):
            return 0.0
        return (self._volume - self._capacity) / self._drain_rate

    def snapshot(self, now: float | None = None) -> BucketState:
        volume = self.get_volume(now)
        return BucketState(requests=volume, last_update=self._last_update)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self._capacity}, drain_rate={self._drain_rate}, "
            f"volume={self._volume}, last_update={self._last_update})"
        )


__all__ = ["Bucket", "validate_config"]
