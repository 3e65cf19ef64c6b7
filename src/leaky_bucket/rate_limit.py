"""In-memory rate limiter keeping one leaky bucket per client key."""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Awaitable, Callable

from .bucket import Bucket, validate_config
from .clock import Clock, get_clock
from .config import Settings, settings
from .storage import BucketStore

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[object]]


@dataclass(frozen=True)
class RateLimitRule:
    capacity: int
    timeframe_seconds: float

    def __post_init__(self) -> None:
        validate_config(self.capacity, self.timeframe_seconds)

    @classmethod
    def from_settings(cls, config: Settings) -> RateLimitRule:
        return cls(capacity=config.capacity, timeframe_seconds=config.timeframe_seconds)


class RateLimiter:
    """Accepts or rejects events per key.

    Buckets are created lazily and restored from ``store`` when it holds
    state for the key. All bucket access goes through one lock, so a limiter
    may be shared between threads; waiting in :meth:`acquire` happens outside
    of it.
    """

    def __init__(
        self,
        rule: RateLimitRule | None = None,
        *,
        clock: Clock | None = None,
        store: BucketStore | None = None,
        sleep: SleepFunc | None = None,
        min_wait: float | None = None,
    ) -> None:
        self.rule = rule or RateLimitRule.from_settings(settings)
        self._clock = clock or get_clock(settings.clock)
        self._store = store
        self._sleep = sleep or asyncio.sleep
        self._min_wait = settings.min_wait_seconds if min_wait is None else min_wait
        self._buckets: dict[str, Bucket] = {}
        self._lock = threading.Lock()

    def _get_bucket(self, key: str) -> Bucket:
        bucket = self._buckets.get(key)
        if bucket is not None:
            return bucket
        state = self._store.get_state(key) if self._store is not None else None
        if state is None:
            bucket = Bucket(self.rule.capacity, self.rule.timeframe_seconds, clock=self._clock)
        else:
            logger.debug("Restoring bucket %s from %s", key, state)
            bucket = Bucket.from_state(
                state, self.rule.capacity, self.rule.timeframe_seconds, clock=self._clock
            )
        self._buckets[key] = bucket
        return bucket

    def bucket(self, key: str) -> Bucket:
        with self._lock:
            return self._get_bucket(key)

    def check(self, key: str, requests: int = 1) -> bool:
        with self._lock:
            bucket = self._get_bucket(key)
            if not bucket.has_capacity():
                logger.info("Rate limit exceeded for %s (capacity %s)", key, bucket.capacity)
                return False
            bucket.fill(requests)
            return True

    def retry_after(self, key: str) -> float:
        with self._lock:
            return self._get_bucket(key).time_until_capacity()

    async def acquire(self, key: str, requests: int = 1) -> float:
        """Wait until ``key`` has room, record the event and return seconds waited."""

        waited = 0.0
        while not self.check(key, requests):
            delay = max(self.retry_after(key), self._min_wait)
            logger.debug("Waiting %.3fs for capacity on %s", delay, key)
            await self._sleep(delay)
            waited += delay
        return waited

    def save(self, key: str) -> bool:
        if self._store is None:
            return False
        with self._lock:
            bucket = self._buckets.get(key)
            if bucket is None:
                return False
            self._store.save_state(key, bucket.snapshot())
        return True

    def save_all(self) -> int:
        if self._store is None:
            return 0
        with self._lock:
            for key, bucket in self._buckets.items():
                self._store.save_state(key, bucket.snapshot())
            return len(self._buckets)

    def reset(self, key: str) -> bool:
        with self._lock:
            removed = self._buckets.pop(key, None) is not None
            if self._store is not None:
                removed = self._store.delete_state(key) or removed
        return removed

    def prune(self) -> int:
        """Forget keys whose buckets have drained empty.

        Buckets are otherwise kept for every key ever seen. An empty bucket
        behaves exactly like a fresh one, so dropping it loses nothing;
        saved state for the key is left in the store.
        """

        with self._lock:
            empty = [key for key, bucket in self._buckets.items() if bucket.get_volume() == 0]
            for key in empty:
                del self._buckets[key]
        if empty:
            logger.debug("Pruned %s empty buckets", len(empty))
        return len(empty)

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)


__all__ = ["RateLimiter", "RateLimitRule", "SleepFunc"]
