import logging

import pytest

from leaky_bucket.clock import ManualClock
from leaky_bucket.config import Settings
from leaky_bucket.errors import InvalidConfiguration
from leaky_bucket.rate_limit import RateLimiter, RateLimitRule
from leaky_bucket.storage import BucketState, MemoryBucketStore


class FakeSleep:
    def __init__(self, clock: ManualClock) -> None:
        self.clock = clock
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(seconds)


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def store():
    return MemoryBucketStore()


def test_allows_within_capacity(clock):
    limiter = RateLimiter(RateLimitRule(capacity=3, timeframe_seconds=60), clock=clock)
    assert limiter.check("user1") is True
    assert limiter.check("user1") is True
    assert limiter.check("user1") is True
    assert limiter.check("user1") is False


def test_rejection_does_not_fill(clock):
    limiter = RateLimiter(RateLimitRule(capacity=2, timeframe_seconds=2), clock=clock)
    limiter.check("user1")
    limiter.check("user1")
    assert limiter.check("user1") is False
    assert limiter.bucket("user1").get_volume() == 2


def test_isolated_buckets_per_key(clock):
    limiter = RateLimiter(RateLimitRule(capacity=1, timeframe_seconds=10), clock=clock)
    assert limiter.check("telegram:user1") is True
    assert limiter.check("discord:user1") is True
    assert limiter.check("telegram:user1") is False
    assert len(limiter) == 2


def test_drain_allows_again(clock):
    limiter = RateLimiter(RateLimitRule(capacity=2, timeframe_seconds=4), clock=clock)
    assert limiter.check("user1") is True
    assert limiter.check("user1") is True
    assert limiter.check("user1") is False
    assert limiter.retry_after("user1") == 0.0
    clock.advance(2.5)
    assert limiter.check("user1") is True


@pytest.mark.parametrize(
    "capacity, timeframe",
    [(0, 10), (5, 0), (2.5, 10), (True, 10), ("5", 10), (5, float("inf"))],
)
def test_invalid_rule(capacity, timeframe):
    with pytest.raises(InvalidConfiguration):
        RateLimitRule(capacity=capacity, timeframe_seconds=timeframe)


def test_rule_from_settings():
    rule = RateLimitRule.from_settings(Settings(capacity=12, timeframe_seconds=30))
    assert rule == RateLimitRule(capacity=12, timeframe_seconds=30.0)


@pytest.mark.asyncio
async def test_acquire_without_waiting(clock):
    sleep = FakeSleep(clock)
    limiter = RateLimiter(RateLimitRule(capacity=2, timeframe_seconds=2), clock=clock, sleep=sleep)
    assert await limiter.acquire("user1") == 0.0
    assert sleep.calls == []


@pytest.mark.asyncio
async def test_acquire_waits_for_drain(clock):
    sleep = FakeSleep(clock)
    limiter = RateLimiter(
        RateLimitRule(capacity=2, timeframe_seconds=2),
        clock=clock,
        sleep=sleep,
        min_wait=0.5,
    )
    assert limiter.check("user1", requests=3) is True
    assert limiter.retry_after("user1") == pytest.approx(1.0)

    waited = await limiter.acquire("user1")

    assert sleep.calls == [pytest.approx(1.0), pytest.approx(0.5)]
    assert waited == pytest.approx(1.5)
    assert clock.now() == pytest.approx(1.5)
    assert limiter.bucket("user1").get_volume() == pytest.approx(2.5)


def test_save_and_restore_through_store(clock, store):
    rule = RateLimitRule(capacity=5, timeframe_seconds=5)
    limiter = RateLimiter(rule, clock=clock, store=store)
    for _ in range(3):
        assert limiter.check("user1") is True
    clock.advance(1)

    assert limiter.save("user1") is True
    assert store.get_state("user1") == BucketState(requests=2.0, last_update=1.0)

    restored = RateLimiter(rule, clock=clock, store=store)
    assert restored.bucket("user1").get_volume() == pytest.approx(2)
    clock.advance(2)
    assert restored.bucket("user1").get_volume() == 0


def test_save_without_store_or_bucket(clock, store):
    rule = RateLimitRule(capacity=5, timeframe_seconds=5)
    assert RateLimiter(rule, clock=clock).save("user1") is False
    assert RateLimiter(rule, clock=clock).save_all() == 0
    assert RateLimiter(rule, clock=clock, store=store).save("missing") is False


def test_save_all(clock, store):
    limiter = RateLimiter(RateLimitRule(capacity=5, timeframe_seconds=5), clock=clock, store=store)
    limiter.check("a")
    limiter.check("b", requests=2)
    assert limiter.save_all() == 2
    assert store.get_state("a") == BucketState(requests=1.0, last_update=0.0)
    assert store.get_state("b") == BucketState(requests=2.0, last_update=0.0)


def test_reset_forgets_bucket_and_state(clock, store):
    limiter = RateLimiter(RateLimitRule(capacity=1, timeframe_seconds=60), clock=clock, store=store)
    limiter.check("user1")
    limiter.save("user1")
    assert limiter.check("user1") is False

    assert limiter.reset("user1") is True
    assert store.get_state("user1") is None
    assert limiter.check("user1") is True
    assert limiter.reset("unknown") is False


def test_rejection_is_logged(clock, caplog):
    caplog.set_level(logging.INFO, logger="leaky_bucket")
    limiter = RateLimiter(RateLimitRule(capacity=1, timeframe_seconds=60), clock=clock)
    limiter.check("user1")
    limiter.check("user1")
    assert "Rate limit exceeded for user1" in caplog.text


def test_prune_drops_only_empty_buckets(clock, store):
    limiter = RateLimiter(RateLimitRule(capacity=4, timeframe_seconds=4), clock=clock, store=store)
    limiter.check("idle")
    limiter.check("busy", requests=3)
    limiter.save("idle")
    clock.advance(1.5)

    assert limiter.prune() == 1
    assert len(limiter) == 1
    assert limiter.bucket("busy").get_volume() == pytest.approx(1.5)
    assert store.get_state("idle") == BucketState(requests=1.0, last_update=0.0)
    assert limiter.bucket("idle").get_volume() == 0
    assert limiter.prune() == 1
