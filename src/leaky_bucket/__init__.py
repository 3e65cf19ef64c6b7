"""Leaky bucket rate limiting package."""

from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("leaky-bucket")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from .bucket import Bucket
from .clock import Clock, ManualClock, MonotonicClock, SystemClock
from .errors import InvalidConfiguration, LeakyBucketError
from .rate_limit import RateLimiter, RateLimitRule
from .storage import BucketState, BucketStore, MemoryBucketStore

__all__ = [
    "__version__",
    "Bucket",
    "BucketState",
    "BucketStore",
    "Clock",
    "InvalidConfiguration",
    "LeakyBucketError",
    "ManualClock",
    "MemoryBucketStore",
    "MonotonicClock",
    "RateLimitRule",
    "RateLimiter",
    "SystemClock",
]
