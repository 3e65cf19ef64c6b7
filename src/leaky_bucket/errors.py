"""Exceptions raised by the rate limiter."""

from __future__ import annotations


class LeakyBucketError(Exception):
    """Base class for leaky bucket errors."""


class InvalidConfiguration(LeakyBucketError, ValueError):
    """Raised when a bucket or rule is configured with invalid values."""


__all__ = ["InvalidConfiguration", "LeakyBucketError"]
