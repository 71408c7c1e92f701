"""
Rate Limiter Library

This library provides an asyncio token bucket rate limiter that can be
temporarily suspended when an upstream service asks us to back off.

Example:
    >>> from lib.rate_limiter import TokenBucketConfig, TokenBucketRateLimiter
    >>>
    >>> limiter = TokenBucketRateLimiter(TokenBucketConfig(requestsPerSecond=10))
    >>>
    >>> # Wait for a slot (at most 5 seconds)
    >>> await limiter.applyLimit(timeout=5)
    >>>
    >>> # Provider said "slow down": block everybody for 2 seconds
    >>> await limiter.suspendThenResume(2.0)
"""

from .interface import RateLimiterInterface, RateLimiterTimeoutError
from .token_bucket import TokenBucketConfig, TokenBucketRateLimiter
from .types import RateLimiterStats

__all__ = [
    "RateLimiterInterface",
    "RateLimiterTimeoutError",
    "RateLimiterStats",
    "TokenBucketConfig",
    "TokenBucketRateLimiter",
]
