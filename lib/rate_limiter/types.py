"""Type definitions for the rate limiter library."""

from typing import TypedDict


class RateLimiterStats(TypedDict):
    """Snapshot of rate limiter state.

    Attributes:
        configuredRate: Steady-state refill rate (tokens per second)
        currentRate: Effective refill rate right now (0.0 while suspended)
        capacity: Bucket capacity
        tokens: Tokens available at the moment of the snapshot
        suspended: Whether the limiter is currently suspended
        activeSuspensions: Number of cooldowns currently in progress
        waiters: Number of callers queued for a token
    """

    configuredRate: float
    currentRate: float
    capacity: int
    tokens: float
    suspended: bool
    activeSuspensions: int
    waiters: int
