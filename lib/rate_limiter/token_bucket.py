import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Optional

from .interface import RateLimiterInterface, RateLimiterTimeoutError
from .types import RateLimiterStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenBucketConfig:
    """
    Configuration for token bucket rate limiting.

    Attributes:
        requestsPerSecond: Refill rate of the bucket (tokens per second)
        capacity: Maximum number of tokens the bucket can hold
    """

    requestsPerSecond: int
    capacity: int = 1

    def __post_init__(self):
        """Validate configuration values"""
        if (
            isinstance(self.requestsPerSecond, bool)
            or not isinstance(self.requestsPerSecond, int)
            or self.requestsPerSecond <= 0
        ):
            raise ValueError("requestsPerSecond must be a positive integer")
        if self.capacity <= 0:
            raise ValueError("capacity must be positive")


class TokenBucketRateLimiter(RateLimiterInterface):
    """
    Token bucket rate limiter with suspend/resume support.

    The bucket starts full and is refilled continuously at
    ``requestsPerSecond`` tokens per second, never holding more than
    ``capacity`` tokens. Each ``applyLimit`` call takes one token, waiting
    for the refill if the bucket is empty. Waiting callers are served in
    arrival order and each one sleeps until its own token is due.

    ``suspendThenResume`` drops the refill rate to zero for a cooldown
    period. While suspended nobody gets a token (even if the bucket has one)
    and the bucket does not refill. Several overlapping cooldowns are
    tracked with a counter, so the rate is restored only when the last of
    them ends.

    Thread Safety:
        All state lives behind a single asyncio.Condition. It is safe for
        concurrent tasks on one event loop, not across threads.

    Example:
        >>> limiter = TokenBucketRateLimiter(TokenBucketConfig(requestsPerSecond=5))
        >>> await limiter.applyLimit()
        >>> await limiter.suspendThenResume(1.5)
    """

    def __init__(self, config: TokenBucketConfig, clock: Callable[[], float] = time.monotonic):
        """
        Initialize the token bucket rate limiter.

        Args:
            config: Rate limit configuration
            clock: Monotonic clock returning seconds (default: time.monotonic)
        """
        self._config = config
        self._clock = clock
        self._currentRate = float(config.requestsPerSecond)
        self._tokens = float(config.capacity)
        self._updatedAt = clock()
        self._activeSuspensions = 0
        self._waiters: Deque[object] = deque()
        self._condition = asyncio.Condition()

    def _refill(self) -> float:
        """
        Add tokens accumulated since the last update (internal helper).

        Must be called with the condition lock held.

        Returns:
            Current clock value
        """
        now = self._clock()
        elapsed = now - self._updatedAt
        if elapsed > 0:
            if self._currentRate > 0:
                self._tokens = min(float(self._config.capacity), self._tokens + elapsed * self._currentRate)
            self._updatedAt = now
        return now

    async def _waitForChange(self, waitTime: Optional[float]) -> None:
        """
        Release the lock until notified or until ``waitTime`` seconds pass.

        Must be called with the condition lock held, returns with it held.
        """
        try:
            await asyncio.wait_for(self._condition.wait(), timeout=waitTime)
        except TimeoutError:
            pass

    async def applyLimit(self, timeout: Optional[float] = None) -> None:
        """
        Take one token, waiting for it if needed.

        Callers that have to wait are queued and served in arrival order. A
        waiter at queue position ``k`` sleeps until ``k + 1`` tokens would have
        accumulated, so each refilled token wakes only the waiter it belongs to.

        Args:
            timeout: Maximum number of seconds to wait. None means wait forever.

        Raises:
            RateLimiterTimeoutError: If no token could be taken before the timeout.
                The bucket is left untouched.
        """
        deadline = None if timeout is None else self._clock() + timeout

        async with self._condition:
            self._refill()
            if not self._waiters and self._currentRate > 0 and self._tokens >= 1.0:
                self._tokens -= 1.0
                return

            ticket = object()
            self._waiters.append(ticket)
            acquired = False
            try:
                while True:
                    now = self._refill()
                    position = self._waiters.index(ticket)
                    if position == 0 and self._currentRate > 0 and self._tokens >= 1.0:
                        self._tokens -= 1.0
                        acquired = True
                        return

                    # While suspended there is no refill to wait for, only a resume notification
                    waitTime: Optional[float] = None
                    if self._currentRate > 0:
                        waitTime = max(0.0, (position + 1.0 - self._tokens) / self._currentRate)

                    if deadline is not None:
                        remaining = deadline - now
                        if remaining <= 0:
                            raise RateLimiterTimeoutError(f"No rate limiter capacity within {timeout} seconds")
                        waitTime = remaining if waitTime is None else min(waitTime, remaining)

                    await self._waitForChange(waitTime)
            finally:
                self._waiters.remove(ticket)
                if not acquired or self._tokens >= 1.0:
                    # The next waiter may be served earlier than it planned
                    self._condition.notify_all()

    async def suspendThenResume(self, cooldown: float) -> None:
        """
        Suspend the limiter for ``cooldown`` seconds, then restore the configured rate.

        The calling task bears the sleep. The rate is restored even if this
        task gets cancelled while sleeping.

        Args:
            cooldown: Suspension duration in seconds
        """
        async with self._condition:
            self._refill()
            self._activeSuspensions += 1
            self._currentRate = 0.0

        logger.warning(f"Rate limiter suspended for {cooldown} seconds, dood!")
        try:
            await asyncio.sleep(cooldown)
        finally:
            async with self._condition:
                self._refill()
                self._activeSuspensions -= 1
                if self._activeSuspensions == 0:
                    self._currentRate = float(self._config.requestsPerSecond)
                    self._condition.notify_all()
                    logger.info(f"Rate limiter resumed at {self._currentRate} requests per second")

    def getStats(self) -> RateLimiterStats:
        """
        Get current rate limiter state.

        Returns:
            RateLimiterStats dictionary (tokens are not refilled by this call)

        Example:
            >>> stats = limiter.getStats()
            >>> print(f"Suspended: {stats['suspended']}")
        """
        return {
            "configuredRate": float(self._config.requestsPerSecond),
            "currentRate": self._currentRate,
            "capacity": self._config.capacity,
            "tokens": self._tokens,
            "suspended": self._activeSuspensions > 0,
            "activeSuspensions": self._activeSuspensions,
            "waiters": len(self._waiters),
        }
