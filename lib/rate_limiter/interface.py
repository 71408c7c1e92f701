from abc import ABC, abstractmethod
from typing import Optional

from .types import RateLimiterStats


class RateLimiterTimeoutError(TimeoutError):
    """Raised when a caller gives up waiting for rate limiter capacity.

    No capacity is consumed when this is raised.
    """


class RateLimiterInterface(ABC):
    """
    Abstract base class for rate limiter implementations.

    A rate limiter gates outgoing calls: callers await ``applyLimit`` before
    doing the guarded work. Implementations must also support a temporary
    suspension triggered by upstream feedback (e.g. a provider telling us we
    are over quota), during which nobody gets through.
    """

    @abstractmethod
    async def applyLimit(self, timeout: Optional[float] = None) -> None:
        """
        Wait until the caller is allowed to proceed.

        This method blocks (sleeps) while the rate limit is exhausted or while
        the limiter is suspended.

        Args:
            timeout: Maximum number of seconds to wait. None means wait forever.

        Raises:
            RateLimiterTimeoutError: If the timeout elapsed before capacity became
                available. Nothing is consumed in that case.
        """
        pass

    @abstractmethod
    async def suspendThenResume(self, cooldown: float) -> None:
        """
        Suspend the limiter, sleep for ``cooldown`` seconds, then resume it.

        Only the calling task sleeps; every other caller stays parked in
        ``applyLimit`` until the limiter is resumed.

        Args:
            cooldown: Suspension duration in seconds
        """
        pass

    @abstractmethod
    def getStats(self) -> RateLimiterStats:
        """
        Get a snapshot of the current rate limiter state.

        Returns:
            RateLimiterStats dictionary
        """
        pass
