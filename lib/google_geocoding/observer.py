"""
Request timing observers.

An observer receives the wall-clock duration of every HTTP exchange the
client performs. Observers are best effort: the client ignores (and logs)
anything they raise.
"""

import logging
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class RequestObserverInterface(ABC):
    """Receives timings of outgoing HTTP requests."""

    @abstractmethod
    def observeHttpRequest(self, label: str, elapsedSeconds: float) -> None:
        """
        Record a single request duration.

        Args:
            label: Fixed request label (e.g. "google_reverse_geocode")
            elapsedSeconds: Wall-clock duration of the request
        """
        pass


class LoggingRequestObserver(RequestObserverInterface):
    """Observer that writes request timings to the log."""

    def __init__(self, level: int = logging.DEBUG):
        self.level = level

    def observeHttpRequest(self, label: str, elapsedSeconds: float) -> None:
        logger.log(self.level, f"HTTP request '{label}' took {elapsedSeconds * 1000:.1f} ms")
