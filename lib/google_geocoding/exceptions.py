"""
Google Geocoder Exceptions

This module contains the exception hierarchy raised by the geocoder client.
"""

import logging
from typing import Optional

logger = logging.getLogger(__name__)


class GeocoderError(Exception):
    """Base exception class for all geocoder errors, dood!

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        logger.debug(f"{self.__class__.__name__}: {message}")

    def __str__(self) -> str:
        return self.message


class GeocoderConfigurationError(GeocoderError, ValueError):
    """Raised when the client is constructed with invalid arguments.

    This typically occurs when:
    - Credentials or transport are missing
    - The base endpoint is empty
    - The requests-per-second rate is not a positive integer
    """


class GeocoderCancelledError(GeocoderError):
    """Raised when the caller's timeout fires before the call completes.

    Attributes:
        phase: Call phase that was interrupted (see CallPhase)
    """

    def __init__(self, message: str, phase: str) -> None:
        super().__init__(message)
        self.phase = phase


class GeocoderSigningError(GeocoderError):
    """Raised when the request can't be signed (malformed signing key)."""


class GeocoderTransportError(GeocoderError):
    """Raised by HttpxTransport when the HTTP exchange fails.

    Attributes:
        statusCode: HTTP status code, if a response was received
    """

    def __init__(self, message: str, statusCode: Optional[int] = None) -> None:
        super().__init__(message)
        self.statusCode = statusCode

    def __str__(self) -> str:
        if self.statusCode is not None:
            return f"{self.message} (HTTP {self.statusCode})"
        return self.message


class GeocoderDecodeError(GeocoderError):
    """Raised when the response body is not valid JSON of the expected shape."""
