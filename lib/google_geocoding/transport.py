"""
HTTP transports for the geocoder client.

The client only needs a single operation: GET a URL and hand back the
response body. Anything implementing HttpTransportInterface can be plugged
in (the httpx-based default, a recording transport, a test double).
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

import httpx

from .exceptions import GeocoderTransportError

logger = logging.getLogger(__name__)


class HttpTransportInterface(ABC):
    """Abstract HTTP GET capability used by GoogleGeocoderClient."""

    @abstractmethod
    async def fetch(self, url: str) -> bytes:
        """
        Issue a GET request and return the response body.

        Args:
            url: Fully built (and signed) request URL

        Returns:
            Raw response body
        """
        pass


class HttpxTransport(HttpTransportInterface):
    """httpx based transport.

    Creates a new HTTP session for each request to support proper
    concurrent operations.
    """

    def __init__(self, requestTimeout: float = 10, headers: Optional[Dict[str, str]] = None):
        """
        Initialize httpx transport.

        Args:
            requestTimeout: HTTP request timeout in seconds (default: 10)
            headers: Extra headers to send with every request
        """
        self.requestTimeout = requestTimeout
        self.headers = headers or {}

    async def fetch(self, url: str) -> bytes:
        """
        GET the URL with httpx.

        Raises:
            GeocoderTransportError: On timeout, network error or non-2xx HTTP status
        """
        try:
            async with httpx.AsyncClient(timeout=self.requestTimeout) as session:
                response = await session.get(url, headers=self.headers)
        except httpx.TimeoutException as e:
            raise GeocoderTransportError(f"Request timeout: {e}") from e
        except httpx.RequestError as e:
            raise GeocoderTransportError(f"Network error: {e}") from e

        if not response.is_success:
            logger.error(f"Geocode request failed: {response.status_code}")
            raise GeocoderTransportError("Geocode request failed", statusCode=response.status_code)

        return response.content
