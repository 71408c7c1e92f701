"""
Google Geocoding API Async Client

This module provides the main GoogleGeocoderClient class for reverse
geocoding against the Google Geocoding API with client ID request signing
and rate limiting support.
"""

import asyncio
import logging
import time
from enum import StrEnum
from typing import Any, Dict, Optional
from urllib.parse import quote, urlparse

from lib.rate_limiter import RateLimiterStats, RateLimiterTimeoutError, TokenBucketConfig, TokenBucketRateLimiter

from .config import GeocoderConfig, GeocoderCredentials
from .exceptions import GeocoderCancelledError, GeocoderConfigurationError
from .models import GoogleResponse, ResponseStatus
from .observer import RequestObserverInterface
from .response_parser import parseGeocodeResponse
from .signer import canonicalQuery, formatLatLng, signRequest
from .transport import HttpTransportInterface, HttpxTransport

logger = logging.getLogger(__name__)


class CallPhase(StrEnum):
    """Phases a single reverseGeocode call goes through."""

    THROTTLED = "throttled"
    SIGNING = "signing"
    IN_FLIGHT = "in-flight"
    DECODING = "decoding"
    OVER_LIMIT_COOLDOWN = "over-limit-cooldown"
    DONE = "done"


class GoogleGeocoderClient:
    """Async client for the Google Geocoding API with signing and rate limiting, dood!

    Every call waits for a rate limiter slot, builds and signs the request
    URL, performs a single GET through the injected transport and decodes
    the JSON response. If the provider answers OVER_QUERY_LIMIT, the rate
    limiter is suspended for ``config.overLimitCooldown`` seconds (the
    calling task sleeps through it) and the response is still returned.

    Transport errors are never retried and reach the caller unchanged.

    Example:
        >>> from lib.google_geocoding import (
        ...     GeocoderConfig,
        ...     GeocoderCredentials,
        ...     GoogleGeocoderClient,
        ...     HttpxTransport,
        ... )
        >>>
        >>> client = GoogleGeocoderClient(
        ...     credentials=GeocoderCredentials(clientId="gme-client", signingKey="bXlfdGVzdF9rZXk="),
        ...     config=GeocoderConfig(language="en", requestsPerSecond=10, overLimitCooldown=2.0),
        ...     transport=HttpxTransport(requestTimeout=10),
        ... )
        >>>
        >>> response = await client.reverseGeocode(49.1758444, 7.3019607, timeout=30)
        >>> print(response["results"][0]["formatted_address"])
    """

    OBSERVER_LABEL = "google_reverse_geocode"

    def __init__(
        self,
        credentials: GeocoderCredentials,
        config: GeocoderConfig,
        transport: HttpTransportInterface,
        observer: Optional[RequestObserverInterface] = None,
    ):
        """Initialize Google geocoder client.

        Args:
            credentials: Client ID and signing key (required)
            config: Client settings (required)
            transport: HTTP transport used for the GET requests (required)
            observer: Optional receiver of request timings

        Raises:
            GeocoderConfigurationError: If a required argument is missing
        """
        if credentials is None:
            raise GeocoderConfigurationError("Empty credentials")
        if config is None:
            raise GeocoderConfigurationError("Empty config")
        if transport is None:
            raise GeocoderConfigurationError("Empty transport")

        self.credentials = credentials
        self.config = config
        self.transport = transport
        self.observer = observer
        endpoint = urlparse(config.baseEndpoint)
        # A bare host is requested as "/"
        if not endpoint.path:
            endpoint = endpoint._replace(path="/")
        self._endpointUrl = endpoint.geturl()
        self._endpointPath = endpoint.path
        self._rateLimiter = TokenBucketRateLimiter(TokenBucketConfig(requestsPerSecond=config.requestsPerSecond))

    @classmethod
    def fromConfig(
        cls,
        config: Dict[str, Any],
        transport: Optional[HttpTransportInterface] = None,
        observer: Optional[RequestObserverInterface] = None,
    ) -> "GoogleGeocoderClient":
        """Create client from a ``[geocoder]`` config section.

        Args:
            config: Geocoder section of the configuration
            transport: Transport to use (default: HttpxTransport with ``request-timeout``)
            observer: Optional receiver of request timings

        Raises:
            GeocoderConfigurationError: If the section is invalid
        """
        credentials = GeocoderCredentials.fromDict(config.get("credentials", {}))
        if transport is None:
            transport = HttpxTransport(requestTimeout=config.get("request-timeout", 10))
        return cls(
            credentials=credentials,
            config=GeocoderConfig.fromDict(config),
            transport=transport,
            observer=observer,
        )

    def buildParams(self, lat: float, lng: float) -> Dict[str, str]:
        """Build unsigned query parameters for a reverse geocoding request.

        Args:
            lat: Latitude
            lng: Longitude

        Returns:
            Dict of query parameters (values not yet escaped)
        """
        params = {
            "latlng": formatLatLng(lat, lng),
            "sensor": "false",
            "client": self.credentials.clientId,
        }
        if self.config.language:
            params["language"] = self.config.language
        if self.credentials.channel:
            params["channel"] = self.credentials.channel
        return params

    def buildUrl(self, lat: float, lng: float) -> str:
        """Build the signed request URL.

        The canonical query is signed together with the endpoint path and the
        signature is appended last.

        Raises:
            GeocoderSigningError: If the signing key is malformed
        """
        query = canonicalQuery(self.buildParams(lat, lng))
        signature = signRequest(self._endpointPath, query, self.credentials.signingKey)
        return f"{self._endpointUrl}?{query}&signature={quote(signature, safe='')}"

    async def reverseGeocode(self, lat: float, lng: float, *, timeout: Optional[float] = None) -> GoogleResponse:
        """Reverse geocoding: convert coordinates to addresses, dood!

        Args:
            lat: Latitude (-90 to 90)
            lng: Longitude (-180 to 180)
            timeout: Optional deadline in seconds for waiting on the rate limiter
                and the HTTP request together

        Returns:
            Decoded GoogleResponse. OVER_QUERY_LIMIT responses are returned too,
            after the cooldown has been applied.

        Raises:
            GeocoderCancelledError: If the timeout fired while waiting
            GeocoderSigningError: If the signing key is malformed
            GeocoderDecodeError: If the response body is not a valid geocode response
            Exception: Whatever the transport raised, unchanged

        Example:
            >>> response = await client.reverseGeocode(52.5443, 103.8882)
            >>> if response["status"] == ResponseStatus.OK:
            ...     print(response["results"][0]["formatted_address"])
        """
        deadline = None if timeout is None else time.monotonic() + timeout

        logger.debug(f"reverseGeocode({lat}, {lng}): {CallPhase.THROTTLED}")
        try:
            await self._rateLimiter.applyLimit(timeout=timeout)
        except RateLimiterTimeoutError as e:
            raise GeocoderCancelledError(
                f"Cancelled while waiting for rate limiter after {timeout} seconds", phase=CallPhase.THROTTLED
            ) from e

        logger.debug(f"reverseGeocode({lat}, {lng}): {CallPhase.SIGNING}")
        targetUrl = self.buildUrl(lat, lng)

        logger.debug(f"reverseGeocode({lat}, {lng}): {CallPhase.IN_FLIGHT}")
        body = await self._fetch(targetUrl, deadline)

        logger.debug(f"reverseGeocode({lat}, {lng}): {CallPhase.DECODING}")
        response = parseGeocodeResponse(body)

        if response["status"] == ResponseStatus.OVER_QUERY_LIMIT:
            logger.warning(
                f"Got {ResponseStatus.OVER_QUERY_LIMIT}, pausing requests for {self.config.overLimitCooldown} seconds"
            )
            logger.debug(f"reverseGeocode({lat}, {lng}): {CallPhase.OVER_LIMIT_COOLDOWN}")
            await self._rateLimiter.suspendThenResume(self.config.overLimitCooldown)

        logger.debug(f"reverseGeocode({lat}, {lng}): {CallPhase.DONE}, status={response['status']}")
        return response

    async def _fetch(self, targetUrl: str, deadline: Optional[float]) -> bytes:
        """Issue the GET request within what is left of the caller's deadline.

        Args:
            targetUrl: Signed request URL
            deadline: time.monotonic() value to give up at, or None

        Returns:
            Response body
        """
        startedAt = time.monotonic()
        try:
            if deadline is None:
                return await self.transport.fetch(targetUrl)

            timeoutContext = asyncio.timeout(deadline - startedAt)
            try:
                async with timeoutContext:
                    return await self.transport.fetch(targetUrl)
            except TimeoutError as e:
                if timeoutContext.expired():
                    raise GeocoderCancelledError(
                        "Cancelled while waiting for geocode response", phase=CallPhase.IN_FLIGHT
                    ) from e
                raise
        finally:
            self._observe(time.monotonic() - startedAt)

    def _observe(self, elapsedSeconds: float) -> None:
        """Report request duration to the observer, ignoring its failures."""
        if self.observer is None:
            return
        try:
            self.observer.observeHttpRequest(self.OBSERVER_LABEL, elapsedSeconds)
        except Exception as e:
            logger.warning(f"Request observer error: {e}")

    def getRateLimiterStats(self) -> RateLimiterStats:
        """Get a snapshot of the client's rate limiter state."""
        return self._rateLimiter.getStats()


def createGeocoderClient(
    *,
    credentials: Optional[GeocoderCredentials],
    baseEndpoint: str,
    transport: Optional[HttpTransportInterface],
    requestsPerSecond: int,
    overLimitCooldown: float,
    language: str = "",
    observer: Optional[RequestObserverInterface] = None,
) -> GoogleGeocoderClient:
    """Create a geocoder client from individual settings.

    Raises:
        GeocoderConfigurationError: If credentials or transport are missing,
            the endpoint is empty or the rate is not positive
    """
    config = GeocoderConfig(
        baseEndpoint=baseEndpoint,
        language=language,
        requestsPerSecond=requestsPerSecond,
        overLimitCooldown=overLimitCooldown,
    )
    return GoogleGeocoderClient(
        credentials=credentials,  # type: ignore[arg-type]
        config=config,
        transport=transport,  # type: ignore[arg-type]
        observer=observer,
    )
