"""
Google Geocoding API Client Library

This module provides a Python async client for reverse geocoding with the
Google Geocoding API using client ID request signing, with per-client
rate limiting and automatic back-off on OVER_QUERY_LIMIT responses.

Example usage:
    from lib.google_geocoding import GeocoderConfig, GeocoderCredentials, GoogleGeocoderClient, HttpxTransport

    client = GoogleGeocoderClient(
        credentials=GeocoderCredentials(clientId="gme-client", signingKey="...", channel="my-channel"),
        config=GeocoderConfig(language="en", requestsPerSecond=10, overLimitCooldown=2.0),
        transport=HttpxTransport(),
    )

    # Reverse geocoding
    response = await client.reverseGeocode(49.1758444, 7.3019607, timeout=30)
"""

from lib.google_geocoding.client import CallPhase, GoogleGeocoderClient, createGeocoderClient
from lib.google_geocoding.config import GeocoderConfig, GeocoderCredentials
from lib.google_geocoding.exceptions import (
    GeocoderCancelledError,
    GeocoderConfigurationError,
    GeocoderDecodeError,
    GeocoderError,
    GeocoderSigningError,
    GeocoderTransportError,
)
from lib.google_geocoding.models import (
    AddressComponent,
    Bounds,
    Coordinate,
    Geometry,
    GoogleResponse,
    ResponseStatus,
    ResultSet,
)
from lib.google_geocoding.observer import LoggingRequestObserver, RequestObserverInterface
from lib.google_geocoding.response_parser import parseGeocodeResponse
from lib.google_geocoding.signer import canonicalQuery, formatLatLng, signRequest
from lib.google_geocoding.transport import HttpTransportInterface, HttpxTransport

__all__ = [
    "GoogleGeocoderClient",
    "createGeocoderClient",
    "CallPhase",
    "GeocoderConfig",
    "GeocoderCredentials",
    "GeocoderError",
    "GeocoderConfigurationError",
    "GeocoderCancelledError",
    "GeocoderSigningError",
    "GeocoderTransportError",
    "GeocoderDecodeError",
    "GoogleResponse",
    "ResultSet",
    "AddressComponent",
    "Geometry",
    "Coordinate",
    "Bounds",
    "ResponseStatus",
    "RequestObserverInterface",
    "LoggingRequestObserver",
    "HttpTransportInterface",
    "HttpxTransport",
    "parseGeocodeResponse",
    "canonicalQuery",
    "formatLatLng",
    "signRequest",
]
