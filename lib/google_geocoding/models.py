"""
Google Geocoding API Data Models

This module defines TypedDict data models for the Google Geocoding API
responses plus the closed set of response statuses.
"""

import sys
from enum import StrEnum
from typing import List, NotRequired

if sys.version_info >= (3, 14):
    from typing import TypedDict
else:
    from typing_extensions import TypedDict


class ResponseStatus(StrEnum):
    """Top-level status of a geocoding response.

    Only OVER_QUERY_LIMIT changes client behavior (it triggers a cooldown),
    every other status is handed to the caller as is.
    """

    OK = "OK"
    ZERO_RESULTS = "ZERO_RESULTS"
    OVER_QUERY_LIMIT = "OVER_QUERY_LIMIT"
    REQUEST_DENIED = "REQUEST_DENIED"
    INVALID_REQUEST = "INVALID_REQUEST"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class Coordinate(TypedDict):
    """Geographic point."""

    lat: float  # Latitude
    lng: float  # Longitude


class Bounds(TypedDict):
    """Rectangle given by its south-west and north-east corners."""

    southwest: Coordinate
    northeast: Coordinate


class AddressComponent(TypedDict):
    """Single component of a structured address, dood!"""

    long_name: str  # Full name (e.g. "Germany")
    short_name: str  # Abbreviated name (e.g. "DE")
    types: List[str]  # Component types (e.g. ["country", "political"])


class Geometry(TypedDict):
    """Location of a result."""

    location: Coordinate  # Geocoded point
    location_type: str  # ROOFTOP, RANGE_INTERPOLATED, GEOMETRIC_CENTER or APPROXIMATE
    viewport: NotRequired[Bounds]  # Recommended viewport for displaying the result
    bounds: NotRequired[Bounds]  # Bounding box that can fully contain the result


class ResultSet(TypedDict):
    """Single reverse geocoding result."""

    address_components: List[AddressComponent]  # Structured address
    formatted_address: str  # Human-readable address
    geometry: Geometry  # Location data
    place_id: str  # Unique place identifier
    types: List[str]  # Semantic type tags (e.g. ["street_address"])


class GoogleResponse(TypedDict):
    """Full response of the geocode endpoint."""

    results: List[ResultSet]  # Ordered results, best match first
    status: ResponseStatus  # Response status
    error_message: NotRequired[str]  # Provider explanation for non-OK statuses
