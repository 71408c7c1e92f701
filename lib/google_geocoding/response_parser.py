"""
JSON parser for Google Geocoding API responses

This module turns the raw response body into the GoogleResponse TypedDict
structure defined in models.py. Missing optional members get empty
defaults (the API omits ``results`` for some statuses), while members of
the wrong type, unknown statuses and invalid JSON raise GeocoderDecodeError.

Example:
    ```python
    response = parseGeocodeResponse(b'{"status": "ZERO_RESULTS", "results": []}')
    assert response["status"] == ResponseStatus.ZERO_RESULTS
    ```
"""

import json
import logging
from typing import Any, Dict, List, Optional, Type, TypeVar

from .exceptions import GeocoderDecodeError
from .models import AddressComponent, Bounds, Coordinate, Geometry, GoogleResponse, ResponseStatus, ResultSet

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _expect(value: Any, expectedType: Type[T], path: str) -> T:
    """Check value type or raise GeocoderDecodeError (internal helper)."""
    # bool is an int subclass, JSON true/false must not pass as a number
    if isinstance(value, bool) and expectedType is not bool:
        raise GeocoderDecodeError(f"Unexpected boolean at '{path}'")
    if not isinstance(value, expectedType):
        raise GeocoderDecodeError(
            f"Expected {expectedType.__name__} at '{path}', got {type(value).__name__}"
        )
    return value


def _getStr(data: Dict[str, Any], key: str, path: str) -> str:
    return _expect(data.get(key, ""), str, f"{path}.{key}")


def _getStrList(data: Dict[str, Any], key: str, path: str) -> List[str]:
    items = _expect(data.get(key, []), list, f"{path}.{key}")
    return [_expect(item, str, f"{path}.{key}[{i}]") for i, item in enumerate(items)]


def _getFloat(data: Dict[str, Any], key: str, path: str) -> float:
    value = data.get(key, 0.0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise GeocoderDecodeError(f"Expected number at '{path}.{key}', got {type(value).__name__}")
    return float(value)


def _parseCoordinate(value: Any, path: str) -> Coordinate:
    data = _expect(value, dict, path)
    return {
        "lat": _getFloat(data, "lat", path),
        "lng": _getFloat(data, "lng", path),
    }


def _parseBounds(value: Any, path: str) -> Bounds:
    data = _expect(value, dict, path)
    return {
        "southwest": _parseCoordinate(data.get("southwest", {}), f"{path}.southwest"),
        "northeast": _parseCoordinate(data.get("northeast", {}), f"{path}.northeast"),
    }


def _parseGeometry(value: Any, path: str) -> Geometry:
    data = _expect(value, dict, path)
    geometry: Geometry = {
        "location": _parseCoordinate(data.get("location", {}), f"{path}.location"),
        "location_type": _getStr(data, "location_type", path),
    }
    if "viewport" in data:
        geometry["viewport"] = _parseBounds(data["viewport"], f"{path}.viewport")
    if "bounds" in data:
        geometry["bounds"] = _parseBounds(data["bounds"], f"{path}.bounds")
    return geometry


def _parseAddressComponent(value: Any, path: str) -> AddressComponent:
    data = _expect(value, dict, path)
    return {
        "long_name": _getStr(data, "long_name", path),
        "short_name": _getStr(data, "short_name", path),
        "types": _getStrList(data, "types", path),
    }


def _parseResultSet(value: Any, path: str) -> ResultSet:
    data = _expect(value, dict, path)
    components = _expect(data.get("address_components", []), list, f"{path}.address_components")
    return {
        "address_components": [
            _parseAddressComponent(item, f"{path}.address_components[{i}]") for i, item in enumerate(components)
        ],
        "formatted_address": _getStr(data, "formatted_address", path),
        "geometry": _parseGeometry(data.get("geometry", {}), f"{path}.geometry"),
        "place_id": _getStr(data, "place_id", path),
        "types": _getStrList(data, "types", path),
    }


def parseGeocodeResponse(body: bytes) -> GoogleResponse:
    """
    Parse a geocode endpoint response body.

    Args:
        body: Raw response body

    Returns:
        Parsed GoogleResponse

    Raises:
        GeocoderDecodeError: If the body is not valid JSON or doesn't match the
            expected schema
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise GeocoderDecodeError(f"Invalid JSON in geocode response: {e}") from e

    data = _expect(payload, dict, "$")

    statusValue = _expect(data.get("status"), str, "$.status")
    try:
        status = ResponseStatus(statusValue)
    except ValueError as e:
        raise GeocoderDecodeError(f"Unknown geocode response status '{statusValue}'") from e

    results = _expect(data.get("results", []), list, "$.results")

    response: GoogleResponse = {
        "results": [_parseResultSet(item, f"$.results[{i}]") for i, item in enumerate(results)],
        "status": status,
    }

    errorMessage: Optional[str] = data.get("error_message")
    if errorMessage is not None:
        response["error_message"] = _expect(errorMessage, str, "$.error_message")

    logger.debug(f"Parsed geocode response: status={status}, {len(response['results'])} results")
    return response
