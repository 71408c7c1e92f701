"""
Request signing for the Google Maps premium (client ID) API.

Every request carries a ``signature`` parameter: an HMAC-SHA1 of the
request path and query, keyed with the URL-safe base64 signing key issued
together with the client ID. The signature is only valid for the exact
bytes that get transmitted, so the query string is always produced by
``canonicalQuery`` and the same string is both signed and sent.
"""

import base64
import binascii
import hashlib
import hmac
from typing import Mapping
from urllib.parse import quote

from .exceptions import GeocoderSigningError


def formatLatLng(lat: float, lng: float) -> str:
    """Format coordinates as fixed point with 8 decimal digits."""
    return f"{lat:.8f},{lng:.8f}"


def canonicalQuery(params: Mapping[str, str]) -> str:
    """
    Serialize query parameters deterministically.

    Keys are sorted ascending, keys and values are percent-encoded with
    RFC 3986 rules (everything but unreserved characters is escaped).

    Args:
        params: Query parameters

    Returns:
        Query string without leading "?"

    Example:
        >>> canonicalQuery({"sensor": "false", "latlng": "1.00000000,2.00000000"})
        'latlng=1.00000000%2C2.00000000&sensor=false'
    """
    return "&".join(f"{quote(key, safe='')}={quote(params[key], safe='')}" for key in sorted(params))


def signRequest(path: str, query: str, signingKey: str) -> str:
    """
    Compute the URL-safe base64 signature of ``path + "?" + query``.

    Args:
        path: URL path (e.g. "/maps/api/geocode/json")
        query: Query string exactly as transmitted
        signingKey: Signing key in URL-safe base64

    Returns:
        Signature in URL-safe base64, padding kept

    Raises:
        GeocoderSigningError: If the signing key is not valid base64
    """
    standardKey = signingKey.replace("-", "+").replace("_", "/")
    try:
        keyBytes = base64.b64decode(standardKey, validate=True)
    except (binascii.Error, ValueError) as e:
        raise GeocoderSigningError(f"Malformed signing key: {e}") from e

    digest = hmac.new(keyBytes, f"{path}?{query}".encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii").replace("+", "-").replace("/", "_")
