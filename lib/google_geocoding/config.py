"""
Geocoder client configuration.

Credentials and client settings are immutable dataclasses validated at
construction time, so an invalid setup fails before the first request.
Both can also be built from a ``[geocoder]`` TOML section via ``fromDict``.
"""

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict

import lib.utils as utils

from .exceptions import GeocoderConfigurationError


@dataclass(frozen=True)
class GeocoderCredentials:
    """
    Google Maps premium credentials.

    Attributes:
        clientId: Client ID (sent as the ``client`` parameter)
        signingKey: Signing secret in URL-safe base64
        channel: Optional channel for usage reporting (sent only if non-empty)
    """

    clientId: str
    signingKey: str = field(repr=False)
    channel: str = ""

    def __post_init__(self):
        """Validate credentials"""
        if not isinstance(self.clientId, str) or not self.clientId:
            raise GeocoderConfigurationError("clientId must be a non-empty string")
        if not isinstance(self.signingKey, str) or not self.signingKey:
            raise GeocoderConfigurationError("signingKey must be a non-empty string")
        if not isinstance(self.channel, str):
            raise GeocoderConfigurationError("channel must be a string")

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> "GeocoderCredentials":
        """
        Build credentials from a config dictionary.

        Args:
            data: Dict with ``client-id``, ``signing-key`` and optional ``channel``

        Raises:
            GeocoderConfigurationError: If required values are missing
        """
        return cls(
            clientId=data.get("client-id", ""),
            signingKey=data.get("signing-key", ""),
            channel=data.get("channel", ""),
        )


@dataclass(frozen=True)
class GeocoderConfig:
    """
    Geocoder client settings.

    Attributes:
        baseEndpoint: Geocode endpoint URL
        language: Output language of the geocoder, empty for provider default
        requestsPerSecond: Maximum request rate (positive integer)
        overLimitCooldown: Seconds to pause all requests after OVER_QUERY_LIMIT
    """

    DEFAULT_BASE_ENDPOINT: ClassVar[str] = "https://maps.googleapis.com/maps/api/geocode/json"

    baseEndpoint: str = DEFAULT_BASE_ENDPOINT
    language: str = ""
    requestsPerSecond: int = 10
    overLimitCooldown: float = 2.0

    def __post_init__(self):
        """Validate configuration values"""
        if not isinstance(self.baseEndpoint, str) or not self.baseEndpoint.strip():
            raise GeocoderConfigurationError(f"Empty baseEndpoint, use {self.DEFAULT_BASE_ENDPOINT}")
        if not isinstance(self.language, str):
            raise GeocoderConfigurationError("language must be a string")
        if (
            isinstance(self.requestsPerSecond, bool)
            or not isinstance(self.requestsPerSecond, int)
            or self.requestsPerSecond <= 0
        ):
            raise GeocoderConfigurationError("requestsPerSecond must be a positive integer")
        if (
            isinstance(self.overLimitCooldown, bool)
            or not isinstance(self.overLimitCooldown, (int, float))
            or not math.isfinite(self.overLimitCooldown)
            or self.overLimitCooldown < 0
        ):
            raise GeocoderConfigurationError("overLimitCooldown must be a finite non-negative number of seconds")

    @classmethod
    def fromDict(cls, data: Dict[str, Any]) -> "GeocoderConfig":
        """
        Build settings from a ``[geocoder]`` config section.

        Args:
            data: Dict with optional ``base-endpoint``, ``language``,
                ``requests-per-second`` and ``over-limit-cooldown`` (seconds as
                a number, or a delay string like "1m30s")

        Raises:
            GeocoderConfigurationError: If a value is invalid
        """
        cooldown = data.get("over-limit-cooldown", 2.0)
        if isinstance(cooldown, str):
            try:
                cooldown = utils.parseDelay(cooldown)
            except ValueError as e:
                raise GeocoderConfigurationError(f"Invalid over-limit-cooldown: {e}") from e

        return cls(
            baseEndpoint=data.get("base-endpoint", cls.DEFAULT_BASE_ENDPOINT),
            language=data.get("language", ""),
            requestsPerSecond=data.get("requests-per-second", 10),
            overLimitCooldown=cooldown,
        )
