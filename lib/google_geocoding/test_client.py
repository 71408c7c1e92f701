"""
Unit tests for Google Geocoder Client

This module contains unit tests for the GoogleGeocoderClient class,
testing construction validation, URL building and signing, rate limiting,
OVER_QUERY_LIMIT cooldowns, cancellation and error propagation.
"""

import asyncio
import time
from typing import List, Optional
from unittest.mock import MagicMock
from urllib.parse import parse_qs, unquote, urlparse

import pytest

from lib.google_geocoding import (
    CallPhase,
    GeocoderCancelledError,
    GeocoderConfig,
    GeocoderConfigurationError,
    GeocoderCredentials,
    GeocoderDecodeError,
    GeocoderSigningError,
    GoogleGeocoderClient,
    HttpTransportInterface,
    HttpxTransport,
    RequestObserverInterface,
    ResponseStatus,
    createGeocoderClient,
    signRequest,
)

BASE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
OK_BODY = (
    b'{"status":"OK","results":[{"formatted_address":"Dahn, Germany","place_id":"abc",'
    b'"geometry":{"location":{"lat":49.1758444,"lng":7.3019607},"location_type":"ROOFTOP"},'
    b'"address_components":[],"types":["locality"]}]}'
)
OVER_LIMIT_BODY = b'{"status":"OVER_QUERY_LIMIT"}'


class FakeTransport(HttpTransportInterface):
    """Transport returning a canned body or raising a canned error."""

    def __init__(self, body: bytes = OK_BODY, error: Optional[Exception] = None, delay: float = 0.0):
        self.body = body
        self.error = error
        self.delay = delay
        self.calls: List[str] = []

    async def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.body


class FakeObserver(RequestObserverInterface):
    """Observer collecting reported timings."""

    def __init__(self):
        self.observations = []

    def observeHttpRequest(self, label: str, elapsedSeconds: float) -> None:
        self.observations.append((label, elapsedSeconds))


def makeCredentials(channel: str = "grg-local") -> GeocoderCredentials:
    return GeocoderCredentials(clientId="my_test_client", signingKey="bXlfdGVzdF9rZXk=", channel=channel)


def makeClient(
    transport: Optional[HttpTransportInterface] = None,
    requestsPerSecond: int = 100,
    overLimitCooldown: float = 0.1,
    language: str = "en",
    channel: str = "grg-local",
    observer: Optional[RequestObserverInterface] = None,
) -> GoogleGeocoderClient:
    return GoogleGeocoderClient(
        credentials=makeCredentials(channel),
        config=GeocoderConfig(
            baseEndpoint=BASE_URL,
            language=language,
            requestsPerSecond=requestsPerSecond,
            overLimitCooldown=overLimitCooldown,
        ),
        transport=transport if transport is not None else FakeTransport(),
        observer=observer,
    )


# Construction


@pytest.mark.parametrize("requestsPerSecond", [0, -1, -100])
def test_non_positive_rate_is_rejected(requestsPerSecond):
    """Test that a non-positive rate fails with a configuration error, dood!"""
    with pytest.raises(GeocoderConfigurationError):
        createGeocoderClient(
            credentials=makeCredentials(),
            baseEndpoint=BASE_URL,
            transport=FakeTransport(),
            requestsPerSecond=requestsPerSecond,
            overLimitCooldown=1.0,
        )


def test_missing_transport_is_rejected():
    """Test that a missing transport fails with a configuration error."""
    with pytest.raises(GeocoderConfigurationError):
        createGeocoderClient(
            credentials=makeCredentials(),
            baseEndpoint=BASE_URL,
            transport=None,
            requestsPerSecond=5,
            overLimitCooldown=1.0,
        )


def test_missing_credentials_is_rejected():
    """Test that missing credentials fail with a configuration error."""
    with pytest.raises(GeocoderConfigurationError):
        createGeocoderClient(
            credentials=None,
            baseEndpoint=BASE_URL,
            transport=FakeTransport(),
            requestsPerSecond=5,
            overLimitCooldown=1.0,
        )


@pytest.mark.parametrize("baseEndpoint", ["", "   "])
def test_empty_endpoint_is_rejected(baseEndpoint):
    """Test that an empty endpoint fails with a configuration error."""
    with pytest.raises(GeocoderConfigurationError):
        createGeocoderClient(
            credentials=makeCredentials(),
            baseEndpoint=baseEndpoint,
            transport=FakeTransport(),
            requestsPerSecond=5,
            overLimitCooldown=1.0,
        )


def test_configuration_error_is_value_error():
    """Test that configuration errors can be caught as ValueError."""
    with pytest.raises(ValueError):
        GeocoderConfig(requestsPerSecond=0)


@pytest.mark.parametrize("overLimitCooldown", [float("inf"), float("nan"), -1.0])
def test_non_finite_cooldown_is_rejected(overLimitCooldown):
    """Test that infinite, NaN and negative cooldowns are configuration errors."""
    with pytest.raises(GeocoderConfigurationError):
        GeocoderConfig(overLimitCooldown=overLimitCooldown)


def test_endpoint_without_path_signs_root_path():
    """Test that a bare host endpoint is sent and signed with the "/" path."""
    client = GoogleGeocoderClient(
        credentials=makeCredentials(),
        config=GeocoderConfig(baseEndpoint="https://geo.example.com"),
        transport=FakeTransport(),
    )

    url = client.buildUrl(1.0, 2.0)
    parsed = urlparse(url)
    query, signature = parsed.query.rsplit("&signature=", 1)

    assert url.startswith("https://geo.example.com/?")
    assert parsed.path == "/"
    assert unquote(signature) == signRequest("/", query, "bXlfdGVzdF9rZXk=")


def test_from_config():
    """Test client creation from a config section."""
    client = GoogleGeocoderClient.fromConfig(
        {
            "base-endpoint": BASE_URL,
            "language": "de",
            "requests-per-second": 3,
            "over-limit-cooldown": "1m30s",
            "request-timeout": 7,
            "credentials": {"client-id": "gme-test", "signing-key": "bXlfdGVzdF9rZXk=", "channel": "web"},
        }
    )

    assert client.credentials == GeocoderCredentials(
        clientId="gme-test", signingKey="bXlfdGVzdF9rZXk=", channel="web"
    )
    assert client.config.language == "de"
    assert client.config.requestsPerSecond == 3
    assert client.config.overLimitCooldown == 90
    assert isinstance(client.transport, HttpxTransport)
    assert client.transport.requestTimeout == 7
    assert client.getRateLimiterStats()["configuredRate"] == 3.0


def test_from_config_without_credentials():
    """Test that a config section without credentials is rejected."""
    with pytest.raises(GeocoderConfigurationError):
        GoogleGeocoderClient.fromConfig({"base-endpoint": BASE_URL})


def test_credentials_repr_hides_signing_key():
    """Test that the signing key doesn't leak into logs."""
    assert "bXlfdGVzdF9rZXk=" not in repr(makeCredentials())


# URL building


def test_build_url_layout():
    """Test canonical query ordering, escaping and trailing signature."""
    client = makeClient()
    url = client.buildUrl(49.1758444, 7.3019607)

    expectedQuery = (
        "channel=grg-local&client=my_test_client&language=en" "&latlng=49.17584440%2C7.30196070&sensor=false"
    )
    assert url.startswith(f"{BASE_URL}?{expectedQuery}&signature=")
    assert url.count("signature=") == 1


def test_build_url_signature_matches_signer():
    """Test that the appended signature equals signing the transmitted query."""
    client = makeClient()
    url = client.buildUrl(-33.8670522, 151.1957362)

    parsed = urlparse(url)
    query, signaturePart = parsed.query.rsplit("&signature=", 1)
    assert unquote(signaturePart) == signRequest(parsed.path, query, "bXlfdGVzdF9rZXk=")


def test_build_url_optional_parameters_omitted():
    """Test that empty language and channel are not sent."""
    client = makeClient(language="", channel="")
    params = parse_qs(urlparse(client.buildUrl(1.0, 2.0)).query)

    assert "language" not in params
    assert "channel" not in params
    assert params["client"] == ["my_test_client"]
    assert params["sensor"] == ["false"]
    assert params["latlng"] == ["1.00000000,2.00000000"]


def test_build_url_is_deterministic():
    """Test that the same coordinates always produce the same URL."""
    client = makeClient()
    assert client.buildUrl(10.5, 20.25) == client.buildUrl(10.5, 20.25)


# Calls


@pytest.mark.asyncio
async def test_reverse_geocode_ok():
    """Test a successful reverse geocoding call, dood!"""
    transport = FakeTransport()
    client = makeClient(transport=transport)

    response = await client.reverseGeocode(49.1758444, 7.3019607)

    assert response["status"] == ResponseStatus.OK
    assert response["results"][0]["formatted_address"] == "Dahn, Germany"
    assert transport.calls == [client.buildUrl(49.1758444, 7.3019607)]


@pytest.mark.asyncio
async def test_rate_is_respected():
    """Test that N calls take at least (N-1)/rate seconds."""
    client = makeClient(requestsPerSecond=10)
    startTime = time.monotonic()

    await asyncio.gather(*(client.reverseGeocode(1.0, 2.0) for _ in range(4)))

    assert time.monotonic() - startTime >= 0.3 - 0.01


@pytest.mark.asyncio
async def test_over_query_limit_cooldown_for_all_callers():
    """Test that every concurrent caller pays the OVER_QUERY_LIMIT cooldown."""
    cooldown = 0.1
    client = makeClient(transport=FakeTransport(body=OVER_LIMIT_BODY), requestsPerSecond=5, overLimitCooldown=cooldown)

    async def timedCall():
        startTime = time.monotonic()
        response = await client.reverseGeocode(49.1758444, 7.3019607)
        return response, time.monotonic() - startTime

    outcomes = await asyncio.gather(*(timedCall() for _ in range(5)))

    for response, elapsed in outcomes:
        assert response == {"results": [], "status": ResponseStatus.OVER_QUERY_LIMIT}
        assert elapsed >= cooldown
    assert not client.getRateLimiterStats()["suspended"]


@pytest.mark.asyncio
async def test_queued_callers_wait_for_cooldown():
    """Test that a caller queued behind an OVER_QUERY_LIMIT response waits out the cooldown."""
    cooldown = 0.2
    transport = FakeTransport(body=OVER_LIMIT_BODY)
    client = makeClient(transport=transport, overLimitCooldown=cooldown)

    firstCall = asyncio.create_task(client.reverseGeocode(1.0, 2.0))
    await asyncio.sleep(0.02)
    transport.body = OK_BODY

    startTime = time.monotonic()
    response = await client.reverseGeocode(1.0, 2.0)
    assert response["status"] == ResponseStatus.OK
    assert time.monotonic() - startTime >= cooldown - 0.05
    await firstCall


@pytest.mark.asyncio
async def test_cancel_while_throttled():
    """Test that a queued call gives up promptly even while the limiter is suspended."""
    transport = FakeTransport()
    client = makeClient(transport=transport)
    suspendTask = asyncio.create_task(client._rateLimiter.suspendThenResume(5.0))
    await asyncio.sleep(0.01)

    startTime = time.monotonic()
    with pytest.raises(GeocoderCancelledError) as excInfo:
        await client.reverseGeocode(1.0, 2.0, timeout=0.05)

    assert excInfo.value.phase == CallPhase.THROTTLED
    assert time.monotonic() - startTime < 1.0
    assert transport.calls == []

    suspendTask.cancel()
    with pytest.raises(asyncio.CancelledError):
        await suspendTask
    assert client.getRateLimiterStats()["currentRate"] == 100.0


@pytest.mark.asyncio
async def test_cancel_while_in_flight():
    """Test that the caller's timeout also bounds the HTTP request."""
    observer = FakeObserver()
    client = makeClient(transport=FakeTransport(delay=2.0), observer=observer)

    startTime = time.monotonic()
    with pytest.raises(GeocoderCancelledError) as excInfo:
        await client.reverseGeocode(1.0, 2.0, timeout=0.1)

    assert excInfo.value.phase == CallPhase.IN_FLIGHT
    assert time.monotonic() - startTime < 1.0
    assert len(observer.observations) == 1


@pytest.mark.asyncio
async def test_transport_error_passthrough():
    """Test that transport errors reach the caller unchanged with no retry and no cooldown."""
    error = ConnectionError("failed")
    transport = FakeTransport(error=error)
    client = makeClient(transport=transport)
    urlBefore = client.buildUrl(1.0, 2.0)

    with pytest.raises(ConnectionError) as excInfo:
        await client.reverseGeocode(1.0, 2.0)

    assert excInfo.value is error
    assert len(transport.calls) == 1
    stats = client.getRateLimiterStats()
    assert not stats["suspended"]
    assert stats["currentRate"] == stats["configuredRate"]
    assert client.buildUrl(1.0, 2.0) == urlBefore


@pytest.mark.asyncio
async def test_transport_timeout_error_is_not_cancellation():
    """Test that a TimeoutError raised by the transport itself is passed through."""
    error = TimeoutError("transport gave up")
    client = makeClient(transport=FakeTransport(error=error))

    with pytest.raises(TimeoutError) as excInfo:
        await client.reverseGeocode(1.0, 2.0, timeout=10)

    assert excInfo.value is error
    assert not isinstance(excInfo.value, GeocoderCancelledError)


@pytest.mark.asyncio
async def test_decode_error():
    """Test that malformed JSON raises GeocoderDecodeError without a cooldown."""
    client = makeClient(transport=FakeTransport(body=b"<html>oops</html>"))

    with pytest.raises(GeocoderDecodeError):
        await client.reverseGeocode(1.0, 2.0)
    assert not client.getRateLimiterStats()["suspended"]


@pytest.mark.asyncio
async def test_signing_error_is_terminal():
    """Test that a malformed signing key fails before any request is sent."""
    transport = FakeTransport()
    client = GoogleGeocoderClient(
        credentials=GeocoderCredentials(clientId="my_test_client", signingKey="not a key!"),
        config=GeocoderConfig(baseEndpoint=BASE_URL),
        transport=transport,
    )

    with pytest.raises(GeocoderSigningError):
        await client.reverseGeocode(1.0, 2.0)
    assert transport.calls == []


@pytest.mark.asyncio
async def test_other_statuses_pass_through():
    """Test that non-OVER_QUERY_LIMIT statuses are returned without side effects."""
    body = b'{"status":"REQUEST_DENIED","results":[],"error_message":"Invalid signature"}'
    client = makeClient(transport=FakeTransport(body=body))

    response = await client.reverseGeocode(1.0, 2.0)

    assert response["status"] == ResponseStatus.REQUEST_DENIED
    assert response["error_message"] == "Invalid signature"
    assert not client.getRateLimiterStats()["suspended"]


@pytest.mark.asyncio
async def test_observer_receives_timing():
    """Test that the observer gets the request duration under a fixed label."""
    observer = FakeObserver()
    client = makeClient(transport=FakeTransport(delay=0.05), observer=observer)

    await client.reverseGeocode(1.0, 2.0)

    assert len(observer.observations) == 1
    label, elapsed = observer.observations[0]
    assert label == GoogleGeocoderClient.OBSERVER_LABEL
    assert elapsed >= 0.04


@pytest.mark.asyncio
async def test_observer_reports_failed_requests():
    """Test that failed requests are observed too."""
    observer = FakeObserver()
    client = makeClient(transport=FakeTransport(error=ConnectionError("failed")), observer=observer)

    with pytest.raises(ConnectionError):
        await client.reverseGeocode(1.0, 2.0)
    assert len(observer.observations) == 1


@pytest.mark.asyncio
async def test_observer_errors_are_ignored():
    """Test that a failing observer doesn't break the call."""
    observer = MagicMock(spec=RequestObserverInterface)
    observer.observeHttpRequest.side_effect = RuntimeError("metrics down")
    client = makeClient(observer=observer)

    response = await client.reverseGeocode(1.0, 2.0)

    assert response["status"] == ResponseStatus.OK
    observer.observeHttpRequest.assert_called_once()
