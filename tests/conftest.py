"""Test configuration and fixtures."""

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from weather_relay.core.config import Settings
from weather_relay.main import create_app

GEOLOCATION_HOST = "ip-api.com"
WEATHER_HOST = "my.meteoblue.com"
PEER = ("203.0.113.7", 51234)


class BrokenStream(httpx.AsyncByteStream):
    """Response body that drops the connection while being read."""

    async def __aiter__(self):
        raise httpx.ReadError("connection reset by peer")
        yield b""  # pragma: no cover


class FakeUpstream:
    """Stands in for both upstream APIs and records what was requested."""

    def __init__(self, geolocation_response, weather_response):
        self.requests: list[httpx.Request] = []
        self.responders = {
            GEOLOCATION_HOST: lambda request: httpx.Response(200, json=geolocation_response),
            WEATHER_HOST: lambda request: httpx.Response(200, json=weather_response),
        }

    def respond(self, host: str, **kwargs) -> None:
        self.responders[host] = lambda request: httpx.Response(200, **kwargs)

    def refuse(self, host: str) -> None:
        def refuse_connection(request):
            raise httpx.ConnectError("connection refused", request=request)

        self.responders[host] = refuse_connection

    def break_body(self, host: str) -> None:
        self.responders[host] = lambda request: httpx.Response(200, stream=BrokenStream())

    def calls(self, host: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responders[request.url.host](request)


@pytest.fixture
def settings(monkeypatch):
    """Settings isolated from the environment and any .env file."""
    for name in ("PORT", "GEOLOCATION_API_URL", "WEATHER_API_URL", "METRICS_PORT"):
        monkeypatch.delenv(name, raising=False)
    return Settings(meteoblue_api_key="test-key", log_json=False, _env_file=None)


@pytest.fixture
def mock_geolocation_response():
    """Mock ip-api response."""
    return {
        "status": "success",
        "country": "United States",
        "countryCode": "US",
        "city": "New York",
        "lat": 40.7,
        "lon": -74.0,
        "query": "203.0.113.7",
    }


@pytest.fixture
def mock_weather_response():
    """Mock meteoblue current weather response."""
    return {
        "metadata": {"name": "", "latitude": 40.7, "longitude": -74.0, "height": 10},
        "units": {"temperature": "C", "windspeed": "ms-1", "time": "YYYY-MM-DD hh:mm"},
        "data_current": {"time": "2024-01-13 12:00", "temperature": 20.0, "isdaylight": 1},
    }


@pytest.fixture
def upstream(mock_geolocation_response, mock_weather_response):
    return FakeUpstream(mock_geolocation_response, mock_weather_response)


@pytest.fixture
async def http_client(upstream):
    """HTTP client whose requests are answered by the fake upstream."""
    async with httpx.AsyncClient(transport=httpx.MockTransport(upstream.handler)) as client:
        yield client


@pytest.fixture
def app(settings, http_client):
    return create_app(settings, http_client=http_client)


@pytest.fixture
async def client(app):
    """Client calling the app as if from PEER."""
    async with AsyncClient(transport=ASGITransport(app=app, client=PEER), base_url="http://test") as client:
        yield client
