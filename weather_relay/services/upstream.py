"""Shared HTTP plumbing and error taxonomy for upstream APIs."""

from typing import Any

import httpx

from weather_relay.core.logging import get_logger

logger = get_logger(__name__)


class UpstreamError(Exception):
    """Base error for a failed upstream call."""

    pass


class NetworkError(UpstreamError):
    """The request could not be sent or the connection failed."""

    pass


class ReadError(UpstreamError):
    """The response body could not be read completely."""

    pass


class ParseError(UpstreamError):
    """The response body was not JSON of the expected shape."""

    pass


class UpstreamStatusError(UpstreamError):
    """The upstream answered but reported a failed lookup."""

    pass


class UpstreamClient:
    """Base class for JSON-over-HTTP upstream clients."""

    name = "upstream API"

    def __init__(self, client: httpx.AsyncClient, url: str):
        self.client = client
        self.url = url

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> bytes:
        """Issue a GET request and read the whole body.

        Connecting and reading are kept apart so a dropped connection
        mid-body surfaces as ``ReadError`` rather than ``NetworkError``.

        Args:
            url: Request URL
            params: Optional query parameters

        Returns:
            Raw response body

        Raises:
            NetworkError: If the request cannot be sent or the connection fails
            ReadError: If the body cannot be read
        """
        try:
            async with self.client.stream("GET", url, params=params) as response:
                try:
                    body = await response.aread()
                except httpx.HTTPError as e:
                    raise ReadError(f"failed to read {self.name} response: {e}") from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"failed to query {self.name}: {e}") from e

        if response.is_error:
            logger.warning("upstream_error_status", upstream=self.name, status_code=response.status_code)
        return body
