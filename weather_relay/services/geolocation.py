"""IP geolocation client (ip-api.com)."""

from pydantic import ValidationError

from weather_relay.core.logging import get_logger
from weather_relay.models.weather import Location
from weather_relay.services.upstream import ParseError, UpstreamClient, UpstreamStatusError

logger = get_logger(__name__)


class GeolocationClient(UpstreamClient):
    """Resolves an IP address to a geographic location."""

    name = "IP location API"

    async def locate(self, ip: str) -> Location:
        """Look up the location of an IP address.

        Args:
            ip: IP address, passed to the upstream as-is

        Returns:
            Location reported by the upstream

        Raises:
            NetworkError: If the upstream cannot be reached
            ReadError: If the response body cannot be read
            ParseError: If the response is not a valid location document
            UpstreamStatusError: If the upstream reports a failed lookup
        """
        body = await self._get(f"{self.url.rstrip('/')}/{ip}")

        try:
            location = Location.model_validate_json(body)
        except ValidationError as e:
            raise ParseError(f"failed to parse {self.name} response: {e}") from e

        if not location.succeeded:
            detail = f" ({location.message})" if location.message else ""
            raise UpstreamStatusError(
                f"{self.name} returned non-success status: {location.status}{detail}"
            )

        logger.info(
            "geolocation_success",
            ip=ip,
            latitude=location.lat,
            longitude=location.lon,
            city=location.city,
            country=location.country,
        )
        return location
