"""Current weather client (meteoblue)."""

from pydantic import ValidationError

from weather_relay.core.logging import get_logger
from weather_relay.models.weather import WeatherResponse
from weather_relay.services.upstream import ParseError, UpstreamClient

logger = get_logger(__name__)


class WeatherClient(UpstreamClient):
    """Fetches current conditions for a coordinate pair."""

    name = "weather API"

    async def fetch_current(self, latitude: float, longitude: float, api_key: str) -> WeatherResponse:
        """Fetch current weather data.

        Args:
            latitude: Latitude
            longitude: Longitude
            api_key: meteoblue API key

        Returns:
            Weather payload as sent by the upstream

        Raises:
            NetworkError: If the upstream cannot be reached
            ReadError: If the response body cannot be read
            ParseError: If the response is not a JSON object
        """
        body = await self._get(
            self.url,
            params={
                "apikey": api_key,
                "lat": f"{latitude:f}",
                "lon": f"{longitude:f}",
                "format": "json",
            },
        )

        try:
            weather = WeatherResponse.model_validate_json(body)
        except ValidationError as e:
            raise ParseError(f"failed to parse {self.name} response: {e}") from e

        logger.info("weather_fetched", latitude=latitude, longitude=longitude)
        return weather
