"""Current weather client for the OpenWeatherMap API."""

import httpx
from pydantic import ValidationError as PayloadValidationError

from weather_finder.clients.errors import EmptyResponseError
from weather_finder.clients.transport import get_json
from weather_finder.logging_config import logger
from weather_finder.models.weather import OpenWeatherResponse, WeatherReport

CURRENT_WEATHER_PATH = "data/2.5/weather"


class WeatherClient:
    """Fetch current conditions by city name or coordinates."""

    def __init__(self, client: httpx.AsyncClient, api_key: str):
        self.http_client = client
        self.api_key = api_key

    async def by_name(self, name: str) -> WeatherReport:
        """Fetch current weather for a city name.

        Args:
            name: City name, optionally "name,country".

        Returns:
            The WeatherReport for the city the API resolved.
        """
        return await self._fetch({"q": name}, log_context={"city": name})

    async def by_coordinates(self, latitude: float, longitude: float) -> WeatherReport:
        """Fetch current weather for a coordinate pair.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            The WeatherReport for the nearest location.
        """
        return await self._fetch(
            {"lat": latitude, "lon": longitude},
            log_context={"latitude": latitude, "longitude": longitude},
        )

    async def _fetch(self, params: dict, log_context: dict) -> WeatherReport:
        payload = await get_json(
            self.http_client,
            path=CURRENT_WEATHER_PATH,
            params={**params, "appid": self.api_key},
            event_prefix="WEATHER",
            log_context=log_context,
        )
        try:
            response = OpenWeatherResponse.model_validate(payload)
        except PayloadValidationError as exc:
            logger.error("WEATHER_BAD_PAYLOAD", **log_context, error=str(exc))
            raise EmptyResponseError("Empty response body") from exc
        return WeatherReport.from_api_response(response)
