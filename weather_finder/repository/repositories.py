"""Repository boundary: client calls wrapped in Resource values.

Exceptions from the clients stop here and become user-facing messages.
"""

from weather_finder.clients.errors import (
    AuthError,
    EmptyResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    UpstreamStatusError,
    WeatherServiceError,
)
from weather_finder.clients.geo import GeoSearchClient
from weather_finder.clients.weather import WeatherClient
from weather_finder.logging_config import logger
from weather_finder.models.resource import Error, Resource, Success


class CityRepository:
    """City candidate search."""

    def __init__(self, client: GeoSearchClient, limit: int = 5, min_length: int = 2):
        self.client = client
        self.limit = limit
        self.min_length = min_length

    async def search_cities(self, query: str) -> Resource:
        """Search city candidates.

        Args:
            query: Free-text city name.

        Returns:
            Success with a list of City (empty for short queries), or Error.
        """
        query = query.strip()
        if len(query) < self.min_length:
            return Success(data=[])
        try:
            return Success(data=await self.client.search(query, limit=self.limit))
        except AuthError:
            return Error(message="Invalid API key")
        except RateLimitError:
            return Error(message="Too many requests")
        except UpstreamStatusError as exc:
            return Error(message=f"Search error: {exc.reason}")
        except NotFoundError:
            return Error(message="Search error: Not Found")
        except EmptyResponseError:
            return Error(message="Empty response body")
        except NetworkError as exc:
            return Error(message=f"Network error: {exc}")
        except Exception as exc:
            logger.error("CITY_SEARCH_UNEXPECTED_ERROR", query=query, error=repr(exc))
            return Error(message=f"Network error: {exc}")


class WeatherRepository:
    """Current weather lookups."""

    def __init__(self, client: WeatherClient):
        self.client = client

    async def current_weather(self, city_name: str) -> Resource:
        """Fetch current weather by city name.

        Args:
            city_name: City name; surrounding whitespace is ignored.

        Returns:
            Success with a WeatherReport, or Error with a user-facing message.
        """
        if not city_name.strip():
            return Error(message="City name cannot be empty")
        try:
            return Success(data=await self.client.by_name(city_name.strip()))
        except NotFoundError:
            return Error(message="City not found")
        except Exception as exc:
            return self._to_error(exc)

    async def current_weather_by_coordinates(
        self, latitude: float, longitude: float
    ) -> Resource:
        """Fetch current weather by coordinates.

        Args:
            latitude: Latitude in degrees.
            longitude: Longitude in degrees.

        Returns:
            Success with a WeatherReport, or Error with a user-facing message.
        """
        try:
            return Success(
                data=await self.client.by_coordinates(latitude, longitude)
            )
        except NotFoundError as exc:
            return Error(message=f"Network error: {exc}")
        except Exception as exc:
            return self._to_error(exc)

    @staticmethod
    def _to_error(exc: Exception) -> Error:
        if isinstance(exc, AuthError):
            return Error(message="Invalid API key")
        if isinstance(exc, EmptyResponseError):
            return Error(message="Empty response body")
        if isinstance(exc, UpstreamStatusError):
            return Error(message=f"Network error: {exc.reason}")
        if not isinstance(exc, WeatherServiceError):
            logger.error("WEATHER_UNEXPECTED_ERROR", error=repr(exc))
        return Error(message=f"Network error: {exc}")
