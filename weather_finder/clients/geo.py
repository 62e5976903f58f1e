"""Geocoding client for city candidate search."""

import httpx
from pydantic import TypeAdapter
from pydantic import ValidationError as PayloadValidationError

from weather_finder.clients.errors import EmptyResponseError
from weather_finder.clients.transport import get_json
from weather_finder.logging_config import logger
from weather_finder.models.city import City
from weather_finder.models.weather import GeoDirectResult

GEO_DIRECT_PATH = "geo/1.0/direct"

_results_adapter = TypeAdapter(list[GeoDirectResult])


class GeoSearchClient:
    """Look up city candidates by free-text name."""

    def __init__(self, client: httpx.AsyncClient, api_key: str):
        self.http_client = client
        self.api_key = api_key

    async def search(self, query: str, limit: int = 5) -> list[City]:
        """Return up to ``limit`` cities matching ``query``.

        Args:
            query: Free-text city name.
            limit: Maximum number of candidates requested from the API.

        Returns:
            City candidates in API order.
        """
        payload = await get_json(
            self.http_client,
            path=GEO_DIRECT_PATH,
            params={"q": query, "limit": limit, "appid": self.api_key},
            event_prefix="CITY_SEARCH",
            log_context={"query": query},
        )
        try:
            results = _results_adapter.validate_python(payload)
        except PayloadValidationError as exc:
            logger.error("CITY_SEARCH_BAD_PAYLOAD", query=query, error=str(exc))
            raise EmptyResponseError("Empty response body") from exc
        return [result.to_city() for result in results]
