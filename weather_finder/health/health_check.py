"""Health checks for the favorites store and the OpenWeatherMap API."""

import httpx
from redis.asyncio import Redis
from redis.exceptions import RedisError

from weather_finder.logging_config import logger
from weather_finder.models.health import ServiceStatus


async def is_favorites_store_available(client: Redis) -> ServiceStatus:
    """Check Redis connectivity.

    Returns:
        ServiceStatus.available when Redis responds, else not_available.
    """
    try:
        await client.ping()
        return ServiceStatus.available
    except (RedisError, OSError) as exc:
        logger.error("REDIS_UNAVAILABLE", error=str(exc))
        return ServiceStatus.not_available


async def is_openweather_api_available(
    client: httpx.AsyncClient, api_key: str
) -> ServiceStatus:
    """Check the OpenWeatherMap API with a fixed coordinate lookup.

    Returns:
        ServiceStatus.available if the API answers with a weather payload.
    """
    try:
        response = await client.get(
            "data/2.5/weather",
            params={"lat": 51.5, "lon": -0.12, "appid": api_key},
        )
        if response.status_code == 200 and "main" in response.json():
            return ServiceStatus.available
        logger.error("OPENWEATHER_UNAVAILABLE", status=response.status_code)
    except (httpx.HTTPError, ValueError) as exc:
        logger.error("OPENWEATHER_UNAVAILABLE", error=str(exc))
    return ServiceStatus.not_available
