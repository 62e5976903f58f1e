import pytest

from weather_finder.clients.errors import (
    AuthError,
    EmptyResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    UpstreamStatusError,
)
from weather_finder.models.resource import Error, Success
from weather_finder.repository.repositories import CityRepository, WeatherRepository


class FakeGeoClient:
    def __init__(self, result=None, error=None):
        self.result = result or []
        self.error = error
        self.calls = []

    async def search(self, query, limit=5):
        self.calls.append((query, limit))
        if self.error is not None:
            raise self.error
        return self.result


class FakeWeatherClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def by_name(self, name):
        self.calls.append(name)
        if self.error is not None:
            raise self.error
        return self.result

    async def by_coordinates(self, latitude, longitude):
        self.calls.append((latitude, longitude))
        if self.error is not None:
            raise self.error
        return self.result


@pytest.mark.asyncio
async def test_search_short_query_skips_client():
    client = FakeGeoClient()
    result = await CityRepository(client).search_cities(" L ")
    assert result == Success(data=[])
    assert client.calls == []


@pytest.mark.asyncio
async def test_search_trims_query_and_passes_limit(london):
    client = FakeGeoClient(result=[london])
    result = await CityRepository(client, limit=5).search_cities("  Lon ")
    assert result == Success(data=[london])
    assert client.calls == [("Lon", 5)]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, message",
    [
        (AuthError("Invalid API key"), "Invalid API key"),
        (RateLimitError("Too many requests"), "Too many requests"),
        (UpstreamStatusError(500, "Internal Server Error"), "Search error: Internal Server Error"),
        (EmptyResponseError("Empty response body"), "Empty response body"),
        (NetworkError("timed out"), "Network error: timed out"),
        (RuntimeError("boom"), "Network error: boom"),
    ],
)
async def test_search_errors_become_messages(error, message):
    result = await CityRepository(FakeGeoClient(error=error)).search_cities("London")
    assert result == Error(message=message)


@pytest.mark.asyncio
async def test_weather_blank_name_is_rejected_without_call():
    client = FakeWeatherClient()
    result = await WeatherRepository(client).current_weather("   ")
    assert result == Error(message="City name cannot be empty")
    assert client.calls == []


@pytest.mark.asyncio
async def test_weather_by_name_success(report_factory):
    report = report_factory()
    client = FakeWeatherClient(result=report)
    result = await WeatherRepository(client).current_weather(" London ")
    assert result == Success(data=report)
    assert client.calls == ["London"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error, message",
    [
        (NotFoundError("Not found"), "City not found"),
        (AuthError("Invalid API key"), "Invalid API key"),
        (EmptyResponseError("Empty response body"), "Empty response body"),
        (UpstreamStatusError(502, "Bad Gateway"), "Network error: Bad Gateway"),
        (NetworkError("connection reset"), "Network error: connection reset"),
    ],
)
async def test_weather_by_name_errors_become_messages(error, message):
    result = await WeatherRepository(FakeWeatherClient(error=error)).current_weather("London")
    assert result == Error(message=message)


@pytest.mark.asyncio
async def test_weather_by_coordinates_success(report_factory):
    report = report_factory()
    client = FakeWeatherClient(result=report)
    result = await WeatherRepository(client).current_weather_by_coordinates(51.5, -0.12)
    assert result == Success(data=report)
    assert client.calls == [(51.5, -0.12)]


@pytest.mark.asyncio
async def test_weather_by_coordinates_auth_error():
    client = FakeWeatherClient(error=AuthError("Invalid API key"))
    result = await WeatherRepository(client).current_weather_by_coordinates(51.5, -0.12)
    assert result == Error(message="Invalid API key")
