import httpx
import pytest

from weather_finder.clients.errors import (
    AuthError,
    EmptyResponseError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    UpstreamStatusError,
)
from weather_finder.clients.geo import GeoSearchClient
from weather_finder.clients.weather import WeatherClient
from weather_finder.models.city import City

BASE_URL = "https://api.openweathermap.org/"

LONDON_WEATHER = {
    "name": "London",
    "sys": {"country": "GB"},
    "main": {
        "temp": 293.15,
        "feels_like": 295.15,
        "temp_min": 290.15,
        "temp_max": 296.15,
        "humidity": 65,
    },
    "weather": [{"main": "Clear", "description": "clear sky", "icon": "01d"}],
}


def make_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_search_maps_results_to_cities():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json=[
                {"name": "London", "country": "GB", "state": "England", "lat": 51.5073, "lon": -0.1276},
                {"name": "London", "country": "CA", "lat": 42.9834, "lon": -81.233},
            ],
        )

    async with make_client(handler) as http_client:
        cities = await GeoSearchClient(http_client, "key").search("London", limit=5)

    assert seen["path"] == "/geo/1.0/direct"
    assert seen["params"] == {"q": "London", "limit": "5", "appid": "key"}
    assert cities == [
        City(name="London", country="GB", state="England", latitude=51.5073, longitude=-0.1276),
        City(name="London", country="CA", latitude=42.9834, longitude=-81.233),
    ]


@pytest.mark.asyncio
async def test_search_with_null_body_raises_empty_response():
    async with make_client(lambda request: httpx.Response(200, content=b"null")) as http_client:
        with pytest.raises(EmptyResponseError):
            await GeoSearchClient(http_client, "key").search("London")


@pytest.mark.asyncio
async def test_search_with_unexpected_payload_raises_empty_response():
    def handler(request):
        return httpx.Response(200, json={"cod": "200"})

    async with make_client(handler) as http_client:
        with pytest.raises(EmptyResponseError):
            await GeoSearchClient(http_client, "key").search("London")


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status, error",
    [
        (401, AuthError),
        (404, NotFoundError),
        (429, RateLimitError),
        (500, UpstreamStatusError),
    ],
)
async def test_status_codes_map_to_errors(status, error):
    async with make_client(lambda request: httpx.Response(status)) as http_client:
        with pytest.raises(error):
            await WeatherClient(http_client, "key").by_name("London")


@pytest.mark.asyncio
async def test_upstream_status_error_keeps_reason():
    async with make_client(lambda request: httpx.Response(503)) as http_client:
        with pytest.raises(UpstreamStatusError) as exc_info:
            await GeoSearchClient(http_client, "key").search("London")
    assert exc_info.value.status_code == 503
    assert exc_info.value.reason == "Service Unavailable"
    assert isinstance(exc_info.value, NetworkError)


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as http_client:
        with pytest.raises(NetworkError, match="connection refused"):
            await WeatherClient(http_client, "key").by_coordinates(51.5, -0.12)


@pytest.mark.asyncio
async def test_weather_by_coordinates_sends_lat_lon():
    seen = {}

    def handler(request: httpx.Request):
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=LONDON_WEATHER)

    async with make_client(handler) as http_client:
        report = await WeatherClient(http_client, "key").by_coordinates(51.5, -0.12)

    assert seen["params"] == {"lat": "51.5", "lon": "-0.12", "appid": "key"}
    assert report.city_name == "London"
    assert report.temperature_c == 20
    assert report.feels_like_c == 22


@pytest.mark.asyncio
async def test_weather_by_name_sends_query():
    seen = {}

    def handler(request: httpx.Request):
        seen["path"] = request.url.path
        seen["q"] = request.url.params["q"]
        return httpx.Response(200, json=LONDON_WEATHER)

    async with make_client(handler) as http_client:
        report = await WeatherClient(http_client, "key").by_name("London")

    assert seen == {"path": "/data/2.5/weather", "q": "London"}
    assert report.formatted_location == "London, GB"


@pytest.mark.asyncio
async def test_weather_with_empty_body_raises_empty_response():
    async with make_client(lambda request: httpx.Response(200)) as http_client:
        with pytest.raises(EmptyResponseError):
            await WeatherClient(http_client, "key").by_name("London")
