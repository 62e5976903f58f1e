import asyncio

import fakeredis
import pytest

from weather_finder.core.enrichment import EnrichmentCoordinator
from weather_finder.core.favorites import FavoriteToggleController
from weather_finder.core.orchestrator import SearchOrchestrator
from weather_finder.core.state import SessionStateContainer
from weather_finder.favorites.store import FavoritesStore
from weather_finder.models.city import City
from weather_finder.models.resource import Error, Success
from weather_finder.models.weather import WeatherReport

TEST_DEBOUNCE_S = 0.05

LONDON = City(
    name="London", country="GB", state="England", latitude=51.5073, longitude=-0.1276
)
LOS_ANGELES = City(
    name="Los Angeles",
    country="US",
    state="California",
    latitude=34.0522,
    longitude=-118.2437,
)
PARIS = City(name="Paris", country="FR", latitude=48.8566, longitude=2.3522)


def make_report(city_name="London", country="GB", temperature_k=293.15):
    return WeatherReport(
        city_name=city_name,
        country=country,
        temperature_k=temperature_k,
        feels_like_k=295.15,
        min_k=290.15,
        max_k=296.15,
        humidity_pct=65,
        condition_main="Clear",
        condition_description="clear sky",
        icon_id="01d",
    )


class FakeCityRepository:
    def __init__(self, results=None):
        self.results = results or {}
        self.calls = []
        self.gate: asyncio.Event | None = None

    async def search_cities(self, query: str):
        self.calls.append(query)
        if self.gate is not None:
            await self.gate.wait()
        result = self.results.get(query, Success(data=[]))
        if isinstance(result, Exception):
            raise result
        return result


class FakeWeatherRepository:
    def __init__(self):
        self.by_coordinates = {}
        self.by_name = {}
        self.gates = {}
        self.coordinate_calls = []
        self.name_calls = []

    async def current_weather(self, city_name: str):
        self.name_calls.append(city_name)
        if city_name in self.gates:
            await self.gates[city_name].wait()
        return self.by_name.get(city_name, Error(message="City not found"))

    async def current_weather_by_coordinates(self, latitude: float, longitude: float):
        key = (latitude, longitude)
        self.coordinate_calls.append(key)
        if key in self.gates:
            await self.gates[key].wait()
        return self.by_coordinates.get(key, Error(message="Network error: timeout"))


@pytest.fixture
def fake_redis():
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def store(fake_redis):
    return FavoritesStore(fake_redis)


@pytest.fixture
def container():
    return SessionStateContainer()


@pytest.fixture
def city_repository():
    return FakeCityRepository()


@pytest.fixture
def weather_repository():
    return FakeWeatherRepository()


@pytest.fixture
def coordinator(container, weather_repository, store):
    return EnrichmentCoordinator(container, weather_repository, store)


@pytest.fixture
def orchestrator(container, city_repository, weather_repository, store, coordinator):
    return SearchOrchestrator(
        container,
        city_repository,
        weather_repository,
        store,
        enrich=coordinator.enrich,
        debounce_s=TEST_DEBOUNCE_S,
    )


@pytest.fixture
def toggles(container, store):
    return FavoriteToggleController(container, store)


@pytest.fixture
def london():
    return LONDON


@pytest.fixture
def los_angeles():
    return LOS_ANGELES


@pytest.fixture
def paris():
    return PARIS


@pytest.fixture
def report_factory():
    return make_report
