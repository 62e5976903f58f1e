"""Wiring of clients, store and core components into one session."""

import httpx
from redis.asyncio import Redis

from weather_finder.clients.geo import GeoSearchClient
from weather_finder.clients.transport import build_client
from weather_finder.clients.weather import WeatherClient
from weather_finder.config import Settings, settings as default_settings
from weather_finder.core.enrichment import EnrichmentCoordinator
from weather_finder.core.favorites import FavoriteToggleController
from weather_finder.core.orchestrator import SearchOrchestrator
from weather_finder.core.state import SessionStateContainer
from weather_finder.favorites.store import FavoritesStore, create_redis_client
from weather_finder.logging_config import logger
from weather_finder.repository.repositories import CityRepository, WeatherRepository


class WeatherSession:
    """All components serving one user, sharing one state container."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        redis_client: Redis,
        config: Settings = default_settings,
    ):
        self.settings = config
        self.http_client = http_client
        self.redis_client = redis_client
        self.container = SessionStateContainer()
        self.store = FavoritesStore(
            redis_client,
            namespace=config.favorites_namespace,
            limit=config.favorites_limit,
        )
        self.city_repository = CityRepository(
            GeoSearchClient(http_client, config.openweather_api_key),
            limit=config.geo_search_limit,
            min_length=config.min_query_length,
        )
        self.weather_repository = WeatherRepository(
            WeatherClient(http_client, config.openweather_api_key)
        )
        self.enrichment = EnrichmentCoordinator(
            self.container, self.weather_repository, self.store
        )
        self.search = SearchOrchestrator(
            self.container,
            self.city_repository,
            self.weather_repository,
            self.store,
            enrich=self.enrichment.enrich,
            debounce_s=config.search_debounce_s,
            min_query_length=config.min_query_length,
            max_cards=config.max_city_cards,
        )
        self.favorites = FavoriteToggleController(self.container, self.store)

    @classmethod
    def from_settings(cls, config: Settings = default_settings) -> "WeatherSession":
        """Build a session with real HTTP and Redis clients."""
        return cls(
            build_client(config.openweather_base_url, config.http_timeout_s),
            create_redis_client(config.redis_host, config.redis_port, config.redis_db),
            config,
        )

    @property
    def state(self):
        return self.container.state

    def start(self):
        """Start following the pinned city and the favorites list."""
        self.search.start()
        self.favorites.start()
        logger.info("SESSION_STARTED")

    async def idle(self):
        """Wait until searches, detail loads and enrichments have settled."""
        await self.search.join()
        await self.enrichment.join()

    async def aclose(self):
        await self.search.aclose()
        await self.enrichment.aclose()
        await self.favorites.aclose()
        await self.http_client.aclose()
        await self.redis_client.aclose()
        logger.info("SESSION_CLOSED")

    async def __aenter__(self) -> "WeatherSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()
