"""Debounced city search and the detail weather flows."""

import asyncio
from collections.abc import Callable
from typing import Protocol

from weather_finder.core.state import SessionStateContainer
from weather_finder.favorites.store import FavoritesStoreError
from weather_finder.logging_config import logger
from weather_finder.metrics import CITY_SEARCHES, STALE_RESULTS_DISCARDED
from weather_finder.models.card import CityCard
from weather_finder.models.city import City
from weather_finder.models.resource import Error, Loading, Resource, Success
from weather_finder.models.weather import WeatherReport

EMPTY_CITY_NAME_MESSAGE = "Please enter a city name"
PINNED_CITY_SAVE_FAILED_MESSAGE = "Could not save the pinned city"


class CitySearchSource(Protocol):
    async def search_cities(self, query: str) -> Resource: ...


class WeatherSource(Protocol):
    async def current_weather(self, city_name: str) -> Resource: ...

    async def current_weather_by_coordinates(
        self, latitude: float, longitude: float
    ) -> Resource: ...


class PreferencesSource(Protocol):
    async def is_favorite(self, search_key: str) -> bool: ...

    async def save_pinned_city_name(self, city_name: str): ...

    def stream_pinned_city_name(self): ...


EnrichCallback = Callable[[CityCard, int], None]


def unique_cards(cities: list[City], limit: int) -> tuple[CityCard, ...]:
    """Build pending cards for the first ``limit`` distinct cities.

    Args:
        cities: Candidates in API order.
        limit: Maximum number of cards.

    Returns:
        One card per search key, first occurrence wins.
    """
    seen: set[str] = set()
    cards = []
    for city in cities:
        if city.search_key in seen:
            continue
        seen.add(city.search_key)
        cards.append(CityCard.pending(city))
        if len(cards) == limit:
            break
    return tuple(cards)


class SearchOrchestrator:
    """Turn keystrokes into candidate cards and drive the detail view.

    Every keystroke cancels the pending search and starts a new debounce
    window. Completed searches bump ``search_generation`` and hand each new
    card to the enrichment callback under that generation. A search token
    rejects results from a search that was superseded while its request was
    already in flight.
    """

    def __init__(
        self,
        container: SessionStateContainer,
        city_repository: CitySearchSource,
        weather_repository: WeatherSource,
        preferences: PreferencesSource,
        enrich: EnrichCallback,
        debounce_s: float = 0.3,
        min_query_length: int = 2,
        max_cards: int = 3,
    ):
        self.container = container
        self.city_repository = city_repository
        self.weather_repository = weather_repository
        self.preferences = preferences
        self.enrich = enrich
        self.debounce_s = debounce_s
        self.min_query_length = min_query_length
        self.max_cards = max_cards
        self._search_task: asyncio.Task | None = None
        self._search_token = 0
        self._detail_task: asyncio.Task | None = None
        self._detail_token = 0
        self._last_detail_request: str | City | None = None
        self._pinned_task: asyncio.Task | None = None

    def on_query_changed(self, text: str):
        """Record ``text`` and schedule a debounced candidate search."""
        self._cancel_search()
        query = text.strip()
        state = self.container.state

        if len(query) < self.min_query_length:
            self.container.update(
                query=text,
                cards=(),
                search_generation=state.search_generation + 1,
                search_in_flight=False,
                show_city_cards=False,
            )
            return

        self.container.update(query=text, show_city_cards=True, search_in_flight=True)
        self._search_task = asyncio.get_running_loop().create_task(
            self._debounced_search(query, self._search_token), name=f"search:{query}"
        )

    def select_city(self, city: City):
        """Show full weather for a card the user picked."""
        self._cancel_search()
        state = self.container.state
        self.container.update(
            query=city.name,
            cards=(),
            search_generation=state.search_generation + 1,
            search_in_flight=False,
            show_city_cards=False,
            selected_city=city,
        )
        self._start_detail(city)

    def search_weather(self):
        """Run a full weather search for the current query text."""
        city_name = self.container.state.query
        if not city_name.strip():
            self.container.update(detail_error=EMPTY_CITY_NAME_MESSAGE)
            return
        self._start_detail(city_name)

    def retry(self):
        """Repeat the last detail request, if any."""
        if self._last_detail_request is not None:
            self._start_detail(self._last_detail_request)

    def clear_error(self):
        self.container.update(detail_error=None)

    def hide_city_cards(self):
        self.container.update(show_city_cards=False)

    async def save_pinned_city(self):
        """Persist the current query as the pinned city."""
        city_name = self.container.state.query.strip()
        if not city_name:
            return
        try:
            await self.preferences.save_pinned_city_name(city_name)
        except FavoritesStoreError as exc:
            logger.error("PINNED_CITY_SAVE_FAILED", city=city_name, error=str(exc))
            self.container.update(favorite_error=PINNED_CITY_SAVE_FAILED_MESSAGE)

    def start(self):
        """Follow the pinned city and copy it into the query field."""
        if self._pinned_task is None:
            self._pinned_task = asyncio.get_running_loop().create_task(
                self._follow_pinned_city(), name="pinned-city"
            )

    async def join(self):
        """Wait for the current search and detail work to finish."""
        while True:
            pending = [
                task
                for task in (self._search_task, self._detail_task)
                if task is not None and not task.done()
            ]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    async def aclose(self):
        self._cancel_search()
        tasks = [
            task
            for task in (self._detail_task, self._pinned_task)
            if task is not None
        ]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._pinned_task = None

    def _cancel_search(self):
        self._search_token += 1
        if self._search_task is not None and not self._search_task.done():
            self._search_task.cancel()
        self._search_task = None

    async def _debounced_search(self, query: str, token: int):
        await asyncio.sleep(self.debounce_s)
        logger.info("CITY_SEARCH_STARTED", query=query)
        try:
            result = await self.city_repository.search_cities(query)
        except Exception as exc:
            logger.error("CITY_SEARCH_FAILED", query=query, error=repr(exc))
            result = Error(message=f"Network error: {exc}")

        if token != self._search_token:
            logger.info("CITY_SEARCH_STALE_DISCARDED", query=query)
            STALE_RESULTS_DISCARDED.labels(kind="search").inc()
            return

        state = self.container.state
        match result:
            case Success(data=cities):
                cards = unique_cards(cities or [], self.max_cards)
                generation = state.search_generation + 1
                self.container.update(
                    cards=cards, search_generation=generation, search_in_flight=False
                )
                CITY_SEARCHES.labels(outcome="success").inc()
                logger.info(
                    "CITY_SEARCH_COMPLETED",
                    query=query,
                    cards=len(cards),
                    generation=generation,
                )
                for card in cards:
                    self.enrich(card, generation)
            case Error(message=message):
                # search failures are not shown to the user
                self.container.update(
                    cards=(),
                    search_generation=state.search_generation + 1,
                    search_in_flight=False,
                )
                CITY_SEARCHES.labels(outcome="error").inc()
                logger.info("CITY_SEARCH_ERROR_SUPPRESSED", query=query, error=message)
            case Loading():
                self.container.update(search_in_flight=True)

    def _start_detail(self, request: str | City):
        self._detail_token += 1
        if self._detail_task is not None and not self._detail_task.done():
            self._detail_task.cancel()
        self._last_detail_request = request
        self.container.update(detail_loading=True, detail_error=None)
        self._detail_task = asyncio.get_running_loop().create_task(
            self._load_detail(request, self._detail_token), name="detail"
        )

    async def _load_detail(self, request: str | City, token: int):
        try:
            match request:
                case City(latitude=latitude, longitude=longitude):
                    result = await self.weather_repository.current_weather_by_coordinates(
                        latitude, longitude
                    )
                case _:
                    result = await self.weather_repository.current_weather(request)
        except Exception as exc:
            logger.error("DETAIL_WEATHER_FAILED", request=str(request), error=repr(exc))
            result = Error(message=f"Network error: {exc}")

        match result:
            case Success(data=report):
                is_favorite = await self._favorite_status(report)
                if not self._is_current_detail(token):
                    return
                self.container.update(
                    detail_loading=False,
                    detail_weather=report,
                    detail_error=None,
                    detail_is_favorite=is_favorite,
                    show_city_cards=False,
                )
                logger.info("DETAIL_WEATHER_LOADED", city=report.search_key)
            case Error(message=message):
                if not self._is_current_detail(token):
                    return
                self.container.update(detail_loading=False, detail_error=message)
                logger.info("DETAIL_WEATHER_ERROR", request=str(request), error=message)
            case Loading():
                if self._is_current_detail(token):
                    self.container.update(detail_loading=True)

    def _is_current_detail(self, token: int) -> bool:
        if token == self._detail_token:
            return True
        STALE_RESULTS_DISCARDED.labels(kind="detail").inc()
        return False

    async def _favorite_status(self, report: WeatherReport) -> bool:
        try:
            return await self.preferences.is_favorite(report.search_key)
        except FavoritesStoreError as exc:
            logger.error(
                "FAVORITE_LOOKUP_FAILED", city=report.search_key, error=str(exc)
            )
            return False

    async def _follow_pinned_city(self):
        last_name = None
        try:
            async for city_name in self.preferences.stream_pinned_city_name():
                # only a new pinned name replaces what the user typed
                if city_name and city_name != last_name:
                    self.container.update(query=city_name)
                last_name = city_name
        except FavoritesStoreError as exc:
            logger.error("PINNED_CITY_STREAM_FAILED", error=str(exc))
