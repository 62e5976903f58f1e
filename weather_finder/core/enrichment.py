"""Per-card weather and favorite-status enrichment."""

import asyncio
import time
from typing import Protocol

from weather_finder.core.state import SessionStateContainer
from weather_finder.logging_config import logger
from weather_finder.metrics import (
    ENRICHMENT_LATENCY,
    ENRICHMENTS,
    STALE_RESULTS_DISCARDED,
)
from weather_finder.models.card import CityCard
from weather_finder.models.city import City
from weather_finder.models.resource import Error, Loading, Resource, Success
from weather_finder.models.session import SessionState


class FavoriteLookup(Protocol):
    async def is_favorite(self, search_key: str) -> bool: ...


class CoordinateWeatherSource(Protocol):
    async def current_weather_by_coordinates(
        self, latitude: float, longitude: float
    ) -> Resource: ...


class EnrichmentCoordinator:
    """Fetch weather and favorite status for search cards.

    Each call to ``enrich`` starts one background task carrying the search
    generation it was spawned under. A result is written only if that
    generation is still current and the card still exists; anything else is
    dropped. Tasks from superseded generations are also cancelled as soon as
    the generation advances, but dropping stale results does not depend on
    that cancellation landing.
    """

    def __init__(
        self,
        container: SessionStateContainer,
        weather_repository: CoordinateWeatherSource,
        favorites: FavoriteLookup,
    ):
        self.container = container
        self.weather_repository = weather_repository
        self.favorites = favorites
        self._tasks: dict[asyncio.Task, int] = {}
        self.container.subscribe(self._cancel_superseded)

    def enrich(self, card: CityCard, generation: int):
        """Start enrichment for ``card`` under ``generation``.

        Callers must not start a second enrichment for the same card within
        one generation.
        """
        task = asyncio.get_running_loop().create_task(
            self._enrich(card.city, generation), name=f"enrich:{card.search_key}"
        )
        self._tasks[task] = generation
        task.add_done_callback(self._forget)

    @property
    def outstanding(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def join(self):
        """Wait until every outstanding enrichment has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self):
        """Cancel outstanding enrichments and stop following the state."""
        self.container.unsubscribe(self._cancel_superseded)
        for task in self._tasks:
            task.cancel()
        await self.join()

    async def _enrich(self, city: City, generation: int):
        start = time.perf_counter()
        favorite_result, weather_result = await asyncio.gather(
            self.favorites.is_favorite(city.search_key),
            self.weather_repository.current_weather_by_coordinates(
                city.latitude, city.longitude
            ),
            return_exceptions=True,
        )
        ENRICHMENT_LATENCY.observe(time.perf_counter() - start)

        if isinstance(favorite_result, BaseException):
            logger.error(
                "FAVORITE_LOOKUP_FAILED",
                city=city.search_key,
                error=str(favorite_result),
            )
            is_favorite = False
        else:
            is_favorite = bool(favorite_result)

        if isinstance(weather_result, BaseException):
            logger.error(
                "ENRICHMENT_WEATHER_FAILED",
                city=city.search_key,
                error=repr(weather_result),
            )
            weather_result = Error(message=f"Network error: {weather_result}")

        match weather_result:
            case Success(data=weather):
                changes = {
                    "weather": weather,
                    "is_favorite": is_favorite,
                    "loading_weather": False,
                    "weather_error": None,
                }
                outcome = "success"
            case Error(message=message):
                changes = {
                    "weather": None,
                    "is_favorite": is_favorite,
                    "loading_weather": False,
                    "weather_error": message,
                }
                outcome = "error"
            case Loading():
                changes = {"is_favorite": is_favorite, "loading_weather": True}
                outcome = "loading"

        self._merge(city.search_key, generation, changes, outcome)

    def _merge(self, search_key: str, generation: int, changes: dict, outcome: str):
        state = self.container.state
        if state.search_generation != generation:
            logger.info(
                "ENRICHMENT_STALE_DISCARDED",
                city=search_key,
                generation=generation,
                current_generation=state.search_generation,
            )
            STALE_RESULTS_DISCARDED.labels(kind="enrichment").inc()
            return
        if state.find_card(search_key) is None:
            logger.info("ENRICHMENT_CARD_GONE", city=search_key, generation=generation)
            STALE_RESULTS_DISCARDED.labels(kind="enrichment").inc()
            return

        cards = tuple(
            card.model_copy(update=changes) if card.search_key == search_key else card
            for card in state.cards
        )
        self.container.update(cards=cards)
        ENRICHMENTS.labels(outcome=outcome).inc()
        logger.info(
            "CARD_ENRICHED", city=search_key, generation=generation, outcome=outcome
        )

    def _cancel_superseded(self, state: SessionState):
        for task, generation in self._tasks.items():
            if generation < state.search_generation and not task.done():
                task.cancel()

    def _forget(self, task: asyncio.Task):
        self._tasks.pop(task, None)
