"""Favorite toggling and favorites-list reconciliation."""

import asyncio
from collections import defaultdict
from typing import Protocol

from weather_finder.core.state import SessionStateContainer
from weather_finder.favorites.store import FavoritesStoreError
from weather_finder.logging_config import logger
from weather_finder.metrics import FAVORITE_TOGGLES
from weather_finder.models.city import City

FAVORITE_UPDATE_FAILED_MESSAGE = "Could not update favorites"


class FavoritesBackend(Protocol):
    async def add(self, city: City): ...

    async def remove(self, search_key: str): ...

    async def is_favorite(self, search_key: str) -> bool: ...

    def stream_favorites(self): ...


class FavoriteToggleController:
    """Add and remove favorites, keeping card and detail flags in step.

    The store call is awaited before any flag changes. If it fails, flags
    stay as they were and ``favorite_error`` is set instead.
    """

    def __init__(self, container: SessionStateContainer, store: FavoritesBackend):
        self.container = container
        self.store = store
        self._sync_task: asyncio.Task | None = None
        self._key_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def toggle(self, city: City):
        """Flip the favorite status of a search card's city.

        Toggles of the same city run one at a time, so each one sees the
        flag left by the previous one.
        """
        async with self._key_locks[city.search_key]:
            card = self.container.state.find_card(city.search_key)
            if card is not None:
                currently_favorite = card.is_favorite
            else:
                currently_favorite = await self._lookup(city.search_key)
                if currently_favorite is None:
                    return
            await self._apply(city, currently_favorite)

    async def toggle_detail(self, city: City | None = None):
        """Flip the favorite status of the city shown in the detail view.

        Args:
            city: City to toggle; defaults to the one built from the
                displayed weather.
        """
        if city is None:
            report = self.container.state.detail_weather
            if report is None:
                return
            city = report.to_city()
        async with self._key_locks[city.search_key]:
            currently_favorite = await self._lookup(city.search_key)
            if currently_favorite is None:
                return
            await self._apply(city, currently_favorite)

    async def remove_favorite(self, city: City):
        """Remove a city from the favorites screen."""
        async with self._key_locks[city.search_key]:
            await self._apply(city, currently_favorite=True)

    def clear_favorite_error(self):
        self.container.update(favorite_error=None)

    def start(self):
        """Mirror the stored favorites into the session state."""
        if self._sync_task is None:
            self._sync_task = asyncio.get_running_loop().create_task(
                self._follow_favorites(), name="favorites-sync"
            )

    async def aclose(self):
        if self._sync_task is not None:
            self._sync_task.cancel()
            await asyncio.gather(self._sync_task, return_exceptions=True)
            self._sync_task = None

    async def _lookup(self, search_key: str) -> bool | None:
        try:
            return await self.store.is_favorite(search_key)
        except FavoritesStoreError as exc:
            logger.error("FAVORITE_LOOKUP_FAILED", city=search_key, error=str(exc))
            self.container.update(favorite_error=FAVORITE_UPDATE_FAILED_MESSAGE)
            return None

    async def _apply(self, city: City, currently_favorite: bool):
        search_key = city.search_key
        action = "remove" if currently_favorite else "add"
        try:
            if currently_favorite:
                await self.store.remove(search_key)
            else:
                await self.store.add(city)
        except FavoritesStoreError as exc:
            FAVORITE_TOGGLES.labels(action=action, outcome="error").inc()
            logger.error(
                "FAVORITE_TOGGLE_FAILED", city=search_key, action=action, error=str(exc)
            )
            self.container.update(favorite_error=FAVORITE_UPDATE_FAILED_MESSAGE)
            return

        FAVORITE_TOGGLES.labels(action=action, outcome="success").inc()
        self._set_flag(search_key, not currently_favorite)

    def _set_flag(self, search_key: str, is_favorite: bool):
        state = self.container.state
        changes = {
            "favorite_error": None,
            "cards": tuple(
                card.model_copy(update={"is_favorite": is_favorite})
                if card.search_key == search_key
                else card
                for card in state.cards
            ),
        }
        report = state.detail_weather
        if report is not None and report.search_key == search_key:
            changes["detail_is_favorite"] = is_favorite
        self.container.update(**changes)

    async def _follow_favorites(self):
        try:
            async for favorites in self.store.stream_favorites():
                self._reconcile(favorites)
        except FavoritesStoreError as exc:
            logger.error("FAVORITES_STREAM_FAILED", error=str(exc))

    def _reconcile(self, favorites: list[City]):
        keys = {city.search_key for city in favorites}
        state = self.container.state
        changes = {
            "favorites": tuple(favorites),
            "cards": tuple(
                card
                if card.is_favorite == (card.search_key in keys)
                else card.model_copy(update={"is_favorite": card.search_key in keys})
                for card in state.cards
            ),
        }
        if state.detail_weather is not None:
            changes["detail_is_favorite"] = state.detail_weather.search_key in keys
        self.container.update(**changes)
