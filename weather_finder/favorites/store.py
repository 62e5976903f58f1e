"""Redis-backed favorites store with change notifications."""

import asyncio
from collections.abc import AsyncIterator, Callable

from pydantic import TypeAdapter
from redis.asyncio import Redis
from redis.exceptions import RedisError, WatchError

from weather_finder.logging_config import logger
from weather_finder.models.city import City

FAVORITES_LIMIT = 10

_cities_adapter = TypeAdapter(list[City])


class FavoritesStoreError(Exception):
    """Raised when the favorites store cannot be read or written."""
    pass


def create_redis_client(host: str, port: int, db: int) -> Redis:
    """Create the async Redis client used by the store.

    Args:
        host: Redis host name.
        port: Redis port.
        db: Redis database index.

    Returns:
        A Redis client that decodes responses to str.
    """
    return Redis(host=host, port=port, db=db, decode_responses=True)


def add_to_front(
    favorites: list[City], city: City, limit: int = FAVORITES_LIMIT
) -> list[City]:
    """Insert ``city`` at the front, dropping any prior entry with its key.

    Args:
        favorites: Current favorites, most recent first.
        city: City to add.
        limit: Maximum number of favorites kept.

    Returns:
        The updated list, truncated to ``limit`` entries.
    """
    updated = [fav for fav in favorites if fav.search_key != city.search_key]
    updated.insert(0, city)
    return updated[:limit]


def remove_key(favorites: list[City], search_key: str) -> list[City]:
    return [fav for fav in favorites if fav.search_key != search_key]


class FavoritesStore:
    """Ordered, size-bounded favorite cities plus one pinned city name.

    Writes are read-modify-write cycles on the whole list. They are
    serialized by a local lock and guarded by a Redis WATCH transaction so
    concurrent writers from other processes cannot interleave.
    """

    def __init__(
        self,
        client: Redis,
        namespace: str = "user_preferences",
        limit: int = FAVORITES_LIMIT,
    ):
        self.redis_client = client
        self.limit = limit
        self.favorites_key = f"{namespace}:favorite_cities"
        self.pinned_key = f"{namespace}:favorite_city"
        self._write_lock = asyncio.Lock()
        self._changed = asyncio.Condition()
        self._versions = {self.favorites_key: 0, self.pinned_key: 0}

    async def add(self, city: City):
        """Add a city, moving it to the front if already present."""
        await self._update_favorites(
            lambda favorites: add_to_front(favorites, city, self.limit),
            event="FAVORITE_ADDED",
            city=city.search_key,
        )

    async def remove(self, search_key: str):
        """Remove the city with ``search_key``; absent keys are a no-op."""
        await self._update_favorites(
            lambda favorites: remove_key(favorites, search_key),
            event="FAVORITE_REMOVED",
            city=search_key,
        )

    async def is_favorite(self, search_key: str) -> bool:
        favorites = await self.favorites()
        return any(fav.search_key == search_key for fav in favorites)

    async def favorites(self) -> list[City]:
        """Read the current favorites, most recent first."""
        try:
            raw = await self.redis_client.get(self.favorites_key)
        except RedisError as exc:
            logger.error("REDIS_GET_FAVORITES_FAILED", error=str(exc))
            raise FavoritesStoreError("Favorites are unavailable") from exc
        return self._decode(raw)

    async def stream_favorites(self) -> AsyncIterator[list[City]]:
        """Yield the current favorites, then a fresh snapshot after each change.

        Each call starts a new independent stream; it never ends on its own.
        """
        async for _ in self._changes(self.favorites_key):
            yield await self.favorites()

    async def save_pinned_city_name(self, city_name: str):
        """Persist the pinned city name."""
        try:
            await self.redis_client.set(self.pinned_key, city_name)
        except RedisError as exc:
            logger.error("REDIS_SAVE_PINNED_CITY_FAILED", city=city_name, error=str(exc))
            raise FavoritesStoreError("Could not save the pinned city") from exc
        logger.info("PINNED_CITY_SAVED", city=city_name)
        await self._notify(self.pinned_key)

    async def pinned_city_name(self) -> str | None:
        try:
            return await self.redis_client.get(self.pinned_key)
        except RedisError as exc:
            logger.error("REDIS_GET_PINNED_CITY_FAILED", error=str(exc))
            raise FavoritesStoreError("Pinned city is unavailable") from exc

    async def stream_pinned_city_name(self) -> AsyncIterator[str | None]:
        """Yield the pinned city name now and after each change."""
        async for _ in self._changes(self.pinned_key):
            yield await self.pinned_city_name()

    async def _changes(self, key: str) -> AsyncIterator[int]:
        while True:
            version = self._versions[key]
            yield version
            async with self._changed:
                await self._changed.wait_for(lambda: self._versions[key] != version)

    async def _notify(self, key: str):
        async with self._changed:
            self._versions[key] += 1
            self._changed.notify_all()

    async def _update_favorites(
        self, transform: Callable[[list[City]], list[City]], event: str, city: str
    ):
        async with self._write_lock:
            try:
                async with self.redis_client.pipeline(transaction=True) as pipe:
                    while True:
                        try:
                            await pipe.watch(self.favorites_key)
                            current = self._decode(await pipe.get(self.favorites_key))
                            updated = transform(current)
                            pipe.multi()
                            pipe.set(
                                self.favorites_key,
                                _cities_adapter.dump_json(updated).decode(),
                            )
                            await pipe.execute()
                            break
                        except WatchError:
                            logger.info("REDIS_FAVORITES_WRITE_CONFLICT", city=city)
                            continue
            except RedisError as exc:
                logger.error("REDIS_SAVE_FAVORITES_FAILED", city=city, error=str(exc))
                raise FavoritesStoreError("Could not update favorites") from exc
        logger.info(event, city=city)
        await self._notify(self.favorites_key)

    @staticmethod
    def _decode(raw: str | None) -> list[City]:
        if not raw:
            return []
        try:
            return _cities_adapter.validate_json(raw)
        except ValueError as exc:
            logger.error("REDIS_FAVORITES_CORRUPT", error=str(exc))
            return []
