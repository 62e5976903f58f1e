"""FastAPI adapter exposing one weather session, health and metrics."""

import time
import uuid
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from pydantic import BaseModel
from structlog.contextvars import bind_contextvars, clear_contextvars

from weather_finder.clients.errors import WeatherServiceError
from weather_finder.core.session import WeatherSession
from weather_finder.favorites.store import FavoritesStoreError
from weather_finder.health.health_check import (
    is_favorites_store_available,
    is_openweather_api_available,
)
from weather_finder.logging_config import logger
from weather_finder.metrics import REQUEST_COUNT, REQUEST_LATENCY
from weather_finder.models.city import City
from weather_finder.models.health import Dependencies, HealthResponse
from weather_finder.models.session import SessionState


class QueryUpdate(BaseModel):
    text: str


def create_app(
    session_factory: Callable[[], WeatherSession] = WeatherSession.from_settings,
) -> FastAPI:
    """Build the application around a session created at startup.

    Args:
        session_factory: Callable returning the WeatherSession to serve.

    Returns:
        The configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        session = session_factory()
        app.state.session = session
        async with session:
            yield

    app = FastAPI(lifespan=lifespan)

    def current_session(request: Request) -> WeatherSession:
        return request.app.state.session

    def route_label(request: Request) -> str:
        # route templates keep favorite keys out of metric labels
        route = request.scope.get("route")
        return getattr(route, "path", request.url.path)

    @app.middleware("http")
    async def session_request_context(request: Request, call_next):
        """Tag each session request with an ID and record its outcome.

        The ID comes from ``x-request-id`` when the caller sends one and is
        bound into the structlog context, so state-change events logged by
        the core while serving the request carry it too.
        """
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        bind_contextvars(request_id=request_id)
        started = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            elapsed_s = time.perf_counter() - started
            route = route_label(request)
            logger.info(
                "HTTP_REQUEST",
                method=request.method,
                route=route,
                status_code=status_code,
                duration_ms=round(elapsed_s * 1000, 2),
            )
            REQUEST_COUNT.labels(
                method=request.method, path=route, status_code=status_code
            ).inc()
            REQUEST_LATENCY.labels(path=route).observe(elapsed_s)
            clear_contextvars()

    @app.exception_handler(FavoritesStoreError)
    async def favorites_store_error_handler(request: Request, exc: FavoritesStoreError):
        """Convert favorites store failures into 503 responses."""
        return JSONResponse(status_code=503, content={"detail": str(exc)})

    @app.exception_handler(WeatherServiceError)
    async def weather_service_error_handler(request: Request, exc: WeatherServiceError):
        """Convert upstream API failures into 502 responses."""
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.get("/")
    async def root():
        """Return a basic liveness response."""
        return {"message": "weather-finder"}

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> HealthResponse:
        """Report API health and dependency availability."""
        session = current_session(request)
        dependencies = Dependencies(
            openweather_api=await is_openweather_api_available(
                session.http_client, session.settings.openweather_api_key
            ),
            favorites_store=await is_favorites_store_available(session.redis_client),
        )
        if not dependencies.all_available:
            logger.warning("HEALTH_DEGRADED", **dependencies.model_dump(mode="json"))
        return HealthResponse.from_dependencies(dependencies)

    @app.get("/metrics")
    async def metrics():
        """Expose Prometheus metrics for scraping."""
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/session")
    async def get_state(request: Request) -> SessionState:
        return current_session(request).state

    @app.put("/session/query")
    async def change_query(update: QueryUpdate, request: Request) -> SessionState:
        """Feed a keystroke into the debounced search.

        The response reflects the state right after the keystroke; cards
        arrive later and can be read from GET /session.
        """
        session = current_session(request)
        session.search.on_query_changed(update.text)
        return session.state

    @app.post("/session/search")
    async def search_weather(request: Request) -> SessionState:
        """Run the full weather search for the current query."""
        session = current_session(request)
        session.search.search_weather()
        await session.search.join()
        return session.state

    @app.post("/session/select")
    async def select_city(city: City, request: Request) -> SessionState:
        session = current_session(request)
        session.search.select_city(city)
        await session.search.join()
        return session.state

    @app.post("/session/retry")
    async def retry(request: Request) -> SessionState:
        session = current_session(request)
        session.search.retry()
        await session.search.join()
        return session.state

    @app.delete("/session/errors")
    async def clear_errors(request: Request) -> SessionState:
        session = current_session(request)
        session.search.clear_error()
        session.favorites.clear_favorite_error()
        return session.state

    @app.post("/session/favorites/toggle")
    async def toggle_favorite(city: City, request: Request) -> SessionState:
        session = current_session(request)
        await session.favorites.toggle(city)
        return session.state

    @app.post("/session/detail/favorite")
    async def toggle_detail_favorite(request: Request) -> SessionState:
        session = current_session(request)
        await session.favorites.toggle_detail()
        return session.state

    @app.get("/session/favorites")
    async def list_favorites(request: Request) -> list[City]:
        return await current_session(request).store.favorites()

    @app.delete("/session/favorites/{search_key}")
    async def remove_favorite(search_key: str, request: Request) -> SessionState:
        session = current_session(request)
        favorites = await session.store.favorites()
        city = next((fav for fav in favorites if fav.search_key == search_key), None)
        if city is None:
            raise HTTPException(status_code=404, detail="Favorite not found")
        await session.favorites.remove_favorite(city)
        return session.state

    @app.post("/session/pin")
    async def pin_city(request: Request) -> SessionState:
        session = current_session(request)
        await session.search.save_pinned_city()
        return session.state

    return app


app = create_app()
