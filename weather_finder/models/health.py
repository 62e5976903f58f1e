"""Health check response models."""

from enum import Enum

from pydantic import BaseModel


class ServiceStatus(str, Enum):
    available = "available"
    not_available = "not_available"


class Dependencies(BaseModel):
    """Status of the OpenWeatherMap API and the favorites store."""

    openweather_api: ServiceStatus
    favorites_store: ServiceStatus

    @property
    def all_available(self) -> bool:
        return all(
            status is ServiceStatus.available
            for status in (self.openweather_api, self.favorites_store)
        )


class HealthResponse(BaseModel):
    """API health response payload.

    ``status`` is "ok" when every dependency answers and "degraded"
    otherwise; the endpoint itself still returns 200 so the session stays
    reachable while Redis or the upstream API is down.
    """

    status: str
    dependencies: Dependencies

    @classmethod
    def from_dependencies(cls, dependencies: Dependencies) -> "HealthResponse":
        return cls(
            status="ok" if dependencies.all_available else "degraded",
            dependencies=dependencies,
        )
