"""Settings loaded from environment variables or a .env file."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings; each field reads the env var of the same name."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", frozen=True
    )

    # OpenWeatherMap
    openweather_api_key: str = ""
    openweather_base_url: str = "https://api.openweathermap.org/"
    http_timeout_s: float = 5.0

    # Search
    search_debounce_ms: int = 300
    min_query_length: int = 2
    max_city_cards: int = 3
    geo_search_limit: int = 5

    # Favorites store
    favorites_limit: int = 10
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0
    favorites_namespace: str = "user_preferences"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    @property
    def search_debounce_s(self) -> float:
        return self.search_debounce_ms / 1000


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()


settings = get_settings()
