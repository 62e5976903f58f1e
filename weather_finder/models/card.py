"""Search result card model."""

from pydantic import BaseModel, ConfigDict

from weather_finder.models.city import City
from weather_finder.models.weather import WeatherReport


class CityCard(BaseModel):
    """A candidate city with its weather preview and favorite flag."""

    model_config = ConfigDict(frozen=True)

    city: City
    weather: WeatherReport | None = None
    is_favorite: bool = False
    loading_weather: bool = True
    weather_error: str | None = None

    @property
    def search_key(self) -> str:
        return self.city.search_key

    @property
    def display_name(self) -> str:
        return self.city.display_name

    @classmethod
    def pending(cls, city: City) -> "CityCard":
        """Create the card shown while enrichment is outstanding."""
        return cls(
            city=city,
            weather=None,
            is_favorite=False,
            loading_weather=True,
            weather_error=None,
        )
