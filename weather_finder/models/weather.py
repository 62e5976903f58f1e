"""Weather models and OpenWeatherMap payload mappings."""

from pydantic import BaseModel, ConfigDict, Field

from weather_finder.models.city import City, make_search_key

KELVIN_OFFSET = 273.15


def kelvin_to_celsius(value: float) -> int:
    """Convert Kelvin to whole degrees Celsius, truncating toward zero."""
    return int(value - KELVIN_OFFSET)


class WeatherSnapshot(BaseModel):
    """Current conditions for one location, temperatures in Kelvin."""

    model_config = ConfigDict(frozen=True)

    temperature_k: float
    feels_like_k: float
    min_k: float
    max_k: float
    humidity_pct: int
    condition_main: str
    condition_description: str
    icon_id: str

    @property
    def temperature_c(self) -> int:
        return kelvin_to_celsius(self.temperature_k)

    @property
    def feels_like_c(self) -> int:
        return kelvin_to_celsius(self.feels_like_k)

    @property
    def min_c(self) -> int:
        return kelvin_to_celsius(self.min_k)

    @property
    def max_c(self) -> int:
        return kelvin_to_celsius(self.max_k)


class WeatherReport(WeatherSnapshot):
    """Weather snapshot tagged with the location the API resolved."""

    city_name: str
    country: str

    @property
    def formatted_location(self) -> str:
        return f"{self.city_name}, {self.country}"

    @property
    def search_key(self) -> str:
        return make_search_key(self.city_name, self.country)

    def to_city(self) -> City:
        """Build a City for favorites bookkeeping.

        The weather payload carries no state and the coordinates are not part
        of city identity, so both are left empty.
        """
        return City(
            name=self.city_name,
            country=self.country,
            state=None,
            latitude=0.0,
            longitude=0.0,
        )

    @classmethod
    def from_api_response(cls, payload: "OpenWeatherResponse") -> "WeatherReport":
        """Create a report from a validated /data/2.5/weather payload.

        Args:
            payload: Parsed API response.

        Returns:
            A populated WeatherReport.
        """
        condition = payload.weather[0] if payload.weather else None
        return cls(
            city_name=payload.name,
            country=payload.sys.country,
            temperature_k=payload.main.temp,
            feels_like_k=payload.main.feels_like,
            min_k=payload.main.temp_min,
            max_k=payload.main.temp_max,
            humidity_pct=payload.main.humidity,
            condition_main=condition.main if condition else "",
            condition_description=condition.description if condition else "",
            icon_id=condition.icon if condition else "",
        )


# Direct mappings of the OpenWeatherMap API responses


class OpenWeatherMain(BaseModel):
    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    humidity: int


class OpenWeatherCondition(BaseModel):
    main: str = ""
    description: str = ""
    icon: str = ""


class OpenWeatherSys(BaseModel):
    country: str = ""


class OpenWeatherResponse(BaseModel):
    """Payload of GET /data/2.5/weather."""

    name: str
    main: OpenWeatherMain
    weather: list[OpenWeatherCondition] = Field(default_factory=list)
    sys: OpenWeatherSys = Field(default_factory=OpenWeatherSys)


class GeoDirectResult(BaseModel):
    """One entry of GET /geo/1.0/direct."""

    name: str
    country: str
    state: str | None = None
    lat: float
    lon: float

    def to_city(self) -> City:
        return City(
            name=self.name,
            country=self.country,
            state=self.state,
            latitude=self.lat,
            longitude=self.lon,
        )
