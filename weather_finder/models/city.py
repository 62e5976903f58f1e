"""City model for geocoding results."""

from pydantic import BaseModel, ConfigDict


def make_search_key(name: str, country: str) -> str:
    """Build the case-insensitive identity key for a city.

    Args:
        name: City name.
        country: Country code or name.

    Returns:
        "name, country" in lowercase.
    """
    return f"{name.lower()}, {country.lower()}"


class City(BaseModel):
    """City information returned by the geocoding API.

    Identity is the search key only; state and coordinates are ignored, so two
    same-named cities in one country are treated as the same city.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    country: str
    state: str | None = None
    latitude: float
    longitude: float

    @property
    def search_key(self) -> str:
        return make_search_key(self.name, self.country)

    @property
    def display_name(self) -> str:
        if self.state is not None:
            return f"{self.name}, {self.state}, {self.country}"
        return f"{self.name}, {self.country}"
