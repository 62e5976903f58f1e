"""Session state snapshot."""

from pydantic import BaseModel, ConfigDict

from weather_finder.models.card import CityCard
from weather_finder.models.city import City
from weather_finder.models.weather import WeatherReport


class SessionState(BaseModel):
    """Immutable view of one user session.

    A new instance is produced for every change; readers never observe a
    partially applied update.
    """

    model_config = ConfigDict(frozen=True)

    query: str = ""
    cards: tuple[CityCard, ...] = ()
    search_generation: int = 0
    search_in_flight: bool = False
    show_city_cards: bool = False
    selected_city: City | None = None
    detail_weather: WeatherReport | None = None
    detail_error: str | None = None
    detail_loading: bool = False
    detail_is_favorite: bool = False
    favorite_error: str | None = None
    favorites: tuple[City, ...] = ()

    def find_card(self, search_key: str) -> CityCard | None:
        for card in self.cards:
            if card.search_key == search_key:
                return card
        return None
