import pytest

from weather_finder.models.card import CityCard
from weather_finder.models.city import City
from weather_finder.models.session import SessionState
from weather_finder.models.weather import (
    OpenWeatherResponse,
    WeatherReport,
    kelvin_to_celsius,
)


def test_search_key_is_case_insensitive():
    upper = City(name="LONDON", country="GB", latitude=51.5, longitude=-0.12)
    lower = City(name="london", country="gb", state="England", latitude=0, longitude=0)
    assert upper.search_key == "london, gb"
    assert upper.search_key == lower.search_key


def test_display_name_includes_state_when_present():
    city = City(name="Portland", country="US", state="Oregon", latitude=45.5, longitude=-122.7)
    assert city.display_name == "Portland, Oregon, US"
    assert city.model_copy(update={"state": None}).display_name == "Portland, US"


@pytest.mark.parametrize(
    "kelvin, celsius",
    [(293.15, 20), (295.15, 22), (290.15, 17), (296.15, 23), (263.15, -10), (260.15, -13)],
)
def test_kelvin_to_celsius_truncates_toward_zero(kelvin, celsius):
    assert kelvin_to_celsius(kelvin) == celsius


def test_kelvin_to_celsius_does_not_floor_negative_fractions():
    assert kelvin_to_celsius(262.65) == -10


def test_report_conversions_and_location(report_factory):
    report = report_factory()
    assert report.temperature_c == 20
    assert report.feels_like_c == 22
    assert report.min_c == 17
    assert report.max_c == 23
    assert report.formatted_location == "London, GB"
    assert report.search_key == "london, gb"


def test_report_to_city_has_no_coordinates(report_factory):
    city = report_factory(city_name="Moscow", country="RU").to_city()
    assert city == City(name="Moscow", country="RU", latitude=0.0, longitude=0.0)


def test_report_from_api_response():
    payload = OpenWeatherResponse.model_validate(
        {
            "name": "London",
            "sys": {"country": "GB"},
            "main": {
                "temp": 293.15,
                "feels_like": 295.15,
                "temp_min": 290.15,
                "temp_max": 296.15,
                "humidity": 65,
            },
            "weather": [{"main": "Clear", "description": "clear sky", "icon": "01d"}],
        }
    )
    report = WeatherReport.from_api_response(payload)
    assert report.city_name == "London"
    assert report.country == "GB"
    assert report.humidity_pct == 65
    assert report.condition_description == "clear sky"
    assert report.icon_id == "01d"


def test_report_from_api_response_without_conditions():
    payload = OpenWeatherResponse.model_validate(
        {
            "name": "Nowhere",
            "main": {
                "temp": 280.0,
                "feels_like": 279.0,
                "temp_min": 278.0,
                "temp_max": 281.0,
                "humidity": 50,
            },
        }
    )
    report = WeatherReport.from_api_response(payload)
    assert report.condition_main == ""
    assert report.icon_id == ""
    assert report.country == ""


def test_pending_card(london):
    card = CityCard.pending(london)
    assert card.loading_weather is True
    assert card.weather is None
    assert card.is_favorite is False
    assert card.weather_error is None
    assert card.search_key == "london, gb"


def test_card_weather_dumps_location(london, report_factory):
    card = CityCard.pending(london).model_copy(
        update={"weather": report_factory(), "loading_weather": False}
    )
    state = SessionState(cards=(card,))

    weather = state.model_dump(mode="json")["cards"][0]["weather"]
    assert weather["city_name"] == "London"
    assert weather["country"] == "GB"
    assert weather["temperature_k"] == 293.15


def test_session_state_find_card(london, paris):
    state = SessionState(cards=(CityCard.pending(london), CityCard.pending(paris)))
    assert state.find_card("paris, fr").city == paris
    assert state.find_card("rome, it") is None
