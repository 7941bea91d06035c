from citycast.controllers.city_weather import CityWeatherController, CityWeatherState
from citycast.controllers.search import CitySearchController, SearchPageState

__all__ = ["CitySearchController", "SearchPageState", "CityWeatherController", "CityWeatherState"]
