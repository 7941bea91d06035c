"""Request-scoped accessors for the shared objects on app.state."""

from fastapi import Request

from citycast.services.cache import WeatherCache
from citycast.services.fetcher import Fetcher


def get_fetcher(request: Request) -> Fetcher:
    return request.app.state.fetcher


def get_weather_cache(request: Request) -> WeatherCache:
    return request.app.state.weather_cache
