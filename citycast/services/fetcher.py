"""Fetcher: the one object the controllers use to reach the remote APIs.

Owns a single httpx.AsyncClient for connection pooling. Construct it once
per session (the app does this at startup) and close it on shutdown.
"""

import logging

import httpx

from citycast.config import Settings, settings as default_settings
from citycast.schemas import City, CityPage, CityWeather
from citycast.services import cities, weather
from citycast.services.cities import SearchParams

logger = logging.getLogger(__name__)


class Fetcher:
    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None):
        self.settings = settings or default_settings
        if client is None:
            client = httpx.AsyncClient(timeout=self.settings.http_timeout_seconds)
        self._client = client

    async def search_cities(self, params: SearchParams) -> CityPage:
        return await cities.search_cities(
            self._client, self.settings.cities_base_url, self.settings.cities_dataset, params
        )

    async def get_city(self, city_id: str) -> City:
        return await cities.get_city_by_id(
            self._client, self.settings.cities_base_url, self.settings.cities_dataset, city_id
        )

    async def get_weather(self, lat: float, lon: float, units: str = "metric") -> CityWeather:
        return await weather.get_city_weather(
            self._client,
            self.settings.weather_base_url,
            self.settings.openweather_api_key,
            lat,
            lon,
            units,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "Fetcher":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
