"""Per-city weather controller: cache first, remote on miss, unit toggle."""

import logging
from dataclasses import dataclass
from typing import Callable

from citycast.errors import CityCastError, InvalidParameterError
from citycast.schemas import UNIT_SYSTEMS, CityWeather, CurrentConditions, DailyForecast, Forecast
from citycast.services.cache import WeatherCache
from citycast.services.fetcher import Fetcher
from citycast.services.weather import group_daily_forecast

logger = logging.getLogger(__name__)


async def load_city_weather(
    fetcher: Fetcher,
    cache: WeatherCache,
    city_id: str,
    units: str = "metric",
    use_cache: bool = True,
    store: bool = True,
) -> tuple[CityWeather, bool]:
    """Return (weather, served_from_cache).

    On a miss (or with use_cache=False) the city is resolved, weather is
    fetched in the requested units, and the cache entry is overwritten
    unless store=False. Concurrent misses for one city are not coalesced;
    the last write wins.
    """
    if use_cache:
        cached = cache.get_weather(city_id)
        if cached is not None:
            return cached, True

    city = await fetcher.get_city(city_id)
    weather = await fetcher.get_weather(city.latitude, city.longitude, units)
    weather = weather.model_copy(update={"units": units})
    if store:
        cache.set_weather(city_id, weather.current, weather.forecast, units=units)
    return weather, False


@dataclass
class CityWeatherState:
    units: str = "metric"
    current: CurrentConditions | None = None
    forecast: Forecast | None = None
    loading: bool = False
    error: str | None = None

    @property
    def daily(self) -> list[DailyForecast]:
        if self.forecast is None:
            return []
        return group_daily_forecast(self.forecast)


class CityWeatherController:
    def __init__(
        self,
        city_id: str,
        fetcher: Fetcher,
        cache: WeatherCache,
        units: str = "metric",
        on_error: Callable[[str], None] | None = None,
    ):
        if units not in UNIT_SYSTEMS:
            raise InvalidParameterError("units", units, UNIT_SYSTEMS)
        self.city_id = city_id
        self._fetcher = fetcher
        self._cache = cache
        self.state = CityWeatherState(units=units)
        self.on_error = on_error
        self._generation = 0

    async def load(self) -> None:
        await self._run(use_cache=True)

    async def toggle_units(self) -> None:
        """Switch metric <-> imperial and fetch again, bypassing the cache read.

        If the fetch fails the previous unit system is restored, so the
        displayed data keeps its own label.
        """
        previous = self.state.units
        self.state.units = "imperial" if previous == "metric" else "metric"
        if not await self._run(use_cache=False):
            self.state.units = previous

    async def retry(self) -> None:
        await self._run(use_cache=False)

    async def _run(self, use_cache: bool) -> bool:
        """Returns False only when this run's failure is what the state now shows."""
        self._generation += 1
        generation = self._generation
        self.state.loading = True
        self.state.error = None

        try:
            weather, cached = await load_city_weather(
                self._fetcher,
                self._cache,
                self.city_id,
                self.state.units,
                use_cache=use_cache,
                store=False,
            )
        except CityCastError as e:
            error = str(e)
        except Exception:
            logger.exception("Weather load failed for %s", self.city_id)
            error = "Failed to load weather data"
        else:
            if generation != self._generation:
                logger.debug("Discarding weather response for %s (superseded)", self.city_id)
                return True
            logger.debug("Weather for %s served from %s", self.city_id, "cache" if cached else "remote")
            if not cached:
                self._cache.set_weather(self.city_id, weather.current, weather.forecast, units=weather.units)
            self.state.current = weather.current
            self.state.forecast = weather.forecast
            self.state.loading = False
            return True

        if generation != self._generation:
            return True
        # Previously displayed data is left as is.
        self.state.loading = False
        self.state.error = error
        if self.on_error:
            self.on_error(error)
        return False

