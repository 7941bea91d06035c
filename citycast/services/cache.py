"""Simple in-memory TTL cache. No Redis needed.

Entries are evicted lazily: an expired entry is removed the first time it
is read, never by a background sweep. There is no size bound; the key space
is the set of cities visited in one session.

The cache is owned by whoever constructs it (the app puts one on
``app.state``) and passed to the controllers that need it, so tests and
independent sessions each get their own instance.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, TypeVar

from citycast.schemas import CityWeather, CurrentConditions, Forecast

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

# 30 minutes
DEFAULT_WEATHER_TTL_SECONDS = 30 * 60


@dataclass
class CacheEntry(Generic[V]):
    value: V
    stored_at: float

    def is_expired(self, now: float, ttl_seconds: float) -> bool:
        return now - self.stored_at > ttl_seconds


class TTLCache(Generic[K, V]):
    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.time):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[K, CacheEntry[V]] = {}

    def get(self, key: K) -> V | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock(), self.ttl_seconds):
            del self._store[key]
            return None
        return entry.value

    def set(self, key: K, value: V) -> None:
        self._store[key] = CacheEntry(value=value, stored_at=self._clock())

    def clear(self) -> None:
        self._store.clear()

    def __len__(self) -> int:
        return len(self._store)

    def __contains__(self, key: object) -> bool:
        # Presence only; does not check or evict expired entries.
        return key in self._store


class WeatherCache:
    """
    Current conditions + forecast per city, keyed by cityId.

    The unit system is not part of the key. A unit change does not
    invalidate an entry; callers that switch units must fetch again and
    overwrite the entry themselves.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_WEATHER_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self._cache: TTLCache[str, CityWeather] = TTLCache(ttl_seconds, clock=clock)

    def get_weather(self, city_id: str) -> CityWeather | None:
        weather = self._cache.get(city_id)
        logger.debug("Weather cache %s: %s", "hit" if weather is not None else "miss", city_id)
        return weather

    def set_weather(
        self,
        city_id: str,
        current: CurrentConditions,
        forecast: Forecast,
        units: str | None = None,
    ) -> None:
        self._cache.set(city_id, CityWeather(current=current, forecast=forecast, units=units))

    def get_basic_summary(self, city_id: str) -> dict:
        """Temperature range, icon and description for list rows.

        Reads the cache only. Returns an empty dict when nothing fresh is
        cached; list views must not trigger network I/O.
        """
        weather = self.get_weather(city_id)
        if weather is None:
            return {}

        current = weather.current
        summary: dict = {
            "temp": current.temp,
            "temp_min": current.temp_min,
            "temp_max": current.temp_max,
        }
        if current.weather:
            summary["description"] = current.weather[0].description
            summary["icon"] = current.weather[0].icon
        return summary

    def clear(self) -> None:
        self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)
