"""
Shared fixtures and payload factories.

No test touches the network: remote APIs are replaced either by an
httpx.MockTransport or by an AsyncMock Fetcher.
"""

import os
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Ensure test env vars before any app imports
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("OPENWEATHER_API_KEY", "test-key")

from citycast.schemas import City, CityPage, CityWeather, CurrentConditions, Forecast, ForecastEntry, WeatherCondition  # noqa: E402
from citycast.services.cache import WeatherCache  # noqa: E402
from citycast.services.cities import encode_city_id  # noqa: E402
from citycast.services.fetcher import Fetcher  # noqa: E402


def ts(year: int, month: int, day: int, hour: int = 0) -> int:
    """Unix timestamp for a UTC wall-clock time."""
    return int(datetime(year, month, day, hour, tzinfo=timezone.utc).timestamp())


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Raw remote payloads
# ---------------------------------------------------------------------------

def make_city_record(
    name: str = "Paris",
    recordid: str = "abc123",
    country: str = "France",
    population: int = 2_138_551,
    lon: float = 2.3488,
    lat: float = 48.8534,
    tz: str = "Europe/Paris",
    **extra: Any,
) -> dict[str, Any]:
    fields = {
        "name": name,
        "cou_name_en": country,
        "population": population,
        "coordinates": [lon, lat],
        "timezone": tz,
    }
    fields.update(extra)
    return {"recordid": recordid, "fields": fields}


def make_cities_response(records: list[dict], nhits: int | None = None) -> dict[str, Any]:
    return {"records": records, "nhits": len(records) if nhits is None else nhits}


def make_owm_current(
    temp: float = 18.5,
    condition_id: int = 800,
    description: str = "clear sky",
    icon: str = "01d",
) -> dict[str, Any]:
    """Factory for OpenWeatherMap /weather response dicts."""
    return {
        "weather": [{"id": condition_id, "main": "Clear", "description": description, "icon": icon}],
        "main": {
            "temp": temp,
            "feels_like": temp - 1,
            "temp_min": temp - 3,
            "temp_max": temp + 2,
            "pressure": 1015,
            "humidity": 60,
        },
        "wind": {"speed": 3.6, "deg": 220},
        "clouds": {"all": 5},
        "visibility": 10000,
        "sys": {"sunrise": 1_700_000_000, "sunset": 1_700_040_000},
        "dt": 1_700_020_000,
        "name": "Paris",
    }


def make_owm_forecast_item(
    dt: int,
    temp_min: float = 10.0,
    temp_max: float = 15.0,
    pod: str = "d",
    pop: float = 0.0,
    icon: str = "01d",
    description: str = "clear sky",
) -> dict[str, Any]:
    return {
        "dt": dt,
        "main": {"temp": (temp_min + temp_max) / 2, "temp_min": temp_min, "temp_max": temp_max},
        "weather": [{"id": 800, "main": "Clear", "description": description, "icon": icon}],
        "pop": pop,
        "sys": {"pod": pod},
    }


def make_owm_forecast(items: list[dict], tz_offset: int = 0) -> dict[str, Any]:
    return {
        "list": items,
        "city": {"name": "Paris", "country": "FR", "timezone": tz_offset},
    }


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------

def make_city(name: str = "Paris", recordid: str = "abc123", **overrides: Any) -> City:
    data = {
        "id": encode_city_id(name, recordid),
        "name": name,
        "country": "France",
        "population": 1000,
        "latitude": 48.85,
        "longitude": 2.35,
        "timezone": "Europe/Paris",
    }
    data.update(overrides)
    return City(**data)


def make_page(names: list[str], total: int) -> CityPage:
    return CityPage(cities=[make_city(n, recordid=f"r{i}") for i, n in enumerate(names)], total=total)


def make_current(temp: float = 18.5, description: str = "clear sky", icon: str = "01d") -> CurrentConditions:
    return CurrentConditions(
        temp=temp,
        feels_like=temp - 1,
        temp_min=temp - 3,
        temp_max=temp + 2,
        pressure=1015,
        humidity=60,
        wind_speed=3.6,
        wind_deg=220,
        clouds=5,
        visibility=10000,
        weather=[WeatherCondition(id=800, main="Clear", description=description, icon=icon)],
        sunrise=1_700_000_000,
        sunset=1_700_040_000,
        dt=1_700_020_000,
    )


def make_forecast(entries: list[ForecastEntry] | None = None, tz_offset: int = 0) -> Forecast:
    return Forecast(entries=entries or [], city_name="Paris", country="FR", timezone_offset=tz_offset)


def make_weather(temp: float = 18.5) -> CityWeather:
    return CityWeather(current=make_current(temp), forecast=make_forecast())


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def weather_cache(clock):
    return WeatherCache(ttl_seconds=30 * 60, clock=clock)


@pytest.fixture
def mock_fetcher():
    """Fetcher stand-in; configure return values per test."""
    fetcher = AsyncMock(spec=Fetcher)
    fetcher.search_cities = AsyncMock(return_value=make_page([], total=0))
    fetcher.get_city = AsyncMock(return_value=make_city())
    fetcher.get_weather = AsyncMock(return_value=make_weather())
    return fetcher
