"""OpenWeatherMap client: current conditions and 5-day / 3-hour forecast.

Both endpoints take lat, lon, units (metric|imperial) and appid. The
combined fetch issues them concurrently.
"""

import asyncio
import datetime
import logging

import httpx
import pandas as pd

from citycast.errors import CityCastError, InvalidParameterError
from citycast.schemas import (
    UNIT_SYSTEMS,
    CityWeather,
    CurrentConditions,
    DailyForecast,
    Forecast,
    OwmCurrentResponse,
    OwmForecastResponse,
)
from citycast.services.http import fetch_json, parse_payload

logger = logging.getLogger(__name__)

ICON_BASE_URL = "https://openweathermap.org/img/wn"
FORECAST_DAYS = 5

_FALLBACK_ICON = "01d"
_FALLBACK_DESCRIPTION = "unknown"


def _weather_params(lat: float, lon: float, units: str, api_key: str | None) -> dict:
    if units not in UNIT_SYSTEMS:
        raise InvalidParameterError("units", units, UNIT_SYSTEMS)
    if not api_key:
        raise CityCastError("Weather service is not configured", status_code=503)
    return {"lat": lat, "lon": lon, "units": units, "appid": api_key}


async def get_current_weather(
    client: httpx.AsyncClient,
    base_url: str,
    api_key: str | None,
    lat: float,
    lon: float,
    units: str = "metric",
) -> CurrentConditions:
    params = _weather_params(lat, lon, units, api_key)
    data = await fetch_json(client, f"{base_url}/weather", params, "current weather")
    return parse_payload(OwmCurrentResponse, data, "current weather").to_current()


async def get_forecast(
    client: httpx.AsyncClient,
    base_url: str,
    api_key: str | None,
    lat: float,
    lon: float,
    units: str = "metric",
) -> Forecast:
    params = _weather_params(lat, lon, units, api_key)
    data = await fetch_json(client, f"{base_url}/forecast", params, "weather forecast")
    return parse_payload(OwmForecastResponse, data, "weather forecast").to_forecast()


async def get_city_weather(
    client: httpx.AsyncClient,
    base_url: str,
    api_key: str | None,
    lat: float,
    lon: float,
    units: str = "metric",
) -> CityWeather:
    """Current conditions and forecast for one coordinate pair."""
    logger.info("Fetching weather for (%.4f, %.4f) in %s units", lat, lon, units)
    current, forecast = await asyncio.gather(
        get_current_weather(client, base_url, api_key, lat, lon, units),
        get_forecast(client, base_url, api_key, lat, lon, units),
    )
    return CityWeather(current=current, forecast=forecast)


def weather_icon_url(icon: str, size: int = 2) -> str:
    if size not in (2, 4):
        raise InvalidParameterError("icon size", size, {"2", "4"})
    return f"{ICON_BASE_URL}/{icon}@{size}x.png"


def group_daily_forecast(
    forecast: Forecast,
    today: datetime.date | None = None,
    days: int = FORECAST_DAYS,
) -> list[DailyForecast]:
    """Collapse 3-hour slots into one row per calendar day.

    Days are taken in the city's local time (forecast timezone offset).
    The current day is skipped. Per day: lowest temp_min, highest temp_max,
    highest precipitation probability, and the condition of the last
    daytime slot (first slot if the day has no daytime slot).
    """
    if not forecast.entries:
        return []

    offset = pd.Timedelta(seconds=forecast.timezone_offset)
    df = pd.DataFrame(
        {
            "dt": [e.dt for e in forecast.entries],
            "temp_min": [e.temp_min for e in forecast.entries],
            "temp_max": [e.temp_max for e in forecast.entries],
            "pop": [e.pop for e in forecast.entries],
            "daytime": [e.is_daytime for e in forecast.entries],
            "icon": [e.weather[0].icon if e.weather else None for e in forecast.entries],
            "description": [
                e.weather[0].description if e.weather else None for e in forecast.entries
            ],
        }
    )
    df["day"] = (pd.to_datetime(df["dt"], unit="s", utc=True) + offset).dt.date

    if today is None:
        today = (pd.Timestamp.now(tz="UTC") + offset).date()
    df = df[df["day"] != today]

    daily: list[DailyForecast] = []
    for day, group in df.sort_values("dt").groupby("day", sort=True):
        icon, description = _pick_condition(group)
        daily.append(
            DailyForecast(
                date=day,
                temp_min=float(group["temp_min"].min()),
                temp_max=float(group["temp_max"].max()),
                pop=float(group["pop"].max()),
                icon=icon,
                description=description,
            )
        )
        if len(daily) == days:
            break
    return daily


def _pick_condition(group: pd.DataFrame) -> tuple[str, str]:
    described = group[group["icon"].notna()]
    daytime = described[described["daytime"]]
    if not daytime.empty:
        row = daytime.iloc[-1]
    elif not described.empty:
        row = described.iloc[0]
    else:
        return _FALLBACK_ICON, _FALLBACK_DESCRIPTION
    return row["icon"] or _FALLBACK_ICON, row["description"] or _FALLBACK_DESCRIPTION
