"""Weather routes: cache-aside lookups for one city."""

from fastapi import APIRouter, Depends, Query

from citycast.controllers.city_weather import load_city_weather
from citycast.routes.deps import get_fetcher, get_weather_cache
from citycast.schemas import Units
from citycast.services.cache import WeatherCache
from citycast.services.fetcher import Fetcher
from citycast.services.weather import group_daily_forecast

router = APIRouter()


@router.get("/cities/{city_id}/weather")
async def city_weather(
    city_id: str,
    units: Units = Query("metric"),
    refresh: bool = Query(False, description="Bypass the cache read, e.g. after a unit change"),
    fetcher: Fetcher = Depends(get_fetcher),
    cache: WeatherCache = Depends(get_weather_cache),
) -> dict:
    weather, cached = await load_city_weather(fetcher, cache, city_id, units, use_cache=not refresh)
    return {
        "city_id": city_id,
        "units": weather.units or units,
        "cached": cached,
        "current": weather.current.model_dump(mode="json"),
        "forecast": weather.forecast.model_dump(mode="json"),
        "daily": [day.model_dump(mode="json") for day in group_daily_forecast(weather.forecast)],
    }


@router.get("/cities/{city_id}/weather/summary")
async def city_weather_summary(
    city_id: str,
    cache: WeatherCache = Depends(get_weather_cache),
) -> dict:
    """List-row summary from the cache only; empty when nothing fresh is cached."""
    return {"city_id": city_id, "summary": cache.get_basic_summary(city_id)}
