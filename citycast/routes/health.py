"""Health and readiness check routes."""

from fastapi import APIRouter, Depends, Request

from citycast.routes.deps import get_weather_cache
from citycast.services.cache import WeatherCache

router = APIRouter()


@router.get("/ready")
async def ready(request: Request) -> dict:
    """Lightweight readiness check — no external calls."""
    return {"status": "ok", "service": "citycast-api", "commit": request.app.state.settings.git_sha}


@router.get("/health")
async def health(request: Request, cache: WeatherCache = Depends(get_weather_cache)) -> dict:
    """Configuration and cache status. Does not call the remote APIs."""
    missing = request.app.state.settings.validate()
    return {
        "status": "degraded" if missing else "ok",
        "service": "citycast-api",
        "commit": request.app.state.settings.git_sha,
        "missing_config": missing,
        "weather_cache_entries": len(cache),
    }
