"""FastAPI application entry point for the city weather API."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from citycast.config import Settings, settings as default_settings
from citycast.errors import register_error_handlers
from citycast.services.cache import WeatherCache
from citycast.services.fetcher import Fetcher

# Structured logging: JSON for production, human-readable for local
if default_settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    fetcher: Fetcher | None = None,
    weather_cache: WeatherCache | None = None,
) -> FastAPI:
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (weather lookups will fail): %s", ", ".join(missing))
        yield
        await app.state.fetcher.aclose()

    app = FastAPI(title="CityCast API", version="1.0.0", lifespan=lifespan)

    # Shared per-process state: one HTTP client, one weather cache.
    app.state.settings = settings
    app.state.fetcher = fetcher if fetcher is not None else Fetcher(settings)
    if weather_cache is None:
        weather_cache = WeatherCache(settings.weather_cache_ttl_seconds)
    app.state.weather_cache = weather_cache

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from citycast.routes.health import router as health_router
    from citycast.routes.cities import router as cities_router
    from citycast.routes.weather import router as weather_router

    app.include_router(health_router)
    app.include_router(cities_router)
    app.include_router(weather_router)

    return app


app = create_app()
