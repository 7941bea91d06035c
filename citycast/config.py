"""Centralized configuration — all env vars in one place."""

import os


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")

        # OpenWeatherMap
        self.openweather_api_key: str | None = os.getenv("OPENWEATHER_API_KEY")
        self.weather_base_url: str = os.getenv(
            "OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"
        )

        # OpenDataSoft city dataset
        self.cities_base_url: str = os.getenv(
            "CITIES_BASE_URL", "https://public.opendatasoft.com/api/records/1.0/search/"
        )
        self.cities_dataset: str = os.getenv(
            "CITIES_DATASET", "geonames-all-cities-with-a-population-1000"
        )

        self.weather_cache_ttl_seconds: float = float(os.getenv("WEATHER_CACHE_TTL_SECONDS", "1800"))
        self.search_page_size: int = int(os.getenv("SEARCH_PAGE_SIZE", "20"))
        self.search_debounce_seconds: float = float(os.getenv("SEARCH_DEBOUNCE_SECONDS", "0.3"))
        self.http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def validate(self) -> list[str]:
        """Return list of missing required env vars for weather lookups."""
        required = ["OPENWEATHER_API_KEY"]
        return [var for var in required if not getattr(self, _attr_for(var))]


settings = Settings()


def _attr_for(env_var: str) -> str:
    """Map env var name to Settings attribute name."""
    mapping = {
        "OPENWEATHER_API_KEY": "openweather_api_key",
    }
    return mapping.get(env_var, env_var.lower())
