"""Response schemas for the two remote APIs and the domain objects built from them.

Raw payloads are validated here, at the boundary. Anything that does not
match raises pydantic's ValidationError, which the services turn into
NetworkError.

OpenDataSoft record (cities):
    {"recordid": "...", "fields": {"name": ..., "cou_name_en": ...,
     "population": ..., "coordinates": [lon, lat], "timezone": ...}}

OpenWeatherMap /weather (current):
    {"main": {...}, "wind": {...}, "clouds": {"all": ..}, "sys": {...},
     "weather": [...], "visibility": .., "dt": ..}
"""

import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Units = Literal["metric", "imperial"]
UNIT_SYSTEMS = {"metric", "imperial"}


# ---------------------------------------------------------------------------
# Cities
# ---------------------------------------------------------------------------

class City(BaseModel):
    """A city as shown in list rows and detail pages. Immutable."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    country: str
    population: int
    latitude: float
    longitude: float
    timezone: str
    admin1: str | None = None
    admin2: str | None = None
    elevation: float | None = None


class CityFields(BaseModel):
    name: str
    cou_name_en: str = ""
    population: int = 0
    coordinates: tuple[float, float]  # [longitude, latitude]
    timezone: str = ""
    admin1_name: str | None = None
    admin2_name: str | None = None
    elevation: float | None = None


class CityRecord(BaseModel):
    recordid: str
    fields: CityFields


class CitiesResponse(BaseModel):
    records: list[CityRecord] = Field(default_factory=list)
    nhits: int


class CityPage(BaseModel):
    """One page of city search results plus the provider's reported total."""

    cities: list[City]
    total: int


# ---------------------------------------------------------------------------
# Weather
# ---------------------------------------------------------------------------

class WeatherCondition(BaseModel):
    id: int
    main: str = ""
    description: str = ""
    icon: str = ""


class CurrentConditions(BaseModel):
    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    pressure: float
    humidity: float
    wind_speed: float
    wind_deg: float
    clouds: float
    visibility: float | None = None
    weather: list[WeatherCondition]
    sunrise: int
    sunset: int
    dt: int


class ForecastEntry(BaseModel):
    """One 3-hour forecast slot."""

    dt: int
    temp: float
    temp_min: float
    temp_max: float
    weather: list[WeatherCondition]
    pop: float = 0.0  # probability of precipitation, 0..1
    pod: str = ""  # part of day: "d" or "n"

    @property
    def is_daytime(self) -> bool:
        return self.pod == "d"


class Forecast(BaseModel):
    entries: list[ForecastEntry]
    city_name: str | None = None
    country: str | None = None
    timezone_offset: int = 0  # seconds east of UTC


class CityWeather(BaseModel):
    """The value stored in the weather cache for one city."""

    current: CurrentConditions
    forecast: Forecast
    # Unit system the entry was fetched in; None when unknown.
    units: Units | None = None


class DailyForecast(BaseModel):
    date: datetime.date
    temp_min: float
    temp_max: float
    pop: float
    icon: str
    description: str


# Raw OpenWeatherMap shapes --------------------------------------------------

class _OwmMain(BaseModel):
    temp: float
    feels_like: float
    temp_min: float
    temp_max: float
    pressure: float
    humidity: float


class _OwmWind(BaseModel):
    speed: float
    deg: float = 0.0


class _OwmClouds(BaseModel):
    all: float


class _OwmSys(BaseModel):
    sunrise: int
    sunset: int


class OwmCurrentResponse(BaseModel):
    main: _OwmMain
    wind: _OwmWind
    clouds: _OwmClouds
    sys: _OwmSys
    weather: list[WeatherCondition]
    visibility: float | None = None
    dt: int

    def to_current(self) -> CurrentConditions:
        return CurrentConditions(
            temp=self.main.temp,
            feels_like=self.main.feels_like,
            temp_min=self.main.temp_min,
            temp_max=self.main.temp_max,
            pressure=self.main.pressure,
            humidity=self.main.humidity,
            wind_speed=self.wind.speed,
            wind_deg=self.wind.deg,
            clouds=self.clouds.all,
            visibility=self.visibility,
            weather=self.weather,
            sunrise=self.sys.sunrise,
            sunset=self.sys.sunset,
            dt=self.dt,
        )


class _OwmForecastMain(BaseModel):
    temp: float
    temp_min: float
    temp_max: float


class _OwmPartOfDay(BaseModel):
    pod: str = ""


class _OwmForecastItem(BaseModel):
    dt: int
    main: _OwmForecastMain
    weather: list[WeatherCondition] = Field(default_factory=list)
    pop: float = 0.0
    sys: _OwmPartOfDay = Field(default_factory=_OwmPartOfDay)


class _OwmForecastCity(BaseModel):
    name: str | None = None
    country: str | None = None
    timezone: int = 0


class OwmForecastResponse(BaseModel):
    items: list[_OwmForecastItem] = Field(alias="list")
    city: _OwmForecastCity = Field(default_factory=_OwmForecastCity)

    def to_forecast(self) -> Forecast:
        return Forecast(
            entries=[
                ForecastEntry(
                    dt=item.dt,
                    temp=item.main.temp,
                    temp_min=item.main.temp_min,
                    temp_max=item.main.temp_max,
                    weather=item.weather,
                    pop=item.pop,
                    pod=item.sys.pod,
                )
                for item in self.items
            ],
            city_name=self.city.name,
            country=self.city.country,
            timezone_offset=self.city.timezone,
        )
