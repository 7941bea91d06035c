"""OpenDataSoft city search client.

Dataset: geonames-all-cities-with-a-population-1000 (records API v1).
Sorting, filtering and full-text search are all delegated to the provider;
this module only builds the query string and parses the records.
"""

import logging
import re
from dataclasses import dataclass, field

import httpx

from citycast.errors import InvalidParameterError, NotFoundError
from citycast.schemas import CitiesResponse, City, CityPage, CityRecord
from citycast.services.http import fetch_json, parse_payload

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = {"asc", "desc"}
DEFAULT_PAGE_SIZE = 20
LOOKUP_ROWS = 10

# ASCII-only: the id ends up in URLs.
_NON_WORD = re.compile(r"[^\w]", re.ASCII)


def encode_city_id(name: str, record_id: str) -> str:
    """'New York', 'abc123' -> 'new-york-abc123'"""
    return f"{_NON_WORD.sub('-', name.lower())}-{record_id}"


def decode_city_id(city_id: str) -> tuple[str, str]:
    """Split a cityId into (name fragment, record id).

    The record id is the last hyphen-delimited segment, so a record id that
    itself contains hyphens does not survive the round trip.
    """
    name, _, record_id = city_id.rpartition("-")
    return name, record_id


@dataclass(frozen=True)
class SearchParams:
    query: str | None = None
    sort_field: str | None = None
    sort_direction: str = "asc"
    filters: dict[str, str | int | float] = field(default_factory=dict)
    page_size: int = DEFAULT_PAGE_SIZE
    page_offset: int = 0

    def __post_init__(self):
        if self.sort_direction not in SORT_DIRECTIONS:
            raise InvalidParameterError("sort direction", self.sort_direction, SORT_DIRECTIONS)
        if self.page_size < 1:
            raise InvalidParameterError("page size", self.page_size)
        if self.page_offset < 0:
            raise InvalidParameterError("page offset", self.page_offset)

    @property
    def sort(self) -> str | None:
        """Opaque sort token forwarded to the provider: '<field> <asc|desc>'."""
        if not self.sort_field:
            return None
        return f"{self.sort_field} {self.sort_direction}"

    def to_query_params(self, dataset: str) -> list[tuple[str, str]]:
        params = [
            ("dataset", dataset),
            ("rows", str(self.page_size)),
            ("start", str(self.page_offset)),
        ]
        if self.query:
            params.append(("q", self.query))
        if self.sort:
            params.append(("sort", self.sort))
        for name, value in self.filters.items():
            params.append((f"refine.{name}", str(value)))
        return params


def city_from_record(record: CityRecord) -> City:
    fields = record.fields
    longitude, latitude = fields.coordinates
    return City(
        id=encode_city_id(fields.name, record.recordid),
        name=fields.name,
        country=fields.cou_name_en,
        population=fields.population,
        latitude=latitude,
        longitude=longitude,
        timezone=fields.timezone,
        admin1=fields.admin1_name,
        admin2=fields.admin2_name,
        elevation=fields.elevation,
    )


async def search_cities(
    client: httpx.AsyncClient,
    base_url: str,
    dataset: str,
    params: SearchParams,
) -> CityPage:
    """Fetch one page of cities. Raises NetworkError on any remote failure."""
    data = await fetch_json(client, base_url, params.to_query_params(dataset), "cities")
    response = parse_payload(CitiesResponse, data, "cities")
    return CityPage(
        cities=[city_from_record(r) for r in response.records],
        total=response.nhits,
    )


async def get_city_by_id(
    client: httpx.AsyncClient,
    base_url: str,
    dataset: str,
    city_id: str,
) -> City:
    """Resolve a cityId back to a City.

    Searches by the name fragment and picks the record with the matching
    record id, falling back to the best text match.
    """
    name, record_id = decode_city_id(city_id)
    params = [("dataset", dataset), ("q", name), ("rows", str(LOOKUP_ROWS))]
    data = await fetch_json(client, base_url, params, "city")
    response = parse_payload(CitiesResponse, data, "city")

    if not response.records:
        logger.info("No city record for %s", city_id)
        raise NotFoundError(city_id)

    record = next((r for r in response.records if r.recordid == record_id), None)
    if record is None:
        logger.info("Record %s not in results for %r, using first match", record_id, name)
        record = response.records[0]
    return city_from_record(record)
