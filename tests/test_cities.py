"""
Tests for the city search client: cityId encoding, query-string building,
response parsing and lookup by id.

OpenDataSoft is replaced by an httpx.MockTransport.
"""

import httpx
import pytest

from citycast.errors import InvalidParameterError, NetworkError, NotFoundError
from citycast.services.cities import (
    SearchParams,
    decode_city_id,
    encode_city_id,
    get_city_by_id,
    search_cities,
)

from .conftest import make_cities_response, make_city_record

BASE_URL = "https://cities.test/api/records/1.0/search/"
DATASET = "geonames-test"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _recording_handler(payload, status_code: int = 200):
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(status_code, json=payload)

    return handler, requests


# ===================================================================
# cityId encoding
# ===================================================================


class TestCityId:
    def test_encode_simple(self):
        assert encode_city_id("Paris", "abc123") == "paris-abc123"

    def test_encode_replaces_each_non_word_character(self):
        assert encode_city_id("St. John's", "r1") == "st--john-s-r1"

    def test_encode_non_ascii_becomes_hyphen(self):
        assert encode_city_id("São Paulo", "r1") == "s-o-paulo-r1"

    def test_decode_splits_on_last_hyphen(self):
        assert decode_city_id("new-york-abc123") == ("new-york", "abc123")

    def test_decode_without_hyphen(self):
        assert decode_city_id("abc123") == ("", "abc123")

    @pytest.mark.parametrize("name", ["Paris", "New York", "Rio de Janeiro 2"])
    def test_round_trip_alphanumeric_names(self, name):
        decoded_name, record_id = decode_city_id(encode_city_id(name, "f00d42"))
        assert decoded_name == name.lower().replace(" ", "-")
        assert record_id == "f00d42"

    def test_hyphenated_record_id_is_lossy(self):
        name, record_id = decode_city_id(encode_city_id("Paris", "ab-12"))
        assert (name, record_id) == ("paris-ab", "12")


# ===================================================================
# SearchParams
# ===================================================================


class TestSearchParams:
    def test_defaults(self):
        params = SearchParams()
        assert params.to_query_params(DATASET) == [
            ("dataset", DATASET),
            ("rows", "20"),
            ("start", "0"),
        ]

    def test_all_parameters(self):
        params = SearchParams(
            query="Paris",
            sort_field="population",
            sort_direction="desc",
            filters={"cou_name_en": "France", "timezone": "Europe/Paris"},
            page_size=10,
            page_offset=30,
        )
        assert params.to_query_params(DATASET) == [
            ("dataset", DATASET),
            ("rows", "10"),
            ("start", "30"),
            ("q", "Paris"),
            ("sort", "population desc"),
            ("refine.cou_name_en", "France"),
            ("refine.timezone", "Europe/Paris"),
        ]

    def test_no_sort_token_without_field(self):
        assert SearchParams(sort_direction="desc").sort is None

    def test_invalid_direction_rejected(self):
        with pytest.raises(InvalidParameterError):
            SearchParams(sort_field="name", sort_direction="sideways")

    def test_invalid_page_size_rejected(self):
        with pytest.raises(InvalidParameterError):
            SearchParams(page_size=0)


# ===================================================================
# search_cities
# ===================================================================


@pytest.mark.asyncio
async def test_search_paris_builds_query_and_parses_records():
    records = [make_city_record("Paris", f"r{i}") for i in range(3)]
    handler, requests = _recording_handler(make_cities_response(records, nhits=3))

    async with _client(handler) as client:
        page = await search_cities(client, BASE_URL, DATASET, SearchParams(query="Paris", page_size=20))

    params = requests[0].url.params
    assert params["q"] == "Paris"
    assert params["rows"] == "20"
    assert params["start"] == "0"
    assert params["dataset"] == DATASET
    assert page.total == 3
    assert len(page.cities) == 3


@pytest.mark.asyncio
async def test_search_sends_repeated_refine_pairs():
    handler, requests = _recording_handler(make_cities_response([]))
    params = SearchParams(filters={"cou_name_en": "Japan", "timezone": "Asia/Tokyo"})

    async with _client(handler) as client:
        await search_cities(client, BASE_URL, DATASET, params)

    query = requests[0].url.params
    assert query["refine.cou_name_en"] == "Japan"
    assert query["refine.timezone"] == "Asia/Tokyo"


@pytest.mark.asyncio
async def test_record_is_mapped_to_city():
    record = make_city_record(
        "Paris", "abc123", lon=2.35, lat=48.85,
        admin1_name="Île-de-France", admin2_name="Paris", elevation=35,
    )
    handler, _ = _recording_handler(make_cities_response([record], nhits=1))

    async with _client(handler) as client:
        page = await search_cities(client, BASE_URL, DATASET, SearchParams())

    city = page.cities[0]
    assert city.id == "paris-abc123"
    assert city.latitude == 48.85
    assert city.longitude == 2.35
    assert city.country == "France"
    assert city.admin1 == "Île-de-France"
    assert city.elevation == 35


@pytest.mark.asyncio
async def test_non_2xx_raises_network_error():
    handler, _ = _recording_handler({"error": "boom"}, status_code=500)
    async with _client(handler) as client:
        with pytest.raises(NetworkError, match="500"):
            await search_cities(client, BASE_URL, DATASET, SearchParams())


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    async with _client(handler) as client:
        with pytest.raises(NetworkError):
            await search_cities(client, BASE_URL, DATASET, SearchParams())


@pytest.mark.asyncio
async def test_schema_mismatch_raises_network_error():
    handler, _ = _recording_handler({"records": [{"recordid": "x", "fields": {}}], "nhits": 1})
    async with _client(handler) as client:
        with pytest.raises(NetworkError, match="unexpected response shape"):
            await search_cities(client, BASE_URL, DATASET, SearchParams())


@pytest.mark.asyncio
async def test_non_json_body_raises_network_error():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    async with _client(handler) as client:
        with pytest.raises(NetworkError):
            await search_cities(client, BASE_URL, DATASET, SearchParams())


# ===================================================================
# get_city_by_id
# ===================================================================


@pytest.mark.asyncio
async def test_lookup_picks_matching_record_id():
    records = [make_city_record("Paris", "other"), make_city_record("Paris", "abc123", population=5)]
    handler, requests = _recording_handler(make_cities_response(records))

    async with _client(handler) as client:
        city = await get_city_by_id(client, BASE_URL, DATASET, "paris-abc123")

    assert requests[0].url.params["q"] == "paris"
    assert requests[0].url.params["rows"] == "10"
    assert city.id == "paris-abc123"
    assert city.population == 5


@pytest.mark.asyncio
async def test_lookup_falls_back_to_first_record():
    records = [make_city_record("Paris", "first"), make_city_record("Paris", "second")]
    handler, _ = _recording_handler(make_cities_response(records))

    async with _client(handler) as client:
        city = await get_city_by_id(client, BASE_URL, DATASET, "paris-missing")

    assert city.id == "paris-first"


@pytest.mark.asyncio
async def test_lookup_with_no_records_raises_not_found():
    handler, _ = _recording_handler(make_cities_response([]))
    async with _client(handler) as client:
        with pytest.raises(NotFoundError):
            await get_city_by_id(client, BASE_URL, DATASET, "atlantis-1")
