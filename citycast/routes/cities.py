"""City search and lookup routes."""

from fastapi import APIRouter, Depends, Query

from citycast.errors import InvalidParameterError
from citycast.routes.deps import get_fetcher
from citycast.services.cities import DEFAULT_PAGE_SIZE, SearchParams
from citycast.services.fetcher import Fetcher

router = APIRouter()


def _parse_filters(raw: list[str]) -> dict[str, str]:
    """'country:France' pairs -> {'country': 'France'}. Later pairs win."""
    filters = {}
    for item in raw:
        name, sep, value = item.partition(":")
        if not sep or not name:
            raise InvalidParameterError("filter", item)
        filters[name] = value
    return filters


@router.get("/cities")
async def search_cities(
    q: str | None = Query(None, max_length=200),
    sort: str | None = Query(None, description="Field to sort by, e.g. population"),
    direction: str = Query("asc"),
    rows: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=100),
    start: int = Query(0, ge=0),
    filter: list[str] | None = Query(None, description="field:value, repeatable"),
    fetcher: Fetcher = Depends(get_fetcher),
) -> dict:
    params = SearchParams(
        query=q or None,
        sort_field=sort,
        sort_direction=direction,
        filters=_parse_filters(filter or []),
        page_size=rows,
        page_offset=start,
    )
    page = await fetcher.search_cities(params)
    return {
        "items": [city.model_dump(mode="json") for city in page.cities],
        "total": page.total,
        "exhausted": start + len(page.cities) >= page.total,
    }


@router.get("/cities/{city_id}")
async def get_city(city_id: str, fetcher: Fetcher = Depends(get_fetcher)) -> dict:
    city = await fetcher.get_city(city_id)
    return city.model_dump(mode="json")
