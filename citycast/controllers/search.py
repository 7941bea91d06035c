"""City search controller: query, sort, filter and infinite-scroll pagination.

Every parameter change issues one fetch. Fetches are tagged with a
generation number; a response is applied only if no later fetch has been
issued since, so a slow earlier response can never overwrite a newer one.

Reset fetch (offset 0, after query/sort/filter change): replaces items.
Continuation fetch (offset > 0, after load_more): appends items.

The mutators are plain methods meant to be called from UI event handlers
running on the event loop. They return the asyncio.Task they scheduled
(or None when the call was a no-op) so callers can await completion.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from citycast.config import settings
from citycast.errors import CityCastError
from citycast.schemas import City, CityPage
from citycast.services.cities import SearchParams
from citycast.services.fetcher import Fetcher

logger = logging.getLogger(__name__)


@dataclass
class SearchPageState:
    items: list[City] = field(default_factory=list)
    total_count: int = 0
    exhausted: bool = False
    loading: bool = False
    error: str | None = None

    @property
    def has_more(self) -> bool:
        return not self.exhausted

    def apply_page(self, page: CityPage, reset: bool) -> None:
        self.items = list(page.cities) if reset else [*self.items, *page.cities]
        self.total_count = page.total
        self.exhausted = len(self.items) >= page.total
        self.loading = False
        self.error = None


class CitySearchController:
    def __init__(
        self,
        fetcher: Fetcher,
        page_size: int | None = None,
        debounce_seconds: float | None = None,
        initial_params: SearchParams | None = None,
        on_change: Callable[[SearchPageState], None] | None = None,
        on_error: Callable[[str], None] | None = None,
    ):
        self._fetcher = fetcher
        self.debounce_seconds = (
            settings.search_debounce_seconds if debounce_seconds is None else debounce_seconds
        )
        if initial_params is not None:
            self.params = replace(initial_params, page_offset=0)
        else:
            self.params = SearchParams(page_size=page_size or settings.search_page_size)
        self.state = SearchPageState()
        self.on_change = on_change
        self.on_error = on_error

        self._generation = 0
        self._started = False
        self._pending_query: asyncio.Task | None = None
        self._fetches: set[asyncio.Task] = set()

    # -- parameter changes ---------------------------------------------------

    def start(self) -> asyncio.Task:
        """Initial page load."""
        return self._issue(replace(self.params, page_offset=0))

    def set_query(self, text: str) -> asyncio.Task:
        """Debounced: only the last call within the quiet period takes effect."""
        if self._pending_query is not None:
            self._pending_query.cancel()
        self._pending_query = asyncio.get_running_loop().create_task(self._debounced_query(text))
        return self._pending_query

    async def _debounced_query(self, text: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        self._pending_query = None
        self._update(query=text or None)

    def set_sort(self, field: str, direction: str = "asc") -> asyncio.Task | None:
        return self._update(sort_field=field, sort_direction=direction)

    def set_filter(self, field: str, value: str | int | float) -> asyncio.Task | None:
        return self._update(filters={**self.params.filters, field: value})

    def clear_filter(self, field: str) -> asyncio.Task | None:
        filters = dict(self.params.filters)
        filters.pop(field, None)
        return self._update(filters=filters)

    def clear_all_filters(self) -> asyncio.Task:
        """Back to defaults: no query, no sort, no filters. Page size is kept."""
        self._cancel_pending_query()
        return self._issue(SearchParams(page_size=self.params.page_size))

    # -- pagination ------------------------------------------------------------

    def load_more(self) -> asyncio.Task | None:
        if not self._started:
            # Nothing fetched yet: the first page is a reset fetch at offset 0.
            return self.start()
        # A failed fetch blocks further pages until retry(), so a page is never skipped.
        if self.state.loading or self.state.exhausted or self.state.error:
            return None
        next_offset = self.params.page_offset + self.params.page_size
        return self._issue(replace(self.params, page_offset=next_offset))

    def on_viewport_signal(self, visible: bool) -> asyncio.Task | None:
        """The end-of-list sentinel came into (or left) view."""
        if not visible:
            return None
        return self.load_more()

    def retry(self) -> asyncio.Task:
        """Cold re-fetch of the current parameters."""
        return self._issue(self.params)

    # -- lifecycle -------------------------------------------------------------

    async def wait_idle(self) -> None:
        """Wait for the pending debounce and all outstanding fetches."""
        while True:
            pending = [t for t in (self._pending_query, *self._fetches) if t is not None and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        self._cancel_pending_query()
        for task in list(self._fetches):
            task.cancel()

    # -- internals -------------------------------------------------------------

    def _cancel_pending_query(self) -> None:
        if self._pending_query is not None:
            self._pending_query.cancel()
            self._pending_query = None

    def _update(self, **changes) -> asyncio.Task | None:
        try:
            params = replace(self.params, page_offset=0, **changes)
        except CityCastError as e:
            # Rejected before anything was issued; an in-flight fetch keeps its loading flag.
            self.state.error = str(e)
            self._notify()
            if self.on_error:
                self.on_error(self.state.error)
            return None
        return self._issue(params)

    def _issue(self, params: SearchParams) -> asyncio.Task:
        self._started = True
        self.params = params
        self._generation += 1
        self.state.loading = True
        self.state.error = None
        self._notify()

        task = asyncio.get_running_loop().create_task(self._fetch(params, self._generation))
        self._fetches.add(task)
        task.add_done_callback(self._fetches.discard)
        return task

    async def _fetch(self, params: SearchParams, generation: int) -> None:
        logger.info(
            "Fetching cities q=%r sort=%r filters=%s rows=%d start=%d (generation %d)",
            params.query,
            params.sort,
            params.filters,
            params.page_size,
            params.page_offset,
            generation,
        )
        try:
            page = await self._fetcher.search_cities(params)
        except CityCastError as e:
            error = str(e)
        except Exception:
            logger.exception("City search failed")
            error = "Failed to load cities"
        else:
            if self._is_stale(generation):
                return
            self.state.apply_page(page, reset=params.page_offset == 0)
            self._notify()
            return

        if self._is_stale(generation):
            return
        self._fail(error)

    def _is_stale(self, generation: int) -> bool:
        if generation != self._generation:
            logger.debug("Discarding city search response (generation %d, current %d)",
                         generation, self._generation)
            return True
        return False

    def _fail(self, error: str) -> None:
        self.state.loading = False
        self.state.error = error
        self._notify()
        if self.on_error:
            self.on_error(error)

    def _notify(self) -> None:
        if self.on_change:
            self.on_change(self.state)
