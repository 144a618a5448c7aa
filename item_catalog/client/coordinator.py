"""
Client-side state for browsing the catalogue.

``FetchCoordinator`` owns the current page, page size and search term,
turns each user action into one ``GET /api/items`` request and applies
the response to its ``BrowserState``. Responses can come back in any
order, so every dispatch mints a new token and cancels the request it
supersedes. Only a response that still holds the current token may
change state; anything older is dropped without raising.

Example
-------
    async with httpx.AsyncClient(base_url="http://127.0.0.1:8000") as http:
        browser = FetchCoordinator(http)
        await browser.fetch_items()
        await browser.search_items("desk")
        await browser.change_page(2)
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import httpx

from ..catalog.schemas import ItemQuery, PaginatedItems, Pagination, Stats
from ..models import Item

logger = logging.getLogger(__name__)

ITEMS_PATH = "/api/items"
STATS_PATH = "/api/stats"

PAGE_SIZE_OPTIONS = (5, 10, 20, 50)
DEFAULT_PAGE_SIZE = 10


class FetchError(Exception):
    """A request failed for a reason other than being superseded."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundFetchError(FetchError):
    """The server answered 404."""


def _empty_pagination(page_size: int = DEFAULT_PAGE_SIZE) -> Pagination:
    return Pagination(
        page=1,
        page_size=page_size,
        total_items=0,
        total_pages=0,
        has_next=False,
        has_prev=False,
        total_items_before_filter=0,
    )


@dataclass(frozen=True)
class BrowserState:
    """What a renderer shows: one page of items and how it was obtained."""

    items: List[Item] = field(default_factory=list)
    pagination: Pagination = field(default_factory=_empty_pagination)
    search_query: str = ""

    @property
    def query(self) -> ItemQuery:
        return ItemQuery(
            search=self.search_query,
            page=self.pagination.page,
            page_size=self.pagination.page_size,
        )


StateListener = Callable[[BrowserState], None]


def page_window(pagination: Pagination, radius: int = 2) -> List[int]:
    """Page numbers a pager shows: the current page and ``radius`` on each side."""
    if pagination.total_pages <= 0:
        return []
    start = max(1, pagination.page - radius)
    end = min(pagination.total_pages, pagination.page + radius)
    return list(range(start, end + 1))


def _raise_for_status(response: httpx.Response) -> None:
    if response.is_success:
        return
    if response.status_code == 404:
        raise NotFoundFetchError("Not found", status_code=404)
    raise FetchError(f"HTTP error! status: {response.status_code}", status_code=response.status_code)


class FetchCoordinator:
    """Serialises catalogue queries so that only the latest one lands.

    Parameters
    ----------
    client : httpx.AsyncClient
        Client pointed at the API (``base_url`` set). The coordinator
        does not close it.
    page_size : int
        Page size used until the user picks another one.
    """

    def __init__(self, client: httpx.AsyncClient, page_size: int = DEFAULT_PAGE_SIZE):
        self._client = client
        self._state = BrowserState(pagination=_empty_pagination(page_size))
        self._loading = False
        self._tokens = itertools.count(1)
        self._token = 0
        self._inflight: Optional[asyncio.Task] = None
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> BrowserState:
        return self._state

    @property
    def query(self) -> ItemQuery:
        return self._state.query

    @property
    def loading(self) -> bool:
        return self._loading

    def subscribe(self, listener: StateListener) -> None:
        """Call ``listener(state)`` every time a response is applied."""
        self._listeners.append(listener)

    # -- user operations ---------------------------------------------------

    async def fetch_items(self, query: Optional[ItemQuery] = None) -> Optional[BrowserState]:
        """Load ``query``, or reload the current one when omitted."""
        return await self._dispatch(query if query is not None else self.query)

    async def search_items(self, term: str) -> Optional[BrowserState]:
        current = self.query
        return await self._dispatch(ItemQuery(search=term, page=1, page_size=current.page_size))

    async def change_page(self, page: int) -> Optional[BrowserState]:
        current = self.query
        return await self._dispatch(
            ItemQuery(search=current.search, page=page, page_size=current.page_size)
        )

    async def change_page_size(self, page_size: int) -> Optional[BrowserState]:
        current = self.query
        return await self._dispatch(ItemQuery(search=current.search, page=1, page_size=page_size))

    # -- reads that leave browser state alone ----------------------------

    async def get_item(self, item_id: int) -> Item:
        response = await self._send(f"{ITEMS_PATH}/{item_id}")
        return Item.model_validate(response.json())

    async def get_stats(self) -> Stats:
        response = await self._send(STATS_PATH)
        return Stats.model_validate(response.json())

    async def close(self) -> None:
        """Cancel whatever is in flight; later responses are ignored."""
        self._token = next(self._tokens)
        self._cancel_inflight()
        self._loading = False

    # -- internals ---------------------------------------------------------

    def _cancel_inflight(self) -> None:
        if self._inflight is not None and not self._inflight.done():
            logger.debug("Cancelling superseded request")
            self._inflight.cancel()
        self._inflight = None

    async def _send(self, path: str, params: Optional[dict] = None) -> httpx.Response:
        try:
            response = await self._client.get(path, params=params)
        except httpx.TransportError as exc:
            raise FetchError(f"Network error: {exc}") from exc
        _raise_for_status(response)
        return response

    async def _request(self, query: ItemQuery) -> PaginatedItems:
        params = {"page": str(query.page), "pageSize": str(query.page_size)}
        if query.search:
            params["q"] = query.search
        response = await self._send(ITEMS_PATH, params=params)
        return PaginatedItems.model_validate(response.json())

    async def _dispatch(self, query: ItemQuery) -> Optional[BrowserState]:
        self._cancel_inflight()
        token = self._token = next(self._tokens)
        self._loading = True
        task = self._inflight = asyncio.create_task(self._request(query))
        logger.debug("Dispatched request %d: %s", token, query)
        try:
            try:
                payload = await task
            except asyncio.CancelledError:
                if token != self._token and task.cancelled():
                    return None
                raise
            except Exception:
                if token != self._token:
                    logger.debug("Dropping error from superseded request %d", token)
                    return None
                raise
            if token != self._token:
                logger.debug("Dropping stale response for request %d", token)
                return None
            return self._apply(payload)
        finally:
            if token == self._token:
                self._loading = False
                self._inflight = None

    def _apply(self, payload: PaginatedItems) -> BrowserState:
        state = BrowserState(
            items=list(payload.items),
            pagination=payload.pagination,
            search_query=payload.search or "",
        )
        self._state = state
        for listener in list(self._listeners):
            listener(state)
        return state
