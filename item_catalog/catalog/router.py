"""
Route definitions for the catalogue API.

Endpoints under /api:
- GET  /items         : paginated listing with optional search
- GET  /items/{id}    : one item
- POST /items         : append an item (id assigned by the server)
- GET  /stats         : item count and average price (cached)
"""

from __future__ import annotations

import logging
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Query

from ..config import Settings
from ..deps import get_app_settings, get_stats_cache, get_store
from ..errors import ItemNotFoundError
from ..models import Item, ItemCreate
from ..storage import RecordStore
from .query import find_item, legacy_limit, query_items
from .schemas import ItemQuery, PaginatedItems, Stats
from .stats import StatsCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/items", response_model=Union[PaginatedItems, List[Item]])
def list_items(
    q: Optional[str] = Query(default=None, description="Search text (name/category/description)"),
    page: Optional[int] = Query(default=None, description="Current page (1-indexed)"),
    page_size: Optional[int] = Query(default=None, alias="pageSize", description="Items per page (max 100)"),
    limit: Optional[int] = Query(default=None, description="Legacy: first N items, no pagination envelope"),
    store: RecordStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
):
    """
    Returns one page of items together with pagination metadata.

    ``page`` and ``pageSize`` are clamped rather than rejected. When the
    legacy mode is enabled and a caller sends only ``limit``, the first
    ``limit`` matching items are returned as a bare array.
    """
    records = store.read_all()

    if settings.legacy_limit_mode and limit is not None and page is None and page_size is None:
        return legacy_limit(records, q, limit)

    params = ItemQuery(
        search=q or "",
        page=page if page is not None else 1,
        page_size=page_size if page_size is not None else settings.default_page_size,
    )
    result = query_items(records, params)
    return PaginatedItems(items=result.items, pagination=result.pagination, search=q or None)


@router.get("/items/{item_id}", response_model=Item)
def get_item(item_id: int, store: RecordStore = Depends(get_store)) -> Item:
    try:
        return find_item(store.read_all(), item_id)
    except ItemNotFoundError:
        raise HTTPException(status_code=404, detail="Item not found")


@router.post("/items", response_model=Item, status_code=201)
def create_item(payload: ItemCreate, store: RecordStore = Depends(get_store)) -> Item:
    # Payload is trusted as-is beyond type coercion.
    return store.create(payload)


@router.get("/stats", response_model=Stats)
def get_stats(cache: StatsCache = Depends(get_stats_cache)) -> Stats:
    snapshot = cache.get()
    return Stats(total=snapshot.total, average_price=snapshot.average_price)
