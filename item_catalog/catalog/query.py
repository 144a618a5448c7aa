"""
Search and pagination over the in-memory record collection.

The functions here take the full list of records read from the store
and never touch disk themselves. Searching is a case-insensitive
substring match on ``name``, ``category`` and ``description``; fields
that are missing or ``None`` simply do not match. Pagination happens
after filtering, so the metadata describes the filtered collection
while ``total_items_before_filter`` keeps the unfiltered size.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..errors import ItemNotFoundError
from ..models import Item
from .schemas import ItemQuery, Pagination

MAX_PAGE_SIZE = 100

SEARCH_FIELDS = ("name", "category", "description")


@dataclass(frozen=True)
class QueryResult:
    items: List[Item]
    pagination: Pagination


def _norm(s: Optional[str]) -> str:
    """Normalize a string for case-insensitive comparison.

    ``None`` and non-string values normalise to an empty string so that
    records with missing fields can be searched without raising.
    """
    if not isinstance(s, str):
        return ""
    return s.strip().lower()


def matches(item: Item, term: str) -> bool:
    """Return True when ``term`` occurs in one of the searchable fields.

    ``term`` is expected to be normalised already (see ``_norm``).
    """
    for field in SEARCH_FIELDS:
        value = getattr(item, field, None)
        if isinstance(value, str) and term in value.lower():
            return True
    return False


def filter_items(records: Sequence[Item], search: Optional[str]) -> List[Item]:
    term = _norm(search)
    if not term:
        return list(records)
    return [item for item in records if matches(item, term)]


def clamp_page(page: int) -> int:
    return max(1, int(page))


def clamp_page_size(page_size: int) -> int:
    return max(1, min(MAX_PAGE_SIZE, int(page_size)))


def query_items(records: Sequence[Item], params: ItemQuery) -> QueryResult:
    """Filter ``records`` by the search term and cut out the requested page.

    Parameters
    ----------
    records : Sequence[Item]
        The whole collection, as returned by ``RecordStore.read_all``.
    params : ItemQuery
        Search term and page window. Out-of-range values are clamped,
        and a page past the end yields an empty ``items`` list with
        valid metadata rather than an error.

    Returns
    -------
    QueryResult
        The items of the page plus pagination metadata.
    """
    filtered = filter_items(records, params.search)

    page = clamp_page(params.page)
    page_size = clamp_page_size(params.page_size)

    total = len(filtered)
    total_pages = -(-total // page_size)  # ceil
    start = (page - 1) * page_size
    end = start + page_size

    pagination = Pagination(
        page=page,
        page_size=page_size,
        total_items=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
        total_items_before_filter=len(records),
    )
    return QueryResult(items=filtered[start:end], pagination=pagination)


def legacy_limit(records: Sequence[Item], search: Optional[str], limit: int) -> List[Item]:
    """First ``limit`` matching items as a bare list, for pre-pagination clients."""
    return filter_items(records, search)[: max(0, int(limit))]


def find_item(records: Sequence[Item], item_id: int) -> Item:
    """Linear scan for ``item_id``.

    Raises
    ------
    ItemNotFoundError
        When no record has that id.
    """
    for item in records:
        if item.id == item_id:
            return item
    raise ItemNotFoundError(item_id)
