"""
Pydantic schema definitions for the catalog module.

``ItemQuery`` is what a listing request asks for, ``Pagination`` is the
metadata computed for it and ``PaginatedItems`` bundles one page of
items with that metadata. Field names are snake_case in Python and
camelCase on the wire (``pageSize``, ``totalItems``, ``hasNext`` ...),
which is what existing front-ends expect.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ..models import Item


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ItemQuery(_WireModel):
    """Search term and page window requested by a client.

    Values are taken as given; the query engine clamps ``page`` to at
    least 1 and ``page_size`` to the range 1..100.
    """

    search: str = ""
    page: int = 1
    page_size: int = 10


class Pagination(_WireModel):
    page: int
    page_size: int
    # Count after the search filter; ``total_items_before_filter`` is the
    # size of the whole collection.
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool
    total_items_before_filter: int


class PaginatedItems(_WireModel):
    """A wrapper for paginated results returned from the ``/items`` endpoint."""

    items: List[Item]
    pagination: Pagination
    search: Optional[str] = None


class Stats(_WireModel):
    total: int
    average_price: float
