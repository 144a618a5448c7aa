"""
Catalog package for the item catalogue API.

This package holds the pieces behind the REST endpoints: the query
engine that searches and paginates the record collection, the stats
cache with its TTL and change-driven invalidation, the schemas shared
with clients and the route definitions themselves. The records come
from ``item_catalog.storage``; swapping the JSON file for a database
only means providing another object with ``read_all``/``replace_all``.
"""

from .router import router as catalog_router  # noqa: F401
