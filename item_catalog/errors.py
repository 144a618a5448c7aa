# item_catalog/errors.py
"""Exceptions shared by the store, the query engine and the HTTP layer."""


class CatalogError(Exception):
    """Base class for catalogue errors."""


class ItemNotFoundError(CatalogError):
    """Raised when no record carries the requested id."""

    def __init__(self, item_id: int):
        super().__init__(f"Item {item_id} not found")
        self.item_id = item_id


class StoreUnavailableError(CatalogError):
    """The backing JSON file is missing, unreadable or malformed."""
