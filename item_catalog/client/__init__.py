"""
Async client for browsing the catalogue API.

``FetchCoordinator`` keeps the page/search state a list view needs and
makes sure only the most recent request updates it.
"""

from .coordinator import (  # noqa: F401
    PAGE_SIZE_OPTIONS,
    BrowserState,
    FetchCoordinator,
    FetchError,
    NotFoundFetchError,
    page_window,
)
