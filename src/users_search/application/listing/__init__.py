"""Application listing – filtered, sorted, paginated identity listing."""
from users_search.application.listing.ports import MetadataStore, SearchEngine, SearchHit, SearchPage
from users_search.application.listing.request import ListRequest, ListResult, UserRecord
from users_search.application.listing.service import ListService
from users_search.application.listing.sorting import SortedWindow, sort_key

__all__ = [
    "ListRequest",
    "ListResult",
    "ListService",
    "MetadataStore",
    "SearchEngine",
    "SearchHit",
    "SearchPage",
    "SortedWindow",
    "UserRecord",
    "sort_key",
]
