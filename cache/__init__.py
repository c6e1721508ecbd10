"""In-memory query cache with background refresh."""

from cache.query_cache import QueryCache, QueryObserver, QueryResult, QueryStatus

__all__ = [
    "QueryCache",
    "QueryObserver",
    "QueryResult",
    "QueryStatus",
]
