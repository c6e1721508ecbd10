"""
Keyed in-memory cache with stale-while-revalidate refresh.

Each query key (a tuple of the fetch parameters, e.g. ("team", "acme",
"core", 14)) owns one entry that moves through these states:

    EMPTY -> LOADING -> FRESH -> STALE -> REFRESHING -> FRESH

- Reads of a FRESH entry return cached data without touching the network.
- Reads of a STALE entry return the cached data immediately and start a
  background refresh; the old data stays visible until the refresh lands.
- A forced refresh timer refetches every recently-read entry on a fixed
  interval regardless of reads.
- A failed fetch records the error next to the previous data instead of
  replacing it. With no previous data the entry reports only the error.

Everything here runs on one asyncio event loop, so entries are never
touched concurrently. Each fetch gets a token; a result whose token is no
longer the entry's latest (superseded by a newer fetch, or the entry was
invalidated) is dropped on arrival.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Hashable, Optional

from utils.date_utils import utcnow

logger = logging.getLogger(__name__)

QueryKey = tuple[Hashable, ...]
QueryFn = Callable[[], Awaitable[Any]]


class QueryStatus(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"
    ERROR = "error"  # first load failed, no data to fall back on


@dataclass(frozen=True)
class QueryResult:
    """Snapshot of one cache entry as seen by a consumer."""

    key: QueryKey
    status: QueryStatus
    data: Optional[Any] = None
    error: Optional[BaseException] = None
    updated_at: Optional[datetime] = None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def is_refetching(self) -> bool:
        return self.status == QueryStatus.REFRESHING

    @property
    def is_stale(self) -> bool:
        return self.status in (QueryStatus.STALE, QueryStatus.REFRESHING)

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None


@dataclass
class _CacheEntry:
    fn: QueryFn
    data: Any = None
    error: Optional[BaseException] = None
    fetched_at: Optional[float] = None  # clock time of last successful fetch
    attempted_at: Optional[float] = None  # clock time of last fetch start
    last_read_at: Optional[float] = None
    updated_at: Optional[datetime] = None
    task: Optional[asyncio.Task] = None
    token: int = 0

    @property
    def has_data(self) -> bool:
        return self.fetched_at is not None

    @property
    def in_flight(self) -> bool:
        return self.task is not None and not self.task.done()


class QueryCache:
    """Stale-while-revalidate cache for async fetch functions.

    Args:
        stale_time: Seconds a successful result counts as fresh
        refetch_interval: Seconds between forced background refreshes
        gc_time: Entries not read for this long are dropped by the refresh timer
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(
        self,
        stale_time: float = 120.0,
        refetch_interval: float = 300.0,
        gc_time: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time
        self.refetch_interval = refetch_interval
        self.gc_time = gc_time
        self.clock = clock
        self._entries: dict[QueryKey, _CacheEntry] = {}
        self._timer: Optional[asyncio.Task] = None

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def _status(self, entry: _CacheEntry) -> QueryStatus:
        if entry.in_flight:
            return QueryStatus.REFRESHING if entry.has_data else QueryStatus.LOADING
        if not entry.has_data:
            return QueryStatus.ERROR if entry.error is not None else QueryStatus.EMPTY
        if self.clock() - entry.fetched_at >= self.stale_time:
            return QueryStatus.STALE
        return QueryStatus.FRESH

    def _due(self, entry: _CacheEntry) -> bool:
        """Whether a read should start a fetch for this entry."""
        if entry.in_flight:
            return False
        if entry.attempted_at is None:
            return True
        # Failed attempts count too, so a persistent error is retried once
        # per stale window instead of on every read.
        return self.clock() - entry.attempted_at >= self.stale_time

    def peek(self, key: QueryKey) -> QueryResult:
        """Snapshot an entry without scheduling any fetch."""
        entry = self._entries.get(key)
        if entry is None:
            return QueryResult(key=key, status=QueryStatus.EMPTY)
        return QueryResult(
            key=key,
            status=self._status(entry),
            data=entry.data,
            error=entry.error,
            updated_at=entry.updated_at,
        )

    def _start(self, key: QueryKey, entry: _CacheEntry) -> asyncio.Task:
        entry.token += 1
        entry.attempted_at = self.clock()
        entry.task = asyncio.create_task(self._run(key, entry, entry.token))
        return entry.task

    def _is_current(self, key: QueryKey, entry: _CacheEntry, token: int) -> bool:
        return self._entries.get(key) is entry and entry.token == token

    async def _run(self, key: QueryKey, entry: _CacheEntry, token: int) -> None:
        try:
            data = await entry.fn()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not self._is_current(key, entry, token):
                logger.debug(f"Dropping superseded failure for {key}: {e}")
                return
            entry.error = e
            if entry.has_data:
                logger.warning(f"Refresh failed for {key}, keeping previous data: {e}")
            else:
                logger.error(f"Initial fetch failed for {key}: {e}")
            return

        if not self._is_current(key, entry, token):
            logger.debug(f"Dropping superseded result for {key}")
            return

        entry.data = data
        entry.error = None
        entry.fetched_at = self.clock()
        entry.updated_at = utcnow()
        logger.debug(f"Cached result for {key}")

    @staticmethod
    async def _wait(task: asyncio.Task) -> None:
        # asyncio.wait never raises the task's outcome, and the task keeps
        # running if the waiter itself is cancelled.
        await asyncio.wait({task})

    async def read(self, key: QueryKey, fn: QueryFn, wait: bool = False) -> QueryResult:
        """
        Read an entry, fetching in the background when needed.

        Starts the first fetch for an unknown key and a background refresh
        for a stale one. Never blocks on a refresh of existing data.

        Args:
            key: Query key (tuple of fetch parameters)
            fn: Zero-argument coroutine function producing the data
            wait: Await the fetch when there is no data yet to return

        Returns:
            QueryResult snapshot after scheduling
        """
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _CacheEntry(fn=fn)
        else:
            entry.fn = fn
        entry.last_read_at = self.clock()

        if self._due(entry):
            if entry.has_data:
                logger.debug(f"Stale data for {key}, refreshing in background")
            self._start(key, entry)

        # A manual refetch can replace the task while we wait on it
        while wait and not entry.has_data and entry.in_flight:
            await self._wait(entry.task)

        return self.peek(key)

    async def refetch(self, key: QueryKey, fn: Optional[QueryFn] = None, wait: bool = True) -> QueryResult:
        """
        Force a refetch of one entry (manual refresh).

        Any fetch already in flight for the key is superseded; its result is
        dropped when it arrives.

        Raises:
            KeyError: If the key is unknown and no fn is given
        """
        entry = self._entries.get(key)
        if entry is None:
            if fn is None:
                raise KeyError(key)
            entry = self._entries[key] = _CacheEntry(fn=fn)
        elif fn is not None:
            entry.fn = fn
        entry.last_read_at = self.clock()

        task = self._start(key, entry)
        if wait:
            await self._wait(task)
        return self.peek(key)

    def invalidate(self, key: QueryKey) -> None:
        """Drop an entry; a fetch still in flight for it is discarded."""
        entry = self._entries.pop(key, None)
        if entry is not None and entry.in_flight:
            entry.task.cancel()

    def clear(self) -> None:
        for key in list(self._entries):
            self.invalidate(key)

    async def refetch_all(self) -> int:
        """
        Refetch every entry read within gc_time; drop the rest.

        Returns:
            Number of refreshes started
        """
        now = self.clock()
        started = 0
        for key, entry in list(self._entries.items()):
            if entry.last_read_at is not None and now - entry.last_read_at >= self.gc_time:
                logger.debug(f"Dropping unused entry {key}")
                self.invalidate(key)
                continue
            if not entry.in_flight:
                self._start(key, entry)
                started += 1
        if started:
            logger.info(f"Forced refresh of {started} cached queries")
        return started

    async def _refetch_loop(self) -> None:
        while True:
            await asyncio.sleep(self.refetch_interval)
            await self.refetch_all()

    def start(self) -> None:
        """Start the forced refresh timer (call from inside the event loop)."""
        if self._timer is None or self._timer.done():
            self._timer = asyncio.create_task(self._refetch_loop())
            logger.info(f"Refresh timer started (every {self.refetch_interval:.0f}s)")

    async def stop(self) -> None:
        """Stop the refresh timer and cancel fetches still in flight."""
        if self._timer is not None:
            self._timer.cancel()
            await asyncio.gather(self._timer, return_exceptions=True)
            self._timer = None
        tasks = [entry.task for entry in self._entries.values() if entry.in_flight]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


class QueryObserver:
    """
    One consumer's view onto the cache (a dashboard tab, a CLI session).

    The observer follows a single key at a time. Switching keys (another
    team, org or day window) moves to that key's own entry; a result that
    arrives for the previous key is never surfaced through this observer.
    """

    def __init__(self, cache: QueryCache):
        self.cache = cache
        self._key: Optional[QueryKey] = None
        self._fn: Optional[QueryFn] = None
        self._generation = 0

    @property
    def key(self) -> Optional[QueryKey]:
        return self._key

    async def set_key(self, key: QueryKey, fn: QueryFn, wait: bool = False) -> QueryResult:
        if key != self._key:
            logger.debug(f"Observer switching {self._key} -> {key}")
            self._generation += 1
        self._key = key
        self._fn = fn
        return await self.result(wait=wait)

    def _settle(self, generation: int, result: QueryResult) -> QueryResult:
        if generation != self._generation:
            # The key changed while we were waiting; report the new key instead
            return self.cache.peek(self._key)
        return result

    async def result(self, wait: bool = False) -> QueryResult:
        if self._key is None:
            raise RuntimeError("Observer has no query key")
        generation = self._generation
        result = await self.cache.read(self._key, self._fn, wait=wait)
        return self._settle(generation, result)

    async def refetch(self, wait: bool = True) -> QueryResult:
        """Manual refresh trigger for the current key."""
        if self._key is None:
            raise RuntimeError("Observer has no query key")
        generation = self._generation
        result = await self.cache.refetch(self._key, self._fn, wait=wait)
        return self._settle(generation, result)
