"""
Query Cache
Keyed cache of backend resources with stale-while-revalidate reads,
coalesced fetches, prefix invalidation and optimistic mutations.

One QueryCache lives per process (owned by ConsoleContext). All methods run
on the event loop thread; nothing here is thread-safe.
"""
import asyncio
import copy
import logging
import time
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from voiceai_console.domain.services.query_keys import QueryKey

logger = logging.getLogger(__name__)

T = TypeVar("T")
Fetcher = Callable[[], Awaitable[Any]]
Updater = Callable[[Any], Any]

DEFAULT_STALE_TIME = 0.0
DEFAULT_CACHE_TIME = 300.0


def matches(key: QueryKey, prefix: QueryKey) -> bool:
    """True when prefix is a leading slice of key."""
    return key[:len(prefix)] == prefix


@dataclass
class CacheEntry:
    """Cached value for one query key"""
    key: QueryKey
    data: Any = None
    has_data: bool = False
    fetched_at: float = 0.0
    stale_time: float = DEFAULT_STALE_TIME
    cache_time: float = DEFAULT_CACHE_TIME
    last_accessed: float = 0.0
    invalidated: bool = False
    # Bumped on every local write; a fetch started under an older
    # generation does not overwrite the entry.
    generation: int = 0
    fetcher: Optional[Fetcher] = None
    task: Optional[asyncio.Task] = field(default=None, repr=False)
    error: Optional[BaseException] = None

    def is_stale(self, now: float) -> bool:
        return self.invalidated or not self.has_data or (now - self.fetched_at) >= self.stale_time

    @property
    def is_fetching(self) -> bool:
        return self.task is not None and not self.task.done()


@dataclass
class _Snapshot:
    data: Any
    has_data: bool
    fetched_at: float
    invalidated: bool


class OptimisticTransaction:
    """
    Optimistic patch over one or more cache entries.

    Every entry is snapshotted the first time the transaction touches it;
    rollback() restores exactly those snapshots (and drops entries the
    transaction created).
    """

    def __init__(self, cache: "QueryCache"):
        self._cache = cache
        self._epoch = cache.epoch
        self._snapshots: Dict[QueryKey, Optional[_Snapshot]] = {}
        self.state = "pending"

    @property
    def touched_keys(self) -> List[QueryKey]:
        return list(self._snapshots)

    def snapshot(self, key: QueryKey) -> None:
        if key in self._snapshots:
            return
        entry = self._cache._entries.get(key)
        if entry is None:
            self._snapshots[key] = None
        else:
            self._snapshots[key] = _Snapshot(
                data=copy.deepcopy(entry.data),
                has_data=entry.has_data,
                fetched_at=entry.fetched_at,
                invalidated=entry.invalidated,
            )

    def apply(self, key: QueryKey, updater: Updater) -> bool:
        """
        Patch one cached entry with updater(old) -> new.

        Returns:
            False when the key holds no data (nothing to patch)
        """
        entry = self._cache._entries.get(key)
        if entry is None or not entry.has_data:
            return False
        self.snapshot(key)
        self._cache._write(entry, updater(entry.data))
        return True

    def apply_all(self, prefix: QueryKey, updater: Updater) -> List[QueryKey]:
        """Patch every entry under prefix that holds data."""
        patched = []
        for key in self._cache.keys(prefix):
            if self.apply(key, updater):
                patched.append(key)
        return patched

    def set(self, key: QueryKey, data: Any) -> None:
        self.snapshot(key)
        self._cache.set_query_data(key, data)

    def remove(self, key: QueryKey) -> None:
        self.snapshot(key)
        self._cache._entries.pop(key, None)

    def commit(self) -> None:
        self.state = "committed"

    def rollback(self) -> None:
        """Restore every touched entry to its pre-transaction state."""
        if self._epoch != self._cache.epoch:
            # Cache was cleared mid-flight; snapshots belong to the old session
            self.state = "rolled_back"
            logger.debug("Cache cleared during mutation, dropping optimistic snapshots")
            return

        for key, snap in self._snapshots.items():
            if snap is None:
                self._cache._entries.pop(key, None)
                continue

            entry = self._cache._entries.get(key)
            if entry is None:
                entry = self._cache._new_entry(key)
            entry.data = snap.data
            entry.has_data = snap.has_data
            entry.fetched_at = snap.fetched_at
            entry.invalidated = snap.invalidated
            entry.generation += 1

        self.state = "rolled_back"
        logger.debug(f"Rolled back optimistic patch on {len(self._snapshots)} entries")


class QueryCache:
    """
    Process-wide query cache.

    Args:
        clock: Monotonic clock in seconds (injectable for tests)
        default_stale_time: Stale time used when a read passes none
        default_cache_time: GC time used when a read passes none
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        default_stale_time: float = DEFAULT_STALE_TIME,
        default_cache_time: float = DEFAULT_CACHE_TIME
    ):
        self._clock = clock
        self._entries: Dict[QueryKey, CacheEntry] = {}
        self.epoch = 0
        self.default_stale_time = default_stale_time
        self.default_cache_time = default_cache_time

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def keys(self, prefix: QueryKey = ()) -> List[QueryKey]:
        return [k for k in self._entries if matches(k, prefix)]

    def get_entry(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def _new_entry(self, key: QueryKey) -> CacheEntry:
        now = self._clock()
        entry = CacheEntry(
            key=key,
            stale_time=self.default_stale_time,
            cache_time=self.default_cache_time,
            last_accessed=now,
        )
        self._entries[key] = entry
        return entry

    def _write(self, entry: CacheEntry, data: Any) -> None:
        now = self._clock()
        entry.data = data
        entry.has_data = True
        entry.fetched_at = now
        entry.last_accessed = now
        entry.invalidated = False
        entry.error = None
        entry.generation += 1

    # Reads

    async def read(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        stale_time: Optional[float] = None,
        cache_time: Optional[float] = None
    ) -> Any:
        """
        Resolve a query from cache or the backend.

        Fresh data is returned as is. Stale data is returned immediately and a
        background refetch is started. Invalidated or missing data waits for
        a fetch. Concurrent fetches for one key share a single request.

        Args:
            key: Query key
            fetcher: Coroutine function calling the HTTP adapter
            stale_time: Seconds before cached data triggers a background refetch
            cache_time: Seconds an unused entry is kept before eviction
        """
        now = self._clock()
        self.gc(now)

        entry = self._entries.get(key) or self._new_entry(key)
        entry.fetcher = fetcher
        entry.last_accessed = now
        if stale_time is not None:
            entry.stale_time = stale_time
        if cache_time is not None:
            entry.cache_time = cache_time

        if entry.has_data and not entry.invalidated:
            if entry.is_stale(now):
                self._start_fetch(entry)
            return entry.data

        return await asyncio.shield(self._start_fetch(entry))

    async def fetch(self, key: QueryKey, fetcher: Fetcher, **options) -> Any:
        """Read that always waits for a fresh backend value."""
        entry = self._entries.get(key)
        if entry is not None:
            entry.invalidated = True
        return await self.read(key, fetcher, **options)

    def _start_fetch(self, entry: CacheEntry) -> asyncio.Task:
        if entry.task is None or entry.task.done():
            logger.debug(f"Fetching {entry.key}")
            entry.task = asyncio.get_running_loop().create_task(self._run(entry))
            entry.task.add_done_callback(partial(self._on_fetch_done, entry.key))
        return entry.task

    async def _run(self, entry: CacheEntry) -> Any:
        while True:
            generation = entry.generation
            try:
                data = await entry.fetcher()
            except Exception as e:
                entry.error = e
                raise

            if entry.generation != generation:
                # Entry was written or invalidated while the request was in flight
                if entry.invalidated and entry.fetcher is not None:
                    continue
                return entry.data

            self._write(entry, data)
            return data

    def _on_fetch_done(self, key: QueryKey, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Query {key} fetch failed: {error}")

    def is_fetching(self, prefix: QueryKey = ()) -> bool:
        return any(self._entries[k].is_fetching for k in self.keys(prefix))

    # Direct cache access

    def get_query_data(self, key: QueryKey) -> Any:
        entry = self._entries.get(key)
        return entry.data if entry is not None and entry.has_data else None

    def get_queries_data(self, prefix: QueryKey) -> List[Tuple[QueryKey, Any]]:
        return [(k, self._entries[k].data) for k in self.keys(prefix) if self._entries[k].has_data]

    def set_query_data(self, key: QueryKey, data: Any) -> None:
        """Write data for a key, creating the entry if needed."""
        entry = self._entries.get(key) or self._new_entry(key)
        self._write(entry, data)

    def set_queries_data(self, prefix: QueryKey, updater: Updater) -> List[QueryKey]:
        """Apply updater to every entry under prefix that holds data."""
        updated = []
        for key in self.keys(prefix):
            entry = self._entries[key]
            if entry.has_data:
                self._write(entry, updater(entry.data))
                updated.append(key)
        return updated

    def remove_queries(self, prefix: QueryKey) -> int:
        removed = self.keys(prefix)
        for key in removed:
            del self._entries[key]
        return len(removed)

    def invalidate_queries(self, prefix: QueryKey, refetch: bool = True) -> List[QueryKey]:
        """
        Mark every entry under prefix stale.

        Data stays in place; entries with a known fetcher are refetched in
        the background when an event loop is running. The next read of an
        invalidated entry waits for the fresh value.
        """
        try:
            asyncio.get_running_loop()
            can_refetch = refetch
        except RuntimeError:
            can_refetch = False

        invalidated = self.keys(prefix)
        for key in invalidated:
            entry = self._entries[key]
            entry.invalidated = True
            entry.generation += 1
            if can_refetch and entry.fetcher is not None:
                self._start_fetch(entry)

        logger.debug(f"Invalidated {len(invalidated)} queries under {prefix}")
        return invalidated

    def gc(self, now: Optional[float] = None) -> int:
        """Evict entries unused for longer than their cache_time."""
        now = self._clock() if now is None else now
        expired = [
            key for key, entry in self._entries.items()
            if not entry.is_fetching and (now - entry.last_accessed) > entry.cache_time
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} unused queries")
        return len(expired)

    def clear(self) -> None:
        """Drop every entry; in-flight transactions will not restore their snapshots."""
        self._entries.clear()
        self.epoch += 1

    # Mutations

    def transaction(self) -> OptimisticTransaction:
        return OptimisticTransaction(self)

    async def mutate(
        self,
        mutation_fn: Callable[[], Awaitable[T]],
        on_mutate: Optional[Callable[[OptimisticTransaction], None]] = None,
        on_success: Optional[Callable[[T], None]] = None,
        on_error: Optional[Callable[[Exception], None]] = None,
        on_settled: Optional[Callable[[], None]] = None,
        invalidates: Iterable[QueryKey] = ()
    ) -> T:
        """
        Run a backend write with an optional optimistic patch.

        on_mutate patches the cache through the transaction before the write.
        On failure the transaction is rolled back, on_error runs and the error
        is re-raised. Success or failure, every key in invalidates and every
        key the transaction touched is invalidated before on_settled runs.
        """
        tx = self.transaction()
        try:
            if on_mutate:
                on_mutate(tx)
            result = await mutation_fn()
        except Exception as e:
            tx.rollback()
            if on_error:
                on_error(e)
            raise
        else:
            tx.commit()
            if on_success:
                on_success(result)
            return result
        finally:
            for prefix in list(invalidates) + tx.touched_keys:
                self.invalidate_queries(prefix)
            if on_settled:
                on_settled()


class QueryService:
    """
    Base for per-resource query services.

    Args:
        cache: Shared QueryCache
        config: ConfigManager providing cache.<resource>.<query> policies
    """
    resource = ""

    def __init__(self, cache: QueryCache, config=None):
        self.cache = cache
        self.config = config

    def policy(self, query: str) -> Dict[str, float]:
        """stale_time/cache_time kwargs for cache.read()."""
        if self.config is None:
            return {}
        return self.config.get_cache_policy(self.resource, query)
