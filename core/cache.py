"""
Client-side query cache and optimistic mutation coordinator.

Usage:
    coordinator = MutationCoordinator(stale_time=60)

    jobs = await coordinator.query(
        query_key("jobs", status="active"),
        lambda: client.list_jobs(status="active"),
    )

    task = coordinator.mutate(
        lambda: client.update_job(job_id, {"title": "New"}),
        updates={query_key("jobs"): rename_job},
        invalidates=[query_key("job", id=job_id)],
    )
    # the cache already shows the new title here
    await task  # raises, after rolling back, if the server refused

Entries are keyed by (kind, params). A key given to `updates`, `invalidates`
or `cancel_queries` is a prefix: `query_key("jobs")` addresses every jobs
listing regardless of its filters.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar

from core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")
Fetcher = Callable[[], Awaitable[Any]]
Updater = Callable[[Any, "QueryKey"], Any]


@dataclass(frozen=True)
class QueryKey:
    """Hashable cache key: a resource kind plus sorted filter parameters."""

    kind: str
    params: tuple[tuple[str, Any], ...] = ()

    def get(self, name: str, default: Any = None) -> Any:
        return dict(self.params).get(name, default)

    def matches(self, kind: str, **params: Any) -> bool:
        """Same kind, and every given (non-None) param equal."""
        if self.kind != kind:
            return False
        own = dict(self.params)
        return all(
            name in own and own[name] == value
            for name, value in params.items()
            if value is not None
        )

    def covers(self, other: "QueryKey") -> bool:
        """Whether this key, used as a prefix, addresses `other`."""
        return other.matches(self.kind, **dict(self.params))

    def __str__(self) -> str:
        if not self.params:
            return self.kind
        args = ",".join(f"{name}={value}" for name, value in self.params)
        return f"{self.kind}({args})"


def query_key(kind: str, **params: Any) -> QueryKey:
    """Build a key; None params are dropped so they never split the cache."""
    return QueryKey(
        kind,
        tuple(sorted((name, value) for name, value in params.items() if value is not None)),
    )


@dataclass
class CacheEntry:
    """
    One cached query.

    `value` is what callers see. `confirmed` is the last value the server
    returned. While a mutation's speculative value is displayed, `overlay`
    holds that mutation's id. `generation` is bumped by every fetch and every
    cancellation; a read only writes if the generation it started with is
    still current.
    """

    value: Any = None
    confirmed: Any = None
    has_data: bool = False
    overlay: Optional[int] = None
    stale: bool = False
    updated_at: float = 0.0
    generation: int = 0
    fetcher: Optional[Fetcher] = None
    error: Optional[BaseException] = None
    refetch: Optional[asyncio.Task] = field(default=None, repr=False)


class QueryCache:
    """Plain keyed storage for cache entries."""

    def __init__(self):
        self._entries: dict[QueryKey, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: QueryKey) -> bool:
        return key in self._entries

    def get(self, key: QueryKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def entry(self, key: QueryKey) -> CacheEntry:
        """Get the entry for `key`, creating an empty one if needed."""
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = CacheEntry()
        return entry

    def find(self, prefix: QueryKey) -> list[tuple[QueryKey, CacheEntry]]:
        """All entries addressed by `prefix`."""
        return [(key, entry) for key, entry in self._entries.items() if prefix.covers(key)]

    def keys(self) -> list[QueryKey]:
        return list(self._entries)

    def clear(self) -> None:
        self._entries.clear()


@dataclass
class _Snapshot:
    value: Any
    overlay: Optional[int]
    confirmed: Any


class MutationCoordinator:
    """
    Cache reads and run mutations optimistically.

    A mutation rewrites the affected entries before the server answers
    (speculative apply), then either confirms them through a refetch or puts
    the snapshot back. Speculative values are always computed from an entry's
    confirmed value, so an entry shows at most one pending mutation at a time.
    A mutation the server accepted counts as confirmed for the entries it
    still owns, until the refetch replaces it.
    A failing mutation only rolls back entries that still hold the exact
    object it wrote; anything written later wins.

    Args:
        stale_time: Seconds a fetched value counts as fresh
        clock: Monotonic time source
    """

    def __init__(
        self,
        stale_time: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = (
            settings.cache_stale_time_seconds if stale_time is None else stale_time
        )
        self.clock = clock
        self.cache = QueryCache()
        self._ids = itertools.count(1)
        self._pending: set[int] = set()
        self._failed: set[int] = set()
        self._tasks: set[asyncio.Task] = set()

    # ==================== Reads ===================== #

    def get(self, key: QueryKey, default: Any = None) -> Any:
        """Currently displayed value for `key`, without fetching."""
        entry = self.cache.get(key)
        if entry is None or not entry.has_data:
            return default
        return entry.value

    def set_data(self, key: QueryKey, value: Any) -> None:
        """Seed an entry with a server-confirmed value."""
        self._confirm(self.cache.entry(key), value)

    def is_fresh(self, key: QueryKey) -> bool:
        entry = self.cache.get(key)
        return entry is not None and self._is_fresh(entry)

    async def query(self, key: QueryKey, fetcher: Fetcher) -> Any:
        """Return the cached value if fresh, otherwise fetch it."""
        entry = self.cache.entry(key)
        entry.fetcher = fetcher
        if self._is_fresh(entry):
            return entry.value
        return await self.fetch(key, fetcher)

    async def fetch(self, key: QueryKey, fetcher: Optional[Fetcher] = None) -> Any:
        """
        Fetch `key` and write the result, unless the read was superseded or
        cancelled meanwhile. The result is returned to the caller either way.
        """
        entry = self.cache.entry(key)
        fetcher = fetcher or entry.fetcher
        if fetcher is None:
            raise ValueError(f"No fetcher known for {key}")
        entry.fetcher = fetcher
        entry.generation += 1
        token = entry.generation

        try:
            value = await fetcher()
        except Exception as exc:
            if entry.generation == token:
                entry.error = exc
            raise

        if entry.generation == token and self.cache.get(key) is entry:
            self._confirm(entry, value)
        else:
            logger.debug(f"Discarded superseded read of {key}")
        return value

    def cancel_queries(self, kind: str, **params: Any) -> int:
        """Make in-flight reads on matching keys complete without writing."""
        return self._cancel(query_key(kind, **params))

    def invalidate(self, kind: str, **params: Any) -> list[asyncio.Task]:
        """Mark matching entries stale and refetch those with a known fetcher."""
        return self._invalidate([query_key(kind, **params)])

    # ==================== Mutations ===================== #

    def mutate(
        self,
        fn: Callable[[], Awaitable[T]],
        updates: Optional[Mapping[QueryKey, Updater]] = None,
        invalidates: Iterable[QueryKey] = (),
    ) -> "asyncio.Task[T]":
        """
        Run a mutation optimistically.

        Cancelling reads, taking snapshots and applying the speculative
        values all happen before this method returns. The returned task
        performs the request and reconciles.

        Args:
            fn: Coroutine function performing the request
            updates: Key prefix -> `updater(value, key)`; the updater gets
                the entry's confirmed value and must return a new object
            invalidates: Extra key prefixes to refetch on success

        Returns:
            Task resolving to the request's result, or raising its error
        """
        mutation_id = next(self._ids)
        updates = updates or {}
        invalidates = list(invalidates)

        # 1. cancel
        for prefix in updates:
            self._cancel(prefix)

        # 2. snapshot and 3. speculative apply
        applied: dict[QueryKey, tuple[_Snapshot, Any]] = {}
        for prefix, updater in updates.items():
            for key, entry in self.cache.find(prefix):
                if not entry.has_data or key in applied:
                    continue
                snapshot = _Snapshot(entry.value, entry.overlay, entry.confirmed)
                written = updater(entry.confirmed, key)
                entry.value = written
                entry.overlay = mutation_id
                applied[key] = (snapshot, written)

        self._pending.add(mutation_id)
        logger.debug(f"Mutation {mutation_id} applied to {len(applied)} entries")

        task = asyncio.get_running_loop().create_task(
            self._reconcile(mutation_id, fn, applied, list(updates) + invalidates)
        )
        return task

    async def _reconcile(
        self,
        mutation_id: int,
        fn: Callable[[], Awaitable[T]],
        applied: dict[QueryKey, tuple[_Snapshot, Any]],
        invalidates: list[QueryKey],
    ) -> T:
        try:
            result = await fn()
        except (Exception, asyncio.CancelledError) as exc:
            self._pending.discard(mutation_id)
            self._failed.add(mutation_id)
            self._rollback(mutation_id, applied)
            logger.warning(
                f"Mutation {mutation_id} failed, rolled back: {type(exc).__name__}: {exc}"
            )
            raise

        self._pending.discard(mutation_id)
        for key, (_, written) in applied.items():
            entry = self.cache.get(key)
            if entry is not None and entry.overlay == mutation_id:
                # committed: later mutations build on it until the refetch lands
                entry.confirmed, entry.overlay = written, None
        self._invalidate(invalidates)
        return result

    def _rollback(
        self, mutation_id: int, applied: dict[QueryKey, tuple[_Snapshot, Any]]
    ) -> None:
        for key, (snapshot, written) in applied.items():
            entry = self.cache.get(key)
            if entry is None or entry.value is not written:
                logger.info(f"Skipped rollback of {key}: overwritten since")
                continue

            if snapshot.overlay in self._pending:
                entry.value, entry.overlay = snapshot.value, snapshot.overlay
            elif (
                snapshot.overlay not in self._failed
                and entry.confirmed is snapshot.confirmed
            ):
                entry.value, entry.overlay = snapshot.value, None
            else:
                # the snapshot showed a failed mutation, or newer server data exists
                entry.value, entry.overlay = entry.confirmed, None

    # ==================== Lifecycle ===================== #

    async def close(self) -> None:
        """Cancel background refetches and drop all entries."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self.cache.clear()
        logger.info("Query cache closed")

    # ==================== Internals ===================== #

    def _is_fresh(self, entry: CacheEntry) -> bool:
        if not entry.has_data:
            return False
        if entry.overlay is not None:
            return True
        return not entry.stale and self.clock() - entry.updated_at < self.stale_time

    def _confirm(self, entry: CacheEntry, value: Any) -> None:
        entry.confirmed = value
        entry.has_data = True
        entry.stale = False
        entry.error = None
        entry.updated_at = self.clock()
        if entry.overlay is None:
            entry.value = value

    def _cancel(self, prefix: QueryKey) -> int:
        cancelled = 0
        for key, entry in self.cache.find(prefix):
            entry.generation += 1
            if entry.refetch is not None and not entry.refetch.done():
                entry.refetch.cancel()
            entry.refetch = None
            cancelled += 1
        return cancelled

    def _invalidate(self, prefixes: Iterable[QueryKey]) -> list[asyncio.Task]:
        tasks = []
        seen: set[QueryKey] = set()
        for prefix in prefixes:
            for key, entry in self.cache.find(prefix):
                if key in seen:
                    continue
                seen.add(key)
                entry.stale = True
                if entry.fetcher is None:
                    continue
                if entry.refetch is not None and not entry.refetch.done():
                    entry.refetch.cancel()
                task = asyncio.get_running_loop().create_task(self._refetch(key))
                entry.refetch = task
                self._tasks.add(task)
                task.add_done_callback(self._tasks.discard)
                tasks.append(task)
        return tasks

    async def _refetch(self, key: QueryKey) -> None:
        try:
            await self.fetch(key)
        except asyncio.CancelledError:
            logger.debug(f"Refetch of {key} cancelled")
            raise
        except Exception as exc:
            logger.warning(f"Background refetch of {key} failed: {exc}")
