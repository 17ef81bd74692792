"""
Process-wide query cache for server resources.

Resources are keyed by their API path. The cache serves fresh data without
touching the network, coalesces concurrent fetches for the same key, and
applies responses for a key strictly in issue order: every fetch receives a
sequence number, and a response whose sequence is no longer the newest one
issued for its key is discarded on arrival.

Mutations go through `mutate()`, which invalidates the written resource and
every key registered as depending on it.

Only keys under `shared_prefixes` ever reach the optional redis tier. Those
must be public resources (the catalogue): anything identity-scoped stays in
this process.
"""
import asyncio
import json
import logging
import math
import time
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, TypeVar

from bazaar.core.redis import RedisClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[["QueryResult"], None]


@dataclass
class CachedResource:
    """One cached server resource."""

    data: Any = None
    fetched_at: float | None = None
    stale_until: float = -math.inf
    error: Exception | None = None
    seq: int = 0


@dataclass(frozen=True)
class QueryResult:
    """Snapshot of a key as seen by a consumer."""

    key: str
    data: Any = None
    error: Exception | None = None
    is_loading: bool = False
    is_stale: bool = True
    fetched_at: float | None = None

    @property
    def has_data(self) -> bool:
        """True once any fetch for the key has succeeded."""
        return self.fetched_at is not None


@dataclass
class _Inflight:
    seq: int
    task: asyncio.Task = field(repr=False)


class QueryCache:
    """Keyed cache with staleness, request coalescing and stale-response suppression."""

    def __init__(
        self,
        default_stale_time: float = 0.0,
        store: RedisClient | None = None,
        key_prefix: str = "bazaar:query:",
        dependencies: Mapping[str, Iterable[str]] | None = None,
        shared_prefixes: Iterable[str] = (),
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default_stale_time = default_stale_time
        self._store = store
        self._key_prefix = key_prefix
        self._shared_prefixes = tuple(shared_prefixes)
        self._clock = clock
        self._entries: dict[str, CachedResource] = {}
        self._inflight: dict[str, _Inflight] = {}
        self._issued: dict[str, int] = {}
        self._listeners: dict[str, list[Listener]] = {}
        self._tasks: set[asyncio.Task] = set()
        self._dependents: dict[str, set[str]] = {
            resource: set(keys) for resource, keys in (dependencies or {}).items()
        }

    def register_dependency(self, resource: str, *dependent_keys: str) -> None:
        """Declare keys that must be invalidated whenever `resource` is mutated."""
        self._dependents.setdefault(resource, set()).update(dependent_keys)

    def dependents_of(self, resource: str) -> set[str]:
        """Keys invalidated alongside `resource`."""
        return set(self._dependents.get(resource, ()))

    def peek(self, key: str) -> QueryResult:
        """Snapshot a key without triggering a fetch."""
        entry = self._entries.get(key)
        is_loading = key in self._inflight
        if entry is None:
            return QueryResult(key=key, is_loading=is_loading)
        return QueryResult(
            key=key,
            data=entry.data,
            error=entry.error,
            is_loading=is_loading,
            is_stale=self._clock() >= entry.stale_until,
            fetched_at=entry.fetched_at,
        )

    def get(self, key: str, fetcher: Fetcher, stale_time: float | None = None) -> QueryResult:
        """
        Return the cached value for `key` without blocking.

        Fresh data is returned as-is. Otherwise a fetch is started (or the
        in-flight one joined) and the previous value, if any, is returned
        with `is_loading=True`. Must be called from a running event loop.
        """
        entry = self._entries.get(key)
        if entry is not None and self._clock() < entry.stale_until:
            return self.peek(key)
        if key not in self._inflight:
            self._start(key, fetcher, stale_time)
        return self.peek(key)

    async def fetch(self, key: str, fetcher: Fetcher, stale_time: float | None = None) -> Any:
        """Awaitable `get`: resolve the key and return its data, raising the fetch error if any."""
        self.get(key, fetcher, stale_time)
        return await self._settled(key, fetcher, stale_time)

    async def refetch(self, key: str, fetcher: Fetcher, stale_time: float | None = None) -> Any:
        """Start a new fetch even if one is in flight; the older one is superseded."""
        self._start(key, fetcher, stale_time)
        return await self._settled(key, fetcher, stale_time)

    async def invalidate(self, *keys: str) -> None:
        """Mark keys stale so the next consumer refetches; supersede fetches already in flight."""
        for key in keys:
            entry = self._entries.get(key)
            if entry is not None:
                entry.stale_until = -math.inf
            if self._inflight.pop(key, None) is not None:
                self._issued[key] = self._issued.get(key, 0) + 1
            logger.debug("query_invalidated", extra={"key": key})
        shared = [self._store_key(key) for key in keys if self._is_shared(key)]
        if shared and self._store is not None and self._store.is_connected:
            await self._store.delete(*shared)
        for key in keys:
            self._notify(key)

    async def invalidate_prefix(self, prefix: str) -> list[str]:
        """Invalidate `prefix` and every key below it ('/api/products' covers '/api/products?x=1')."""
        keys = self.keys_under(prefix)
        await self.invalidate(*keys)
        return keys

    def keys_under(self, prefix: str) -> list[str]:
        """Known keys equal to `prefix` or below it."""
        return [
            key for key in dict.fromkeys([*self._entries, *self._inflight])
            if _under(key, prefix)
        ]

    async def mutate(
        self,
        key: str,
        fn: Callable[[], Awaitable[T]],
        invalidates: Iterable[str] = (),
        prefixes: Iterable[str] = (),
    ) -> T:
        """
        Perform a write and, on success, invalidate the resource and its dependents.

        `prefixes` additionally invalidates every known key below each prefix,
        resolved after the write. Each key is invalidated once. On failure the
        error propagates and nothing is invalidated.
        """
        result = await fn()
        below = [k for prefix in prefixes for k in self.keys_under(prefix)]
        keys = dict.fromkeys([key, *sorted(self._dependents.get(key, ())), *invalidates, *below])
        await self.invalidate(*keys)
        return result

    def clear(self) -> None:
        """
        Drop every local entry and supersede every in-flight fetch.

        The shared tier only holds public resources and is left alone.
        """
        keys = set(self._entries) | set(self._inflight)
        for key in self._inflight:
            self._issued[key] = self._issued.get(key, 0) + 1
        self._inflight.clear()
        self._entries.clear()
        logger.info("query_cache_cleared", extra={"keys": len(keys)})
        for key in keys:
            self._notify(key)

    def subscribe(self, key: str, listener: Listener) -> Callable[[], None]:
        """Call `listener` with a snapshot whenever `key` settles or is invalidated."""
        listeners = self._listeners.setdefault(key, [])
        listeners.append(listener)

        def unsubscribe() -> None:
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    async def close(self) -> None:
        """Cancel outstanding fetch tasks."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._inflight.clear()

    def _start(self, key: str, fetcher: Fetcher, stale_time: float | None) -> None:
        seq = self._issued.get(key, 0) + 1
        self._issued[key] = seq
        stale = self._default_stale_time if stale_time is None else stale_time
        task = asyncio.get_running_loop().create_task(self._run(key, seq, fetcher, stale))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._inflight[key] = _Inflight(seq=seq, task=task)

    async def _settled(self, key: str, fetcher: Fetcher, stale_time: float | None) -> Any:
        while (inflight := self._inflight.get(key)) is not None:
            await asyncio.shield(inflight.task)
            if self._issued.get(key) == inflight.seq:
                break
            entry = self._entries.get(key)
            if key not in self._inflight and (entry is None or entry.seq < inflight.seq):
                # superseded by invalidate()/clear() without a replacement fetch
                self._start(key, fetcher, stale_time)
        result = self.peek(key)
        if result.error is not None:
            raise result.error
        return result.data

    async def _run(self, key: str, seq: int, fetcher: Fetcher, stale_time: float) -> None:
        try:
            data = await self._load(key, seq, fetcher, stale_time)
        except Exception as e:
            self._settle(key, seq, error=e)
        else:
            self._settle(key, seq, data=data, stale_time=stale_time)

    async def _load(self, key: str, seq: int, fetcher: Fetcher, stale_time: float) -> Any:
        use_store = self._is_shared(key) and self._store is not None and self._store.is_connected
        if use_store and key not in self._entries:
            raw = await self._store.get(self._store_key(key))
            if raw is not None:
                logger.debug("query_shared_hit", extra={"key": key})
                return json.loads(raw)

        data = await fetcher()

        if use_store and stale_time > 0 and self._issued.get(key) == seq:
            try:
                payload = json.dumps(data)
            except (TypeError, ValueError):
                logger.warning("query_not_shareable", extra={"key": key})
            else:
                await self._store.setex(self._store_key(key), math.ceil(stale_time), payload)
        return data

    def _settle(
        self,
        key: str,
        seq: int,
        data: Any = None,
        error: Exception | None = None,
        stale_time: float = 0.0,
    ) -> None:
        if self._issued.get(key) != seq:
            logger.debug("query_response_discarded", extra={"key": key, "seq": seq})
            return
        current = self._inflight.get(key)
        if current is not None and current.seq == seq:
            del self._inflight[key]

        entry = self._entries.setdefault(key, CachedResource())
        entry.seq = seq
        now = self._clock()
        if error is None:
            entry.data = data
            entry.fetched_at = now
            entry.stale_until = now + stale_time
            entry.error = None
        else:
            # keep the last good data next to the error
            entry.error = error
            entry.stale_until = -math.inf
            logger.warning("query_fetch_failed", extra={"key": key, "error": str(error)})
        self._notify(key)

    def _notify(self, key: str) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return
        snapshot = self.peek(key)
        for listener in list(listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("query_listener_failed", extra={"key": key})

    def _is_shared(self, key: str) -> bool:
        return any(_under(key, prefix) for prefix in self._shared_prefixes)

    def _store_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"


def _under(key: str, prefix: str) -> bool:
    """'/api/products' covers '/api/products?x=1' and '/api/products/3', not '/api/productsx'."""
    return key == prefix or key.startswith((f"{prefix}?", f"{prefix}/"))
