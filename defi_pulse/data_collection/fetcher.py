"""Cache-backed upstream fetching with stale-serve and single-flight."""
from __future__ import annotations

import asyncio
import threading
from typing import Any, Awaitable, Callable, Dict, Optional

from defi_pulse.cache import CacheStore, cache as global_cache
from defi_pulse.config import get_config, load_config
from defi_pulse.utils.errors import ConfigurationError, UpstreamError
from defi_pulse.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 60.0

Source = Callable[[], Awaitable[Any]]


class CachedFetcher:
    """Wrap upstream requests behind a ``CacheStore``.

    Decision order for ``fetch_with_cache``:

    1. A cached value younger than ``ttl_seconds`` is returned without any
       network call.
    2. Otherwise ``source()`` is awaited; its result is written to the store
       and returned.
    3. If ``source()`` raises ``UpstreamError`` the last cached value for the
       key is returned however old it is. With nothing cached the error
       propagates.

    Concurrent calls for the same stale or missing key share one in-flight
    request. The registry lock is never held across an await.
    """

    def __init__(self, store: Optional[CacheStore] = None, ttl_seconds: float = DEFAULT_TTL_SECONDS):
        self.store = store if store is not None else global_cache
        self.ttl_seconds = float(ttl_seconds)
        self._inflight: Dict[str, asyncio.Future] = {}
        self._lock = threading.Lock()

    def _fresh(self, key: str):
        value, age, present = self.store.get(key)
        if present and age < self.ttl_seconds:
            return True, value
        return False, None

    async def fetch_with_cache(self, key: str, source: Source) -> Any:
        fresh, value = self._fresh(key)
        if fresh:
            logger.debug("Cache hit", extra={"cache_key": key})
            return value

        with self._lock:
            # Another caller may have refreshed the key since the first check
            fresh, value = self._fresh(key)
            if fresh:
                return value
            task = self._inflight.get(key)
            if task is None:
                task = asyncio.ensure_future(self._refresh(key, source))
                self._inflight[key] = task
                task.add_done_callback(lambda t, k=key: self._forget(k, t))
            else:
                logger.debug("Joining in-flight request", extra={"cache_key": key})

        # One caller's cancellation must not cancel the shared refresh
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Future) -> None:
        with self._lock:
            if self._inflight.get(key) is task:
                del self._inflight[key]
        if not task.cancelled():
            # Mark the outcome as retrieved when every waiter was cancelled
            task.exception()

    async def _refresh(self, key: str, source: Source) -> Any:
        try:
            value = await source()
        except UpstreamError as e:
            stale, age, present = self.store.get(key)
            if present:
                logger.warning(
                    f"Upstream failed, serving stale value: {e}",
                    extra={"cache_key": key, "age_seconds": round(age, 3), "source": e.source},
                )
                return stale
            logger.error(
                f"Upstream failed with nothing cached: {e}",
                extra={"cache_key": key, "source": e.source},
            )
            raise

        self.store.set(key, value)
        logger.debug("Cache refreshed", extra={"cache_key": key})
        return value

    def inflight_count(self) -> int:
        with self._lock:
            return len(self._inflight)


def get_fetcher() -> CachedFetcher:
    """Build a fetcher on the global cache using the configured TTL."""
    try:
        cfg = get_config()
    except ConfigurationError:
        cfg = load_config()
    return CachedFetcher(global_cache, ttl_seconds=cfg.cache_ttl)
