from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from scratch_api.domain.exceptions import RemoteError
from scratch_api.domain.ports import CacheKey
from scratch_api.mapper import normalize_search_term

logger = logging.getLogger("scratch.cache")

GISTS_COLLECTION_TAG = "gists"
LIST_TAG = "list"
NOTE_TAG = "note"

_MISSING = object()


def collection_key() -> CacheKey:
    return (GISTS_COLLECTION_TAG,)


def list_key(search_term: str | None = None) -> CacheKey:
    needle = normalize_search_term(search_term)
    return (GISTS_COLLECTION_TAG, LIST_TAG, needle) if needle else (GISTS_COLLECTION_TAG, LIST_TAG)


def note_key(note_id: str) -> CacheKey:
    return (GISTS_COLLECTION_TAG, NOTE_TAG, note_id)


def keys_to_invalidate(note_id: str | None = None) -> list[CacheKey]:
    """Keys a successful mutation must invalidate.

    The bare collection key is a prefix of every list and note key, so
    invalidating it refreshes all of them; the per-note key is listed too
    for caches that only match exactly.
    """
    keys = [collection_key()]
    if note_id:
        keys.append(note_key(note_id))
    return keys


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, RemoteError) and exc.transient


@dataclass
class _Entry:
    value: Any
    expires_at: float | None


class MemoryCache:
    """In-process keyed cache.

    `invalidate(key)` drops every entry whose key starts with `key`. `fetch`
    shares one in-flight load per key and retries transient remote failures
    with exponential backoff.
    """

    def __init__(
        self,
        *,
        ttl_s: float | None = 60.0,
        retries: int = 2,
        backoff_s: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_s = ttl_s
        self.retries = retries
        self.backoff_s = backoff_s
        self._clock = clock
        self._entries: dict[CacheKey, _Entry] = {}
        self._in_flight: dict[CacheKey, asyncio.Future] = {}
        self._generation = 0

    def _lookup(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            return _MISSING
        return entry.value

    def _sweep_expired(self) -> None:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.expires_at is not None and now >= e.expires_at]
        for k in expired:
            del self._entries[k]

    def get(self, key: CacheKey) -> Any:
        value = self._lookup(key)
        return None if value is _MISSING else value

    def set(self, key: CacheKey, value: Any, ttl: float | None = None) -> None:
        ttl = self.ttl_s if ttl is None else ttl
        self._sweep_expired()
        expires_at = self._clock() + ttl if ttl is not None else None
        self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def invalidate(self, key: CacheKey) -> None:
        n = len(key)
        stale = [k for k in self._entries if k[:n] == key]
        for k in stale:
            self._entries.pop(k, None)
        # In-flight loads started before this point must not repopulate the cache.
        self._generation += 1
        logger.debug("cache_invalidate", extra={"key": key, "dropped": len(stale)})

    def clear(self) -> None:
        self._entries.clear()
        self._generation += 1

    async def _load_with_retry(self, loader: Callable[[], Awaitable[Any]]) -> Any:
        attempt = 0
        while True:
            try:
                return await loader()
            except Exception as e:
                if attempt >= self.retries or not _is_transient(e):
                    raise
                delay = self.backoff_s * (2**attempt)
                attempt += 1
                logger.warning("cache_load_retry", extra={"attempt": attempt, "delay_s": delay})
                await asyncio.sleep(delay)

    async def fetch(self, key: CacheKey, loader: Callable[[], Awaitable[Any]]) -> Any:
        cached = self._lookup(key)
        if cached is not _MISSING:
            return cached

        pending = self._in_flight.get(key)
        if pending is not None:
            return await asyncio.shield(pending)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._in_flight[key] = future
        generation = self._generation
        try:
            value = await self._load_with_retry(loader)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Waiters re-raise it; mark retrieved so a lone loader does not warn.
            future.exception()
            raise
        else:
            future.set_result(value)
            if generation == self._generation:
                self.set(key, value)
            return value
        finally:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]
