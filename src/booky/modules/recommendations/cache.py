"""
Recommendation cache backends.

Entries expire lazily: an expired entry is dropped the first time it is read
(or by an explicit ``sweep_expired``); nothing runs on a timer.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import asdict, dataclass
from typing import Any, Protocol

import redis.asyncio as aioredis

from booky.core.logging import get_logger, log_event

logger = get_logger(__name__)

Clock = Callable[[], float]


@dataclass(frozen=True)
class CacheEntry:
    key: str
    data: list[dict[str, Any]]
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


def entry_stats(entry: CacheEntry, *, now: float) -> dict[str, Any]:
    return {
        "key": entry.key,
        "age": int((now - entry.created_at) * 1000),
        "expiresIn": int((entry.expires_at - now) * 1000),
    }


class RecommendationCache(Protocol):
    async def get(self, key: str) -> CacheEntry | None: ...

    async def put(self, key: str, entry: CacheEntry) -> None: ...

    async def sweep_expired(self) -> int: ...

    async def stats(self) -> dict[str, Any]: ...


class InMemoryRecommendationCache:
    """Process-local cache; shared by every request served by this process."""

    def __init__(self, *, clock: Clock = time.time) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    async def put(self, key: str, entry: CacheEntry) -> None:
        self._entries[key] = entry

    async def sweep_expired(self) -> int:
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def stats(self) -> dict[str, Any]:
        now = self._clock()
        return {
            "size": len(self._entries),
            "entries": [entry_stats(e, now=now) for e in self._entries.values()],
        }


class RedisRecommendationCache:
    """Shared cache for multi-instance deployments; Redis enforces the TTL."""

    def __init__(
        self,
        client: aioredis.Redis,
        *,
        prefix: str = "booky:recommendations:",
        clock: Clock = time.time,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._clock = clock

    def _redis_key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def _load(self, raw: Any) -> CacheEntry | None:
        if raw is None:
            return None
        try:
            obj = json.loads(raw)
            return CacheEntry(**obj)
        except (TypeError, ValueError):
            return None

    async def get(self, key: str) -> CacheEntry | None:
        redis_key = self._redis_key(key)
        entry = self._load(await self._client.get(redis_key))
        if entry is None:
            return None
        if entry.is_expired(self._clock()):
            await self._client.delete(redis_key)
            return None
        return entry

    async def put(self, key: str, entry: CacheEntry) -> None:
        ttl = max(1, int(round(entry.expires_at - entry.created_at)))
        await self._client.set(self._redis_key(key), json.dumps(asdict(entry)), ex=ttl)

    async def _scan(self) -> list[tuple[str, CacheEntry | None]]:
        out = []
        async for redis_key in self._client.scan_iter(match=f"{self._prefix}*"):
            out.append((redis_key, self._load(await self._client.get(redis_key))))
        return out

    async def sweep_expired(self) -> int:
        now = self._clock()
        removed = 0
        for redis_key, entry in await self._scan():
            if entry is None or entry.is_expired(now):
                await self._client.delete(redis_key)
                removed += 1
        return removed

    async def stats(self) -> dict[str, Any]:
        now = self._clock()
        entries = [entry_stats(e, now=now) for _, e in await self._scan() if e is not None]
        return {"size": len(entries), "entries": entries}


def build_recommendation_cache(settings) -> RecommendationCache:
    if settings.recommendation_cache_backend == "redis":
        log_event(logger, "recommendations.cache.backend", backend="redis")
        return RedisRecommendationCache(aioredis.from_url(settings.redis_url))
    return InMemoryRecommendationCache()
