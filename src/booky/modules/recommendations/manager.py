"""
Venue recommendations from an LLM provider with caching, retries and a static fallback.

``RecommendationManager.get_recommendations`` never raises: transport, HTTP and
parse failures are retried ``max_retries`` times with exponential backoff
(``retry_delay * 2**n``), after which the fixed fallback list is returned with
``source="fallback"``.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from typing import Any

from booky.core.config import Settings
from booky.core.http import Sleep, backoff_delay
from booky.core.logging import get_logger, log_event, log_exception, monotonic_ms
from booky.modules.recommendations.cache import (
    CacheEntry,
    Clock,
    RecommendationCache,
    build_recommendation_cache,
)
from booky.modules.recommendations.fallback import fallback_recommendations
from booky.modules.recommendations.parsing import parse_recommendations
from booky.modules.recommendations.provider import GroqChatProvider, RecommendationProvider
from booky.modules.recommendations.schemas import (
    Performance,
    Recommendation,
    RecommendResponse,
)

logger = get_logger(__name__)


def cache_key_for(prompt: str) -> str:
    return "groq_" + hashlib.sha256(prompt.encode("utf-8")).hexdigest()


class RecommendationManager:
    def __init__(
        self,
        provider: RecommendationProvider,
        cache: RecommendationCache,
        *,
        ttl_seconds: float = 300,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.time,
    ) -> None:
        self._provider = provider
        self._cache = cache
        self._ttl = ttl_seconds
        self._max_retries = max_retries
        self._retry_delay = retry_delay_seconds
        self._sleep = sleep
        self._clock = clock

    @property
    def cache(self) -> RecommendationCache:
        return self._cache

    async def get_recommendations(self, prompt: str) -> RecommendResponse:
        start = time.monotonic()
        key = cache_key_for(prompt)

        cached = await self._cache_get(key)
        if cached is not None:
            log_event(logger, "recommendations.cache.hit", cache_key=key)
            return RecommendResponse(
                recommendations=[Recommendation.model_validate(r) for r in cached.data],
                source="cache",
                cached=True,
                performance=Performance(duration=monotonic_ms(start), retries=0),
            )
        log_event(logger, "recommendations.cache.miss", level=logging.DEBUG, cache_key=key)

        try:
            recommendations, retries = await self._fetch(prompt)
        except Exception as e:
            log_exception(
                logger,
                "recommendations.fallback",
                cache_key=key,
                retries=self._max_retries,
                error=str(e),
            )
            return RecommendResponse(
                recommendations=fallback_recommendations(),
                source="fallback",
                cached=False,
                performance=Performance(duration=monotonic_ms(start), retries=self._max_retries),
            )

        await self._cache_put(key, recommendations)
        return RecommendResponse(
            recommendations=recommendations,
            source="groq",
            cached=False,
            performance=Performance(duration=monotonic_ms(start), retries=retries),
        )

    async def _fetch(self, prompt: str) -> tuple[list[Recommendation], int]:
        attempts = self._max_retries + 1
        for attempt in range(attempts):
            try:
                content = await self._provider.complete(prompt)
                recommendations = parse_recommendations(content)
            except Exception as e:
                log_event(
                    logger,
                    "recommendations.provider.failure",
                    level=logging.WARNING,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                if attempt == attempts - 1:
                    raise
                delay = backoff_delay(attempt, base=self._retry_delay)
                log_event(
                    logger,
                    "recommendations.provider.retry_scheduled",
                    next_attempt=attempt + 2,
                    delay_ms=int(delay * 1000),
                )
                await self._sleep(delay)
                continue

            log_event(
                logger,
                "recommendations.provider.success",
                attempt=attempt + 1,
                count=len(recommendations),
            )
            return recommendations, attempt
        raise RuntimeError("unreachable")

    async def _cache_get(self, key: str) -> CacheEntry | None:
        try:
            return await self._cache.get(key)
        except Exception:
            log_exception(logger, "recommendations.cache.read_error", cache_key=key)
            return None

    async def _cache_put(self, key: str, recommendations: list[Recommendation]) -> None:
        now = self._clock()
        entry = CacheEntry(
            key=key,
            data=[r.model_dump(by_alias=True, mode="json") for r in recommendations],
            created_at=now,
            expires_at=now + self._ttl,
        )
        try:
            await self._cache.put(key, entry)
        except Exception:
            log_exception(logger, "recommendations.cache.write_error", cache_key=key)
            return
        log_event(logger, "recommendations.cache.store", cache_key=key, ttl_seconds=self._ttl)

    async def clean_cache(self) -> int:
        removed = await self._cache.sweep_expired()
        log_event(logger, "recommendations.cache.clean", removed=removed)
        return removed

    async def get_cache_stats(self) -> dict[str, Any]:
        return await self._cache.stats()


def build_recommendation_manager(
    settings: Settings,
    *,
    cache: RecommendationCache | None = None,
    sleep: Sleep | None = None,
) -> RecommendationManager | None:
    if not settings.groq_api_key:
        log_event(logger, "recommendations.manager.disabled", level=logging.WARNING)
        return None

    provider = GroqChatProvider(
        api_key=settings.groq_api_key,
        base_url=settings.groq_base_url,
        model=settings.groq_model,
        temperature=settings.groq_temperature,
        max_tokens=settings.groq_max_tokens,
        timeout_seconds=settings.groq_timeout_seconds,
    )
    kwargs: dict[str, Any] = {}
    if sleep is not None:
        kwargs["sleep"] = sleep
    return RecommendationManager(
        provider,
        cache if cache is not None else build_recommendation_cache(settings),
        ttl_seconds=settings.recommendation_cache_ttl_seconds,
        max_retries=settings.recommendation_max_retries,
        retry_delay_seconds=settings.recommendation_retry_delay_seconds,
        **kwargs,
    )
