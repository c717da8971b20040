from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from booky.api.deps import get_recommendation_manager
from booky.core.logging import get_logger, log_event, preview
from booky.modules.recommendations.fallback import fallback_recommendations
from booky.modules.recommendations.manager import RecommendationManager
from booky.modules.recommendations.schemas import (
    CacheCleanOut,
    CacheStatsOut,
    RecommendRequest,
    RecommendResponse,
)

router = APIRouter(prefix="/groq", tags=["recommendations"])
logger = get_logger(__name__)


@router.post("/recommend", response_model=RecommendResponse)
async def recommend(
    payload: RecommendRequest,
    manager: RecommendationManager | None = Depends(get_recommendation_manager),
):
    prompt = payload.prompt.strip() if isinstance(payload.prompt, str) else ""
    if not prompt:
        return JSONResponse(status_code=400, content={"error": "Prompt is required"})

    if manager is None:
        log_event(logger, "recommendations.unavailable", prompt=preview(prompt, limit=100))
        return RecommendResponse(
            recommendations=fallback_recommendations(),
            source="fallback",
            error="Recommendation provider is not configured",
        )

    return await manager.get_recommendations(prompt)


@router.get("/cache/stats", response_model=CacheStatsOut)
async def cache_stats(
    manager: RecommendationManager | None = Depends(get_recommendation_manager),
) -> CacheStatsOut:
    if manager is None:
        return CacheStatsOut(size=0, entries=[])
    return CacheStatsOut.model_validate(await manager.get_cache_stats())


@router.post("/cache/clean", response_model=CacheCleanOut)
async def cache_clean(
    manager: RecommendationManager | None = Depends(get_recommendation_manager),
) -> CacheCleanOut:
    if manager is None:
        return CacheCleanOut(removed=0, size=0)
    removed = await manager.clean_cache()
    stats = await manager.get_cache_stats()
    return CacheCleanOut(removed=removed, size=stats["size"])
