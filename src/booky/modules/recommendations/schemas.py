from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

RecommendationSource = Literal["groq", "cache", "fallback"]


class CostBreakdown(BaseModel):
    venue: float = Field(default=0, ge=0)
    catering: float = Field(default=0, ge=0)
    extras: float = Field(default=0, ge=0)
    total: float = Field(default=0, ge=0)


class Recommendation(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    reason: str = Field(min_length=1)
    features: list[str] = Field(min_length=1)
    setup: str = Field(min_length=1)
    catering: str = Field(min_length=1)
    cost_breakdown: CostBreakdown | None = Field(default=None, alias="costBreakdown")


class RecommendRequest(BaseModel):
    prompt: Any = None


class Performance(BaseModel):
    duration: int = 0
    retries: int = 0


class RecommendResponse(BaseModel):
    recommendations: list[Recommendation]
    source: RecommendationSource
    cached: bool = False
    performance: Performance | None = None
    error: str | None = None


class CacheEntryStatsOut(BaseModel):
    key: str
    age: int
    expiresIn: int


class CacheStatsOut(BaseModel):
    size: int
    entries: list[CacheEntryStatsOut]


class CacheCleanOut(BaseModel):
    removed: int
    size: int
