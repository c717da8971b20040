from __future__ import annotations

import json


class _StaticProvider:
    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.calls = 0

    async def complete(self, prompt: str) -> str:
        self.calls += 1
        return self.reply


def _reply() -> str:
    return json.dumps(
        [
            {
                "name": "SFJAZZ Center",
                "reason": "Acoustics",
                "features": ["Stage"],
                "setup": "Seated",
                "catering": "Bar service",
                "costBreakdown": {"venue": 1, "catering": 2, "extras": 3, "total": 6},
            }
        ]
    )


def test_recommend_requires_prompt(app):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post("/api/groq/recommend", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Prompt is required"}

    resp = client.post("/api/groq/recommend", json={"prompt": "   "})
    assert resp.status_code == 400

    resp = client.post("/api/groq/recommend", json={"prompt": 123})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Prompt is required"}


def test_recommend_without_api_key_serves_fallback(app):
    from fastapi.testclient import TestClient

    client = TestClient(app)
    resp = client.post("/api/groq/recommend", json={"prompt": "jazz club for 200"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["source"] == "fallback"
    assert len(data["recommendations"]) == 3
    assert data["recommendations"][0]["costBreakdown"]["total"] == 6800
    assert data["error"]

    stats = client.get("/api/groq/cache/stats").json()
    assert stats == {"size": 0, "entries": []}


def test_recommend_uses_manager_and_cache(app):
    from fastapi.testclient import TestClient

    from booky.api.deps import get_recommendation_manager
    from booky.modules.recommendations.cache import InMemoryRecommendationCache
    from booky.modules.recommendations.manager import RecommendationManager

    provider = _StaticProvider(_reply())
    manager = RecommendationManager(provider, InMemoryRecommendationCache())
    app.dependency_overrides[get_recommendation_manager] = lambda: manager

    client = TestClient(app)
    first = client.post("/api/groq/recommend", json={"prompt": "jazz club for 200"}).json()
    second = client.post("/api/groq/recommend", json={"prompt": "jazz club for 200"}).json()

    assert first["source"] == "groq"
    assert first["recommendations"][0]["name"] == "SFJAZZ Center"
    assert first["performance"]["retries"] == 0
    assert second["source"] == "cache"
    assert second["cached"] is True
    assert provider.calls == 1

    stats = client.get("/api/groq/cache/stats").json()
    assert stats["size"] == 1
    assert stats["entries"][0]["key"].startswith("groq_")

    cleaned = client.post("/api/groq/cache/clean").json()
    assert cleaned == {"removed": 0, "size": 1}


def test_healthz(app):
    from fastapi.testclient import TestClient

    assert TestClient(app).get("/healthz").json() == {"status": "ok"}
