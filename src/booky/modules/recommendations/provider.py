from __future__ import annotations

from typing import Any, Protocol

import httpx

from booky.core.logging import get_logger, log_event, preview
from booky.modules.recommendations.parsing import RecommendationParseError

logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are an expert event planner and venue specialist with deep knowledge of "
    "San Francisco Bay Area venues.\n\n"
    "IMPORTANT: You must respond with ONLY a valid JSON array. No additional text, "
    "explanations, or markdown formatting.\n\n"
    "Each venue recommendation should have this exact structure:\n"
    "{\n"
    '  "name": "Venue Name",\n'
    '  "reason": "Why it\'s perfect for this event",\n'
    '  "features": ["Feature 1", "Feature 2", "Feature 3", "Feature 4"],\n'
    '  "setup": "Suggested layout and setup description",\n'
    '  "catering": "Catering recommendations and options",\n'
    '  "costBreakdown": {\n'
    '    "venue": 2000,\n'
    '    "catering": 3000,\n'
    '    "extras": 500,\n'
    '    "total": 5500\n'
    "  }\n"
    "}\n\n"
    "Provide exactly 3 venue recommendations in a JSON array format."
)


class RecommendationProvider(Protocol):
    async def complete(self, prompt: str) -> str: ...


class GroqChatProvider:
    """Single chat-completion call against an OpenAI-compatible endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._url = base_url.rstrip("/") + "/chat/completions"
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._timeout = timeout_seconds
        self._transport = transport

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
        }

    async def complete(self, prompt: str) -> str:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            resp = await client.post(self._url, headers=headers, json=self._payload(prompt))
            resp.raise_for_status()

        try:
            raw = resp.json()
            content = raw["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise RecommendationParseError("Malformed chat completion response") from e

        if not isinstance(content, str) or not content.strip():
            raise RecommendationParseError("No content received from provider")
        log_event(logger, "recommendations.provider.reply", content=preview(content))
        return content
