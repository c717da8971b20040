"""
Outbound JSON-over-HTTP helper with a hard per-attempt timeout and bounded retries.

Every failed attempt (transport error, timeout, or non-2xx status) is retried
after ``backoff_base * 2**attempt`` seconds until ``max_attempts`` is reached;
the last failure is then raised as :class:`HttpRequestError`.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from booky.core.logging import get_logger, log_event, monotonic_ms

logger = get_logger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class HttpRequestError(RuntimeError):
    def __init__(
        self,
        message: str,
        *,
        method: str,
        path: str,
        status: int | None = None,
        details: dict[str, Any] | None = None,
        attempts: int = 1,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.path = path
        self.status = status
        self.details = details or {}
        self.attempts = attempts

    @property
    def message(self) -> str:
        return str(self)


def backoff_delay(attempt: int, *, base: float) -> float:
    return base * (2**attempt)


def _json_or_none(resp: httpx.Response) -> Any:
    if not resp.content:
        return None
    try:
        return resp.json()
    except ValueError:
        return None


class ResilientHttpClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str = "",
        timeout_seconds: float = 10.0,
        max_attempts: int = 3,
        backoff_base_seconds: float = 0.3,
        sleep: Sleep = asyncio.sleep,
        transport: httpx.AsyncBaseTransport | None = None,
        service: str = "http",
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout = timeout_seconds
        self._max_attempts = max_attempts
        self._backoff_base = backoff_base_seconds
        self._sleep = sleep
        self._transport = transport
        self._service = service

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    def url_for(self, path: str) -> str:
        return self._base_url + path

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        method = method.upper()
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            for attempt in range(self._max_attempts):
                start = time.monotonic()
                try:
                    result = await self._attempt(client, method, path, body)
                except HttpRequestError as e:
                    e.attempts = attempt + 1
                    log_event(
                        logger,
                        "http.request.failure",
                        level=logging.WARNING,
                        service=self._service,
                        method=method,
                        path=path,
                        attempt=attempt + 1,
                        max_attempts=self._max_attempts,
                        status=e.status,
                        error=str(e),
                        duration_ms=monotonic_ms(start),
                    )
                    if attempt == self._max_attempts - 1:
                        log_event(
                            logger,
                            "http.request.exhausted",
                            level=logging.ERROR,
                            service=self._service,
                            method=method,
                            path=path,
                            attempts=e.attempts,
                            status=e.status,
                        )
                        raise
                else:
                    log_event(
                        logger,
                        "http.request.success",
                        service=self._service,
                        method=method,
                        path=path,
                        attempt=attempt + 1,
                        duration_ms=monotonic_ms(start),
                    )
                    return result

                delay = backoff_delay(attempt, base=self._backoff_base)
                log_event(
                    logger,
                    "http.request.retry_scheduled",
                    service=self._service,
                    method=method,
                    path=path,
                    next_attempt=attempt + 2,
                    delay_ms=int(delay * 1000),
                )
                await self._sleep(delay)
        raise RuntimeError("unreachable")

    async def _attempt(
        self, client: httpx.AsyncClient, method: str, path: str, body: Any
    ) -> Any:
        # httpx timeouts apply per read; wait_for bounds the whole attempt.
        try:
            resp = await asyncio.wait_for(
                client.request(
                    method,
                    self.url_for(path),
                    headers=self._headers(),
                    json=body,
                ),
                self._timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise HttpRequestError(
                f"Request timed out after {self._timeout}s", method=method, path=path
            ) from e
        except httpx.HTTPError as e:
            raise HttpRequestError(
                f"Request failed: {type(e).__name__}: {e}", method=method, path=path
            ) from e

        if not resp.is_success:
            parsed = _json_or_none(resp)
            details = parsed if isinstance(parsed, dict) else {}
            message = details.get("message") or f"HTTP {resp.status_code}"
            raise HttpRequestError(
                str(message),
                method=method,
                path=path,
                status=resp.status_code,
                details=details,
            )

        parsed = _json_or_none(resp)
        return parsed if parsed is not None else {}
