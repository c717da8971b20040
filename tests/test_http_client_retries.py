from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from booky.core.http import HttpRequestError, ResilientHttpClient, backoff_delay


def _recording_sleep(delays: list[float]):
    async def _sleep(seconds: float) -> None:
        delays.append(seconds)

    return _sleep


def _client(handler, delays: list[float], **kwargs) -> ResilientHttpClient:
    return ResilientHttpClient(
        base_url="https://mail.test/",
        sleep=_recording_sleep(delays),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_backoff_delay_doubles_per_attempt():
    assert [backoff_delay(i, base=0.3) for i in range(3)] == pytest.approx([0.3, 0.6, 1.2])


def test_request_recovers_before_attempts_run_out():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(503, json={"message": "unavailable"})
        return httpx.Response(200, json={"ok": True})

    delays: list[float] = []
    result = asyncio.run(_client(handler, delays).request("GET", "/inboxes"))

    assert result == {"ok": True}
    assert len(calls) == 3
    assert delays == pytest.approx([0.3, 0.6])


def test_request_raises_last_error_after_exactly_max_attempts():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(500, json={"message": "boom", "code": "internal"})

    delays: list[float] = []
    with pytest.raises(HttpRequestError) as exc_info:
        asyncio.run(_client(handler, delays).request("POST", "/send", {"to": ["a@b.c"]}))

    err = exc_info.value
    assert len(calls) == 3
    assert err.attempts == 3
    assert err.status == 500
    assert err.message == "boom"
    assert err.details == {"message": "boom", "code": "internal"}
    assert err.method == "POST"
    assert err.path == "/send"
    # No wait after the final attempt.
    assert delays == pytest.approx([0.3, 0.6])
    assert delays == sorted(delays)


def test_non_json_error_body_synthesizes_message_from_status():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="<html>bad gateway</html>")

    with pytest.raises(HttpRequestError) as exc_info:
        asyncio.run(_client(handler, [], max_attempts=1).request("GET", "/aliases/x"))

    assert exc_info.value.message == "HTTP 502"
    assert exc_info.value.status == 502
    assert exc_info.value.details == {}


def test_empty_success_body_returns_empty_object():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"")

    assert asyncio.run(_client(handler, []).request("POST", "/aliases", {})) == {}


def test_timeouts_are_retried_and_chained():
    calls: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        raise httpx.ReadTimeout("timed out", request=request)

    delays: list[float] = []
    with pytest.raises(HttpRequestError) as exc_info:
        asyncio.run(_client(handler, delays, timeout_seconds=10.0).request("GET", "/inboxes"))

    assert len(calls) == 3
    assert exc_info.value.status is None
    assert isinstance(exc_info.value.__cause__, httpx.TimeoutException)
    assert "timed out" in exc_info.value.message


def test_bearer_header_only_sent_with_api_key():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    asyncio.run(_client(handler, []).request("GET", "/a"))
    asyncio.run(_client(handler, [], api_key="secret").request("POST", "/b", {"x": 1}))

    assert "authorization" not in seen[0].headers
    assert seen[1].headers["authorization"] == "Bearer secret"
    assert str(seen[1].url) == "https://mail.test/b"
    assert json.loads(seen[1].content) == {"x": 1}


def test_rejects_non_positive_attempt_budget():
    with pytest.raises(ValueError):
        ResilientHttpClient(base_url="https://mail.test", max_attempts=0)


def test_timeout_bounds_the_whole_attempt_against_a_slow_body():
    body = json.dumps({"a": "xxxxxxxxxxx"}).encode()

    async def trickle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        await reader.readuntil(b"\r\n\r\n")
        writer.write(
            b"HTTP/1.1 200 OK\r\nContent-Type: application/json\r\n"
            + f"Content-Length: {len(body)}\r\n\r\n".encode()
        )
        try:
            for byte in body:
                if reader.at_eof():
                    break
                writer.write(bytes([byte]))
                await writer.drain()
                await asyncio.sleep(0.15)
        except ConnectionError:
            pass
        finally:
            writer.close()

    async def run() -> float:
        server = await asyncio.start_server(trickle, "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        client = ResilientHttpClient(
            base_url=f"http://127.0.0.1:{port}", timeout_seconds=0.5, max_attempts=1
        )
        loop = asyncio.get_running_loop()
        start = loop.time()
        try:
            with pytest.raises(HttpRequestError) as exc_info:
                await client.request("GET", "/slow")
            elapsed = loop.time() - start
        finally:
            server.close()
            await server.wait_closed()
        assert "timed out" in str(exc_info.value)
        assert exc_info.value.status is None
        return elapsed

    assert asyncio.run(run()) < 1.5
