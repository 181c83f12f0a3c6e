import json
from typing import Any

import httpx
import pytest

from genstream import __version__
from genstream.api_client.transport import HttpTransport


@pytest.mark.asyncio
async def test_http_transport_sends_json_and_sets_user_agent() -> None:
    recorded: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        recorded["method"] = request.method
        recorded["url"] = str(request.url)
        recorded["headers"] = request.headers
        recorded["payload"] = json.loads(request.content.decode())
        return httpx.Response(200, text="data: [DONE]\n", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpTransport(client=client)

    response = await transport.send(
        "POST", "https://api.test/v1/chat/completions", json={"hello": "world"}, headers={"X-Custom": "1"}
    )
    await transport.aclose()
    await client.aclose()

    assert response.status_code == 200
    assert recorded["method"] == "POST"
    assert recorded["url"] == "https://api.test/v1/chat/completions"
    assert recorded["payload"] == {"hello": "world"}
    assert recorded["headers"]["user-agent"] == f"genstream/{__version__}"
    assert recorded["headers"]["x-custom"] == "1"


@pytest.mark.asyncio
async def test_http_transport_stream_leaves_body_for_caller() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text='data: {"id":"a"}\n', request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpTransport(client=client, user_agent=None)

    response = await transport.send("POST", "https://api.test/v1/completions", stream=True)
    chunks = [chunk async for chunk in response.aiter_bytes()]
    await response.aclose()
    await client.aclose()

    assert b"".join(chunks) == b'data: {"id":"a"}\n'


@pytest.mark.asyncio
async def test_logging_hook_records_status_and_request_id() -> None:
    events: list[tuple[str, dict[str, object]]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="{}", headers={"x-request-id": "req-123"}, request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    transport = HttpTransport(client=client, logger=lambda e, d: events.append((e, d)))

    await transport.send("GET", "https://api.test/v1/models")
    await client.aclose()

    assert events and events[0][0] == "response_open"
    data = events[0][1]
    assert data["status"] == 200
    assert data["request_id"] == "req-123"
    assert data["method"] == "GET"
    assert data["stream"] is False


@pytest.mark.asyncio
async def test_http_transport_does_not_close_injected_client() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(204)))

    async with HttpTransport(client=client):
        pass

    assert not client.is_closed
    await client.aclose()


@pytest.mark.asyncio
async def test_http_transport_aclose_owned_client() -> None:
    transport = HttpTransport(timeout=5.0)
    await transport.aclose()

    assert transport.timeout == 5.0
