"""Transport abstraction for the genstream API client."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import httpx

from genstream import __version__

DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=5.0)


class Transport(Protocol):
    """Protocol for sending one HTTP request and returning the (possibly unread) response."""

    async def send(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        """Send a request; with ``stream=True`` the body is left unread for the caller."""


class HttpTransport:
    """httpx-based transport."""

    def __init__(
        self,
        *,
        timeout: httpx.Timeout | float | None = None,
        client: httpx.AsyncClient | None = None,
        user_agent: str | None = f"genstream/{__version__}",
        logger: Callable[[str, dict[str, object]], None] | None = None,
    ) -> None:
        self.timeout = timeout or DEFAULT_TIMEOUT
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self._user_agent = user_agent
        self._logger = logger

    async def send(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> httpx.Response:
        request_headers = dict(headers or {})
        if self._user_agent:
            request_headers.setdefault("User-Agent", self._user_agent)

        request = self._client.build_request(method, url, json=json, headers=request_headers, timeout=self.timeout)
        start = time.perf_counter()
        response = await self._client.send(request, stream=stream)
        if self._logger:
            self._logger(
                "response_open",
                {
                    "method": method,
                    "url": url,
                    "status": response.status_code,
                    "request_id": response.headers.get("x-request-id"),
                    "duration_sec": time.perf_counter() - start,
                    "stream": stream,
                },
            )
        return response

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpTransport:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


__all__ = ["DEFAULT_TIMEOUT", "HttpTransport", "Transport"]
