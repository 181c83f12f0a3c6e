"""Error hierarchy and stream event types for the genstream API client."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

import httpx

T = TypeVar("T")


class ApiError(Exception):
    """Base class for API-related errors."""


class ApiResponseError(ApiError):
    """Structured error reported by the server in an ``{"error": {...}}`` envelope."""

    def __init__(
        self,
        message: str,
        *,
        type: str | None = None,
        code: Any = None,
        param: Any = None,
        http_status_code: int | None = None,
        http_status: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = type
        self.code = code
        self.param = param
        self.http_status_code = http_status_code
        self.http_status = http_status

    def __str__(self) -> str:
        if self.http_status_code:
            return f"error, status code: {self.http_status_code}, status: {self.http_status}, message: {self.message}"
        return self.message


class RequestError(ApiError):
    """Error response whose body could not be parsed as an error envelope."""

    def __init__(
        self,
        *,
        http_status_code: int,
        http_status: str,
        body: bytes = b"",
        message: str | None = None,
    ) -> None:
        super().__init__(message or f"request failed with status {http_status_code}")
        self.http_status_code = http_status_code
        self.http_status = http_status
        self.body = body

    def __str__(self) -> str:
        text = self.body.decode("utf-8", errors="replace")
        suffix = f" body={text}" if text else ""
        message = self.args[0]
        return f"error, status code: {self.http_status_code}, status: {self.http_status}, message: {message}{suffix}"


class ApiClientError(ApiError):
    """Request rejected locally before it was sent."""


class ApiConnectionError(ApiError):
    """Transport failure while sending a request or reading a stream."""


class ApiTimeoutError(ApiConnectionError):
    """Network timeout."""


class StreamingParseError(ApiError):
    """Raised when a streamed data line cannot be decoded."""


class TooManyEmptyStreamMessagesError(ApiError):
    """Raised when a stream keeps sending blank lines past the configured limit."""


class StreamCancelledError(ApiError):
    """The task consuming the stream was cancelled while a read was pending."""


class StreamClosedError(ApiError):
    """The stream was closed before it reached a terminal condition."""


class EndOfStream(Exception):
    """Graceful end of a streamed response."""


def _int_header(headers: httpx.Headers, name: str) -> int:
    try:
        return int(headers.get(name, ""))
    except ValueError:
        return 0


@dataclass(frozen=True, slots=True)
class RateLimitHeaders:
    """Rate limit counters reported in ``x-ratelimit-*`` response headers."""

    limit_requests: int = 0
    limit_tokens: int = 0
    remaining_requests: int = 0
    remaining_tokens: int = 0
    reset_requests: str = ""
    reset_tokens: str = ""

    @classmethod
    def from_headers(cls, headers: httpx.Headers) -> RateLimitHeaders:
        return cls(
            limit_requests=_int_header(headers, "x-ratelimit-limit-requests"),
            limit_tokens=_int_header(headers, "x-ratelimit-limit-tokens"),
            remaining_requests=_int_header(headers, "x-ratelimit-remaining-requests"),
            remaining_tokens=_int_header(headers, "x-ratelimit-remaining-tokens"),
            reset_requests=headers.get("x-ratelimit-reset-requests", ""),
            reset_tokens=headers.get("x-ratelimit-reset-tokens", ""),
        )


@dataclass(frozen=True, slots=True)
class StreamEvent(Generic[T]):
    """One decoded payload from a streamed response."""

    data: T
    headers: httpx.Headers

    @property
    def rate_limits(self) -> RateLimitHeaders:
        return RateLimitHeaders.from_headers(self.headers)


__all__ = [
    "ApiClientError",
    "ApiConnectionError",
    "ApiError",
    "ApiResponseError",
    "ApiTimeoutError",
    "EndOfStream",
    "RateLimitHeaders",
    "RequestError",
    "StreamCancelledError",
    "StreamClosedError",
    "StreamEvent",
    "StreamingParseError",
    "TooManyEmptyStreamMessagesError",
]
