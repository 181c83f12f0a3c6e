"""Stream session turning a streaming HTTP response into decoded events.

A :class:`StreamReader` is consumed by exactly one task. ``recv()`` is the
only suspension point and nothing reads the connection in the background, so
the server is throttled by the consumer's pace. Once a terminal condition
(end of stream, decode error, server error, stall, transport failure,
cancellation or close) has been raised the reader is sealed: every later
``recv()`` re-raises it without touching the connection.

``aclose()`` is not synchronized with a pending ``recv()``; to abort a read
in progress, cancel the consuming task instead.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any, Generic, TypeVar

import httpx

from genstream.api_client.lines import LineReader
from genstream.api_client.parsing import ErrorAccumulator, EventDecoder, LineKind, error_from_body
from genstream.api_client.types import (
    ApiConnectionError,
    ApiError,
    ApiTimeoutError,
    EndOfStream,
    StreamCancelledError,
    StreamClosedError,
    StreamEvent,
    TooManyEmptyStreamMessagesError,
)
from genstream.config import DEFAULT_EMPTY_MESSAGES_LIMIT

T = TypeVar("T")

_LOGGER = logging.getLogger(__name__)


def is_failure_status(status_code: int) -> bool:
    return status_code < 200 or status_code >= 400


class StreamReader(Generic[T]):
    """Single-consumer reader of ``data:`` framed events decoded into ``payload_type``."""

    def __init__(
        self,
        response: httpx.Response,
        payload_type: type[T] | Any,
        *,
        empty_messages_limit: int = DEFAULT_EMPTY_MESSAGES_LIMIT,
    ) -> None:
        if empty_messages_limit < 0:
            raise ValueError("empty_messages_limit cannot be negative")
        self._response = response
        self._reader = LineReader(response.aiter_bytes())
        self._decoder: EventDecoder[T] = EventDecoder(payload_type)
        self._errors = ErrorAccumulator()
        self._empty_messages_limit = empty_messages_limit
        self._terminal: BaseException | None = None
        self.headers = response.headers
        self.status_code = response.status_code
        self.empty_reads = 0
        self.closed = False

    @property
    def sealed(self) -> bool:
        return self._terminal is not None

    async def recv(self) -> StreamEvent[T]:
        """Return the next event, or raise the stream's terminal condition."""

        if self._terminal is not None:
            raise self._terminal.with_traceback(None)

        try:
            return await self._next_event()
        except asyncio.CancelledError:
            self._seal(StreamCancelledError("stream read cancelled"))
            await self.aclose()
            raise
        except (ApiError, EndOfStream) as exc:
            self._seal(exc)
            raise
        except httpx.TimeoutException as exc:
            err = ApiTimeoutError("stream read timed out")
            self._seal(err)
            raise err from exc
        except (httpx.HTTPError, httpx.StreamError) as exc:
            err = ApiConnectionError(f"stream read failed: {exc}")
            self._seal(err)
            raise err from exc
        except Exception as exc:
            # Byte sources behind a custom transport may raise plain OS errors.
            err = ApiConnectionError(f"stream read failed: {exc!r}")
            self._seal(err)
            raise err from exc

    async def _next_event(self) -> StreamEvent[T]:
        while True:
            line = await self._reader.next_line()
            if line is None:
                raise self._seal(self._end_of_input())

            decoded = self._decoder.classify(line)

            if decoded.kind is LineKind.EVENT:
                self.empty_reads = 0
                return StreamEvent(data=decoded.payload, headers=self.headers)  # type: ignore[arg-type]

            if decoded.kind is LineKind.SKIP:
                self.empty_reads += 1
                if self.empty_reads > self._empty_messages_limit:
                    _LOGGER.warning("stream stalled after %d empty messages", self.empty_reads)
                    raise self._seal(
                        TooManyEmptyStreamMessagesError(
                            f"stream has sent too many empty messages (limit {self._empty_messages_limit})"
                        )
                    )
                continue

            if decoded.kind is LineKind.IGNORED:
                continue

            if decoded.kind is LineKind.NOT_DATA:
                self._errors.write(decoded.raw)
                continue

            if decoded.kind is LineKind.ERROR:
                raise self._seal(error_from_body(decoded.raw, self.status_code, self._response.reason_phrase))

            raise self._seal(EndOfStream())

    def _end_of_input(self) -> BaseException:
        if self._errors or is_failure_status(self.status_code):
            return error_from_body(self._errors.getvalue(), self.status_code, self._response.reason_phrase)
        # Servers may close the connection without sending [DONE].
        return EndOfStream()

    def _seal(self, condition: BaseException) -> BaseException:
        if self._terminal is None:
            self._terminal = condition
            if isinstance(condition, EndOfStream):
                _LOGGER.debug("stream finished")
            else:
                _LOGGER.debug("stream sealed: %r", condition)
        return condition

    async def aclose(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._seal(StreamClosedError("stream closed"))
        await self._response.aclose()
        _LOGGER.debug("stream connection released")

    def __aiter__(self) -> AsyncIterator[StreamEvent[T]]:
        return self

    async def __anext__(self) -> StreamEvent[T]:
        try:
            return await self.recv()
        except EndOfStream:
            raise StopAsyncIteration from None

    async def __aenter__(self) -> StreamReader[T]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()


__all__ = ["StreamReader", "is_failure_status"]
