"""Decoding of SSE data lines and server error envelopes."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError, field_validator

from genstream.api_client.types import ApiResponseError, RequestError, StreamingParseError

T = TypeVar("T")

DATA_PREFIX = b"data:"
DONE_SENTINEL = b"[DONE]"
MAX_ERROR_EXCERPT = 200
MAX_ERROR_BODY = 16 * 1024

# Comments and the non-data fields of text/event-stream.
SSE_IGNORED_PREFIXES = (b":", b"event:", b"id:", b"retry:")

_ERROR_PAYLOAD = re.compile(rb'^\{\s*"error"\s*:')


class LineKind(str, Enum):
    SKIP = "skip"
    IGNORED = "ignored"
    NOT_DATA = "not_data"
    DONE = "done"
    ERROR = "error"
    EVENT = "event"


@dataclass(frozen=True, slots=True)
class DecodedLine(Generic[T]):
    kind: LineKind
    payload: T | None = None
    raw: bytes = b""


class EventDecoder(Generic[T]):
    """Classify raw SSE lines and decode data payloads into ``payload_type``."""

    def __init__(self, payload_type: type[T] | Any) -> None:
        self._adapter: TypeAdapter[T] = TypeAdapter(payload_type)

    def classify(self, line: bytes) -> DecodedLine[T]:
        stripped = line.strip()
        if not stripped:
            return DecodedLine(LineKind.SKIP)

        if stripped.startswith(SSE_IGNORED_PREFIXES):
            return DecodedLine(LineKind.IGNORED)

        if not stripped.startswith(DATA_PREFIX):
            return DecodedLine(LineKind.NOT_DATA, raw=line)

        data = stripped[len(DATA_PREFIX) :].strip()
        if data == DONE_SENTINEL:
            return DecodedLine(LineKind.DONE)
        if _ERROR_PAYLOAD.match(data) and parse_error_envelope(data) is not None:
            return DecodedLine(LineKind.ERROR, raw=data)

        try:
            payload = self._adapter.validate_json(data)
        except ValidationError as exc:
            excerpt = data[:MAX_ERROR_EXCERPT].decode("utf-8", errors="replace")
            raise StreamingParseError(f"invalid stream payload: {excerpt}") from exc
        return DecodedLine(LineKind.EVENT, payload=payload, raw=data)


class _ErrorDetail(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: str = ""
    type: str | None = None
    code: Any = None
    param: Any = None

    @field_validator("message", mode="before")
    @classmethod
    def _join_message_list(cls, value: Any) -> Any:
        # Some backends report validation failures as a list of strings.
        if isinstance(value, list):
            return ", ".join(str(item) for item in value)
        return value


class _ErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="allow")

    error: _ErrorDetail | None = None


def parse_error_envelope(body: bytes) -> ApiResponseError | None:
    """Return the structured error in ``body``, or None when it is not an error envelope."""

    if not body.strip():
        return None
    try:
        envelope = _ErrorEnvelope.model_validate_json(body)
    except ValidationError:
        return None
    if envelope.error is None:
        return None
    detail = envelope.error
    return ApiResponseError(detail.message, type=detail.type, code=detail.code, param=detail.param)


def error_from_body(body: bytes, status_code: int, reason: str = "") -> ApiResponseError | RequestError:
    """Build the error for a failed response body, falling back to the raw bytes."""

    http_status = f"{status_code} {reason}".strip()
    parsed = parse_error_envelope(body)
    if parsed is None:
        return RequestError(http_status_code=status_code, http_status=http_status, body=body)
    parsed.http_status_code = status_code
    parsed.http_status = http_status
    return parsed


class ErrorAccumulator:
    """Collects bytes that arrived outside of ``data:`` framing.

    Only the first ``limit`` bytes are kept; ``truncated`` records whether
    anything was dropped.
    """

    def __init__(self, limit: int = MAX_ERROR_BODY) -> None:
        self._buffer = bytearray()
        self._limit = limit
        self.truncated = False

    def write(self, data: bytes) -> None:
        room = self._limit - len(self._buffer)
        if len(data) > room:
            self.truncated = True
        if room > 0:
            self._buffer.extend(data[:room])

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def __bool__(self) -> bool:
        return bool(self._buffer.strip())

    def unmarshal(self) -> ApiResponseError | None:
        return parse_error_envelope(self.getvalue())


__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "MAX_ERROR_BODY",
    "DecodedLine",
    "ErrorAccumulator",
    "EventDecoder",
    "LineKind",
    "error_from_body",
    "parse_error_envelope",
]
