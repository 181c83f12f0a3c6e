"""genstream API client package."""

from __future__ import annotations

from .client import ChatCompletionStream, CompletionStream, GenstreamClient  # noqa: F401
from .lines import LineReader  # noqa: F401
from .models import (  # noqa: F401
    ChatCompletionMessage,
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionStreamResponse,
    ChatMessageRole,
    CompletionRequest,
    CompletionResponse,
    ImageRequest,
    ImageResponse,
    Model,
    ModelDeleteResponse,
    ModelsList,
    StreamOptions,
)
from .parsing import ErrorAccumulator, EventDecoder, LineKind, error_from_body  # noqa: F401
from .stream import StreamReader  # noqa: F401
from .transport import HttpTransport, Transport  # noqa: F401
from .types import (  # noqa: F401
    ApiClientError,
    ApiConnectionError,
    ApiError,
    ApiResponseError,
    ApiTimeoutError,
    EndOfStream,
    RateLimitHeaders,
    RequestError,
    StreamCancelledError,
    StreamClosedError,
    StreamEvent,
    StreamingParseError,
    TooManyEmptyStreamMessagesError,
)
