"""Request and response payload shapes for the chat, completion, image and models endpoints."""

from __future__ import annotations

from enum import Enum
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from genstream.api_client.types import RateLimitHeaders


class ChatMessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class _Payload(BaseModel):
    """Response payloads tolerate fields this client does not model."""

    model_config = ConfigDict(extra="allow")


class _Request(BaseModel):
    model_config = ConfigDict(extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


class _HeaderedResponse(_Payload):
    """Non-streaming response that keeps the HTTP headers it arrived with."""

    _headers: httpx.Headers = PrivateAttr(default_factory=httpx.Headers)

    @property
    def headers(self) -> httpx.Headers:
        return self._headers

    def set_headers(self, headers: httpx.Headers) -> None:
        self._headers = headers

    @property
    def rate_limits(self) -> RateLimitHeaders:
        return RateLimitHeaders.from_headers(self._headers)


class StreamOptions(_Request):
    include_usage: bool | None = None


class FunctionCall(_Payload):
    name: str | None = None
    arguments: str | None = None


class ToolCall(_Payload):
    index: int | None = None
    id: str | None = None
    type: str | None = None
    function: FunctionCall | None = None


class ChatCompletionMessage(_Payload):
    role: ChatMessageRole | str
    content: str | None = None
    name: str | None = None
    tool_calls: list[ToolCall] | None = None
    tool_call_id: str | None = None


class Usage(_Payload):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionRequest(_Request):
    model: str
    messages: list[ChatCompletionMessage]
    max_tokens: int | None = None
    temperature: float | None = None
    top_p: float | None = None
    n: int | None = None
    stream: bool | None = None
    stop: list[str] | None = None
    presence_penalty: float | None = None
    frequency_penalty: float | None = None
    seed: int | None = None
    user: str | None = None
    tools: list[dict[str, Any]] | None = None
    tool_choice: Any = None
    response_format: dict[str, Any] | None = None
    metadata: dict[str, str] | None = None
    stream_options: StreamOptions | None = None

    @field_validator("messages")
    @classmethod
    def _validate_messages(cls, value: list[ChatCompletionMessage]) -> list[ChatCompletionMessage]:
        if not value:
            raise ValueError("messages cannot be empty")
        return value


class ChatCompletionChoice(_Payload):
    index: int = 0
    message: ChatCompletionMessage
    finish_reason: str | None = None


class ChatCompletionResponse(_HeaderedResponse):
    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[ChatCompletionChoice] = Field(default_factory=list)
    usage: Usage | None = None


class ChatCompletionStreamDelta(_Payload):
    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCall] | None = None


class ChatCompletionStreamChoice(_Payload):
    index: int = 0
    delta: ChatCompletionStreamDelta = Field(default_factory=ChatCompletionStreamDelta)
    finish_reason: str | None = None


class ChatCompletionStreamResponse(_Payload):
    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[ChatCompletionStreamChoice] = Field(default_factory=list)
    usage: Usage | None = None


class CompletionRequest(_Request):
    model: str
    prompt: Any = None
    best_of: int | None = None
    echo: bool | None = None
    frequency_penalty: float | None = None
    logit_bias: dict[str, int] | None = None
    logprobs: int | None = None
    max_tokens: int | None = None
    n: int | None = None
    presence_penalty: float | None = None
    seed: int | None = None
    stop: list[str] | None = None
    stream: bool | None = None
    suffix: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    user: str | None = None
    metadata: dict[str, str] | None = None
    stream_options: StreamOptions | None = None


class LogprobResult(_Payload):
    tokens: list[str] = Field(default_factory=list)
    token_logprobs: list[float] = Field(default_factory=list)
    top_logprobs: list[dict[str, float]] = Field(default_factory=list)
    text_offset: list[int] = Field(default_factory=list)


class CompletionChoice(_Payload):
    text: str = ""
    index: int = 0
    finish_reason: str | None = None
    logprobs: LogprobResult | None = None


class CompletionResponse(_HeaderedResponse):
    """Completion result; streamed completions reuse this shape per chunk."""

    id: str = ""
    object: str = ""
    created: int = 0
    model: str = ""
    choices: list[CompletionChoice] = Field(default_factory=list)
    usage: Usage | None = None


class Model(_HeaderedResponse):
    id: str
    object: str = "model"
    created: int = 0
    owned_by: str = ""
    root: str = ""
    parent: str = ""


class ModelsList(_HeaderedResponse):
    models: list[Model] = Field(default_factory=list, alias="data")


class ModelDeleteResponse(_HeaderedResponse):
    id: str = ""
    object: str = ""
    deleted: bool = False


class ImageRequest(_Request):
    prompt: str
    model: str | None = None
    n: int | None = None
    quality: str | None = None
    size: str | None = None
    style: str | None = None
    response_format: str | None = None
    user: str | None = None
    guidance_scale: float | None = None
    seed: int | None = None

    @field_validator("prompt")
    @classmethod
    def _validate_prompt(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt cannot be empty")
        return value


class ImageData(_Payload):
    url: str | None = None
    b64_json: str | None = None
    revised_prompt: str | None = None


class ImageResponse(_HeaderedResponse):
    created: int = 0
    data: list[ImageData] = Field(default_factory=list)


def is_valid_prompt(prompt: Any) -> bool:
    """Return True when ``prompt`` is a string or a list made only of strings."""

    if isinstance(prompt, str):
        return True
    if isinstance(prompt, list):
        return all(isinstance(item, str) for item in prompt)
    return False


__all__ = [
    "ChatCompletionChoice",
    "ChatCompletionMessage",
    "ChatCompletionRequest",
    "ChatCompletionResponse",
    "ChatCompletionStreamChoice",
    "ChatCompletionStreamDelta",
    "ChatCompletionStreamResponse",
    "ChatMessageRole",
    "CompletionChoice",
    "CompletionRequest",
    "CompletionResponse",
    "FunctionCall",
    "ImageData",
    "ImageRequest",
    "ImageResponse",
    "LogprobResult",
    "Model",
    "ModelDeleteResponse",
    "ModelsList",
    "StreamOptions",
    "ToolCall",
    "Usage",
    "is_valid_prompt",
]
