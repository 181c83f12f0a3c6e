"""genstream API client: endpoint wrappers and error mapping."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from genstream.api_client.models import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    ChatCompletionStreamResponse,
    CompletionRequest,
    CompletionResponse,
    ImageRequest,
    ImageResponse,
    Model,
    ModelDeleteResponse,
    ModelsList,
    is_valid_prompt,
)
from genstream.api_client.parsing import error_from_body
from genstream.api_client.stream import StreamReader, is_failure_status
from genstream.api_client.transport import HttpTransport, Transport
from genstream.api_client.types import (
    ApiClientError,
    ApiConnectionError,
    ApiError,
    ApiTimeoutError,
)
from genstream.config import Settings

ResponseT = TypeVar("ResponseT", bound=BaseModel)

ChatCompletionStream = StreamReader[ChatCompletionStreamResponse]
CompletionStream = StreamReader[CompletionResponse]

_LOGGER = logging.getLogger(__name__)


class GenstreamClient:
    """Async client for the chat, completion, image and models endpoints."""

    def __init__(self, settings: Settings | None = None, *, transport: Transport | None = None) -> None:
        self._settings = settings or Settings()
        self._owns_transport = transport is None
        self._transport: Transport = transport or HttpTransport(timeout=self._settings.timeout)

    @property
    def settings(self) -> Settings:
        return self._settings

    def full_url(self, suffix: str) -> str:
        return f"{self._settings.base_url}{suffix}"

    async def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        if request.stream:
            raise ApiClientError("stream=True is not supported here; use create_chat_completion_stream")
        return await self._request("POST", "/chat/completions", ChatCompletionResponse, body=request.to_payload())

    async def create_chat_completion_stream(
        self,
        request: ChatCompletionRequest,
        *,
        empty_messages_limit: int | None = None,
    ) -> ChatCompletionStream:
        payload = request.to_payload()
        payload["stream"] = True
        return await self._open_stream("/chat/completions", payload, ChatCompletionStreamResponse, empty_messages_limit)

    async def create_completion(self, request: CompletionRequest) -> CompletionResponse:
        if request.stream:
            raise ApiClientError("stream=True is not supported here; use create_completion_stream")
        _check_prompt(request)
        return await self._request("POST", "/completions", CompletionResponse, body=request.to_payload())

    async def create_completion_stream(
        self,
        request: CompletionRequest,
        *,
        empty_messages_limit: int | None = None,
    ) -> CompletionStream:
        _check_prompt(request)
        payload = request.to_payload()
        payload["stream"] = True
        return await self._open_stream("/completions", payload, CompletionResponse, empty_messages_limit)

    async def list_models(self) -> ModelsList:
        return await self._request("GET", "/models", ModelsList)

    async def get_model(self, model_id: str) -> Model:
        if not model_id.strip():
            raise ApiClientError("model_id cannot be empty")
        return await self._request("GET", f"/models/{model_id}", Model)

    async def delete_model(self, model_id: str) -> ModelDeleteResponse:
        """Delete a fine-tuned model owned by the caller's organization."""

        if not model_id.strip():
            raise ApiClientError("model_id cannot be empty")
        return await self._request("DELETE", f"/models/{model_id}", ModelDeleteResponse)

    async def create_image(self, request: ImageRequest) -> ImageResponse:
        return await self._request("POST", "/images/generations", ImageResponse, body=request.to_payload())

    async def aclose(self) -> None:
        if self._owns_transport and isinstance(self._transport, HttpTransport):
            await self._transport.aclose()

    async def __aenter__(self) -> GenstreamClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _headers(self, *, stream: bool) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if stream:
            headers["Accept"] = "text/event-stream"
            headers["Cache-Control"] = "no-cache"
            headers["Connection"] = "keep-alive"
        else:
            headers["Accept"] = "application/json"
        if self._settings.api_key:
            headers["Authorization"] = f"Bearer {self._settings.api_key}"
        return headers

    async def _send(self, method: str, suffix: str, *, body: Any = None, stream: bool) -> httpx.Response:
        url = self.full_url(suffix)
        try:
            headers = self._headers(stream=stream)
            return await self._transport.send(method, url, json=body, headers=headers, stream=stream)
        except httpx.TimeoutException as exc:
            raise ApiTimeoutError("request timed out") from exc
        except httpx.HTTPError as exc:
            raise ApiConnectionError(f"request failed: {exc}") from exc

    async def _request(
        self, method: str, suffix: str, response_type: type[ResponseT], *, body: Any = None
    ) -> ResponseT:
        response = await self._send(method, suffix, body=body, stream=False)
        if is_failure_status(response.status_code):
            raise error_from_body(response.content, response.status_code, response.reason_phrase)
        try:
            result = response_type.model_validate_json(response.content)
        except ValidationError as exc:
            raise ApiError(f"invalid response body for {suffix}") from exc
        result.set_headers(response.headers)  # type: ignore[attr-defined]
        return result

    async def _open_stream(
        self,
        suffix: str,
        payload: dict[str, Any],
        payload_type: type[ResponseT],
        empty_messages_limit: int | None,
    ) -> StreamReader[ResponseT]:
        response = await self._send("POST", suffix, body=payload, stream=True)
        if is_failure_status(response.status_code):
            try:
                body = await response.aread()
            except httpx.TimeoutException as exc:
                raise ApiTimeoutError("reading error response timed out") from exc
            except (httpx.HTTPError, httpx.StreamError) as exc:
                raise ApiConnectionError(f"reading error response failed: {exc}") from exc
            finally:
                await response.aclose()
            raise error_from_body(body, response.status_code, response.reason_phrase)

        limit = self._settings.empty_messages_limit if empty_messages_limit is None else empty_messages_limit
        _LOGGER.debug("stream opened: %s status=%d", suffix, response.status_code)
        return StreamReader(response, payload_type, empty_messages_limit=limit)


def _check_prompt(request: CompletionRequest) -> None:
    if not is_valid_prompt(request.prompt):
        raise ApiClientError("prompt must be a string or a list of strings")


__all__ = [
    "ChatCompletionStream",
    "CompletionStream",
    "GenstreamClient",
]
