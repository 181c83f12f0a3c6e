import pathlib
import shutil
import sys
from collections.abc import AsyncIterator, Iterable
from typing import Any

import httpx
import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

# Ensure src/ is importable when running tests without installing the package.
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture(autouse=True)
def _isolate_genstream_home(monkeypatch: pytest.MonkeyPatch):
    """Point GENSTREAM_HOME at a repo-local sandbox so we never touch the real FS."""

    home = PROJECT_ROOT / ".work"
    if home.exists():
        shutil.rmtree(home, ignore_errors=True)
    home.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("GENSTREAM_HOME", str(home))
    monkeypatch.delenv("GENSTREAM_API_KEY", raising=False)
    monkeypatch.delenv("GENSTREAM_BASE_URL", raising=False)
    yield


# ============================================================================
# Streaming response fixtures
# ============================================================================


class CountingBody:
    """Async byte source that records how many chunks were pulled."""

    def __init__(self, chunks: Iterable[bytes], *, error: BaseException | None = None) -> None:
        self.chunks = list(chunks)
        self.error = error
        self.reads = 0

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            self.reads += 1
            yield chunk
        if self.error is not None:
            raise self.error


def make_stream_response(
    body: Any,
    *,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build an unread streaming response whose body is an async iterable of bytes."""

    if isinstance(body, list):
        body = CountingBody(body)
    request = httpx.Request("POST", "https://api.test/v1/chat/completions")
    return httpx.Response(status_code, headers=headers or {}, content=body, request=request)


@pytest.fixture
def counting_body() -> type[CountingBody]:
    return CountingBody


@pytest.fixture
def stream_response():
    """Factory fixture for streaming responses built from byte chunks."""

    return make_stream_response


# ============================================================================
# HTTP transport fixtures
# ============================================================================


@pytest.fixture
def mock_http_handler():
    """Factory fixture for creating httpx request handlers with custom responses."""

    def _handler(
        status_code: int = 200,
        text: str = "",
        headers: dict[str, str] | None = None,
        record_request: dict[str, Any] | None = None,
    ):
        def handler(request: httpx.Request) -> httpx.Response:
            if record_request is not None:
                record_request["method"] = request.method
                record_request["headers"] = dict(request.headers)
                record_request["url"] = str(request.url)
                record_request["content"] = request.content
            return httpx.Response(status_code, text=text, headers=headers or {}, request=request)

        return handler

    return _handler


@pytest.fixture
def mock_http_client(mock_http_handler):
    """Fixture factory that provides an httpx.AsyncClient with MockTransport."""

    def _client(handler=None):
        if handler is None:
            handler = mock_http_handler()
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _client
