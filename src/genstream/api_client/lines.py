"""Buffered line reader over an async byte stream."""

from __future__ import annotations

from collections.abc import AsyncIterator

NEWLINE = b"\n"


class LineReader:
    """Yield newline-terminated lines from arbitrarily chunked bytes.

    A delimiter split across two reads is reassembled from the internal
    buffer. Bytes left over when the source is exhausted are returned as a
    final, unterminated line; after that ``next_line`` returns ``None``.
    Exceptions raised by the source propagate unchanged.
    """

    def __init__(self, chunks: AsyncIterator[bytes]) -> None:
        self._chunks = chunks
        self._buffer = bytearray()
        self._exhausted = False

    async def next_line(self) -> bytes | None:
        while True:
            index = self._buffer.find(NEWLINE)
            if index >= 0:
                line = bytes(self._buffer[: index + 1])
                del self._buffer[: index + 1]
                return line

            if self._exhausted:
                if self._buffer:
                    line = bytes(self._buffer)
                    self._buffer.clear()
                    return line
                return None

            try:
                chunk = await self._chunks.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                continue
            self._buffer.extend(chunk)


__all__ = ["LineReader"]
