from __future__ import annotations

import asyncio
from typing import AsyncIterator, Callable

import httpx
import pytest


class ChunkStream(httpx.AsyncByteStream):
    """Response body handed out chunk by chunk, like a socket would."""

    def __init__(self, chunks: list[bytes], delay: float = 0.0) -> None:
        self._chunks = chunks
        self._delay = delay

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self._chunks:
            if self._delay:
                await asyncio.sleep(self._delay)
            yield chunk


Responder = Callable[..., httpx.Response]


def streamed_response(
    status: int,
    body: bytes = b"",
    *,
    chunk_size: int | None = None,
    delay: float = 0.0,
) -> httpx.Response:
    size = chunk_size or max(1, len(body))
    chunks = [body[i : i + size] for i in range(0, len(body), size)]
    return httpx.Response(status, stream=ChunkStream(chunks, delay))


@pytest.fixture
def respond() -> Responder:
    return streamed_response
