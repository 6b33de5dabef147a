"""Helpers for building SSE payloads in tests."""

import json
from collections.abc import AsyncIterator
from typing import Any

import httpx


def sse_frame(data: dict[str, Any] | str) -> bytes:
    """Encode one ``data:`` frame."""
    payload = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False)
    return f"data: {payload}\n\n".encode()


def sse_body(*events: dict[str, Any] | str) -> bytes:
    return b"".join(sse_frame(event) for event in events)


class MockResponse:
    """Stand-in for a streaming ``httpx.Response``."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk


class RecordingByteStream(httpx.AsyncByteStream):
    """Response body that remembers whether the connection was released."""

    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks
        self.closed = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True
