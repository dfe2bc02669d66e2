from __future__ import annotations

import json
from typing import Any, Callable

import httpx
import pytest

from vision_describe.client.stream import StreamConsumer


class _NDJSONStream(httpx.SyncByteStream):
    """Response body that records how many lines were read and whether it was closed."""

    def __init__(self, lines: list[bytes]) -> None:
        self.lines = lines
        self.pulled = 0
        self.closed = False

    @classmethod
    def of(cls, texts: list[str], done: bool = True, **final: Any) -> "_NDJSONStream":
        records: list[dict[str, Any]] = [{"model": "m", "response": t, "done": False} for t in texts]
        if done:
            records.append({"model": "m", "response": "", "done": True, "done_reason": "stop", **final})
        return cls([json.dumps(r, ensure_ascii=False).encode("utf-8") + b"\n" for r in records])

    def __iter__(self):
        for line in self.lines:
            self.pulled += 1
            yield line

    def close(self) -> None:
        self.closed = True


class _FakeService:
    """Stands in for /api/generate; answers each request with the next body."""

    def __init__(
        self,
        *bodies: _NDJSONStream | httpx.Response,
        error: Callable[[httpx.Request], Exception] | None = None,
    ) -> None:
        self.bodies = list(bodies)
        self.error = error
        self.requests: list[dict[str, Any]] = []
        self.urls: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        self.urls.append(str(request.url))
        if self.error is not None:
            raise self.error(request)
        body = self.bodies.pop(0)
        if isinstance(body, httpx.Response):
            return body
        return httpx.Response(200, stream=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def consumer(self, request_timeout: float = 5.0) -> StreamConsumer:
        return StreamConsumer("http://ollama.test", request_timeout, transport=self.transport)


@pytest.fixture
def ndjson() -> type[_NDJSONStream]:
    return _NDJSONStream


@pytest.fixture
def fake_service() -> type[_FakeService]:
    return _FakeService


@pytest.fixture
def image() -> bytes:
    return b"\xff\xd8\xff\xe0fake-jpeg"
