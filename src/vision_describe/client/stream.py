"""Streaming client for an Ollama-compatible ``/api/generate`` endpoint.

The response is NDJSON: one object per line with a ``response`` text fragment
and a ``done`` flag. The record with ``"done": true`` ends the stream; a
connection that closes before it is a transport failure.
"""
from __future__ import annotations
import enum
import json
import logging
import time
from contextlib import closing
from typing import Any, Callable, Iterator

import httpx

from vision_describe.client.cancellation import CancelToken, Deadline, check_cancelled
from vision_describe.common.errors import CancelledError, ServiceError, TransportError
from vision_describe.common.schema import GenerationRequest, GenerationStats, ResponseChunk

LOGGER = logging.getLogger("vision_describe.client.stream")

GENERATE_PATH = "/api/generate"


class StreamState(enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ABORTED = "aborted"


def _stats_from(record: dict[str, Any]) -> GenerationStats:
    total_ns = record.get("total_duration")
    return GenerationStats(
        done_reason=record.get("done_reason"),
        prompt_tokens=record.get("prompt_eval_count"),
        completion_tokens=record.get("eval_count"),
        total_duration_ms=int(total_ns / 1_000_000) if isinstance(total_ns, (int, float)) else None,
    )


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
    except ValueError:
        pass
    return response.text.strip() or response.reason_phrase


class StreamConsumer:
    """
    Runs one generation attempt at a time against the service.

    ``state`` describes the latest attempt only, so use one consumer per
    concurrent attempt.

    Each attempt opens its own ``httpx.Client``; the connection is closed on
    every exit path, including an early close of the chunk iterator.
    """

    def __init__(
        self,
        base_url: str,
        request_timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.request_timeout = request_timeout
        self._transport = transport
        self.state = StreamState.IDLE

    def _set_state(self, state: StreamState) -> None:
        LOGGER.debug("stream state %s -> %s", self.state.value, state.value)
        self.state = state

    def _timeout(self, deadline: Deadline | None) -> httpx.Timeout:
        seconds = self.request_timeout
        if deadline is not None:
            seconds = min(seconds, deadline.remaining())
        return httpx.Timeout(seconds)

    @staticmethod
    def _iter_records(response: httpx.Response) -> Iterator[dict[str, Any]]:
        for line in response.iter_lines():
            if line.strip():
                yield _decode_line(line)

    def stream(
        self,
        request: GenerationRequest,
        deadline: Deadline | None = None,
        cancel: CancelToken | None = None,
    ) -> Iterator[ResponseChunk]:
        """
        Lazily yield chunks of one generation, in arrival order.

        Deadline and cancellation are checked before sending, before reading
        each next chunk and again once it has arrived, so a chunk read after
        the deadline is never delivered. Single pass; not restartable.

        Raises:
            CancelledError: deadline passed or token cancelled.
            ServiceError: error status or error record from the service.
            TransportError: connection failure or malformed stream.
        """
        self._set_state(StreamState.IDLE)
        finished = False
        try:
            check_cancelled(deadline, cancel)
            self._set_state(StreamState.SENDING)
            with httpx.Client(
                base_url=self.base_url,
                timeout=self._timeout(deadline),
                transport=self._transport,
            ) as client:
                with client.stream("POST", GENERATE_PATH, json=request.to_payload()) as response:
                    if response.status_code >= 400:
                        response.read()
                        raise ServiceError(
                            f"generation service returned {response.status_code}: {_error_message(response)}",
                            status_code=response.status_code,
                        )
                    records = self._iter_records(response)
                    while True:
                        check_cancelled(deadline, cancel)
                        record = next(records, None)
                        check_cancelled(deadline, cancel)
                        if record is None:
                            raise TransportError("stream closed before the final chunk")
                        if record.get("error"):
                            raise ServiceError(str(record["error"]), status_code=response.status_code)
                        if self.state is StreamState.SENDING:
                            self._set_state(StreamState.STREAMING)
                        done = record.get("done", False)
                        if not isinstance(done, bool):
                            raise TransportError(f"non-boolean done flag in stream record: {done!r}")
                        chunk = ResponseChunk(
                            text=str(record.get("response") or ""),
                            done=done,
                            stats=_stats_from(record) if done else None,
                        )
                        yield chunk
                        if done:
                            finished = True
                            self._set_state(StreamState.COMPLETED)
                            return
        except httpx.TimeoutException as e:
            if deadline is not None and deadline.expired:
                raise CancelledError("deadline exceeded while awaiting the service") from e
            raise TransportError(f"timed out talking to {self.base_url}: {e}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"request to {self.base_url} failed: {e}") from e
        finally:
            if not finished:
                self._set_state(StreamState.ABORTED)

    def generate(
        self,
        request: GenerationRequest,
        on_chunk: Callable[[ResponseChunk], Any],
        deadline: Deadline | None = None,
        cancel: CancelToken | None = None,
    ) -> float:
        """
        Push every chunk to ``on_chunk`` and return the elapsed seconds.

        The handler runs synchronously; the next chunk is read only after it
        returns. If it raises, the connection is closed without draining and
        the handler's exception propagates unchanged.
        """
        start = time.perf_counter()
        with closing(self.stream(request, deadline=deadline, cancel=cancel)) as chunks:
            for chunk in chunks:
                on_chunk(chunk)
        elapsed = time.perf_counter() - start
        LOGGER.debug("generation finished in %.3fs", elapsed)
        return elapsed


def _decode_line(line: str) -> dict[str, Any]:
    try:
        record = json.loads(line)
    except ValueError as e:
        raise TransportError(f"malformed stream line: {line[:80]!r}") from e
    if not isinstance(record, dict):
        raise TransportError(f"unexpected stream record: {line[:80]!r}")
    return record
