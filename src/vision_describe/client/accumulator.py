"""Concatenate streamed chunks into one response text."""
from __future__ import annotations

from vision_describe.common.errors import IncompleteResponse
from vision_describe.common.schema import ResponseChunk


class ResponseAccumulator:
    """
    Growing buffer of chunk texts, appended verbatim in arrival order.

    The buffer is only handed out after ``complete()``; an aborted stream
    leaves it unreliable and ``text`` refuses to return it.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._completed = False
        self._aborted = False

    def append(self, chunk: ResponseChunk) -> None:
        if self._completed or self._aborted:
            raise IncompleteResponse("accumulator is closed")
        self._parts.append(chunk.text)

    __call__ = append

    def complete(self) -> None:
        if not self._aborted:
            self._completed = True

    def abort(self) -> None:
        self._aborted = True
        self._completed = False

    @property
    def chunk_count(self) -> int:
        return len(self._parts)

    @property
    def text(self) -> str:
        if self._aborted:
            raise IncompleteResponse("stream was aborted; partial buffer is unreliable")
        if not self._completed:
            raise IncompleteResponse("stream has not completed")
        return "".join(self._parts)
