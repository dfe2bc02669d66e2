"""Streaming generation client: request building, consumption and validation."""
from __future__ import annotations

from vision_describe.client.accumulator import ResponseAccumulator
from vision_describe.client.cancellation import CancelToken, Deadline
from vision_describe.client.request_builder import build_request
from vision_describe.client.stream import StreamConsumer, StreamState
from vision_describe.client.validator import validate_structure

__all__ = [
    "CancelToken",
    "Deadline",
    "ResponseAccumulator",
    "StreamConsumer",
    "StreamState",
    "build_request",
    "validate_structure",
]
