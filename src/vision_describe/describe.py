"""Describe one image twice: free text, then a validated JSON record.

Generated text is printed to stdout as it streams in. Failures of one
description are logged and the run moves on to the next one.
"""
from __future__ import annotations
import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, TextIO

import httpx

from vision_describe.client.accumulator import ResponseAccumulator
from vision_describe.client.cancellation import CancelToken, Deadline
from vision_describe.client.request_builder import build_request
from vision_describe.client.stream import StreamConsumer
from vision_describe.client.validator import validate_structure
from vision_describe.common.config import DEFAULT_CONFIG_PATH, Settings, load_settings
from vision_describe.common.errors import InvalidRequest, VisionDescribeError
from vision_describe.common.logging_setup import setup_logging
from vision_describe.common.schema import GenerationRequest, ResponseChunk, StructuredDescription
from vision_describe.common.templates import load_template, split_template
from vision_describe.common.timing import ElapsedMeasurement, TimingRecorder

LOGGER = logging.getLogger("vision_describe.describe")

NATURAL = "Natural Description"
STRUCTURED = "Structured Description"
TOTAL = "Total Time"


@dataclass
class RunReport:
    measurements: list[ElapsedMeasurement]
    structured: StructuredDescription | None = None
    errors: dict[str, VisionDescribeError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def load_image(path: str) -> bytes:
    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"image not found at {path}")
    return p.read_bytes()


def request_from_template(template: str, model: str, image: bytes) -> GenerationRequest:
    """Build a request whose system and user prompt come from a template file."""
    try:
        text = load_template(template)
    except OSError as e:
        raise InvalidRequest(f"cannot read prompt template {template}: {e}") from e
    system, prompt = split_template(text)
    return build_request(model=model, prompt=prompt, images=[image], system=system)


def _printer(out: TextIO) -> Callable[[ResponseChunk], None]:
    def on_chunk(chunk: ResponseChunk) -> None:
        out.write(chunk.text)
        out.flush()
        if chunk.stats is not None:
            LOGGER.debug(
                "done_reason=%s | in=%s out=%s | server %sms",
                chunk.stats.done_reason,
                chunk.stats.prompt_tokens,
                chunk.stats.completion_tokens,
                chunk.stats.total_duration_ms,
            )
    return on_chunk


def describe_natural(
    consumer: StreamConsumer,
    request: GenerationRequest,
    out: TextIO,
    deadline: Deadline | None = None,
    cancel: CancelToken | None = None,
) -> float:
    """Stream a free-text description straight to ``out``."""
    out.write("Generating natural language description...\n")
    return consumer.generate(request, _printer(out), deadline=deadline, cancel=cancel)


def describe_structured(
    consumer: StreamConsumer,
    request: GenerationRequest,
    out: TextIO,
    deadline: Deadline | None = None,
    cancel: CancelToken | None = None,
) -> StructuredDescription:
    """
    Stream a JSON description to ``out`` while accumulating it, then validate.

    Printed text stays printed even when validation fails afterwards.
    """
    out.write("Generating structured description...\n")
    accumulator = ResponseAccumulator()
    printer = _printer(out)

    def on_chunk(chunk: ResponseChunk) -> None:
        accumulator.append(chunk)
        printer(chunk)

    try:
        consumer.generate(request, on_chunk, deadline=deadline, cancel=cancel)
    except BaseException:
        accumulator.abort()
        raise
    accumulator.complete()
    return validate_structure(accumulator.text)


def run(
    settings: Settings,
    image_path: str,
    out: TextIO = sys.stdout,
    transport: httpx.BaseTransport | None = None,
    cancel: CancelToken | None = None,
) -> RunReport:
    """
    Run the natural and the structured description of one image.

    A failure of either description is logged and recorded in the report;
    a missing image is raised.
    """
    recorder = TimingRecorder()
    total = recorder.start(TOTAL)
    deadline = Deadline.after(settings.run_timeout)
    report = RunReport(measurements=[])

    image = load_image(image_path)

    def consumer() -> StreamConsumer:
        return StreamConsumer(settings.base_url, settings.request_timeout, transport=transport)

    out.write("\n=== Natural Language Description ===\n")
    try:
        with recorder.timed(NATURAL):
            request = request_from_template(settings.natural_template or "natural", settings.model, image)
            describe_natural(consumer(), request, out, deadline=deadline, cancel=cancel)
        out.write(f"\nNatural description time elapsed: {recorder.get(NATURAL).seconds:.3f}s\n")
    except VisionDescribeError as e:
        LOGGER.error("natural description failed: %s", e)
        report.errors[NATURAL] = e

    out.write(f"\n=== {STRUCTURED} ===\n")
    try:
        with recorder.timed(STRUCTURED):
            request = request_from_template(settings.structured_template or "structured", settings.model, image)
            report.structured = describe_structured(consumer(), request, out, deadline=deadline, cancel=cancel)
        out.write(f"\nStructured description time elapsed: {recorder.get(STRUCTURED).seconds:.3f}s\n")
    except VisionDescribeError as e:
        LOGGER.error("structured description failed: %s", e)
        report.errors[STRUCTURED] = e

    recorder.stop(total)
    report.measurements = recorder.measurements
    out.write("\n=== Time Summary ===\n")
    for line in recorder.summary():
        out.write(line + "\n")
    return report


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="vision-describe", description="Describe an image with a vision model")
    ap.add_argument("image", nargs="?", default="test.jpg", help="Path to the image file")
    ap.add_argument("--cfg", default=DEFAULT_CONFIG_PATH, help="Config path")
    ap.add_argument("--base-url", default=None, help="Generation service URL")
    ap.add_argument("--model", default=None, help="Vision model id")
    ap.add_argument("--request-timeout", type=float, default=None)
    ap.add_argument("--run-timeout", type=float, default=None)
    ap.add_argument("--log-level", default=None)
    args = ap.parse_args(argv)

    settings = load_settings(
        args.cfg,
        base_url=args.base_url,
        model=args.model,
        request_timeout=args.request_timeout,
        run_timeout=args.run_timeout,
        log_level=args.log_level,
    )
    setup_logging(settings.log_level)

    try:
        report = run(settings, args.image)
    except OSError as e:
        LOGGER.error("run aborted: %s", e)
        return 1
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
