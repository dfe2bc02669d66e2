"""Assemble validated generation requests."""
from __future__ import annotations
from typing import Iterable

from vision_describe.common.errors import InvalidRequest
from vision_describe.common.schema import GenerationRequest


def build_request(
    model: str,
    prompt: str,
    images: Iterable[bytes],
    system: str | None = None,
) -> GenerationRequest:
    """
    Build an immutable streaming request.

    Args:
        model: Model id known to the generation service.
        prompt: User prompt; must not be blank.
        images: One or more raw image blobs.
        system: Optional system instructions.

    Raises:
        InvalidRequest: blank model/prompt, no image, or an empty image blob.
    """
    if not model or not model.strip():
        raise InvalidRequest("model id must not be empty")
    if not prompt or not prompt.strip():
        raise InvalidRequest("prompt must not be empty")
    blobs = tuple(bytes(img) for img in images)
    if not blobs:
        raise InvalidRequest("at least one image is required")
    if any(len(b) == 0 for b in blobs):
        raise InvalidRequest("image payloads must not be empty")
    return GenerationRequest(model=model, prompt=prompt, images=blobs, system=system, stream=True)
