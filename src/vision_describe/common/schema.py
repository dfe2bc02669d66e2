"""Pydantic models and dataclasses for request/response types."""
from __future__ import annotations
import base64
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


@dataclass(frozen=True)
class GenerationRequest:
    """One generate call. Build it with ``build_request`` to get validation."""
    model: str
    prompt: str
    images: tuple[bytes, ...]
    system: str | None = None
    stream: bool = True

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the JSON body of ``POST /api/generate``."""
        payload: dict[str, Any] = {
            "model": self.model,
            "prompt": self.prompt,
            "images": [base64.b64encode(img).decode("ascii") for img in self.images],
            "stream": self.stream,
        }
        if self.system is not None:
            payload["system"] = self.system
        return payload


@dataclass(frozen=True)
class GenerationStats:
    """Server-side metadata carried by the final chunk."""
    done_reason: str | None = None
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_duration_ms: int | None = None


@dataclass(frozen=True)
class ResponseChunk:
    """A fragment of generated text, in arrival order."""
    text: str
    done: bool = False
    stats: GenerationStats | None = None


class StructuredDescription(BaseModel):
    """Target record for structured mode.

    Item counts and lengths (at most 5 objects/colors, short scene and mood)
    are requested in the prompt and are not checked here.
    """
    model_config = ConfigDict(strict=True, frozen=True)

    main_objects: list[str]
    scene: str
    colors: list[str]
    mood: str
    details: str
