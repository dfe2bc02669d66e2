"""Decode accumulated structured-mode text into a StructuredDescription."""
from __future__ import annotations
import re

from pydantic import ValidationError

from vision_describe.common.errors import MalformedStructure
from vision_describe.common.schema import StructuredDescription

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*\n(.*)\n\s*```$", re.DOTALL)


def _strip_fence(text: str) -> str:
    s = text.strip()
    m = _CODE_FENCE_RE.match(s)
    return m.group(1).strip() if m else s


def validate_structure(text: str) -> StructuredDescription:
    """
    Decode ``text`` as exactly one StructuredDescription JSON object.

    Every field is required and strictly typed; nothing is filled with
    defaults. Length caps are not checked.

    Raises:
        MalformedStructure: empty, truncated or non-JSON text, missing fields,
            or fields of the wrong shape.
    """
    payload = _strip_fence(text or "")
    if not payload:
        raise MalformedStructure("empty response")
    try:
        return StructuredDescription.model_validate_json(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise MalformedStructure(f"invalid structured description: {problems}") from e
