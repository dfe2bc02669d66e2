from __future__ import annotations

import base64

import pytest

from vision_describe.client.request_builder import build_request
from vision_describe.common.errors import InvalidRequest


def test_build_request_streams_and_keeps_fields(image: bytes) -> None:
    req = build_request("m", "describe", [image], system="be brief")
    assert req.model == "m"
    assert req.prompt == "describe"
    assert req.images == (image,)
    assert req.system == "be brief"
    assert req.stream is True


def test_request_is_immutable(image: bytes) -> None:
    req = build_request("m", "describe", [image])
    with pytest.raises(AttributeError):
        req.prompt = "other"  # type: ignore[misc]


def test_payload_encodes_images_and_omits_missing_system(image: bytes) -> None:
    payload = build_request("m", "describe", [image, b"png"]).to_payload()
    assert payload == {
        "model": "m",
        "prompt": "describe",
        "images": [base64.b64encode(image).decode(), base64.b64encode(b"png").decode()],
        "stream": True,
    }


@pytest.mark.parametrize("prompt", ["", "   \n"])
def test_blank_prompt_rejected(prompt: str, image: bytes) -> None:
    with pytest.raises(InvalidRequest):
        build_request("m", prompt, [image])


def test_no_image_rejected() -> None:
    with pytest.raises(InvalidRequest):
        build_request("m", "describe", [])


def test_empty_image_rejected() -> None:
    with pytest.raises(InvalidRequest):
        build_request("m", "describe", [b""])


def test_blank_model_rejected(image: bytes) -> None:
    with pytest.raises(InvalidRequest):
        build_request("", "describe", [image])
