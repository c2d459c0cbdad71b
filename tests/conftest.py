"""Shared fixtures: in-memory page images and a scripted VLM client."""

import base64
import io
import json
from typing import Any, Dict, List, Union

import pytest
from PIL import Image

from manga_page_sorter.core.vlm_client import BaseVLMClient
from manga_page_sorter.errors import VLMClientError
from manga_page_sorter.schemas.common import PageImage


def make_image_bytes(size=(8, 12), color=(255, 255, 255), fmt="PNG") -> bytes:
    """Create a small solid-colour image."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def make_data_uri(size=(8, 12), color=(255, 255, 255), fmt="PNG", mime="image/png") -> str:
    return f"data:{mime};base64," + base64.b64encode(make_image_bytes(size, color, fmt)).decode()


class ScriptedVLMClient(BaseVLMClient):
    """Returns queued responses in order and records every call.

    A queued str is returned as {"text": str}; a queued exception is raised.
    """

    def __init__(self, responses: List[Union[str, Dict[str, Any], Exception]]):
        self.responses = list(responses)
        self.calls: List[Dict[str, Any]] = []

    def invoke(self, prompt, images):
        self.calls.append({"prompt": prompt, "images": list(images)})
        if not self.responses:
            raise AssertionError("Unexpected VLM call")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, str):
            return {"text": response, "usage": {}, "raw": {}}
        return response


@pytest.fixture
def image_bytes():
    return make_image_bytes


@pytest.fixture
def data_uri():
    return make_data_uri


@pytest.fixture
def scripted_client():
    return ScriptedVLMClient


@pytest.fixture
def chapter_images() -> List[PageImage]:
    """Three pages of the reference chapter, in (meaningless) upload order."""
    uri = make_data_uri()
    return [
        PageImage(filename="a1x.webp", data=uri),
        PageImage(filename="q9z.webp", data=uri),
        PageImage(filename="m3k.webp", data=uri),
    ]


@pytest.fixture
def analysis_response() -> str:
    """Analyzer answer for the reference chapter, wrapped in prose."""
    payload = {
        "analyses": [
            {
                "filename": "a1x.webp",
                "pageType": "content",
                "characters": ["young swordsman with a red scarf"],
                "location": "temple gate",
                "action": "the swordsman approaches a hooded figure",
                "dialogue": {"present": True, "texts": ["Quem é você?"], "kind": "question", "position": "top"},
                "visualMarkers": "three panels, speed lines",
                "tone": "tense",
            },
            {
                "filename": "q9z.webp",
                "pageType": "opening",
                "characters": [],
                "location": "temple on a mountain",
                "action": "none",
                "dialogue": {"present": False, "texts": []},
                "visualMarkers": "large title art, chapter heading",
                "tone": "solemn",
            },
            {
                "filename": "m3k.webp",
                "pageType": "closing",
                "characters": ["hooded guardian"],
                "location": "temple gate",
                "action": "the guardian lowers the hood",
                "dialogue": {"present": True, "texts": ["Sou o guardião."], "kind": "answer", "position": "middle"},
                "visualMarkers": "'to be continued' caption",
                "tone": "mysterious",
            },
        ]
    }
    return "Here is the analysis:\n```json\n" + json.dumps(payload, ensure_ascii=False) + "\n```"


@pytest.fixture
def sequence_response() -> str:
    payload = {
        "order": ["q9z.webp", "a1x.webp", "m3k.webp"],
        "confidence": 0.93,
        "reasoning": "Title page first; the question precedes the guardian's answer, which closes the chapter.",
        "warnings": [],
    }
    return "Ordering complete. " + json.dumps(payload, ensure_ascii=False) + " Let me know if you need more."


@pytest.fixture
def rate_limit_error():
    return VLMClientError("Rate limit exceeded, try again later", upstream_status=429)
