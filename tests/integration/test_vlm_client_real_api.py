"""Integration tests for the VLM client against the real inference gateway.

These tests require LOVABLE_API_KEY to be set in environment.
If not set, tests are skipped automatically.
"""

import os
import time

import pytest

from manga_page_sorter.core.processor import ChapterProcessor
from manga_page_sorter.core.vlm_client import ChatCompletionsVLMClient
from manga_page_sorter.errors import VLMClientError
from manga_page_sorter.schemas.common import PageImage
from manga_page_sorter.schemas.config import VLMConfig
from manga_page_sorter.utils import extract_json_object

# Skip all tests if LOVABLE_API_KEY not set
pytestmark = pytest.mark.skipif(
    not os.getenv("LOVABLE_API_KEY"),
    reason="LOVABLE_API_KEY not set - set it to run integration tests"
)


class TestChatCompletionsVLMClientRealAPI:
    """Integration tests with the real gateway.

    These tests make actual API calls and consume credits.
    Run them sparingly to verify integration with real API.
    """

    @pytest.fixture
    def vlm_config(self):
        return VLMConfig.from_env()

    @pytest.fixture
    def vlm_client(self, vlm_config):
        return ChatCompletionsVLMClient(vlm_config)

    def test_simple_invoke_no_images(self, vlm_client):
        prompt = "Respond with JSON only: {\"status\": \"ok\", \"message\": \"hello\"}"

        result = vlm_client.invoke(prompt, [])

        assert isinstance(result["text"], str)
        assert "raw" in result
        assert extract_json_object(result["text"])["status"] == "ok"

    def test_invoke_with_image(self, vlm_client, data_uri):
        page = PageImage(filename="red.png", data=data_uri(size=(64, 64), color=(255, 0, 0)))

        result = vlm_client.invoke(
            "Which single colour fills the image labelled [FILE: red.png]? "
            "Respond with JSON only: {\"color\": \"<name>\"}",
            [page],
        )

        assert "red" in extract_json_object(result["text"])["color"].lower()

    def test_invalid_key_raises(self, vlm_config):
        config = VLMConfig(
            api_key="invalid_key_12345",
            model=vlm_config.model,
            base_url=vlm_config.base_url,
            timeout_sec=10,
            max_retries=1,
        )

        with pytest.raises(VLMClientError) as exc_info:
            ChatCompletionsVLMClient(config).invoke("test", [])

        assert exc_info.value.upstream_status in (401, 403)

    def test_throttling_with_real_api(self, vlm_client):
        prompt = "Respond with JSON only: {\"result\": \"test\"}"

        start = time.monotonic()
        vlm_client.invoke(prompt, [])
        vlm_client.invoke(prompt, [])
        elapsed = time.monotonic() - start

        assert elapsed >= 0.6, f"Elapsed {elapsed}s < 0.6s throttling interval"


def test_sort_returns_permutation(data_uri):
    """Full pipeline on blank pages: order must still be a permutation."""
    names = ["p_b.png", "p_a.png", "p_c.png"]
    images = [PageImage(filename=n, data=data_uri(size=(64, 96))) for n in names]

    result = ChapterProcessor(images, manga_title="Blank", chapter_number=1).sort()

    assert sorted(result.order) == sorted(names)
    assert 0.0 <= result.confidence <= 1.0
