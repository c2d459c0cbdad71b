"""End-to-end tests for SortChapterOperation with a scripted VLM client."""

import json
from pathlib import Path

import pytest
import yaml

from manga_page_sorter.core.processor import ChapterProcessor
from manga_page_sorter.errors import (
    AnalysisFailure,
    InvalidFilenamesError,
    MissingFilenamesError,
)
from manga_page_sorter.operations import SortChapterOperation
from manga_page_sorter.schemas.config import ProcessorConfig


def _processor(images, client, **kwargs):
    return ChapterProcessor(images, manga_title="Guardião", chapter_number=3, vlm_client=client, **kwargs)


class TestSortChapterOperation:

    def test_reference_chapter_is_ordered(self, chapter_images, scripted_client, analysis_response, sequence_response):
        client = scripted_client([analysis_response, sequence_response])

        result = SortChapterOperation(_processor(chapter_images, client)).execute()

        assert result.order == ["q9z.webp", "a1x.webp", "m3k.webp"]
        assert result.confidence >= 0.85
        assert result.status == "coherent"
        assert sorted(result.order) == sorted(img.filename for img in chapter_images)

    def test_sequencer_receives_analyzer_output(self, chapter_images, scripted_client, analysis_response, sequence_response):
        client = scripted_client([analysis_response, sequence_response])

        SortChapterOperation(_processor(chapter_images, client)).execute()

        analysis_prompt, sequence_prompt = (c["prompt"] for c in client.calls)
        assert "Sou o guardião." not in analysis_prompt
        assert "Sou o guardião." in sequence_prompt

    def test_invented_filename_rejected(self, chapter_images, scripted_client, analysis_response):
        bad = json.dumps({"order": ["q9z.webp", "a1x.webp", "bogus.webp"], "confidence": 0.95})
        client = scripted_client([analysis_response, bad])

        with pytest.raises(InvalidFilenamesError) as exc_info:
            SortChapterOperation(_processor(chapter_images, client)).execute()

        assert exc_info.value.invalid_names == ["bogus.webp"]
        assert exc_info.value.missing_names == ["m3k.webp"]

    def test_dropped_page_rejected(self, chapter_images, scripted_client, analysis_response):
        short = json.dumps({"order": ["q9z.webp", "a1x.webp"], "confidence": 0.9})
        client = scripted_client([analysis_response, short])

        with pytest.raises(MissingFilenamesError) as exc_info:
            SortChapterOperation(_processor(chapter_images, client)).execute()

        assert exc_info.value.missing_names == ["m3k.webp"]

    def test_analysis_failure_stops_before_sequencing(self, chapter_images, scripted_client):
        client = scripted_client(["not json at all"])

        with pytest.raises(AnalysisFailure):
            SortChapterOperation(_processor(chapter_images, client)).execute()

        assert len(client.calls) == 1

    def test_analysis_warnings_carried_to_result(self, chapter_images, scripted_client, sequence_response):
        partial = json.dumps({"analyses": [{"filename": "q9z.webp", "pageType": "opening"}]})
        client = scripted_client([partial, sequence_response])

        result = SortChapterOperation(_processor(chapter_images, client)).execute()

        assert result.order == ["q9z.webp", "a1x.webp", "m3k.webp"]
        assert any("a1x.webp" in w and "m3k.webp" in w for w in result.warnings)

    def test_low_confidence_still_returned_with_context_failure(self, chapter_images, scripted_client, analysis_response):
        unsure = json.dumps({
            "order": ["a1x.webp", "q9z.webp", "m3k.webp"],
            "confidence": 0.4,
            "reasoning": "No clear anchors",
            "warnings": ["Pages look unrelated"],
        })
        client = scripted_client([analysis_response, unsure])

        result = SortChapterOperation(_processor(chapter_images, client)).execute()

        assert result.status == "context-failure"
        assert result.needs_manual_ordering
        assert result.warnings == ["Pages look unrelated"]

    def test_run_state_written_to_disk(self, chapter_images, scripted_client, analysis_response, sequence_response, tmp_path: Path):
        client = scripted_client([analysis_response, sequence_response])
        processor = _processor(chapter_images, client, config=ProcessorConfig(state_dir=tmp_path))

        SortChapterOperation(processor).execute()

        assert (tmp_path / "cache" / "vlm_responses" / "response_analysis.json").exists()
        assert (tmp_path / "cache" / "vlm_responses" / "response_sequence.json").exists()
        with (tmp_path / "results" / "page_order.yaml").open(encoding="utf-8") as f:
            saved = yaml.safe_load(f)
        assert saved["order"] == ["q9z.webp", "a1x.webp", "m3k.webp"]
        assert saved["status"] == "coherent"
        assert (tmp_path / "results" / "page_analysis.yaml").exists()

    def test_no_state_written_without_auto_save(self, chapter_images, scripted_client, analysis_response, sequence_response, tmp_path: Path):
        client = scripted_client([analysis_response, sequence_response])
        processor = _processor(chapter_images, client, config=ProcessorConfig(state_dir=tmp_path, auto_save=False))

        SortChapterOperation(processor).execute()

        assert not (tmp_path / "results" / "page_order.yaml").exists()
