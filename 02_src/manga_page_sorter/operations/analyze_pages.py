"""Visual analysis operation - describe every page, never order them."""

import logging
from typing import Any, Dict, List, Tuple

from .base import BaseOperation
from ..errors import AnalysisFailure, VLMClientError
from ..schemas.analysis import AnalysisResult, PageAnalysis
from ..utils.json_payload import extract_json_object

logger = logging.getLogger(__name__)

PROMPT_ANALYSIS = """
You are analysing the pages of one manga/manhwa chapter.
Each image is preceded by a marker [FILE: <filename>].

IMPORTANT:
- Filenames are random identifiers assigned at upload. They say NOTHING
  about page order. Do not use them, nor the order in which the images are
  attached, as an ordering signal.
- Do NOT try to order the pages. Your only job is to DESCRIBE each page.

For EVERY image, produce exactly one entry and copy its filename exactly as
written in its [FILE: ...] marker. Never invent or alter filenames.

For each page describe:
- pageType: "opening" (title art, chapter heading, cover, little or no
  dialogue), "closing" ("end", "to be continued", credits) or "content"
- characters: list of visible characters (appearance, clothing, role)
- location: where the scene takes place
- action: what is happening
- dialogue: {"present": true|false, "texts": [transcribed balloons, in
  reading order], "kind": "question"|"answer"|"exclamation"|"thought"|
  "narration", "position": "top"|"middle"|"bottom"}
- visualMarkers: notable visual features (page numbers, logos, "end" marks,
  panel layout, colour changes)
- tone: emotional tone of the page

Respond with JSON only:
{
  "analyses": [
    {
      "filename": "<exact filename>",
      "pageType": "content",
      "characters": ["..."],
      "location": "...",
      "action": "...",
      "dialogue": {"present": true, "texts": ["..."], "kind": "question", "position": "top"},
      "visualMarkers": "...",
      "tone": "..."
    }
  ]
}
"""


class PageAnalysisOperation(BaseOperation):
    """Stage 1: one structured PageAnalysis per input image.

    The stage is purely descriptive. Any inference error or unparseable
    response raises AnalysisFailure; there is no retry at this level.
    """

    def execute(self) -> AnalysisResult:
        """Execute visual analysis.

        Returns:
            AnalysisResult with analyses in input order

        Raises:
            AnalysisFailure: If the call fails or the response does not parse
        """
        images = self.processor.images
        filenames = [img.filename for img in images]
        logger.info(f"Starting PageAnalysisOperation for {len(images)} pages")

        prompt = PROMPT_ANALYSIS + f"\nFilenames in this request: {filenames}"

        try:
            response = self.processor.vlm_client.invoke(prompt, images)
        except VLMClientError as e:
            logger.error(f"Visual analysis call failed: {e}")
            raise AnalysisFailure(
                "Visual analysis call failed",
                details=e.message,
                upstream_status=e.upstream_status,
            ) from e

        self._save_vlm_response("analysis", response)
        text = response.get("text", "") if isinstance(response, dict) else str(response)

        analyses, skipped = self._parse_analyses(text)
        result = self._reconcile(analyses, filenames, skipped)

        logger.info(
            f"PageAnalysisOperation completed: {len(result.analyses)}/{len(filenames)} pages described"
        )
        return result

    def _parse_analyses(self, text: str) -> Tuple[List[PageAnalysis], List[str]]:
        """Parse analysis entries; unusable entries are skipped with a warning."""
        try:
            payload: Dict[str, Any] = extract_json_object(text)
        except ValueError as e:
            logger.error(f"Failed to parse analysis response: {e}")
            raise AnalysisFailure(
                "Could not parse visual analysis response",
                details=str(e),
                raw_response=text,
            ) from e

        entries = payload.get("analyses")
        if not isinstance(entries, list):
            logger.error("Analysis response missing 'analyses' list")
            raise AnalysisFailure(
                "Visual analysis response has no 'analyses' list",
                raw_response=text,
            )

        analyses: List[PageAnalysis] = []
        warnings: List[str] = []
        for i, entry in enumerate(entries):
            try:
                analyses.append(PageAnalysis.from_dict(entry))
            except ValueError as e:
                logger.warning(f"Analysis entry #{i + 1} skipped: {e}")
                warnings.append(f"Analysis entry #{i + 1} skipped: {e}")
        return analyses, warnings

    def _reconcile(
        self,
        analyses: List[PageAnalysis],
        filenames: List[str],
        warnings: List[str],
    ) -> AnalysisResult:
        """Match analyses to input filenames.

        Unknown filenames are dropped, repeated ones keep the first entry and
        pages without an analysis become warnings. The final bijection check
        on the order stays authoritative.
        """
        warnings = list(warnings)
        by_name: Dict[str, PageAnalysis] = {}
        valid = set(filenames)

        for analysis in analyses:
            if analysis.filename not in valid:
                logger.warning(f"Analysis for unknown filename dropped: {analysis.filename}")
                warnings.append(f"Analysis referenced unknown file '{analysis.filename}' (ignored)")
            elif analysis.filename in by_name:
                logger.warning(f"Duplicate analysis for {analysis.filename}, keeping first")
            else:
                by_name[analysis.filename] = analysis

        if not by_name:
            raise AnalysisFailure(
                "Visual analysis described none of the uploaded pages",
                details=f"Expected filenames: {filenames}",
            )

        undescribed = [name for name in filenames if name not in by_name]
        if undescribed:
            logger.warning(f"No analysis for {len(undescribed)} pages: {undescribed}")
            warnings.append(f"No visual analysis for: {', '.join(undescribed)}")

        return AnalysisResult(
            analyses=[by_name[name] for name in filenames if name in by_name],
            warnings=warnings,
        )
