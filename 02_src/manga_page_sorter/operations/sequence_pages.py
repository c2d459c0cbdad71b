"""Narrative sequencing operation - decide the reading order."""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Union

from .base import BaseOperation
from ..errors import SequencingFailure, VLMClientError
from ..schemas.analysis import AnalysisResult
from ..schemas.ordering import OrderingResult
from ..utils.json_payload import extract_json_object

logger = logging.getLogger(__name__)

PROMPT_SEQUENCE = """
You are ordering the pages of a manga/manhwa chapter into reading order.

Work: {title}
Chapter: {chapter}
Total pages: {total}

Each image is preceded by a marker [FILE: <filename>]. Filenames are random
identifiers and carry NO ordering information; neither does the order in
which images are attached.

A previous pass described every page:
{analyses}

Use the descriptions AND the images themselves. Apply these rules in
priority order:
1. ANCHORS: find the opening page (title art, chapter heading, minimal
   dialogue) and the closing page ("end", "to be continued", credits) first.
   They fix the start and the end of the sequence.
2. DIALOGUE CONTINUITY: a question comes before its answer; a conversation
   left unresolved on one page continues on the next.
3. ACTION CONTINUITY: cause comes before effect; preparation -> execution ->
   result.
4. SCENE CONTINUITY: pages in the same location stay together; a change of
   location must be spatially and temporally plausible.

Rules for the answer:
- "order" must contain EVERY filename above exactly once, copied exactly.
  Never invent, rename or drop a filename.
- "confidence" is a number between 0 and 1 describing how sure you are of
  the whole sequence.
- "reasoning" briefly explains the key decisions.
- "warnings" lists ambiguous spots (may be empty).

Respond with JSON only:
{{"order": ["<filename>", ...], "confidence": 0.0, "reasoning": "...", "warnings": []}}
"""


def format_chapter_number(chapter: Union[int, float, str, None]) -> str:
    """Render chapter number without a trailing ".0"."""
    if chapter is None:
        return "unknown"
    if isinstance(chapter, float) and chapter.is_integer():
        return str(int(chapter))
    return str(chapter)


class PageSequenceOperation(BaseOperation):
    """Stage 2: total order over the image set from analyses and images.

    Status is derived from the self-reported confidence only. Inference
    errors, unparseable responses or missing order/confidence raise
    SequencingFailure.
    """

    def execute(self, analysis: AnalysisResult) -> OrderingResult:
        """Execute narrative sequencing.

        Args:
            analysis: Output of the visual analysis stage

        Returns:
            OrderingResult as proposed by the model (not yet validated)

        Raises:
            SequencingFailure: If the call fails or required fields are missing
        """
        images = self.processor.images
        logger.info(f"Starting PageSequenceOperation for {len(images)} pages")

        prompt = PROMPT_SEQUENCE.format(
            title=getattr(self.processor, "manga_title", "") or "unknown",
            chapter=format_chapter_number(getattr(self.processor, "chapter_number", None)),
            total=len(images),
            analyses=json.dumps(analysis.to_dict(), ensure_ascii=False, indent=2),
        )

        try:
            response = self.processor.vlm_client.invoke(prompt, images)
        except VLMClientError as e:
            logger.error(f"Sequencing call failed: {e}")
            raise SequencingFailure(
                "Sequencing call failed",
                details=e.message,
                upstream_status=e.upstream_status,
            ) from e

        self._save_vlm_response("sequence", response)
        text = response.get("text", "") if isinstance(response, dict) else str(response)

        result = self._parse_ordering(text)
        logger.info(
            f"PageSequenceOperation completed: {len(result.order)} entries, "
            f"confidence={result.confidence:.2f} ({result.status})"
        )
        return result

    def _parse_ordering(self, text: str) -> OrderingResult:
        try:
            payload: Dict[str, Any] = extract_json_object(text)
        except ValueError as e:
            logger.error(f"Failed to parse sequencing response: {e}")
            raise SequencingFailure(
                "Could not parse sequencing response",
                details=str(e),
                raw_response=text,
            ) from e

        order = payload.get("order")
        if not isinstance(order, list) or not order or not all(isinstance(n, str) for n in order):
            raise SequencingFailure(
                "Sequencing response has no valid 'order' list",
                raw_response=text,
            )

        confidence = self._parse_confidence(payload.get("confidence"))
        if confidence is None:
            raise SequencingFailure(
                "Sequencing response has no valid 'confidence'",
                details=f"confidence={payload.get('confidence')!r}",
                raw_response=text,
            )

        warnings = self._parse_warnings(payload.get("warnings"))
        if not 0.0 <= confidence <= 1.0:
            logger.warning(f"Confidence {confidence} outside [0, 1], clamped")
            warnings.append(f"Reported confidence {confidence} was clamped to [0, 1]")
            confidence = min(max(confidence, 0.0), 1.0)

        reasoning = payload.get("reasoning")
        return OrderingResult(
            order=list(order),
            confidence=confidence,
            reasoning=str(reasoning) if reasoning is not None else "",
            warnings=warnings,
        )

    @staticmethod
    def _parse_confidence(value: Any) -> Optional[float]:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            number = float(value)
        elif isinstance(value, str):
            try:
                number = float(value.strip())
            except ValueError:
                return None
        else:
            return None
        return None if math.isnan(number) else number

    @staticmethod
    def _parse_warnings(value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value] if value.strip() else []
        if isinstance(value, list):
            return [str(w) for w in value if w not in (None, "")]
        return [str(value)]
