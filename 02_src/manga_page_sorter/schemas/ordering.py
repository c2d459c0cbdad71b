"""Ordering result schemas - output of the sequencing stage."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

STATUS_COHERENT = "coherent"
STATUS_NEEDS_REORDERING = "needs-reordering"
STATUS_CONTEXT_FAILURE = "context-failure"

COHERENT_THRESHOLD = 0.85
REORDER_THRESHOLD = 0.70


def status_for_confidence(confidence: float) -> str:
    """Map self-reported confidence to a status label.

    Boundaries resolve to the higher band:
    >= 0.85 coherent, [0.70, 0.85) needs-reordering, < 0.70 context-failure.

    Examples:
        >>> status_for_confidence(0.85)
        'coherent'
        >>> status_for_confidence(0.7)
        'needs-reordering'
        >>> status_for_confidence(0.4)
        'context-failure'
    """
    if confidence >= COHERENT_THRESHOLD:
        return STATUS_COHERENT
    if confidence >= REORDER_THRESHOLD:
        return STATUS_NEEDS_REORDERING
    return STATUS_CONTEXT_FAILURE


@dataclass
class OrderingResult:
    """Proposed (or validated) reading order of a chapter.

    Attributes:
        order: Filenames from first page to last
        confidence: Self-reported confidence in [0, 1]
        reasoning: Explanation of the chosen order
        warnings: Caveats (may be empty)
    """
    order: List[str]
    confidence: float
    reasoning: str = ""
    warnings: List[str] = field(default_factory=list)

    @property
    def status(self) -> str:
        return status_for_confidence(self.confidence)

    @property
    def needs_manual_ordering(self) -> bool:
        return self.status == STATUS_CONTEXT_FAILURE

    def to_dict(self) -> Dict[str, Any]:
        """Build success response payload."""
        return {
            "order": list(self.order),
            "confidence": self.confidence,
            "status": self.status,
            "reasoning": self.reasoning,
            "warnings": list(self.warnings),
        }
