"""Page analysis schemas - output of the visual analysis stage."""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

PAGE_TYPES = ("opening", "content", "closing")
DIALOGUE_KINDS = ("question", "answer", "exclamation", "thought", "narration")
DIALOGUE_POSITIONS = ("top", "middle", "bottom")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, list):
        return "; ".join(str(v) for v in value)
    return str(value)


def _as_choice(value: Any, choices: tuple, default: Optional[str]) -> Optional[str]:
    if isinstance(value, str) and value.strip().lower() in choices:
        return value.strip().lower()
    if value not in (None, ""):
        logger.warning(f"Unexpected value {value!r}, expected one of {choices}")
    return default


@dataclass
class Dialogue:
    """Dialogue found on a page.

    Attributes:
        present: Whether the page has any speech balloons or captions
        texts: Transcribed utterances, top to bottom
        kind: "question" | "answer" | "exclamation" | "thought" | "narration"
        position: "top" | "middle" | "bottom" (where dialogue concentrates)
    """
    present: bool = False
    texts: List[str] = field(default_factory=list)
    kind: Optional[str] = None
    position: Optional[str] = None

    @classmethod
    def from_dict(cls, raw: Any) -> "Dialogue":
        if not isinstance(raw, dict):
            return cls()

        texts = raw.get("texts") or []
        if not isinstance(texts, list):
            texts = [texts]

        return cls(
            present=bool(raw.get("present", bool(texts))),
            texts=[str(t) for t in texts],
            kind=_as_choice(raw.get("kind") or raw.get("type"), DIALOGUE_KINDS, None),
            position=_as_choice(raw.get("position"), DIALOGUE_POSITIONS, None),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "present": self.present,
            "texts": list(self.texts),
            "kind": self.kind,
            "position": self.position,
        }


@dataclass
class PageAnalysis:
    """Structured description of one page, independent of ordering.

    Attributes:
        filename: Must match a PageImage.filename
        page_type: "opening" | "content" | "closing"
        characters: Free-text descriptions of visible characters
        location: Scene description
        action: Depicted action
        dialogue: Dialogue details
        visual_markers: Notable visual features (title art, "end" marks, ...)
        tone: Emotional tone
    """
    filename: str
    page_type: str = "content"
    characters: List[str] = field(default_factory=list)
    location: str = ""
    action: str = ""
    dialogue: Dialogue = field(default_factory=Dialogue)
    visual_markers: str = ""
    tone: str = ""

    @classmethod
    def from_dict(cls, raw: Any) -> "PageAnalysis":
        """Build from a model-produced dict (camelCase or snake_case keys).

        Raises:
            ValueError: If entry is not an object or has no filename
        """
        if not isinstance(raw, dict):
            raise ValueError(f"Analysis entry is not an object: {raw!r}")

        filename = raw.get("filename") or raw.get("fileName") or raw.get("name")
        if not isinstance(filename, str) or not filename.strip():
            raise ValueError(f"Analysis entry has no filename: {raw!r}")

        characters = raw.get("characters") or []
        if not isinstance(characters, list):
            characters = [characters]

        return cls(
            filename=filename.strip(),
            page_type=_as_choice(
                raw.get("pageType", raw.get("page_type")), PAGE_TYPES, "content"
            ),
            characters=[str(c) for c in characters],
            location=_as_text(raw.get("location")),
            action=_as_text(raw.get("action")),
            dialogue=Dialogue.from_dict(raw.get("dialogue")),
            visual_markers=_as_text(raw.get("visualMarkers", raw.get("visual_markers"))),
            tone=_as_text(raw.get("tone")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize with the same keys the analysis prompt asks for."""
        return {
            "filename": self.filename,
            "pageType": self.page_type,
            "characters": list(self.characters),
            "location": self.location,
            "action": self.action,
            "dialogue": self.dialogue.to_dict(),
            "visualMarkers": self.visual_markers,
            "tone": self.tone,
        }


@dataclass
class AnalysisResult:
    """Result of the visual analysis stage.

    Attributes:
        analyses: One PageAnalysis per input image
        warnings: Anomalies tolerated while reconciling analyses with the input
    """
    analyses: List[PageAnalysis]
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"analyses": [a.to_dict() for a in self.analyses]}
