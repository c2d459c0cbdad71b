"""Data schemas for Manga Page Sorter."""

from .common import PageImage
from .analysis import AnalysisResult, Dialogue, PageAnalysis
from .ordering import (
    STATUS_COHERENT,
    STATUS_CONTEXT_FAILURE,
    STATUS_NEEDS_REORDERING,
    OrderingResult,
    status_for_confidence,
)
from .config import VLMConfig, ProcessorConfig

__all__ = [
    "PageImage",
    "AnalysisResult",
    "Dialogue",
    "PageAnalysis",
    "OrderingResult",
    "status_for_confidence",
    "STATUS_COHERENT",
    "STATUS_NEEDS_REORDERING",
    "STATUS_CONTEXT_FAILURE",
    "VLMConfig",
    "ProcessorConfig",
]
