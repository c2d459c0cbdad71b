"""Pipeline operations for page ordering."""

from .base import BaseOperation
from .analyze_pages import PageAnalysisOperation
from .sequence_pages import PageSequenceOperation
from .sort_chapter import SortChapterOperation

__all__ = [
    "BaseOperation",
    "PageAnalysisOperation",
    "PageSequenceOperation",
    "SortChapterOperation",
]
