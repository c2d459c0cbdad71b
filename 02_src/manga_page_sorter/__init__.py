"""
Manga Page Sorter - orders chapter pages with a Vision Language Model.

Pipeline:
- PageAnalysisOperation: describe every page (type, characters, dialogue, ...)
- PageSequenceOperation: decide reading order from descriptions and images
- validate_order: accept the order only if it is a bijection over the upload
"""

__version__ = "0.1.0"

# Core classes
from .core.processor import ChapterProcessor
from .core.vlm_client import BaseVLMClient, ChatCompletionsVLMClient
from .core.validator import check_bijection, validate_order
from .core.ordering import apply_order

# Operations
from .operations.base import BaseOperation
from .operations.analyze_pages import PageAnalysisOperation
from .operations.sequence_pages import PageSequenceOperation
from .operations.sort_chapter import SortChapterOperation

# Request boundary
from .service import SortPagesHandler, parse_sort_request

# Schemas
from .schemas.config import ProcessorConfig, VLMConfig
from .schemas.common import PageImage
from .schemas.analysis import AnalysisResult, Dialogue, PageAnalysis
from .schemas.ordering import OrderingResult, status_for_confidence
from .preprocessing.images import ImageLoadConfig, PageImageLoader

# Errors
from .errors import (
    PageSortError,
    ConfigurationError,
    InvalidRequestError,
    VLMClientError,
    AnalysisFailure,
    SequencingFailure,
    OrderValidationError,
    InvalidFilenamesError,
    MissingFilenamesError,
    DuplicateFilenamesError,
)

__all__ = [
    # Version
    "__version__",

    # Core classes
    "ChapterProcessor",
    "BaseVLMClient",
    "ChatCompletionsVLMClient",
    "check_bijection",
    "validate_order",
    "apply_order",

    # Operations
    "BaseOperation",
    "PageAnalysisOperation",
    "PageSequenceOperation",
    "SortChapterOperation",

    # Request boundary
    "SortPagesHandler",
    "parse_sort_request",

    # Schemas
    "ProcessorConfig",
    "VLMConfig",
    "PageImage",
    "AnalysisResult",
    "Dialogue",
    "PageAnalysis",
    "OrderingResult",
    "status_for_confidence",
    "ImageLoadConfig",
    "PageImageLoader",

    # Errors
    "PageSortError",
    "ConfigurationError",
    "InvalidRequestError",
    "VLMClientError",
    "AnalysisFailure",
    "SequencingFailure",
    "OrderValidationError",
    "InvalidFilenamesError",
    "MissingFilenamesError",
    "DuplicateFilenamesError",
]
