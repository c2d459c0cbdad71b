"""Sort chapter operation - analysis, sequencing and validation in sequence."""

import logging
from typing import Any

from .analyze_pages import PageAnalysisOperation
from .base import BaseOperation
from .sequence_pages import PageSequenceOperation
from ..core.validator import validate_order
from ..schemas.ordering import OrderingResult

logger = logging.getLogger(__name__)


class SortChapterOperation(BaseOperation):
    """Full page-ordering pipeline for one chapter.

    Analyzer -> Sequencer -> Validator, strictly sequential. Any stage error
    propagates unchanged; the order is returned only if it is a bijection
    over the uploaded filenames.
    """

    def __init__(self, processor: Any):
        super().__init__(processor)
        self.analysis_operation = PageAnalysisOperation(processor)
        self.sequence_operation = PageSequenceOperation(processor)

    def execute(self) -> OrderingResult:
        """Execute the pipeline.

        Returns:
            Validated OrderingResult

        Raises:
            AnalysisFailure, SequencingFailure, OrderValidationError
        """
        filenames = [img.filename for img in self.processor.images]
        logger.info(f"Sorting {len(filenames)} pages")

        analysis = self.analysis_operation.execute()
        proposed = self.sequence_operation.execute(analysis)

        # Analysis anomalies go first, they explain sequencing doubts
        proposed.warnings = analysis.warnings + proposed.warnings

        result = validate_order(filenames, proposed)

        state_manager = getattr(self.processor, "state_manager", None)
        if state_manager is not None and getattr(self.processor, "auto_save", True):
            state_manager.save_operation_result("page_analysis", analysis.to_dict())
            state_manager.save_operation_result("page_order", result.to_dict())

        logger.info(f"Sort completed with status={result.status}")
        return result
