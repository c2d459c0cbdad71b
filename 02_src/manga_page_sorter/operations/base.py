"""Base operation class."""

from abc import ABC, abstractmethod
from typing import Any


class BaseOperation(ABC):
    """Abstract base class for all pipeline operations.

    Operations receive a ChapterProcessor instance during initialization and
    read images, VLM client and state manager from it.
    """

    def __init__(self, processor: Any):
        """Initialize operation with a chapter processor.

        Args:
            processor: ChapterProcessor (or any object with images, vlm_client
                       and state_manager attributes)
        """
        self.processor = processor

    @abstractmethod
    def execute(self, **kwargs) -> Any:
        """Execute the operation.

        Returns:
            Operation-specific result
        """
        pass

    def _save_vlm_response(self, stage: str, response: Any) -> None:
        state_manager = getattr(self.processor, "state_manager", None)
        if state_manager is not None and getattr(self.processor, "auto_save", True):
            state_manager.save_vlm_response(stage, response)
