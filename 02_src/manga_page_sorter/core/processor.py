"""ChapterProcessor - Main class for sorting the pages of one chapter."""

import logging
from typing import List, Optional, Union

from dotenv import load_dotenv

from ..errors import InvalidRequestError
from ..schemas.common import PageImage
from ..schemas.config import ProcessorConfig, VLMConfig
from ..schemas.ordering import OrderingResult
from .state import DiskStorage, MemoryStorage, StateManager
from .vlm_client import BaseVLMClient, ChatCompletionsVLMClient

logger = logging.getLogger(__name__)


class ChapterProcessor:
    """Holds one chapter's image set and the collaborators of the pipeline.

    The image set is immutable for the lifetime of the processor. A
    processor serves a single sort; chapters are independent, so separate
    processors may run in parallel.
    """

    def __init__(
        self,
        images: List[PageImage],
        manga_title: str = "",
        chapter_number: Union[int, float, str, None] = None,
        vlm_client: Optional[BaseVLMClient] = None,
        state_manager: Optional[StateManager] = None,
        config: Optional[ProcessorConfig] = None,
    ):
        """Initialize chapter processor.

        Args:
            images: Uploaded pages (order is arbitrary)
            manga_title: Title of the work, used as context for sequencing
            chapter_number: Chapter number, used as context for sequencing
            vlm_client: VLM client (optional, created from environment if not provided)
            state_manager: State manager (optional, created from config if not provided)
            config: Processor configuration

        Raises:
            InvalidRequestError: If images are empty or filenames repeat
            ConfigurationError: If no client is given and credentials are absent
        """
        self.config = config or ProcessorConfig()
        self.auto_save = self.config.auto_save

        self._images = tuple(self._check_images(images))
        self.manga_title = manga_title
        self.chapter_number = chapter_number

        if state_manager is None:
            if self.config.state_dir is not None:
                storage = DiskStorage(self.config.state_dir)
            else:
                storage = MemoryStorage()
            state_manager = StateManager(storage)
        self.state_manager = state_manager

        if vlm_client is None:
            load_dotenv()
            vlm_config = VLMConfig.from_env()
            vlm_client = ChatCompletionsVLMClient(vlm_config)
            logger.info(f"Created ChatCompletionsVLMClient ({vlm_config.model}) from environment")
        self.vlm_client = vlm_client

        logger.info(
            f"ChapterProcessor initialized with {len(self._images)} pages "
            f"(title={manga_title!r}, chapter={chapter_number})"
        )

    @staticmethod
    def _check_images(images: List[PageImage]) -> List[PageImage]:
        if not images:
            raise InvalidRequestError("No images provided")

        seen = set()
        duplicates = []
        for image in images:
            if not image.filename:
                raise InvalidRequestError("Image without filename")
            if image.filename in seen:
                duplicates.append(image.filename)
            seen.add(image.filename)

        if duplicates:
            raise InvalidRequestError(
                "Image filenames must be unique",
                details=f"Repeated: {', '.join(sorted(set(duplicates)))}",
            )
        return list(images)

    @property
    def images(self) -> List[PageImage]:
        """Get chapter pages in upload order."""
        return list(self._images)

    @property
    def filenames(self) -> List[str]:
        return [img.filename for img in self._images]

    @property
    def num_pages(self) -> int:
        return len(self._images)

    def sort(self) -> OrderingResult:
        """Run analysis, sequencing and validation.

        Returns:
            Validated OrderingResult

        Raises:
            PageSortError: Any pipeline failure
        """
        from ..operations.sort_chapter import SortChapterOperation

        return SortChapterOperation(self).execute()
