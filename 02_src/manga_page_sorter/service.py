"""Request/response boundary for the admin upload flow.

Request:  {"images": [{"name": str, "data": data-URI}], "mangaTitle": str, "chapterNumber": number}
Success:  {"order", "confidence", "status", "reasoning", "warnings"}
Failure:  {"error", "details"?, "invalidNames"?, "validNames"?, "missingNames"?,
           "returnedNames"?, "duplicateNames"?, "status"?}
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from .core.processor import ChapterProcessor
from .core.state import StateManager
from .core.vlm_client import BaseVLMClient
from .errors import InvalidRequestError, OrderValidationError, PageSortError, StageFailure
from .preprocessing.images import ImageLoadConfig, PageImageLoader, is_image_data_uri
from .schemas.common import PageImage
from .schemas.config import ProcessorConfig
from .schemas.ordering import STATUS_CONTEXT_FAILURE

logger = logging.getLogger(__name__)


def _is_chapter_number(value: Any) -> bool:
    """Numbers and numeric strings ("12", "12.5"); booleans and NaN are rejected."""
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return False
    if not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def parse_sort_request(
    body: Any,
    loader: Optional[PageImageLoader] = None,
) -> Tuple[List[PageImage], str, Any]:
    """Validate inbound body and build PageImage objects.

    Args:
        body: Decoded JSON request body
        loader: Optional loader used to re-encode images (e.g. to downscale)

    Returns:
        Tuple of (images, manga_title, chapter_number)

    Raises:
        InvalidRequestError: If body is malformed
    """
    if not isinstance(body, dict):
        raise InvalidRequestError("Request body must be a JSON object")

    raw_images = body.get("images")
    if not isinstance(raw_images, list) or not raw_images:
        raise InvalidRequestError("No images provided")

    images: List[PageImage] = []
    for i, raw in enumerate(raw_images):
        if not isinstance(raw, dict):
            raise InvalidRequestError(f"Image #{i + 1} is not an object")
        name, data = raw.get("name"), raw.get("data")
        if not isinstance(name, str) or not name:
            raise InvalidRequestError(f"Image #{i + 1} has no name")
        if not isinstance(data, str) or not is_image_data_uri(data):
            raise InvalidRequestError(
                f"Image '{name}' is not an embeddable image",
                details="Expected a data URI such as data:image/webp;base64,...",
            )

        if loader is not None:
            try:
                images.append(loader.from_data_uri(name, data))
            except ValueError as e:
                raise InvalidRequestError(f"Image '{name}' could not be decoded", details=str(e)) from e
        else:
            images.append(PageImage(filename=name, data=data))

    title = body.get("mangaTitle")
    if title is None:
        title = ""
    elif not isinstance(title, str):
        raise InvalidRequestError("mangaTitle must be a string")

    chapter = body.get("chapterNumber")
    if chapter is not None and not _is_chapter_number(chapter):
        raise InvalidRequestError("chapterNumber must be a number", details=f"Got {chapter!r}")

    return images, title, chapter


class SortPagesHandler:
    """Turns a sort request into a (status_code, payload) response.

    Each call builds a fresh ChapterProcessor; nothing is shared between
    requests except the (stateless) VLM client.
    """

    def __init__(
        self,
        vlm_client: Optional[BaseVLMClient] = None,
        config: Optional[ProcessorConfig] = None,
        state_manager: Optional[StateManager] = None,
    ):
        self.vlm_client = vlm_client
        self.config = config or ProcessorConfig(auto_save=state_manager is not None)
        self.state_manager = state_manager
        self.loader = (
            PageImageLoader(ImageLoadConfig(max_side=self.config.max_image_side))
            if self.config.max_image_side
            else None
        )

    def handle(self, body: Any) -> Tuple[int, Dict[str, Any]]:
        """Handle one sort request.

        Returns:
            Tuple of (HTTP status code, response payload)
        """
        try:
            images, title, chapter = parse_sort_request(body, self.loader)
            processor = ChapterProcessor(
                images,
                manga_title=title,
                chapter_number=chapter,
                vlm_client=self.vlm_client,
                state_manager=self.state_manager,
                config=self.config,
            )
            result = processor.sort()
            return 200, result.to_dict()

        except PageSortError as e:
            logger.error(f"Sort request failed ({type(e).__name__}): {e.message}")
            payload = e.to_payload()
            if isinstance(e, (StageFailure, OrderValidationError)):
                payload["status"] = STATUS_CONTEXT_FAILURE
            return e.status_code, payload

        except Exception as e:
            logger.exception(f"Unexpected error while sorting pages: {e}")
            return 500, {"error": str(e) or "Unknown error"}
