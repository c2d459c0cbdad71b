"""Core components: VLM client, state, validation and processor."""

from .state import (
    StorageBackend,
    MemoryStorage,
    DiskStorage,
    SortState,
    StateManager,
)
from .vlm_client import BaseVLMClient, ChatCompletionsVLMClient
from .validator import check_bijection, validate_order
from .ordering import apply_order
from .processor import ChapterProcessor

__all__ = [
    "StorageBackend",
    "MemoryStorage",
    "DiskStorage",
    "SortState",
    "StateManager",
    "BaseVLMClient",
    "ChatCompletionsVLMClient",
    "check_bijection",
    "validate_order",
    "apply_order",
    "ChapterProcessor",
]
