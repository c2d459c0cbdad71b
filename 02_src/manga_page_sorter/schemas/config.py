"""Configuration schemas for VLM client and chapter processor."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import ConfigurationError

API_KEY_ENV = "LOVABLE_API_KEY"
MODEL_ENV = "PAGE_SORTER_MODEL"
BASE_URL_ENV = "PAGE_SORTER_BASE_URL"


@dataclass
class VLMConfig:
    """Configuration for VLM client.

    Attributes:
        api_key: API key for the chat-completions gateway
        model: Model name (default: google/gemini-2.5-flash)
        base_url: OpenAI-compatible endpoint root
        timeout_sec: Request timeout in seconds
        max_retries: Maximum number of transport attempts
        backoff_base: Base for exponential backoff calculation
        min_interval_s: Minimum interval between requests (throttling)
    """
    api_key: str
    model: str = "google/gemini-2.5-flash"
    base_url: str = "https://ai.gateway.lovable.dev/v1"
    timeout_sec: int = 120
    max_retries: int = 3
    backoff_base: float = 1.5
    min_interval_s: float = 0.6

    @classmethod
    def from_env(cls) -> "VLMConfig":
        """Build config from environment variables.

        Reads LOVABLE_API_KEY (required), PAGE_SORTER_MODEL and
        PAGE_SORTER_BASE_URL (optional). The caller is expected to have
        run load_dotenv() already.

        Raises:
            ConfigurationError: If the API key is not set
        """
        api_key = os.getenv(API_KEY_ENV)
        if not api_key:
            raise ConfigurationError(
                f"{API_KEY_ENV} not configured",
                details="Set it in .env file or pass vlm_client explicitly.",
            )

        config = cls(api_key=api_key)
        if os.getenv(MODEL_ENV):
            config.model = os.environ[MODEL_ENV]
        if os.getenv(BASE_URL_ENV):
            config.base_url = os.environ[BASE_URL_ENV].rstrip("/")
        return config


@dataclass
class ProcessorConfig:
    """Configuration for ChapterProcessor.

    Attributes:
        state_dir: Directory for run diagnostics (optional, memory if None)
        auto_save: Save VLM responses and results to state after each stage
        max_image_side: Downscale images whose longest side exceeds this (None = keep)
        log_level: Logging level (default: INFO)
    """
    state_dir: Optional[Path] = None
    auto_save: bool = True
    max_image_side: Optional[int] = None
    log_level: str = "INFO"
