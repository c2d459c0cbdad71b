"""VLM Client - Technical wrapper over an OpenAI-compatible chat-completions API."""

import logging
import time
from typing import Any, Dict, List, Optional

import requests

from ..errors import VLMClientError
from ..schemas.common import PageImage
from ..schemas.config import VLMConfig

logger = logging.getLogger(__name__)


class BaseVLMClient:
    """Base interface for VLM clients.

    The pipeline stages only depend on invoke(), so any provider (or a test
    double) can stand behind it.
    """

    def invoke(self, prompt: str, images: List[PageImage]) -> Dict[str, Any]:
        """Invoke VLM with prompt and images.

        Args:
            prompt: Text instruction
            images: Page images, each sent with a filename marker

        Returns:
            {"text": str, "usage": dict, "raw": dict}

        Raises:
            VLMClientError: If the call fails
        """
        raise NotImplementedError


class ChatCompletionsVLMClient(BaseVLMClient):
    """Chat-completions client with retry logic and throttling.

    Features:
    - Retry on 429 (rate limit) and 500-599 (server errors)
    - Exponential backoff with configurable base
    - Throttling with minimum interval between requests
    - Images sent as image_url data URIs, each preceded by a
      "[FILE: name]" text marker
    """

    def __init__(self, config: VLMConfig):
        """Initialize client.

        Args:
            config: VLM configuration
        """
        self.config = config
        self._last_call_ts: Optional[float] = None
        self._calls_made = 0
        self.url = f"{self.config.base_url.rstrip('/')}/chat/completions"

        if not self.config.api_key:
            logger.warning("VLM API key is not set!")

    def _throttle(self) -> None:
        """Guarantee min_interval_s between calls."""
        if self._last_call_ts is None:
            return

        elapsed = time.monotonic() - self._last_call_ts
        if elapsed < self.config.min_interval_s:
            sleep_time = self.config.min_interval_s - elapsed
            logger.debug(f"Throttling: sleeping {sleep_time:.3f}s")
            time.sleep(sleep_time)

    @staticmethod
    def _is_retryable(status: Optional[int]) -> bool:
        return status is not None and (status == 429 or 500 <= status < 600)

    def _make_request_with_retry(self, headers: Dict, payload: Dict) -> Dict:
        """POST with retry on 429 and 5xx.

        Exponential backoff formula: sleep_s = backoff_base ** (attempt - 1)

        Raises:
            VLMClientError: On non-retryable status, network failure or
                            when all retries are exhausted
        """
        last_error = None
        last_status: Optional[int] = None

        for attempt in range(1, self.config.max_retries + 1):
            try:
                logger.info(f"VLM request attempt {attempt}/{self.config.max_retries}")
                response = requests.post(
                    self.url,
                    headers=headers,
                    json=payload,
                    timeout=self.config.timeout_sec,
                )
            except requests.exceptions.RequestException as e:
                last_error = str(e)
                last_status = None
                if attempt < self.config.max_retries:
                    sleep_s = self.config.backoff_base ** (attempt - 1)
                    logger.warning(
                        f"VLM request failed, retry {attempt}/{self.config.max_retries} "
                        f"after {sleep_s:.1f}s: {e}"
                    )
                    time.sleep(sleep_s)
                    continue
                logger.error(f"VLM request failed after {attempt} attempts: {e}")
                raise VLMClientError("Inference service unreachable", details=last_error) from e

            status = response.status_code

            if status < 400:
                try:
                    return response.json()
                except ValueError as e:
                    raise VLMClientError(
                        "Inference service returned non-JSON body",
                        details=response.text[:400],
                        upstream_status=status,
                    ) from e

            last_status = status
            last_error = f"status={status}, body={response.text[:400]}"

            if self._is_retryable(status) and attempt < self.config.max_retries:
                sleep_s = self.config.backoff_base ** (attempt - 1)
                logger.warning(
                    f"VLM API {status} error, retry {attempt}/{self.config.max_retries} "
                    f"after {sleep_s:.1f}s"
                )
                time.sleep(sleep_s)
                continue

            if self._is_retryable(status):
                logger.error(
                    f"Retryable error but out of retries (attempt {attempt}/{self.config.max_retries})"
                )
            else:
                logger.info(f"Request failed with status={status}, not retrying (client error)")
            break

        if last_status == 429:
            message = "Rate limit exceeded, try again later"
        elif last_status == 402:
            message = "Inference credits exhausted"
        else:
            message = f"Inference service error (status={last_status})"
        raise VLMClientError(message, details=last_error, upstream_status=last_status)

    def _build_content(self, prompt: str, images: List[PageImage]) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [{"type": "text", "text": prompt}]
        for image in images:
            content.append({"type": "text", "text": f"[FILE: {image.filename}]"})
            content.append({"type": "image_url", "image_url": {"url": image.data}})
        return content

    def invoke(self, prompt: str, images: List[PageImage]) -> Dict[str, Any]:
        """Invoke VLM with prompt and images.

        Args:
            prompt: Text instruction
            images: Page images

        Returns:
            {"text": str, "usage": dict, "raw": dict}
        """
        self._throttle()

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [
                {"role": "user", "content": self._build_content(prompt, images)}
            ],
        }
        headers = {
            "Authorization": f"Bearer {self.config.api_key}",
            "Content-Type": "application/json",
        }

        logger.info(f"Sending request to {self.config.model} with {len(images)} images")

        start_ts = time.monotonic()
        try:
            result = self._make_request_with_retry(headers, payload)
        finally:
            self._last_call_ts = time.monotonic()
        latency = time.monotonic() - start_ts
        self._calls_made += 1

        logger.info(f"Request completed in {latency:.3f}s")

        return self._parse_response(result)

    def _parse_response(self, result: Dict) -> Dict[str, Any]:
        """Parse chat-completions response.

        Raises:
            VLMClientError: If response format is invalid
        """
        try:
            message = result["choices"][0]["message"]
            content = message.get("content")
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error(f"Failed to parse VLM response: {e}. Raw response: {str(result)[:400]}")
            raise VLMClientError("Malformed inference response", details=str(e)) from e

        # Some gateways return content as a list of parts
        if isinstance(content, list):
            content = "\n".join(
                part["text"] for part in content
                if isinstance(part, dict) and isinstance(part.get("text"), str)
            )
        elif content is not None and not isinstance(content, str):
            logger.error(f"Unexpected VLM content type {type(content).__name__}: {str(content)[:400]}")
            raise VLMClientError(
                "Malformed inference response",
                details=f"content is {type(content).__name__}, expected text",
            )

        text_content = content or ""
        logger.debug(f"Response text length: {len(text_content)}")

        return {
            "text": text_content,
            "usage": result.get("usage", {}),
            "raw": result,
        }
