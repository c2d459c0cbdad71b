"""Error taxonomy for the page-ordering pipeline.

Every failure is fatal to the current sort and carries enough detail to be
rendered as a structured response payload (see ``to_payload``). Nothing is
ever defaulted to upload order.
"""

from typing import Any, Dict, List, Optional


class PageSortError(RuntimeError):
    """Base class for all page-ordering failures.

    Attributes:
        message: Human-readable error summary (``error`` field of the payload)
        details: Optional extra explanation (``details`` field)
        status_code: HTTP-style status used by the request handler
    """

    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_payload(self) -> Dict[str, Any]:
        """Build failure response payload."""
        payload: Dict[str, Any] = {"error": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigurationError(PageSortError):
    """Inference credentials or settings are missing. No calls were made."""

    status_code = 500


class InvalidRequestError(PageSortError):
    """Inbound sort request is malformed."""

    status_code = 400


class VLMClientError(PageSortError):
    """Inference service call failed after all transport retries.

    Attributes:
        upstream_status: HTTP status returned by the inference service, if any
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.upstream_status = upstream_status


class StageFailure(PageSortError):
    """Base for inference stage failures (analysis or sequencing)."""

    stage = "unknown"

    def __init__(
        self,
        message: str,
        details: Optional[str] = None,
        raw_response: Optional[str] = None,
        upstream_status: Optional[int] = None,
    ):
        super().__init__(message, details)
        self.raw_response = raw_response
        self.upstream_status = upstream_status

    @property
    def status_code(self) -> int:  # type: ignore[override]
        # Rate limit and exhausted credits are passed through to the caller
        if self.upstream_status in (402, 429):
            return self.upstream_status
        return 500


class AnalysisFailure(StageFailure):
    """Visual analysis call failed or its response did not parse."""

    stage = "analysis"


class SequencingFailure(StageFailure):
    """Sequencing call failed or its response lacked required fields."""

    stage = "sequencing"


class OrderValidationError(PageSortError):
    """Proposed order is not a bijection over the input filenames."""

    status_code = 422

    def __init__(self, message: str, returned_names: List[str], details: Optional[str] = None):
        super().__init__(message, details)
        self.returned_names = list(returned_names)


class InvalidFilenamesError(OrderValidationError):
    """Proposed order contains names that are not in the input set.

    ``missing_names`` is filled as well when the same order also drops input
    names, so the caller sees both problems at once.
    """

    def __init__(
        self,
        invalid_names: List[str],
        valid_names: List[str],
        returned_names: List[str],
        missing_names: Optional[List[str]] = None,
    ):
        super().__init__(
            "Order contains filenames that were not uploaded",
            returned_names,
            details=f"Invalid names: {', '.join(invalid_names)}",
        )
        self.invalid_names = list(invalid_names)
        self.valid_names = list(valid_names)
        self.missing_names = list(missing_names or [])

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["invalidNames"] = self.invalid_names
        payload["validNames"] = self.valid_names
        if self.missing_names:
            payload["missingNames"] = self.missing_names
        return payload


class MissingFilenamesError(OrderValidationError):
    """Proposed order omits some of the input names."""

    def __init__(self, missing_names: List[str], returned_names: List[str]):
        super().__init__(
            "Order is missing uploaded filenames",
            returned_names,
            details=f"Missing names: {', '.join(missing_names)}",
        )
        self.missing_names = list(missing_names)

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["missingNames"] = self.missing_names
        payload["returnedNames"] = self.returned_names
        return payload


class DuplicateFilenamesError(OrderValidationError):
    """Proposed order lists some input names more than once."""

    def __init__(self, duplicate_names: List[str], returned_names: List[str]):
        super().__init__(
            "Order repeats filenames",
            returned_names,
            details=f"Duplicated names: {', '.join(duplicate_names)}",
        )
        self.duplicate_names = list(duplicate_names)

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["duplicateNames"] = self.duplicate_names
        payload["returnedNames"] = self.returned_names
        return payload
