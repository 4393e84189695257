"""
Pipeline Exceptions

Exception hierarchy for the recommendation synthesis pipeline.

Retryable errors (transport failures, timeouts) are retried by the request
orchestrator. Validation errors are fatal for the request that produced them
and are never retried or cached. Quota and rate-limit errors are surfaced
distinctly so callers can choose a cool-down.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    code = "pipeline_error"
    retryable = False

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.original_error = original_error

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(PipelineError):
    """Raised when configuration or reference data is missing or invalid."""

    code = "configuration_error"


# ---------------------------------------------------------------------------
# Model client boundary
# ---------------------------------------------------------------------------

MODEL_ERROR_CODES = {
    "transport_error",
    "timeout",
    "rate_limit_exceeded",
    "insufficient_quota",
    "invalid_api_key",
    "model_not_found",
    "empty_response",
}


class ModelClientError(PipelineError):
    """Tagged failure raised by a model client.

    The ``code`` is one of MODEL_ERROR_CODES and is what the orchestrator uses
    to classify the failure as retryable or fatal.
    """

    def __init__(
        self,
        message: str,
        code: str = "transport_error",
        status_code: Optional[int] = None,
        original_error: Optional[BaseException] = None,
    ):
        details: dict[str, Any] = {"code": code}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details, original_error)
        self.code = code
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Orchestrator surface
# ---------------------------------------------------------------------------


class TransportError(PipelineError):
    """Network or provider-side failure; retried with backoff."""

    code = "transport_error"
    retryable = True


class ModelTimeoutError(TransportError):
    """Outbound call exceeded its hard timeout; counted against retries."""

    code = "timeout"


class ServiceUnavailableError(PipelineError):
    """Retries exhausted on the model path."""

    code = "service_unavailable"

    def __init__(
        self,
        message: str = "AI service temporarily unavailable",
        attempts: int = 0,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(message, {"attempts": attempts}, original_error)
        self.attempts = attempts


class QuotaExceededError(PipelineError):
    """Provider quota exhausted; not retried within the request."""

    code = "quota_exceeded"


class RateLimitedError(PipelineError):
    """Provider rate limit hit; not retried within the request."""

    code = "rate_limited"


class ModelConfigurationError(PipelineError):
    """Invalid credentials or unknown model identifier."""

    code = "model_configuration_error"


# ---------------------------------------------------------------------------
# Response validation
# ---------------------------------------------------------------------------


class ResponseValidationError(PipelineError):
    """Base class for malformed model output. Never retried, never cached."""

    code = "invalid_response"


class ResponseParseError(ResponseValidationError):
    """Raw model output is not a JSON document."""

    code = "response_parse_error"


class RecommendationCountError(ResponseValidationError):
    """Model returned a recommendation count other than the contract."""

    code = "recommendation_count_error"

    def __init__(self, actual: int, expected: int):
        super().__init__(
            f"Expected {expected} recommendations, got {actual}",
            {"actual": actual, "expected": expected},
        )
        self.actual = actual
        self.expected = expected


class MissingFieldError(ResponseValidationError):
    """A required field is absent from the response or one of its items."""

    code = "missing_field"

    def __init__(self, field: str, index: Optional[int] = None):
        if index is None:
            message = f"Response missing required field: {field}"
        else:
            message = f"Recommendation {index} missing required field: {field}"
        super().__init__(message, {"field": field, "index": index})
        self.field = field
        self.index = index


class InvalidFieldError(ResponseValidationError):
    """A field is present but has the wrong type or an out-of-range value."""

    code = "invalid_field"

    def __init__(self, field: str, index: Optional[int] = None, value: Any = None):
        location = f"Recommendation {index}" if index is not None else "Response"
        super().__init__(
            f"{location} has invalid {field}: {str(value)[:100]}",
            {"field": field, "index": index, "value": str(value)[:100]},
        )
        self.field = field
        self.index = index
        self.value = value


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


class EnrichmentError(PipelineError):
    """Cross-referencing a recommendation against reference data failed."""

    code = "enrichment_error"

    def __init__(
        self,
        message: str,
        recommendation_id: Optional[str] = None,
        original_error: Optional[BaseException] = None,
    ):
        super().__init__(
            message, {"recommendation_id": recommendation_id}, original_error
        )
        self.recommendation_id = recommendation_id
