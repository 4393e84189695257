"""
Unit tests for the pipeline exception hierarchy.
"""

import pytest

from src.models.errors import (
    MODEL_ERROR_CODES,
    ConfigurationError,
    EnrichmentError,
    InvalidFieldError,
    MissingFieldError,
    ModelClientError,
    ModelTimeoutError,
    PipelineError,
    QuotaExceededError,
    RateLimitedError,
    RecommendationCountError,
    ResponseParseError,
    ResponseValidationError,
    ServiceUnavailableError,
    TransportError,
)


class TestErrorHierarchy:
    """Retryability and base classes of each error."""

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            ModelClientError,
            TransportError,
            ServiceUnavailableError,
            QuotaExceededError,
            RateLimitedError,
            ResponseValidationError,
            EnrichmentError,
        ],
    )
    def test_all_errors_are_pipeline_errors(self, error_class):
        """Test that every error derives from PipelineError."""
        assert issubclass(error_class, PipelineError)

    def test_transport_and_timeout_are_retryable(self):
        """Test that only transport-class errors are marked retryable."""
        assert TransportError("x").retryable is True
        assert ModelTimeoutError("x").retryable is True
        assert isinstance(ModelTimeoutError("x"), TransportError)

    def test_quota_and_rate_limit_are_not_retryable(self):
        """Test that quota and rate-limit errors are not retried."""
        assert QuotaExceededError("x").retryable is False
        assert RateLimitedError("x").retryable is False
        assert not isinstance(QuotaExceededError("x"), TransportError)

    def test_validation_errors_are_not_retryable(self):
        """Test that validation errors are fatal."""
        for error in (
            ResponseParseError("bad json"),
            RecommendationCountError(2, 3),
            MissingFieldError("title", 1),
            InvalidFieldError("matchScore", 2, 150),
        ):
            assert isinstance(error, ResponseValidationError)
            assert error.retryable is False


class TestErrorDetails:
    """Messages and structured details."""

    def test_count_error_reports_actual_count(self):
        """Test that RecommendationCountError names the actual count."""
        # Act
        error = RecommendationCountError(actual=2, expected=3)

        # Assert
        assert error.actual == 2
        assert error.expected == 3
        assert "got 2" in str(error)
        assert error.details == {"actual": 2, "expected": 3}

    def test_missing_field_reports_one_based_index(self):
        """Test that MissingFieldError names the field and index."""
        error = MissingFieldError("description", 2)

        assert str(error) == "Recommendation 2 missing required field: description"
        assert error.field == "description"
        assert error.index == 2

    def test_missing_top_level_field(self):
        """Test MissingFieldError without an item index."""
        error = MissingFieldError("recommendations")

        assert "Response missing required field: recommendations" == str(error)
        assert error.index is None

    def test_invalid_field_truncates_value(self):
        """Test that long invalid values are truncated in details."""
        error = InvalidFieldError("description", 1, "x" * 500)

        assert len(error.details["value"]) == 100

    def test_to_dict(self):
        """Test conversion to a serializable dictionary."""
        # Arrange
        error = ServiceUnavailableError(attempts=3)

        # Act
        result = error.to_dict()

        # Assert
        assert result == {
            "error": "ServiceUnavailableError",
            "code": "service_unavailable",
            "message": "AI service temporarily unavailable",
            "details": {"attempts": 3},
        }

    def test_model_client_error_carries_code_and_status(self):
        """Test that ModelClientError exposes its stable code."""
        cause = RuntimeError("boom")
        error = ModelClientError("HTTP 429", code="rate_limit_exceeded", status_code=429, original_error=cause)

        assert error.code == "rate_limit_exceeded"
        assert error.code in MODEL_ERROR_CODES
        assert error.status_code == 429
        assert error.details == {"code": "rate_limit_exceeded", "status_code": 429}
        assert error.original_error is cause

    def test_enrichment_error_records_recommendation(self):
        """Test that EnrichmentError records the failing recommendation id."""
        error = EnrichmentError("lookup failed", recommendation_id="rec-7")

        assert error.recommendation_id == "rec-7"
        assert error.details["recommendation_id"] == "rec-7"
