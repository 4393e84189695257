"""
Unit tests for logger module.
"""

import io
import json
import logging

import pytest
import structlog

from src.utils import logger as logger_module
from src.utils.logger import (
    MASK,
    build_processors,
    configure_logging,
    get_logger,
    is_sensitive_key,
    mask_credentials,
)


@pytest.fixture
def restore_logging():
    """Put the import-time configuration back after a test reconfigures logging."""
    yield
    configure_logging(log_file=None)


class TestMaskCredentials:
    """Test cases for the mask_credentials processor."""

    @pytest.mark.parametrize(
        "key",
        ["api_key", "access_token", "gemini_credential", "token-refresh", "auth", "DB_PASSWORD"],
    )
    def test_sensitive_keys(self, key):
        assert is_sensitive_key(key)

    @pytest.mark.parametrize("key", ["max_tokens_used", "author", "profile_id", "authority"])
    def test_similar_names_not_sensitive(self, key):
        """Test that only delimited words count as credentials."""
        assert not is_sensitive_key(key)

    def test_masks_top_level_fields(self):
        # Arrange
        event_dict = {"event": "Model call", "api_key": "AIza-1234567890", "attempt": 2}

        # Act
        result = mask_credentials(None, "info", event_dict)

        # Assert
        assert result["api_key"] == MASK
        assert result["attempt"] == 2
        assert result["event"] == "Model call"

    def test_masks_nested_details(self):
        """Test that error details dicts are masked as well."""
        # Arrange
        event_dict = {
            "event": "Synthesis failed",
            "details": {"code": "invalid_api_key", "request": {"auth_header": "Bearer x"}},
        }

        # Act
        result = mask_credentials(None, "error", event_dict)

        # Assert
        assert result["details"]["code"] == "invalid_api_key"
        assert result["details"]["request"]["auth_header"] == MASK


class TestConfigureLogging:
    """Test cases for configure_logging."""

    def test_creates_log_directory_and_file_handler(self, tmp_path, restore_logging):
        # Arrange
        log_file = tmp_path / "nested" / "pipeline.log"

        # Act
        configure_logging(log_file=str(log_file), log_level="DEBUG", stream=io.StringIO())

        # Assert
        assert log_file.parent.is_dir()
        handlers = logging.getLogger().handlers
        assert any(isinstance(h, logging.FileHandler) for h in handlers)
        assert logging.getLogger().level == logging.DEBUG

    def test_stream_only_without_log_file(self, restore_logging):
        configure_logging(log_file=None, stream=io.StringIO())

        handlers = logging.getLogger().handlers
        assert not any(isinstance(h, logging.FileHandler) for h in handlers)

    def test_json_events_are_masked(self, restore_logging):
        """Test the rendered output end to end."""
        # Arrange
        stream = io.StringIO()
        configure_logging(log_file=None, stream=stream)
        log = get_logger(correlation_id="req-1", phase="orchestration", component="test")

        # Act
        log.info("Model call", api_key="secret-value", batch_size=3)

        # Assert
        record = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert record["event"] == "Model call"
        assert record["api_key"] == MASK
        assert record["correlation_id"] == "req-1"
        assert record["phase"] == "orchestration"
        assert record["level"] == "info"
        assert "timestamp" in record

    def test_processor_order(self):
        """Test that masking runs before rendering."""
        processors = build_processors()

        assert processors.index(mask_credentials) == len(processors) - 2
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_console_renderer(self):
        processors = build_processors(json_output=False)

        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)


class TestGetLogger:
    """Test cases for get_logger."""

    def test_generates_correlation_id(self, mocker):
        # Arrange
        base = mocker.MagicMock()
        mocker.patch.object(logger_module.structlog, "get_logger", return_value=base)

        # Act
        get_logger()

        # Assert
        correlation_id = base.bind.call_args.kwargs["correlation_id"]
        assert len(correlation_id) == 36

    def test_binds_context_once(self, mocker):
        # Arrange
        base = mocker.MagicMock()
        mocker.patch.object(logger_module.structlog, "get_logger", return_value=base)

        # Act
        logger = get_logger(correlation_id="test-id", phase="ranking", component="ranking_engine")

        # Assert
        base.bind.assert_called_once_with(
            correlation_id="test-id", phase="ranking", component="ranking_engine"
        )
        assert logger is base.bind.return_value

    def test_omits_empty_context(self, mocker):
        base = mocker.MagicMock()
        mocker.patch.object(logger_module.structlog, "get_logger", return_value=base)

        get_logger(correlation_id="test-id")

        base.bind.assert_called_once_with(correlation_id="test-id")
