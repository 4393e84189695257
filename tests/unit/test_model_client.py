"""
Unit tests for model clients.

Gemini calls go through httpx.MockTransport; the Claude client is exercised
with a stand-in for ClaudeSDKClient. Nothing here touches the network.
"""

import json
from types import SimpleNamespace

import httpx
import pytest

from src.models.config import ModelConfig
from src.models.errors import ConfigurationError, ModelClientError
from src.utils.model_client import (
    ClaudeModelClient,
    GeminiModelClient,
    ModelClient,
    _classify_http_status,
    create_model_client,
)


def gemini_envelope(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def make_gemini(handler, **config_overrides) -> GeminiModelClient:
    config = ModelConfig(model_id="models/test-model", **config_overrides)
    return GeminiModelClient(
        config,
        api_key="test-key",
        base_url="https://gemini.test/v1beta",
        transport=httpx.MockTransport(handler),
    )


class TestClassifyHttpStatus:
    @pytest.mark.parametrize(
        "status, body, expected",
        [
            (429, '{"error": "Resource exhausted"}', "rate_limit_exceeded"),
            (429, '{"error": {"status": "insufficient_quota"}}', "insufficient_quota"),
            (429, "Check your plan and billing details", "insufficient_quota"),
            (401, "", "invalid_api_key"),
            (403, "", "invalid_api_key"),
            (404, "models/unknown is not found", "model_not_found"),
            (400, "API key not valid. Please pass a valid API key.", "invalid_api_key"),
            (400, "Invalid JSON payload", "transport_error"),
            (500, "Internal error", "transport_error"),
            (503, "Overloaded", "transport_error"),
        ],
    )
    def test_classification(self, status, body, expected):
        assert _classify_http_status(status, body) == expected


class TestGeminiModelClient:
    """generateContent over a mocked transport."""

    @pytest.mark.asyncio
    async def test_successful_call(self):
        """Test request shape and candidate text extraction."""
        # Arrange
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=gemini_envelope('{"recommendations": []}'))

        client = make_gemini(handler, temperature=0.2, max_output_tokens=1234)

        # Act
        text = await client.complete("Recommend careers")

        # Assert
        assert text == '{"recommendations": []}'
        assert captured["url"].startswith(
            "https://gemini.test/v1beta/models/test-model:generateContent"
        )
        assert "key=test-key" in captured["url"]
        generation = captured["body"]["generationConfig"]
        assert generation == {
            "responseMimeType": "application/json",
            "temperature": 0.2,
            "maxOutputTokens": 1234,
        }
        prompt_text = captured["body"]["contents"][0]["parts"][0]["text"]
        assert prompt_text.endswith("Recommend careers")

    @pytest.mark.asyncio
    async def test_joins_multiple_parts(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"candidates": [{"content": {"parts": [{"text": "{\"a\": "}, {"text": "1}"}]}}]},
            )

        assert await make_gemini(handler).complete("p") == '{"a": 1}'

    @pytest.mark.asyncio
    async def test_non_json_envelope_returns_raw_body(self):
        """Test that a plain-text body is passed through for the validator."""

        def handler(request):
            return httpx.Response(200, text="plain text answer")

        assert await make_gemini(handler).complete("p") == "plain text answer"

    @pytest.mark.asyncio
    async def test_empty_candidates(self):
        def handler(request):
            return httpx.Response(200, json={"candidates": []})

        with pytest.raises(ModelClientError) as exc_info:
            await make_gemini(handler).complete("p")

        assert exc_info.value.code == "empty_response"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "envelope",
        [
            {"candidates": [None]},
            {"candidates": [{"content": None}]},
            {"candidates": [{"content": {"parts": "text"}}]},
            {"candidates": [{"content": {"parts": [{"text": 42}]}}]},
            {"candidates": "none"},
            [1, 2, 3],
        ],
    )
    async def test_malformed_envelope_is_empty_response(self, envelope):
        """Test that an envelope of the wrong shape is tagged instead of crashing."""

        def handler(request):
            return httpx.Response(200, json=envelope)

        with pytest.raises(ModelClientError) as exc_info:
            await make_gemini(handler).complete("p")

        assert exc_info.value.code == "empty_response"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, body, code",
        [
            (429, "quota exceeded: insufficient_quota", "insufficient_quota"),
            (429, "slow down", "rate_limit_exceeded"),
            (403, "forbidden", "invalid_api_key"),
            (404, "not found", "model_not_found"),
            (502, "bad gateway", "transport_error"),
        ],
    )
    async def test_error_status_tagged(self, status, body, code):
        """Test that HTTP errors raise ModelClientError with a stable code."""

        def handler(request):
            return httpx.Response(status, text=body)

        with pytest.raises(ModelClientError) as exc_info:
            await make_gemini(handler).complete("p")

        assert exc_info.value.code == code
        assert exc_info.value.status_code == status

    @pytest.mark.asyncio
    async def test_timeout_tagged(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(ModelClientError) as exc_info:
            await make_gemini(handler).complete("p")

        assert exc_info.value.code == "timeout"

    @pytest.mark.asyncio
    async def test_connection_error_tagged(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ModelClientError) as exc_info:
            await make_gemini(handler).complete("p")

        assert exc_info.value.code == "transport_error"
        assert isinstance(exc_info.value.original_error, httpx.ConnectError)

    def test_empty_api_key_rejected(self):
        with pytest.raises(ConfigurationError):
            GeminiModelClient(ModelConfig(), api_key="")

    def test_model_identifier(self):
        client = GeminiModelClient(ModelConfig(model_id="models/gemini-x"), api_key="k")

        assert client.model_identifier == "models/gemini-x"


class TestModelClientBase:
    def test_base_class_is_abstract(self):
        with pytest.raises(TypeError):
            ModelClient(ModelConfig())


class FakeSDKClient:
    """Stand-in for claude_agent_sdk.ClaudeSDKClient."""

    instances: list = []
    reply_blocks: list = []
    error = None

    def __init__(self, options):
        self.options = options
        self.prompt = None
        FakeSDKClient.instances.append(self)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def query(self, prompt):
        if FakeSDKClient.error is not None:
            raise FakeSDKClient.error
        self.prompt = prompt

    async def receive_response(self):
        yield SimpleNamespace(content=[SimpleNamespace(text=t) for t in FakeSDKClient.reply_blocks])
        yield SimpleNamespace(subtype="success")


@pytest.fixture
def fake_sdk(mocker):
    FakeSDKClient.instances = []
    FakeSDKClient.reply_blocks = []
    FakeSDKClient.error = None
    mocker.patch("claude_agent_sdk.ClaudeSDKClient", FakeSDKClient)
    return FakeSDKClient


class TestClaudeModelClient:
    @pytest.mark.asyncio
    async def test_collects_text_blocks(self, fake_sdk):
        """Test single-turn, tool-less options and text concatenation."""
        # Arrange
        fake_sdk.reply_blocks = ['{"recommendations": ', "[]}"]
        client = ClaudeModelClient(ModelConfig(provider="claude", model_id="claude-test"))

        # Act
        text = await client.complete("Recommend careers")

        # Assert
        assert text == '{"recommendations": []}'
        sdk = fake_sdk.instances[0]
        assert sdk.prompt == "Recommend careers"
        assert sdk.options.model == "claude-test"
        assert sdk.options.max_turns == 1
        assert sdk.options.allowed_tools == []

    @pytest.mark.asyncio
    async def test_empty_reply(self, fake_sdk):
        client = ClaudeModelClient(ModelConfig(provider="claude", model_id="claude-test"))

        with pytest.raises(ModelClientError) as exc_info:
            await client.complete("p")

        assert exc_info.value.code == "empty_response"

    @pytest.mark.asyncio
    async def test_sdk_error_is_transport_error(self, fake_sdk):
        from claude_agent_sdk import ClaudeSDKError

        fake_sdk.error = ClaudeSDKError("CLI not found")
        client = ClaudeModelClient(ModelConfig(provider="claude", model_id="claude-test"))

        with pytest.raises(ModelClientError) as exc_info:
            await client.complete("p")

        assert exc_info.value.code == "transport_error"


class TestCreateModelClient:
    def test_gemini_uses_credentials(self, mocker):
        credentials = mocker.Mock()
        credentials.get_api_key.return_value = "from-credentials"

        client = create_model_client(ModelConfig(provider="gemini"), credentials)

        assert isinstance(client, GeminiModelClient)
        assert client.api_key == "from-credentials"
        credentials.get_api_key.assert_called_once_with("gemini")

    def test_gemini_missing_key_raises(self, mocker):
        credentials = mocker.Mock()
        credentials.get_api_key.side_effect = ConfigurationError("GEMINI_API_KEY is not set")

        with pytest.raises(ConfigurationError):
            create_model_client(ModelConfig(provider="gemini"), credentials)

    def test_claude_needs_no_api_key(self):
        client = create_model_client(ModelConfig(provider="claude", model_id="claude-test"))

        assert isinstance(client, ClaudeModelClient)
        assert client.model_identifier == "claude-test"
