"""Generative model clients.

A model client turns a prompt into raw response text and nothing more. Every
failure surfaces as a ModelClientError carrying a stable code, which the
request orchestrator uses to decide between retrying and giving up.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from src.models.config import ModelConfig
from src.models.errors import ConfigurationError, ModelClientError
from src.utils.credential_manager import CredentialManager
from src.utils.logger import get_logger

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

JSON_ONLY_PREAMBLE = (
    "You are an API that returns STRICT JSON with no markdown and no prose.\n"
    'Respond with an object containing a "recommendations" array that matches '
    "the requested schema.\n"
    "Do NOT include explanations.\n\n"
    "User prompt:\n"
)


class ModelClient(ABC):
    """Boundary to an opaque text-completion model."""

    def __init__(self, config: ModelConfig, correlation_id: str = "model-client"):
        self.config = config
        self.logger: Any = get_logger(
            correlation_id=correlation_id,
            phase="model_call",
            component=self.__class__.__name__,
        )

    @property
    def model_identifier(self) -> str:
        return self.config.model_id

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send a prompt and return the raw response text.

        Raises:
            ModelClientError: On any failure, tagged with a stable code
        """


def _classify_http_status(status_code: int, body: str) -> str:
    """Map an HTTP error status (and body hints) to a model error code."""
    lowered = body.lower()
    if status_code == 429:
        if "insufficient_quota" in lowered or "billing" in lowered:
            return "insufficient_quota"
        return "rate_limit_exceeded"
    if status_code in (401, 403):
        return "invalid_api_key"
    if status_code == 404:
        return "model_not_found"
    if status_code == 400 and "api key" in lowered:
        return "invalid_api_key"
    return "transport_error"


def _extract_candidate_text(payload: Any) -> str:
    """Join the text parts of the first candidate of a generateContent response.

    Anything that does not have the envelope's shape yields "".
    """
    candidates = payload.get("candidates") if isinstance(payload, dict) else None
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    content = first.get("content") if isinstance(first, dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"]
        for part in parts
        if isinstance(part, dict) and isinstance(part.get("text"), str)
    )


class GeminiModelClient(ModelClient):
    """Gemini REST client using the generateContent endpoint."""

    def __init__(
        self,
        config: ModelConfig,
        api_key: str,
        base_url: str = GEMINI_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        correlation_id: str = "model-client",
    ):
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY missing")
        super().__init__(config, correlation_id)
        self.api_key = api_key
        self.base_url = base_url
        self._transport = transport

    def _build_body(self, prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"role": "user", "parts": [{"text": JSON_ONLY_PREAMBLE + prompt}]}],
            "generationConfig": {
                "responseMimeType": "application/json",
                "temperature": self.config.temperature,
                "maxOutputTokens": self.config.max_output_tokens,
            },
        }

    async def complete(self, prompt: str) -> str:
        url = f"{self.base_url}/{self.config.model_id}:generateContent"
        self.logger.debug("Gemini call initiated", prompt_length=len(prompt))

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    url, params={"key": self.api_key}, json=self._build_body(prompt)
                )
        except httpx.TimeoutException as e:
            raise ModelClientError(
                f"Gemini call timed out after {self.config.timeout_seconds}s",
                code="timeout",
                original_error=e,
            ) from e
        except httpx.HTTPError as e:
            raise ModelClientError(
                f"Gemini transport failure: {e}", code="transport_error", original_error=e
            ) from e

        if response.is_error:
            code = _classify_http_status(response.status_code, response.text)
            self.logger.warning(
                "Gemini call failed",
                status_code=response.status_code,
                error_code=code,
                body_preview=response.text[:200],
            )
            raise ModelClientError(
                f"Gemini HTTP {response.status_code}",
                code=code,
                status_code=response.status_code,
            )

        try:
            text = _extract_candidate_text(response.json())
        except ValueError:
            # Not a JSON envelope; hand the raw body to the validator
            text = response.text

        if not text.strip():
            raise ModelClientError("Gemini returned an empty response", code="empty_response")

        self.logger.debug("Gemini call succeeded", response_length=len(text))
        return text


class ClaudeModelClient(ModelClient):
    """Single-turn, tool-less completion through claude_agent_sdk."""

    SYSTEM_PROMPT = (
        "You are an expert career counselor. Respond only with the JSON object "
        "requested by the user prompt."
    )

    async def complete(self, prompt: str) -> str:
        from claude_agent_sdk import ClaudeAgentOptions, ClaudeSDKClient, ClaudeSDKError

        self.logger.debug("Claude call initiated", prompt_length=len(prompt))
        options = ClaudeAgentOptions(
            model=self.config.model_id,
            max_turns=1,
            allowed_tools=[],
            system_prompt=self.SYSTEM_PROMPT,
            setting_sources=None,
        )

        response_text = ""
        try:
            async with ClaudeSDKClient(options=options) as client:
                await client.query(prompt)
                async for message in client.receive_response():
                    if hasattr(message, "content") and message.content:
                        for block in message.content:
                            if hasattr(block, "text"):
                                response_text += block.text
        except ClaudeSDKError as e:
            raise ModelClientError(
                f"Claude call failed: {e}", code="transport_error", original_error=e
            ) from e

        if not response_text.strip():
            raise ModelClientError("Claude returned an empty response", code="empty_response")

        self.logger.debug("Claude call succeeded", response_length=len(response_text))
        return response_text.strip()


def create_model_client(
    config: ModelConfig,
    credentials: Optional[CredentialManager] = None,
    correlation_id: str = "model-client",
) -> ModelClient:
    """Build the client for the configured provider.

    Raises:
        ConfigurationError: If the provider's credentials are missing
    """
    if config.provider == "claude":
        # claude_agent_sdk authenticates through the local Claude CLI session
        return ClaudeModelClient(config, correlation_id=correlation_id)

    credentials = credentials or CredentialManager()
    return GeminiModelClient(
        config,
        api_key=credentials.get_api_key("gemini"),
        correlation_id=correlation_id,
    )
