"""Request Orchestrator.

Owns every outbound model call in the pipeline:

- Cache: responses keyed by StudentProfile.cache_key() with a fixed TTL.
- Deduplication: a request whose key is already in flight awaits the same
  future instead of calling the model again.
- Batching: new requests queue until batch_size are pending or the batch
  window (batch_timeout_seconds) elapses, whichever comes first.
- Throttling: one CallIntervalGate shared by every batch member enforces the
  minimum interval between outbound calls.
- Retries: transport errors and timeouts are retried with exponential
  backoff via tenacity; validation errors are fatal and never cached.

The orchestrator reports failure and never falls back; fallback policy
belongs to its caller.
"""

import asyncio
import logging
import time
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from src.agents.response_validator import ResponseValidator
from src.models.config import OrchestratorConfig
from src.models.errors import (
    ModelClientError,
    ModelConfigurationError,
    ModelTimeoutError,
    PipelineError,
    QuotaExceededError,
    RateLimitedError,
    ServiceUnavailableError,
    TransportError,
)
from src.models.profile import StudentProfile
from src.models.recommendation import AIResponse
from src.utils.llm_helpers import build_recommendation_prompt
from src.utils.logger import get_logger
from src.utils.model_client import ModelClient
from src.utils.rate_limiter import CallIntervalGate

PromptBuilder = Callable[[StudentProfile, int], str]


class CacheEntry(BaseModel):
    """Cached model response. Replaced wholesale, never mutated."""

    model_config = ConfigDict(frozen=True)

    response: AIResponse
    created_at: float


class BatchRequest(BaseModel):
    """A queued request waiting for its batch to be released."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    profile: StudentProfile
    cache_key: str
    future: asyncio.Future


def _default_prompt_builder(profile: StudentProfile, expected_count: int) -> str:
    return build_recommendation_prompt(profile, expected_count=expected_count)


def _mark_exception_retrieved(future: asyncio.Future) -> None:
    # Callers may have been cancelled; avoid "exception was never retrieved"
    if not future.cancelled():
        future.exception()


def classify_model_error(error: ModelClientError) -> PipelineError:
    """Translate a tagged model client failure into the orchestrator taxonomy."""
    if error.code == "insufficient_quota":
        return QuotaExceededError("AI service quota exceeded", error.details, error)
    if error.code == "rate_limit_exceeded":
        return RateLimitedError("AI service rate limit exceeded", error.details, error)
    if error.code in ("invalid_api_key", "model_not_found"):
        return ModelConfigurationError(
            "AI service configuration error", error.details, error
        )
    if error.code == "timeout":
        return ModelTimeoutError("AI service timeout", error.details, error)
    return TransportError(error.message, error.details, error)


class RequestOrchestrator:
    """Caching, batching, throttling and retrying front end to a ModelClient."""

    def __init__(
        self,
        client: ModelClient,
        config: Optional[OrchestratorConfig] = None,
        validator: Optional[ResponseValidator] = None,
        expected_count: int = 3,
        call_timeout: float = 30.0,
        prompt_builder: PromptBuilder = _default_prompt_builder,
        clock: Callable[[], float] = time.monotonic,
        correlation_id: str = "request-orchestrator",
    ):
        self.client = client
        self.config = config or OrchestratorConfig()
        self.expected_count = expected_count
        self.validator = validator or ResponseValidator(expected_count, correlation_id)
        self.call_timeout = call_timeout
        self.prompt_builder = prompt_builder
        self._clock = clock

        self._gate = CallIntervalGate(self.config.min_call_interval_seconds)
        self._semaphore = asyncio.Semaphore(self.config.max_concurrent_calls)
        self._cache: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Future] = {}
        self._pending: list[BatchRequest] = []
        self._timer: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

        self.outbound_calls = 0
        self.cache_hits = 0
        self.deduplicated_requests = 0
        self.batches_released = 0

        self.logger: Any = get_logger(
            correlation_id=correlation_id,
            phase="orchestration",
            component="request_orchestrator",
        )
        self._retry_logger = logging.getLogger(__name__)

    @property
    def model_identifier(self) -> str:
        return self.client.model_identifier

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_recommendations(self, profile: StudentProfile) -> AIResponse:
        """Return exactly N validated recommendations for a profile.

        Raises:
            ServiceUnavailableError: Retries exhausted on transport errors
            QuotaExceededError: Provider quota exhausted
            RateLimitedError: Provider rate limit hit
            ModelConfigurationError: Invalid credentials or model identifier
            ResponseValidationError: Model output was malformed
        """
        key = profile.cache_key()

        cached = self._get_from_cache(key)
        if cached is not None:
            self.cache_hits += 1
            self.logger.debug("Returning cached response", profile_id=profile.id)
            return cached

        in_flight = self._in_flight.get(key)
        if in_flight is not None:
            self.deduplicated_requests += 1
            self.logger.debug("Joining in-flight request", profile_id=profile.id)
            return await asyncio.shield(in_flight)

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        future.add_done_callback(_mark_exception_retrieved)
        self._in_flight[key] = future
        self._pending.append(BatchRequest(profile=profile, cache_key=key, future=future))
        self._schedule_release()

        return await asyncio.shield(future)

    async def flush(self) -> None:
        """Release every pending request now and wait for all batches to finish."""
        self._cancel_timer()
        self._release_pending(all_pending=True, reason="flush")
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.flush()

    def clear_cache(self) -> None:
        self._cache.clear()

    def get_stats(self) -> dict[str, Any]:
        """Counters and queue state for monitoring."""
        return {
            "outbound_calls": self.outbound_calls,
            "cache_hits": self.cache_hits,
            "deduplicated_requests": self.deduplicated_requests,
            "cache_size": len(self._cache),
            "pending_requests": len(self._pending),
            "in_flight_requests": len(self._in_flight),
            "batches_released": self.batches_released,
            "last_call_time": self._gate.last_call_time,
        }

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _get_from_cache(self, key: str) -> Optional[AIResponse]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._clock() > entry.created_at + self.config.cache_ttl_seconds:
            del self._cache[key]
            return None
        return entry.response

    def _set_cache(self, key: str, response: AIResponse) -> None:
        # Last writer wins if a duplicate call slipped through
        self._cache[key] = CacheEntry(response=response, created_at=self._clock())

    # ------------------------------------------------------------------
    # Batch window
    # ------------------------------------------------------------------

    def _schedule_release(self) -> None:
        if len(self._pending) >= self.config.batch_size:
            self._cancel_timer()
            self._release_pending(all_pending=False, reason="size")

        if self._pending and self._timer is None:
            self._timer = asyncio.create_task(self._release_after_timeout())

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _release_after_timeout(self) -> None:
        await asyncio.sleep(self.config.batch_timeout_seconds)
        self._timer = None
        self._release_pending(all_pending=True, reason="timeout")

    def _release_pending(self, all_pending: bool, reason: str) -> None:
        """Dispatch full batches, plus the remainder when ``all_pending`` is set."""
        size = self.config.batch_size
        while len(self._pending) >= size or (all_pending and self._pending):
            batch = self._pending[:size]
            del self._pending[:size]
            self.batches_released += 1
            self.logger.info(
                "Batch released",
                batch_size=len(batch),
                reason=reason,
                remaining=len(self._pending),
            )
            task = asyncio.create_task(self._process_batch(batch))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    async def _process_batch(self, batch: list[BatchRequest]) -> None:
        """Resolve every member independently; one failure never blocks siblings."""
        results = await asyncio.gather(
            *(self._process_request(request) for request in batch),
            return_exceptions=True,
        )
        failures = sum(1 for r in results if isinstance(r, BaseException))
        self.logger.debug(
            "Batch processed", batch_size=len(batch), failures=failures
        )

    # ------------------------------------------------------------------
    # Single request
    # ------------------------------------------------------------------

    async def _process_request(self, request: BatchRequest) -> None:
        future = request.future
        key = request.cache_key
        try:
            # Populated by another batch since this request was queued
            cached = self._get_from_cache(key)
            if cached is not None:
                self.cache_hits += 1
                response = cached
            else:
                async with self._semaphore:
                    response = await self._call_with_retry(request.profile)
                self._set_cache(key, response)

            if not future.done():
                future.set_result(response)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            self.logger.warning(
                "Request failed",
                profile_id=request.profile.id,
                error_type=type(e).__name__,
                error=str(e),
            )
            if not future.done():
                future.set_exception(e)
            raise
        finally:
            if self._in_flight.get(key) is future:
                del self._in_flight[key]

    async def _call_with_retry(self, profile: StudentProfile) -> AIResponse:
        prompt = self.prompt_builder(profile, self.expected_count)

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.config.max_attempts),
                wait=wait_exponential(
                    multiplier=self.config.retry_base_delay_seconds,
                    max=self.config.retry_max_delay_seconds,
                ),
                retry=retry_if_exception_type(TransportError),
                before_sleep=before_sleep_log(self._retry_logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    raw_text = await self._call_model(
                        prompt, profile.id, attempt.retry_state.attempt_number
                    )
        except TransportError as e:
            self.logger.error(
                "Model path exhausted retries",
                profile_id=profile.id,
                attempts=self.config.max_attempts,
                error=str(e),
            )
            raise ServiceUnavailableError(
                attempts=self.config.max_attempts, original_error=e
            ) from e

        return self.validator.validate_response(raw_text)

    async def _call_model(self, prompt: str, profile_id: str, attempt: int) -> str:
        await self._gate.acquire()
        self.outbound_calls += 1
        self.logger.info("Model call", profile_id=profile_id, attempt=attempt)

        try:
            return await asyncio.wait_for(
                self.client.complete(prompt), timeout=self.call_timeout
            )
        except asyncio.TimeoutError as e:
            raise ModelTimeoutError(
                f"Model call exceeded {self.call_timeout}s",
                {"timeout_seconds": self.call_timeout},
                e,
            ) from e
        except ModelClientError as e:
            raise classify_model_error(e) from e
        except Exception as e:
            # Untagged client failures are treated as transport faults
            self.logger.warning(
                "Untagged model client failure",
                profile_id=profile_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise TransportError(
                f"Model client failed: {e}", {"error_type": type(e).__name__}, e
            ) from e
