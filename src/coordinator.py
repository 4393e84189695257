"""
Recommendation Coordinator Module

Pipeline entry point. Wires the request orchestrator, enrichment matcher and
ranking engine together and applies the fallback policy:

    profile -> orchestrator (cache/batch/throttle/retry) -> validated recommendations
            -> enrichment (reference data) -> ranking (composite score) -> result

If the model path fails and use_fallback_on_failure is set, the coordinator
switches to the deterministic fallback generator for that request.
"""

import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Union

from src.agents.enrichment import EnrichmentMatcher
from src.agents.fallback_generator import FallbackRecommendationGenerator
from src.agents.ranking import RankingEngine
from src.agents.request_orchestrator import RequestOrchestrator
from src.models.config import SystemParams
from src.models.errors import PipelineError
from src.models.profile import StudentProfile
from src.models.recommendation import AIResponse, SynthesisMetadata, SynthesisResult
from src.utils.credential_manager import CredentialManager
from src.utils.logger import get_logger
from src.utils.model_client import create_model_client
from src.utils.reference_store import ReferenceDataStore


class RecommendationSource(Protocol):
    """Anything that turns a profile into an AIResponse."""

    model_identifier: str

    async def get_recommendations(self, profile: StudentProfile) -> AIResponse: ...


class RecommendationCoordinator:
    """
    Runs one synthesis per profile.

    The reference store is injected; nothing here is process-global, so
    several coordinators with different data can run side by side.
    """

    def __init__(
        self,
        store: ReferenceDataStore,
        source: RecommendationSource,
        system_params: Optional[SystemParams] = None,
        fallback: Optional[RecommendationSource] = None,
        correlation_id: Optional[str] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            store: Reference data used for enrichment
            source: Primary recommendation source (usually a RequestOrchestrator)
            system_params: Pipeline configuration (defaults if None)
            fallback: Secondary source used when the primary fails
            correlation_id: Correlation ID for logging (auto-generated if None)
        """
        self.system_params = system_params or SystemParams()
        self.store = store
        self.source = source
        self.fallback = fallback
        self.enrichment = EnrichmentMatcher(store, self.system_params.enrichment)
        self.ranking = RankingEngine(self.system_params.ranking)

        self.correlation_id = correlation_id or str(uuid.uuid4())
        self.logger = get_logger(
            correlation_id=self.correlation_id,
            phase="coordinator",
            component="recommendation_coordinator",
        )
        self.synthesis_count = 0
        self.fallback_count = 0

    @classmethod
    def from_config(
        cls,
        system_params: SystemParams,
        store: ReferenceDataStore,
        offline: bool = False,
        credentials: Optional[CredentialManager] = None,
    ) -> "RecommendationCoordinator":
        """
        Build a coordinator with the configured model provider.

        Args:
            system_params: Validated configuration
            store: Reference data store
            offline: Use the fallback generator as the primary source
            credentials: Credential source for the model provider

        Raises:
            ConfigurationError: If the provider's credentials are missing
        """
        fallback = FallbackRecommendationGenerator(system_params.expected_recommendations)
        if offline:
            return cls(store, fallback, system_params)

        client = create_model_client(system_params.model, credentials)
        orchestrator = RequestOrchestrator(
            client,
            config=system_params.orchestrator,
            expected_count=system_params.expected_recommendations,
            call_timeout=system_params.model.timeout_seconds,
        )
        return cls(
            store,
            orchestrator,
            system_params,
            fallback=fallback if system_params.use_fallback_on_failure else None,
        )

    async def _fetch(self, profile: StudentProfile, log: Any) -> tuple[AIResponse, str, bool]:
        """Primary source, or the fallback when the primary fails."""
        try:
            response = await self.source.get_recommendations(profile)
            return response, self.source.model_identifier, False
        except PipelineError as e:
            if self.fallback is None or not self.system_params.use_fallback_on_failure:
                log.error("Model path failed", error_code=e.code, error=e.message)
                raise
            log.warning(
                "Model path failed, using fallback recommendations",
                error_code=e.code,
                error=e.message,
            )
            self.fallback_count += 1
            response = await self.fallback.get_recommendations(profile)
            return response, self.fallback.model_identifier, True

    async def synthesize(
        self,
        profile: StudentProfile,
        min_score: Optional[int] = None,
        max_count: Optional[int] = None,
    ) -> SynthesisResult:
        """
        Generate ranked, enriched recommendations for one profile.

        Args:
            profile: Student profile
            min_score: Minimum composite score (defaults to ranking.min_match_score)
            max_count: Maximum recommendations (defaults to ranking.max_recommendations)

        Returns:
            SynthesisResult with recommendations, context and metadata. The list
            may be shorter than requested when candidates fall below min_score.

        Raises:
            PipelineError: If the model path fails and no fallback is configured
        """
        start = time.perf_counter()
        log = self.logger.bind(profile_id=profile.id, request_id=str(uuid.uuid4()))
        log.info("Synthesis started")

        response, model_identifier, used_fallback = await self._fetch(profile, log)
        enriched = await self.enrichment.enrich_all(response.recommendations, profile)
        ranked = self.ranking.rank(enriched, profile, min_score, max_count)
        context = self.ranking.build_context(profile, ranked)

        processing_time_ms = int((time.perf_counter() - start) * 1000)
        self.synthesis_count += 1
        log.info(
            "Synthesis complete",
            recommendations=len(ranked),
            model_identifier=model_identifier,
            used_fallback=used_fallback,
            processing_time_ms=processing_time_ms,
        )

        return SynthesisResult(
            recommendations=ranked,
            context=context,
            metadata=SynthesisMetadata(
                generated_at=datetime.now(timezone.utc),
                profile_id=profile.id,
                model_identifier=model_identifier,
                processing_time_ms=processing_time_ms,
                used_fallback=used_fallback,
                reasoning=response.reasoning,
                confidence=response.confidence,
            ),
        )

    async def synthesize_many(
        self,
        profiles: list[StudentProfile],
        min_score: Optional[int] = None,
        max_count: Optional[int] = None,
    ) -> list[Union[SynthesisResult, PipelineError]]:
        """
        Synthesize several profiles concurrently so their model calls share batches.

        Returns:
            One entry per profile, in order: a result, or the PipelineError that
            request failed with. Non-pipeline exceptions propagate.
        """
        results = await asyncio.gather(
            *(self.synthesize(p, min_score, max_count) for p in profiles),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException) and not isinstance(result, PipelineError):
                raise result
        return list(results)

    async def aclose(self) -> None:
        """Wait for any batches the primary source still has in flight."""
        closer = getattr(self.source, "aclose", None)
        if closer is not None:
            await closer()

    def get_stats(self) -> dict[str, Any]:
        source_stats = getattr(self.source, "get_stats", None)
        return {
            "synthesis_count": self.synthesis_count,
            "fallback_count": self.fallback_count,
            "source": source_stats() if source_stats else {},
            "reference_data": self.store.get_statistics(),
        }
